"""
Design-time health report.

Estimates how a planned crew would fare aboard a vessel that is still
being designed: balance HP (or HP/day when nothing pulls HP toward a
balance), days until the next condition, remaining training time, and the
vessel-wide space / recuperation / shielding / exposure summary.

Every estimate runs on cloned crew states at full HP, so building a report
never mutates the live roster.
"""

import logging
from typing import Any, Dict, List

from constants import MODE_ESTIMATE, ROSTER_ASSIGNED
from health_config import HealthSettings
from health_factors import FACTORS, EvaluationContext
from health_service import VesselSnapshot, crew_effect, vessel_effect
from roster import CrewRoster

log = logging.getLogger(__name__)


def new_estimate_context(settings: HealthSettings) -> EvaluationContext:
    return EvaluationContext(settings=settings, mode=MODE_ESTIMATE)


def factor_checklist(ctx: EvaluationContext) -> List[Dict[str, Any]]:
    items = [
        {"name": f.name, "title": f.title, "enabled": ctx.factor_enabled(f)}
        for f in FACTORS.values()
    ]
    if ctx.settings.training_enabled:
        items.append({"name": "Training", "title": "Trained", "enabled": ctx.training_enabled})
    items.append({"name": "HealthModules", "title": "Health Modules", "enabled": ctx.health_modules_enabled})
    return items


def _crew_row(roster: CrewRoster, vessel: VesselSnapshot, name: str, ctx: EvaluationContext) -> Dict[str, Any]:
    status = roster.snapshot(name)
    status.hp = status.max_hp
    assignment = vessel.assignment_for(name, roster_status=ROSTER_ASSIGNED)
    status.evaluate_rates(assignment, crew_effect(vessel, assignment.part_id, ctx), ctx)
    forecast = status.forecast()
    balance = forecast.balance_hp
    next_hp = status.next_condition_hp()

    mission_time = None
    if balance is None or balance <= next_hp:
        mission_time = status.time_to_next_condition()

    training_time = None
    if ctx.settings.training_enabled and ctx.training_enabled:
        training_time = status.training_time_days(vessel.training_items())

    return {
        "name": status.name,
        "balance_hp": balance,
        "balance_pct": (balance / status.max_hp * 100.0) if balance is not None else None,
        "change_per_day": forecast.change_per_day,
        "mission_time_days": mission_time,
        "mission_time_is_lower_bound": forecast.recuperation > forecast.decay,
        "training_time_days": training_time,
    }


def build_health_report(roster: CrewRoster, vessel: VesselSnapshot, ctx: EvaluationContext) -> Dict[str, Any]:
    rows: List[Dict[str, Any]] = []
    for name in sorted(vessel.crew):
        if name not in roster:
            log.error("Crew member %s on %s is not tracked by the roster.", name, vessel.vessel_id)
            continue
        rows.append(_crew_row(roster, vessel, name, ctx))

    effect = vessel_effect(vessel, ctx)
    log.debug("Vessel effects for %s: %s", vessel.vessel_id, effect)
    return {
        "vessel_id": vessel.vessel_id,
        "crew": rows,
        "vessel": {
            "space": effect.space,
            "recuperation": effect.recuperation,
            "shielding": effect.shielding,
            "exposure": effect.exposure,
            "shelter_exposure": effect.shelter_exposure,
        },
        "checklist": factor_checklist(ctx),
    }


def train_manifest(roster: CrewRoster, vessel: VesselSnapshot, ctx: EvaluationContext, now_s: float = 0.0) -> Dict[str, List[str]]:
    """Start training every crew member on the manifest who can train at home."""
    started: List[str] = []
    failed: List[str] = []
    if not ctx.settings.training_enabled:
        return {"started": started, "failed": failed}

    items = vessel.training_items()
    for name in sorted(vessel.crew):
        status = roster.find(name)
        if status is None:
            continue
        if status.can_train_at_home():
            status.start_training(items, vessel.name or vessel.vessel_id, now_s)
            started.append(name)
        else:
            log.info(
                "%s can't train. They are %s and at %.1f%% health.",
                name, status.assignment.roster_status, status.health * 100.0,
            )
            failed.append(name)
    return {"started": started, "failed": failed}
