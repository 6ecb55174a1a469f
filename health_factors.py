"""
Health factors — independent contributors to a crew member's daily HP change.

Every factor implements the same contract,
``change_per_day(status, assignment, ctx) -> HP/day`` before multipliers,
and is looked up by its stable name in ``FACTORS``.  Adding a factor means
writing one evaluator and registering it.

Factors are total functions: missing vessel/body context is logged and
treated as a zero contribution.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, Optional

from constants import (
    FACTOR_HOME,
    FACTOR_LONELINESS,
    FACTOR_SICKNESS,
    CONDITION_SICK,
    MODE_ESTIMATE,
    MODE_LIVE,
    ROSTER_ASSIGNED,
    ROSTER_AVAILABLE,
)
from health_config import HealthSettings

if TYPE_CHECKING:
    from crew_health import CrewHealthStatus

log = logging.getLogger(__name__)


# ── Evaluation inputs ──────────────────────────────────────

@dataclass(frozen=True)
class CrewAssignment:
    """Roster provider's view of where a crew member is right now."""

    roster_status: str = ROSTER_AVAILABLE
    vessel_id: Optional[str] = None
    part_id: Optional[str] = None
    body_id: Optional[str] = None
    altitude_m: float = 0.0
    crew_count: int = 0
    loaded: bool = True

    @property
    def is_assigned(self) -> bool:
        return self.roster_status == ROSTER_ASSIGNED


@dataclass
class EvaluationContext:
    """Live simulation or design-time estimate, plus the estimate toggles."""

    settings: HealthSettings
    mode: str = MODE_LIVE
    factor_toggles: Dict[str, bool] = field(default_factory=dict)
    health_modules_enabled: bool = True
    training_enabled: bool = True

    @property
    def is_estimate(self) -> bool:
        return self.mode == MODE_ESTIMATE

    def factor_enabled(self, factor: "HealthFactor") -> bool:
        return self.factor_toggles.get(factor.name, factor.enabled_in_estimate_by_default)

    def set_factor_enabled(self, name: str, enabled: bool) -> None:
        if name not in FACTORS:
            raise KeyError(name)
        self.factor_toggles[name] = bool(enabled)

    def reset_toggles(self) -> None:
        self.factor_toggles.clear()
        self.health_modules_enabled = True
        self.training_enabled = True


Evaluator = Callable[["HealthFactor", "CrewHealthStatus", Optional[CrewAssignment], EvaluationContext], float]


@dataclass(frozen=True)
class HealthFactor:
    name: str
    title: str
    evaluator: Evaluator
    # False for factors that cannot reuse a cached value on unloaded vessels
    constant_for_unloaded: bool = True
    enabled_in_estimate_by_default: bool = True

    def base_change_per_day(self, settings: HealthSettings) -> float:
        return settings.factor_rate(self.name)

    def change_per_day(
        self,
        status: "CrewHealthStatus",
        assignment: Optional[CrewAssignment],
        ctx: EvaluationContext,
    ) -> float:
        if ctx.is_estimate and not ctx.factor_enabled(self):
            return 0.0
        return float(self.evaluator(self, status, assignment, ctx))


# ── Registry ───────────────────────────────────────────────

FACTORS: Dict[str, HealthFactor] = {}


def register_factor(factor: HealthFactor) -> HealthFactor:
    if factor.name in FACTORS:
        raise ValueError(f"Duplicate health factor name: {factor.name}")
    FACTORS[factor.name] = factor
    return factor


def get_factor(name: str) -> HealthFactor:
    return FACTORS[name]


# ── Concrete factors ───────────────────────────────────────

def _home_change_per_day(
    factor: HealthFactor,
    status: "CrewHealthStatus",
    assignment: Optional[CrewAssignment],
    ctx: EvaluationContext,
) -> float:
    base = factor.base_change_per_day(ctx.settings)
    if ctx.is_estimate:
        # No vessel exists yet; the toggle alone decides
        return base
    if assignment is None or not assignment.is_assigned:
        log.debug("Home factor is off: %s is not assigned.", status.name)
        return 0.0
    body = ctx.settings.body(assignment.body_id)
    if body is None:
        log.error("Could not find main body for %s (vessel %s, body %s).", status.name, assignment.vessel_id, assignment.body_id)
        return 0.0
    if body.is_home and assignment.altitude_m < body.flying_altitude_threshold_m:
        log.debug("Home factor is on for %s.", status.name)
        return base
    log.debug("Home factor is off for %s. Main body: %s; altitude: %.0f.", status.name, body.id, assignment.altitude_m)
    return 0.0


def _loneliness_change_per_day(
    factor: HealthFactor,
    status: "CrewHealthStatus",
    assignment: Optional[CrewAssignment],
    ctx: EvaluationContext,
) -> float:
    if assignment is None:
        log.error("Loneliness factor has no assignment context for %s.", status.name)
        return 0.0
    if not ctx.is_estimate and not assignment.is_assigned:
        return 0.0
    if assignment.crew_count <= 1 and not status.is_veteran:
        return factor.base_change_per_day(ctx.settings)
    return 0.0


def _sickness_change_per_day(
    factor: HealthFactor,
    status: "CrewHealthStatus",
    assignment: Optional[CrewAssignment],
    ctx: EvaluationContext,
) -> float:
    if status.has_condition(CONDITION_SICK):
        return factor.base_change_per_day(ctx.settings)
    return 0.0


HOME_FACTOR = register_factor(HealthFactor(
    name=FACTOR_HOME,
    title="Home",
    evaluator=_home_change_per_day,
    enabled_in_estimate_by_default=False,
))

LONELINESS_FACTOR = register_factor(HealthFactor(
    name=FACTOR_LONELINESS,
    title="Loneliness",
    evaluator=_loneliness_change_per_day,
))

SICKNESS_FACTOR = register_factor(HealthFactor(
    name=FACTOR_SICKNESS,
    title="Sickness",
    evaluator=_sickness_change_per_day,
    constant_for_unloaded=False,
))
