"""
Health simulation tick driver.

Owns the roster, the vessels reported by the assignment provider and the
resource requester, and advances every tracked crew member in one
synchronous pass:

  1. expire timed conditions and drop training for crew on flight duty;
  2. build each crew member's HealthEffect from the modules in scope
     (reads last tick's starvation flags);
  3. evaluate rates and advance HP in closed form over the elapsed time;
  4. progress training for crew training at home;
  5. draw module resources, which sets the starvation flags for the
     next tick.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from constants import CONDITION_TRAINING, MODE_LIVE, ROSTER_ASSIGNED
from crew_health import CrewHealthStatus, TrainingItem
from health_config import HealthSettings
from health_effect import HealthEffect, ScopedModule, exposure
from health_factors import CrewAssignment, EvaluationContext
from health_module import HealthModule, ResourceRequester
from roster import CrewRoster
from sim_service import seconds_to_days

log = logging.getLogger(__name__)


def _grant_everything(resource_id: str, amount: float) -> float:
    return amount


@dataclass
class VesselSnapshot:
    vessel_id: str
    name: str = ""
    body_id: Optional[str] = None
    altitude_m: float = 0.0
    loaded: bool = True
    modules: List[HealthModule] = field(default_factory=list)
    # crew name -> part id
    crew: Dict[str, str] = field(default_factory=dict)

    @property
    def crew_count(self) -> int:
        return len(self.crew)

    def part_crew_count(self, part_id: Optional[str]) -> int:
        return sum(1 for p in self.crew.values() if p == part_id)

    def crew_parts(self) -> List[str]:
        return sorted(set(self.crew.values()))

    def affected_crew(self, module: HealthModule) -> int:
        return module.affected_crew_count(self.crew_count, self.part_crew_count(module.part_id))

    def modules_in_scope(self, part_id: Optional[str] = None) -> List[ScopedModule]:
        """Vessel-wide modules plus part-only modules of `part_id`."""
        out: List[ScopedModule] = []
        for module in self.modules:
            if module.configuration.part_crew_only and module.part_id != part_id:
                continue
            out.append(ScopedModule(module, self.affected_crew(module)))
        return out

    def assignment_for(self, crew_name: str, roster_status: str = ROSTER_ASSIGNED) -> CrewAssignment:
        return CrewAssignment(
            roster_status=roster_status,
            vessel_id=self.vessel_id,
            part_id=self.crew.get(crew_name),
            body_id=self.body_id,
            altitude_m=self.altitude_m,
            crew_count=self.crew_count,
            loaded=self.loaded,
        )

    def training_items(self) -> List[TrainingItem]:
        return [TrainingItem(m.module_id, m.complexity) for m in self.modules if m.complexity > 0]

    def to_payload(self) -> Dict[str, Any]:
        return {
            "vessel_id": self.vessel_id,
            "name": self.name,
            "body_id": self.body_id,
            "altitude_m": self.altitude_m,
            "loaded": self.loaded,
            "crew": dict(self.crew),
            "modules": [m.to_payload() for m in self.modules],
        }


def crew_effect(vessel: VesselSnapshot, part_id: Optional[str], ctx: EvaluationContext) -> HealthEffect:
    return HealthEffect.from_modules(vessel.modules_in_scope(part_id), ctx)


def vessel_effect(vessel: VesselSnapshot, ctx: EvaluationContext) -> HealthEffect:
    """Vessel-wide effect plus the best-shielded crewed part as shelter."""
    effect = HealthEffect.from_modules(vessel.modules_in_scope(None), ctx)
    best: Optional[float] = None
    for part_id in vessel.crew_parts() or [None]:
        local = HealthEffect.from_modules(
            [s for s in vessel.modules_in_scope(part_id) if s.module.configuration.part_crew_only],
            ctx,
        )
        part_exposure = exposure(effect.shielding + local.shielding, effect.base_exposure)
        best = part_exposure if best is None else min(best, part_exposure)
    effect.shelter_exposure = best
    return effect


class HealthSimulation:
    """Owns the roster, vessels and designs.

    Every read or write of that state goes through a method holding
    ``self.lock``, so HTTP handlers running in worker threads never see a
    tick half applied.  The lock is re-entrant: resource requesters and
    reports may call back into the simulation while a tick holds it.
    """

    def __init__(
        self,
        settings: HealthSettings,
        roster: Optional[CrewRoster] = None,
        request_resource: Optional[ResourceRequester] = None,
    ):
        self.settings = settings
        self.roster = roster if roster is not None else CrewRoster(settings)
        self.request_resource = request_resource or _grant_everything
        self.vessels: Dict[str, VesselSnapshot] = {}
        # Vessels still being designed; their crew stay available at home
        self.designs: Dict[str, VesselSnapshot] = {}
        self.last_tick_s: Optional[float] = None
        self.ctx = EvaluationContext(settings=settings, mode=MODE_LIVE)
        self.lock = threading.RLock()

    # ── Vessels ────────────────────────────────────────────

    def set_vessel(self, vessel: VesselSnapshot) -> None:
        with self.lock:
            self.vessels[vessel.vessel_id] = vessel

    def remove_vessel(self, vessel_id: str) -> Optional[VesselSnapshot]:
        with self.lock:
            return self.vessels.pop(vessel_id, None)

    def set_design(self, design: VesselSnapshot) -> None:
        with self.lock:
            self.designs[design.vessel_id] = design

    def vessel_payload(self, vessel_id: str, design: bool = False) -> Optional[Dict[str, Any]]:
        with self.lock:
            vessel = (self.designs if design else self.vessels).get(vessel_id)
            return vessel.to_payload() if vessel is not None else None

    def _module(self, vessel_id: str, module_id: str) -> HealthModule:
        vessel = self.vessels.get(vessel_id)
        if vessel is None:
            raise KeyError(f"Unknown vessel: {vessel_id}")
        for module in vessel.modules:
            if module.module_id == module_id:
                return module
        raise KeyError(f"Unknown module: {module_id}")

    def toggle_module(self, vessel_id: str, module_id: str) -> Dict[str, Any]:
        with self.lock:
            module = self._module(vessel_id, module_id)
            module.toggle_active()
            return module.to_payload()

    def switch_module(self, vessel_id: str, module_id: str) -> Dict[str, Any]:
        with self.lock:
            module = self._module(vessel_id, module_id)
            module.switch_configuration()
            return module.to_payload()

    def vessel_of(self, crew_name: str) -> Optional[VesselSnapshot]:
        with self.lock:
            for vessel in self.vessels.values():
                if crew_name in vessel.crew:
                    return vessel
            return None

    def assignment_for(self, crew_name: str) -> CrewAssignment:
        vessel = self.vessel_of(crew_name)
        if vessel is None:
            return CrewAssignment()
        return vessel.assignment_for(crew_name)

    # ── Crew ───────────────────────────────────────────────

    def register_crew(self, name: str, **kwargs: Any) -> Optional[Dict[str, Any]]:
        """Start tracking a crew member. Returns None if the name is taken."""
        with self.lock:
            if name in self.roster:
                return None
            return self.roster.register(name, **kwargs).clone().to_payload()

    def remove_crew(self, name: str) -> None:
        with self.lock:
            self.roster.remove(name)

    def crew_payload(self, name: str) -> Dict[str, Any]:
        with self.lock:
            return self.roster.snapshot(name).to_payload()

    def roster_payload(self) -> List[Dict[str, Any]]:
        with self.lock:
            return self.roster.to_payload()

    def add_condition(
        self,
        crew_name: str,
        kind: str,
        now_s: float = 0.0,
        duration_days: Optional[float] = None,
    ) -> Tuple[bool, List[str]]:
        with self.lock:
            status = self.roster.get(crew_name)
            added = status.add_condition(kind, now_s, duration_days)
            return added, sorted(status.conditions)

    def remove_condition(self, crew_name: str, kind: str) -> Tuple[bool, List[str]]:
        with self.lock:
            status = self.roster.get(crew_name)
            removed = status.remove_condition(kind)
            return removed, sorted(status.conditions)

    # ── Evaluation ─────────────────────────────────────────

    def evaluate(self, status: CrewHealthStatus) -> None:
        vessel = self.vessel_of(status.name)
        if vessel is None:
            status.evaluate_rates(CrewAssignment(), None, self.ctx)
            return
        assignment = vessel.assignment_for(status.name)
        status.evaluate_rates(assignment, crew_effect(vessel, assignment.part_id, self.ctx), self.ctx)

    def tick(self, now_s: float) -> float:
        """Advance the whole roster to `now_s`. Returns elapsed days."""
        with self.lock:
            elapsed_s = 0.0 if self.last_tick_s is None else max(0.0, now_s - self.last_tick_s)
            days = seconds_to_days(elapsed_s, self.settings.day_length_s)

            for status in self.roster:
                status.expire_conditions(now_s)
                self.evaluate(status)
                if status.assignment.is_assigned and status.has_condition(CONDITION_TRAINING):
                    log.info("%s is on flight duty; training interrupted.", status.name)
                    status.remove_condition(CONDITION_TRAINING)
                    self.evaluate(status)
                status.advance(days, now_s)
                if not status.assignment.is_assigned:
                    status.train(days)

            for vessel in list(self.vessels.values()):
                for module in list(vessel.modules):
                    module.process_resources(now_s, vessel.affected_crew(module), self.request_resource)

            self.last_tick_s = now_s
            return days

    # ── Commands ───────────────────────────────────────────

    def start_training(self, crew_name: str, design_id: str, now_s: float = 0.0) -> List[TrainingItem]:
        """Train a crew member at home for the modules of a vessel design."""
        with self.lock:
            status = self.roster.get(crew_name)
            design = self.designs.get(design_id)
            if design is None:
                raise KeyError(design_id)
            status.assignment = self.assignment_for(crew_name)
            items = design.training_items()
            status.start_training(items, design.name or design.vessel_id, now_s)
            return items

    def design_report(self, design_id: str, ctx: EvaluationContext) -> Dict[str, Any]:
        from health_report import build_health_report

        with self.lock:
            design = self.designs.get(design_id)
            if design is None:
                raise KeyError(design_id)
            return build_health_report(self.roster, design, ctx)

    def train_design(self, design_id: str, ctx: EvaluationContext, now_s: float = 0.0) -> Dict[str, List[str]]:
        """Start training the whole manifest of a design."""
        from health_report import train_manifest

        with self.lock:
            design = self.designs.get(design_id)
            if design is None:
                raise KeyError(design_id)
            for name in design.crew:
                status = self.roster.find(name)
                if status is not None:
                    status.assignment = self.assignment_for(name)
            return train_manifest(self.roster, design, ctx, now_s)

    def forecast_payload(self, crew_name: str) -> Dict[str, Any]:
        with self.lock:
            status = self.roster.snapshot(crew_name)
            self.evaluate(status)
            vessel = self.vessel_of(crew_name)
            training_days = None
            if status.has_condition(CONDITION_TRAINING):
                training_days = status.training_time_days(status.training_items)
            elif vessel is not None:
                training_days = status.training_time_days(vessel.training_items())
        forecast = status.forecast()
        return {
            "name": status.name,
            "hp": status.hp,
            "change_per_day": forecast.change_per_day,
            "balance_hp": forecast.balance_hp,
            "next_condition_hp": status.next_condition_hp(),
            "time_to_next_condition_days": status.time_to_next_condition(),
            "training_time_days": training_days,
        }
