"""
Per-crew health state.

CrewHealthStatus owns one crew member's HP, active conditions and training
progress.  Rates are evaluated from the registered factors and the module
HealthEffect in scope, then handed to the forecaster, which advances HP in
closed form over any interval (a physics tick or a long unloaded stretch).
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

from constants import (
    CONDITION_EXHAUSTED,
    CONDITION_KINDS,
    CONDITION_TRAINING,
    ROSTER_AVAILABLE,
)
from forecaster import HealthForecast
from health_config import HealthSettings
from health_effect import HealthEffect
from health_factors import FACTORS, CrewAssignment, EvaluationContext
from sim_service import days_to_seconds

log = logging.getLogger(__name__)


class TrainingItem(NamedTuple):
    item_id: str
    complexity: float


@dataclass
class HealthRates:
    # HP/day per factor after multipliers
    factors: Dict[str, float] = field(default_factory=dict)
    hp_change_per_day: float = 0.0
    recuperation: float = 0.0
    decay: float = 0.0

    @property
    def constant_rate(self) -> float:
        return sum(self.factors.values()) + self.hp_change_per_day


class CrewHealthStatus:
    def __init__(
        self,
        name: str,
        settings: HealthSettings,
        experience_level: int = 0,
        is_veteran: bool = False,
        stupidity: float = 0.5,
        hp: Optional[float] = None,
    ):
        self.name = name
        self.settings = settings
        self.experience_level = int(experience_level)
        self.is_veteran = bool(is_veteran)
        self.stupidity = float(stupidity)
        self.conditions: Dict[str, Dict[str, Any]] = {}
        self.training_levels: Dict[str, float] = {}
        self.training_items: List[TrainingItem] = []
        self.training_vessel: Optional[str] = None
        self.assignment = CrewAssignment()
        self.rates = HealthRates()
        self._unloaded_cache: Dict[str, float] = {}
        self._hp = self.max_hp
        if hp is not None:
            self.hp = hp

    # ── HP ─────────────────────────────────────────────────

    @property
    def max_hp(self) -> float:
        return self.settings.base_max_hp + self.settings.hp_per_level * self.experience_level

    @property
    def min_hp(self) -> float:
        return self.settings.min_hp

    @property
    def hp(self) -> float:
        return self._hp

    @hp.setter
    def hp(self, value: float) -> None:
        self._hp = max(self.min_hp, min(self.max_hp, float(value)))

    @property
    def health(self) -> float:
        """HP as a fraction of the [min, max] range."""
        span = self.max_hp - self.min_hp
        return (self._hp - self.min_hp) / span if span > 0 else 0.0

    # ── Conditions ─────────────────────────────────────────

    def has_condition(self, kind: str) -> bool:
        return kind in self.conditions

    def add_condition(self, kind: str, now_s: float = 0.0, duration_days: Optional[float] = None) -> bool:
        """Add a condition, or restart its timer if already present.

        Returns True when the condition was not active before.
        """
        if kind not in CONDITION_KINDS:
            raise ValueError(f"Unknown condition: {kind}")
        added = kind not in self.conditions
        data: Dict[str, Any] = {"since_s": float(now_s)}
        if duration_days is not None:
            data["expires_s"] = float(now_s) + days_to_seconds(duration_days, self.settings.day_length_s)
        self.conditions[kind] = data
        if added:
            log.info("%s acquired condition %s.", self.name, kind)
        return added

    def remove_condition(self, kind: str) -> bool:
        if kind not in CONDITION_KINDS:
            raise ValueError(f"Unknown condition: {kind}")
        if self.conditions.pop(kind, None) is None:
            return False
        log.info("%s lost condition %s.", self.name, kind)
        if kind == CONDITION_TRAINING:
            self.training_items = []
            self.training_vessel = None
        return True

    def expire_conditions(self, now_s: float) -> List[str]:
        expired = [
            kind for kind, data in self.conditions.items()
            if data.get("expires_s") is not None and data["expires_s"] <= now_s
        ]
        for kind in expired:
            self.remove_condition(kind)
        return expired

    def hp_at_health(self, health: float) -> float:
        """HP for a fraction of the [min, max] range."""
        return self.min_hp + health * (self.max_hp - self.min_hp)

    def next_condition_hp(self) -> float:
        if self.has_condition(CONDITION_EXHAUSTED):
            return self.hp_at_health(self.settings.exhaustion_end_health)
        return self.hp_at_health(self.settings.exhaustion_start_health)

    def _update_exhaustion(self, now_s: float) -> None:
        if self.has_condition(CONDITION_EXHAUSTED):
            if self._hp >= self.hp_at_health(self.settings.exhaustion_end_health):
                self.remove_condition(CONDITION_EXHAUSTED)
        elif self._hp < self.hp_at_health(self.settings.exhaustion_start_health):
            self.add_condition(CONDITION_EXHAUSTED, now_s)

    # ── Rates ──────────────────────────────────────────────

    def evaluate_rates(
        self,
        assignment: Optional[CrewAssignment],
        effect: Optional[HealthEffect],
        ctx: EvaluationContext,
    ) -> HealthRates:
        if assignment is not None:
            self.assignment = assignment
        effect = effect or HealthEffect(base_exposure=ctx.settings.base_exposure)
        use_cache = not ctx.is_estimate and assignment is not None and not assignment.loaded
        if not use_cache:
            self._unloaded_cache.clear()

        factors: Dict[str, float] = {}
        for name, factor in FACTORS.items():
            if use_cache and factor.constant_for_unloaded and name in self._unloaded_cache:
                raw = self._unloaded_cache[name]
            else:
                raw = factor.change_per_day(self, assignment, ctx)
                if use_cache and factor.constant_for_unloaded:
                    self._unloaded_cache[name] = raw
            factors[name] = raw * effect.multiplier_for(name)

        recuperation = effect.recuperation
        at_home = assignment is None or not assignment.is_assigned
        if not ctx.is_estimate and at_home and not self.has_condition(CONDITION_TRAINING):
            recuperation += self.settings.free_time_recuperation

        self.rates = HealthRates(
            factors=factors,
            hp_change_per_day=effect.hp_change_per_day,
            recuperation=recuperation,
            decay=effect.decay,
        )
        return self.rates

    def forecast(self) -> HealthForecast:
        return HealthForecast(
            hp=self._hp,
            max_hp=self.max_hp,
            min_hp=self.min_hp,
            constant_rate=self.rates.constant_rate,
            recuperation=self.rates.recuperation,
            decay=self.rates.decay,
        )

    @property
    def change_per_day(self) -> float:
        return self.forecast().change_per_day

    def balance_hp(self) -> Optional[float]:
        return self.forecast().balance_hp

    def time_to_next_condition(self) -> Optional[float]:
        """Days until the next exhaustion transition, None if it never happens."""
        return self.forecast().time_to(self.next_condition_hp())

    def advance(self, days: float, now_s: float = 0.0) -> float:
        """Move HP along the current rates for `days`. Returns the new HP."""
        if days > 0:
            self.hp = self.forecast().hp_at(days)
        self._update_exhaustion(now_s)
        return self._hp

    # ── Training ───────────────────────────────────────────

    @property
    def training_per_day(self) -> float:
        return self.settings.training_speed / (1.0 + self.stupidity * self.settings.stupidity_penalty)

    def training_level(self, item_id: str) -> float:
        return self.training_levels.get(item_id, 0.0)

    def can_train_at_home(self) -> bool:
        return (
            self.settings.training_enabled
            and self.assignment.roster_status == ROSTER_AVAILABLE
            and self.health >= self.settings.training_min_health
        )

    def training_time_days(self, items: Iterable[TrainingItem]) -> float:
        cap = self.settings.training_cap
        remaining = sum(max(0.0, cap - self.training_level(i.item_id)) * i.complexity for i in items)
        return remaining / self.training_per_day

    def start_training(self, items: Iterable[TrainingItem], vessel_name: str, now_s: float = 0.0) -> None:
        if not self.can_train_at_home():
            raise ValueError(f"{self.name} can't train right now")
        self.training_items = [i for i in items if i.complexity > 0]
        self.training_vessel = vessel_name
        self.add_condition(CONDITION_TRAINING, now_s)
        log.info("%s started training for %s (%d items).", self.name, vessel_name, len(self.training_items))

    def train(self, days: float) -> None:
        """Spend `days` of training time on the current training items."""
        if not self.has_condition(CONDITION_TRAINING) or days <= 0:
            return
        cap = self.settings.training_cap
        per_day = self.training_per_day
        for item in self.training_items:
            level = self.training_level(item.item_id)
            self.training_levels[item.item_id] = min(cap, level + days * per_day / item.complexity)
        if all(self.training_level(i.item_id) >= cap for i in self.training_items):
            log.info("%s completed training for %s.", self.name, self.training_vessel)
            self.remove_condition(CONDITION_TRAINING)

    # ── Snapshots ──────────────────────────────────────────

    def clone(self) -> "CrewHealthStatus":
        return copy.deepcopy(self)

    def to_payload(self) -> Dict[str, Any]:
        forecast = self.forecast()
        return {
            "name": self.name,
            "hp": self._hp,
            "max_hp": self.max_hp,
            "min_hp": self.min_hp,
            "health": self.health,
            "experience_level": self.experience_level,
            "is_veteran": self.is_veteran,
            "roster_status": self.assignment.roster_status,
            "vessel_id": self.assignment.vessel_id,
            "conditions": {k: dict(v) for k, v in self.conditions.items()},
            "training_levels": dict(self.training_levels),
            "training_vessel": self.training_vessel,
            "factors": dict(self.rates.factors),
            "recuperation": self.rates.recuperation,
            "decay": self.rates.decay,
            "change_per_day": forecast.change_per_day,
            "balance_hp": forecast.balance_hp,
        }
