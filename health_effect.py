"""
Module effect aggregation.

Combines every active health module that affects a crew member (or a
whole vessel) into one HealthEffect: flat HP change, total recuperation
and decay, per-factor multipliers, living space, shielding and radiation
exposure.  Effects are rebuilt for each evaluation and never persisted.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

from constants import ALL_FACTORS
from health_factors import EvaluationContext
from health_module import HealthModule


class ScopedModule(NamedTuple):
    module: HealthModule
    affected_crew: int


def exposure(shielding: float, base_exposure: float = 1.0) -> float:
    """Radiation exposure behind `shielding` halving thicknesses."""
    return base_exposure * 2.0 ** (-shielding)


def combine_multipliers(*multipliers: float) -> float:
    out = 1.0
    for m in multipliers:
        out *= m
    return out


@dataclass
class HealthEffect:
    hp_change_per_day: float = 0.0
    recuperation: float = 0.0
    decay: float = 0.0
    multipliers: Dict[str, float] = field(default_factory=dict)
    space: float = 0.0
    shielding: float = 0.0
    radioactivity: float = 0.0
    base_exposure: float = 1.0
    shelter_exposure: Optional[float] = None
    starving_modules: List[str] = field(default_factory=list)

    @classmethod
    def from_modules(
        cls,
        scoped: Iterable[ScopedModule],
        ctx: EvaluationContext,
    ) -> "HealthEffect":
        effect = cls(base_exposure=ctx.settings.base_exposure)
        for module, affected in scoped:
            effect.add_module(module, affected, ctx)
        return effect

    def add_module(self, module: HealthModule, affected_crew: int, ctx: EvaluationContext) -> None:
        if not module.is_module_active(ctx):
            if module.is_active and module.starving and not module.is_always_active:
                self.starving_modules.append(module.module_id)
            return
        cfg = module.configuration
        self.hp_change_per_day += cfg.hp_change_per_day
        self.recuperation += module.recuperation_power(affected_crew)
        self.decay += module.decay_power(affected_crew)
        if cfg.multiplier != 1:
            key = cfg.multiply_factor or ALL_FACTORS
            self.multipliers[key] = self.multipliers.get(key, 1.0) * module.multiplier_power(affected_crew)
        self.space += cfg.space
        self.shielding += cfg.shielding
        self.radioactivity += cfg.radioactivity

    def multiplier_for(self, factor_name: str) -> float:
        if factor_name == ALL_FACTORS:
            return self.multipliers.get(ALL_FACTORS, 1.0)
        return combine_multipliers(self.multipliers.get(factor_name, 1.0), self.multipliers.get(ALL_FACTORS, 1.0))

    @property
    def exposure(self) -> float:
        return exposure(self.shielding, self.base_exposure)

    def radiation_per_day(self, environment_radiation: float = 0.0) -> float:
        """Dose per day from the environment and on-board emitters after shielding."""
        return (environment_radiation + self.radioactivity) * self.exposure

    @property
    def is_starving(self) -> bool:
        return bool(self.starving_modules)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "hp_change_per_day": self.hp_change_per_day,
            "recuperation": self.recuperation,
            "decay": self.decay,
            "multipliers": dict(self.multipliers),
            "space": self.space,
            "shielding": self.shielding,
            "radioactivity": self.radioactivity,
            "exposure": self.exposure,
            "shelter_exposure": self.shelter_exposure,
            "starving_modules": list(self.starving_modules),
        }
