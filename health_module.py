"""
Health module instances.

A HealthModule sits on one vessel part and references one of its
configurations.  It owns the mutable per-instance state: whether the
player switched it on, whether it is starving of its resource, the last
resource draw and when it was last processed.

Resource starvation is lagged by one tick: ``process_resources`` records
this tick's supply outcome, and the next effect evaluation reads it.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from constants import DEFAULT_RESOURCE, STARVATION_SUPPLY_RATIO
from health_factors import EvaluationContext
from module_config import ModuleConfiguration

log = logging.getLogger(__name__)

# request_resource(resource_id, amount) -> granted amount
ResourceRequester = Callable[[str, float], float]


def crew_cap_ratio(crew_cap: int, affected_crew: int) -> float:
    """Share of full strength left after crew-cap de-rating."""
    if crew_cap <= 0 or affected_crew <= 0:
        return 1.0
    return min(float(crew_cap) / float(affected_crew), 1.0)


@dataclass
class HealthModule:
    module_id: str
    part_id: str
    configs: List[ModuleConfiguration] = field(default_factory=lambda: [ModuleConfiguration()])
    config_index: int = 0
    # 0 if no training is needed for this part, 1 for standard complexity
    complexity: float = 0.0
    is_active: bool = True
    starving: bool = False
    resource_per_second: float = 0.0
    last_updated_s: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.configs:
            raise ValueError(f"Health module {self.module_id} needs at least one configuration")
        self.config_index %= len(self.configs)
        if self.is_always_active:
            self.is_active = True

    @property
    def configuration(self) -> ModuleConfiguration:
        return self.configs[self.config_index]

    @property
    def title(self) -> str:
        return self.configuration.display_title

    @property
    def is_always_active(self) -> bool:
        return not self.configuration.consumes_resource

    def is_module_active(self, ctx: EvaluationContext) -> bool:
        if self.is_always_active:
            return True
        if ctx.is_estimate:
            return self.is_active and ctx.health_modules_enabled
        return self.is_active and not self.starving

    # ── Crew counts ────────────────────────────────────────

    def affected_crew_count(self, vessel_crew: int, part_crew: int) -> int:
        return part_crew if self.configuration.part_crew_only else vessel_crew

    def capped_affected_crew_count(self, affected_crew: int) -> int:
        cap = self.configuration.crew_cap
        return min(affected_crew, cap) if cap > 0 else affected_crew

    # ── Effect strengths ───────────────────────────────────

    def recuperation_power(self, affected_crew: int) -> float:
        cfg = self.configuration
        return cfg.recuperation * crew_cap_ratio(cfg.crew_cap, affected_crew)

    def decay_power(self, affected_crew: int) -> float:
        cfg = self.configuration
        return cfg.decay * crew_cap_ratio(cfg.crew_cap, affected_crew)

    def multiplier_power(self, affected_crew: int) -> float:
        """Multiplier with its deviation from 1 de-rated by the crew cap."""
        cfg = self.configuration
        return 1.0 + (cfg.multiplier - 1.0) * crew_cap_ratio(cfg.crew_cap, affected_crew)

    def total_resource_consumption(self, affected_crew: int) -> float:
        cfg = self.configuration
        return cfg.resource_consumption + cfg.resource_consumption_per_crew * self.capped_affected_crew_count(affected_crew)

    # ── Resource gate ──────────────────────────────────────

    def process_resources(
        self,
        now_s: float,
        affected_crew: int,
        request_resource: ResourceRequester,
    ) -> bool:
        """Draw this tick's resource and record whether the module starved.

        Returns the new starving flag.
        """
        cfg = self.configuration
        elapsed_s = 0.0 if self.last_updated_s is None else max(0.0, now_s - self.last_updated_s)
        if self.is_active and cfg.consumes_resource:
            rate = self.total_resource_consumption(affected_crew)
            required = rate * elapsed_s
            granted = 0.0
            if required > 0:
                granted = max(0.0, min(required, float(request_resource(cfg.resource, required))))
            self.starving = granted < required * STARVATION_SUPPLY_RATIO
            self.resource_per_second = rate if cfg.resource == DEFAULT_RESOURCE else 0.0
            if self.starving:
                log.info(
                    "%s module %s is starving of %s (%.3f needed, %.3f provided).",
                    self.title, self.module_id, cfg.resource, required, granted,
                )
        else:
            # Switched-off and free modules draw nothing and cannot starve
            self.starving = False
            self.resource_per_second = 0.0
        self.last_updated_s = now_s
        return self.starving

    # ── Commands ───────────────────────────────────────────

    def toggle_active(self) -> bool:
        self.is_active = self.is_always_active or not self.is_active
        if not self.is_active:
            self.starving = False
        return self.is_active

    def switch_configuration(self) -> ModuleConfiguration:
        old_title = self.title
        self.config_index = (self.config_index + 1) % len(self.configs)
        log.debug("Module %s switched configuration %s -> %s.", self.module_id, old_title, self.title)
        if self.is_always_active:
            self.is_active = True
        return self.configuration

    def describe(self) -> str:
        if len(self.configs) == 1:
            text = self.configs[0].describe()
        else:
            text = "\n\n".join(
                f"Configuration #{i + 1}\n{cfg.describe()}" for i, cfg in enumerate(self.configs)
            )
        if self.complexity != 0:
            text += f"\nTraining complexity: {self.complexity * 100:.0f}%"
        return text.strip()

    def to_payload(self) -> Dict[str, Any]:
        return {
            "module_id": self.module_id,
            "part_id": self.part_id,
            "title": self.title,
            "config_index": self.config_index,
            "complexity": self.complexity,
            "is_active": self.is_active,
            "is_always_active": self.is_always_active,
            "starving": self.starving,
            "resource_per_second": self.resource_per_second,
            "configuration": self.configuration.to_dict(),
            "description": self.describe(),
        }
