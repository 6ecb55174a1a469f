"""
Immutable health module configuration.

A configuration describes what a health module does to the crew it
affects.  Instances are shared read-only between every module that uses
them; nothing at runtime mutates a configuration.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from constants import (
    ALL_FACTORS,
    DEFAULT_RESOURCE,
    MICROGRAVITY_PARAGRAVITY_MAX_MULTIPLIER,
    MODULE_TITLE_DECAY,
    MODULE_TITLE_DEFAULT,
    MODULE_TITLE_EXERCISE,
    MODULE_TITLE_PARAGRAVITY,
    MODULE_TITLE_RADIATION,
    MODULE_TITLE_RECUPERATION,
    MODULE_TITLE_SHIELDING,
    MODULE_TITLE_SPACE,
    MODULE_TITLES_BY_FACTOR,
    RESOURCE_ABBREVIATIONS,
)


class ModuleConfiguration(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    # Empty string means the title is derived from the other fields
    title: str = ""
    # Raw HP per day every affected crew member gains
    hp_change_per_day: float = 0.0
    # % of (max HP - HP) restored per day
    recuperation: float = Field(default=0.0, ge=0.0, le=100.0)
    # % of (HP - min HP) lost per day
    decay: float = Field(default=0.0, ge=0.0, le=100.0)
    part_crew_only: bool = False
    multiply_factor: str = ALL_FACTORS
    multiplier: float = Field(default=1.0, ge=0.0)
    # 0 = unlimited
    crew_cap: int = Field(default=0, ge=0)
    space: float = 0.0
    # Halving thicknesses
    shielding: float = 0.0
    # Radioactive emission per day
    radioactivity: float = 0.0
    resource: str = DEFAULT_RESOURCE
    # Units per second
    resource_consumption: float = Field(default=0.0, ge=0.0)
    resource_consumption_per_crew: float = Field(default=0.0, ge=0.0)

    @property
    def display_title(self) -> str:
        if self.title:
            return self.title
        if self.recuperation > 0:
            return MODULE_TITLE_RECUPERATION
        if self.decay > 0:
            return MODULE_TITLE_DECAY
        factor = self.multiply_factor.lower()
        if factor == "microgravity":
            if self.multiplier <= MICROGRAVITY_PARAGRAVITY_MAX_MULTIPLIER:
                return MODULE_TITLE_PARAGRAVITY
            return MODULE_TITLE_EXERCISE
        if factor in MODULE_TITLES_BY_FACTOR:
            return MODULE_TITLES_BY_FACTOR[factor]
        if self.space > 0:
            return MODULE_TITLE_SPACE
        if self.shielding > 0:
            return MODULE_TITLE_SHIELDING
        if self.radioactivity > 0:
            return MODULE_TITLE_RADIATION
        return MODULE_TITLE_DEFAULT

    @property
    def consumes_resource(self) -> bool:
        return self.resource_consumption != 0 or self.resource_consumption_per_crew != 0

    @property
    def resource_abbreviation(self) -> str:
        return RESOURCE_ABBREVIATIONS.get(self.resource, self.resource)

    def describe(self) -> str:
        lines: List[str] = []
        if self.hp_change_per_day != 0:
            lines.append(f"Health points: {self.hp_change_per_day:.1f}/day")
        if self.recuperation != 0:
            lines.append(f"Recuperation: {self.recuperation:.1f}%/day")
        if self.decay != 0:
            lines.append(f"Health decay: {self.decay:.1f}%/day")
        if self.multiplier != 1:
            line = f"{self.multiplier:.2f}x {self.multiply_factor}"
            if self.crew_cap > 0:
                line += f" for up to {self.crew_cap} crew"
            lines.append(line)
        elif self.crew_cap > 0:
            lines.append(f"For up to {self.crew_cap} crew")
        if self.space != 0:
            lines.append(f"Space: {self.space:.1f}")
        if self.resource_consumption != 0:
            lines.append(f"{self.resource_abbreviation}: {self.resource_consumption:.2f}/sec.")
        if self.resource_consumption_per_crew != 0:
            lines.append(f"{self.resource_abbreviation} per crew member: {self.resource_consumption_per_crew:.2f}/sec.")
        if self.shielding != 0:
            lines.append(f"Shielding rating: {self.shielding:.1f}")
        if self.radioactivity != 0:
            lines.append(f"Radioactive emission: {self.radioactivity:,.0f}/day")
        if not lines:
            return ""
        return "\n".join([f"Module type: {self.display_title}"] + lines)

    def to_dict(self) -> Dict[str, Any]:
        """Non-default fields only, in the shape the persistence layer stores."""
        out: Dict[str, Any] = {}
        if self.title:
            out["title"] = self.title
        for key in ("hp_change_per_day", "recuperation", "decay"):
            value = getattr(self, key)
            if value != 0:
                out[key] = value
        if self.part_crew_only:
            out["part_crew_only"] = True
        if self.multiplier != 1:
            out["multiply_factor"] = self.multiply_factor or ALL_FACTORS
            out["multiplier"] = self.multiplier
        if self.crew_cap > 0:
            out["crew_cap"] = self.crew_cap
        for key in ("space", "shielding", "radioactivity"):
            value = getattr(self, key)
            if value != 0:
                out[key] = value
        if self.resource != DEFAULT_RESOURCE and self.consumes_resource:
            out["resource"] = self.resource
        for key in ("resource_consumption", "resource_consumption_per_crew"):
            value = getattr(self, key)
            if value != 0:
                out[key] = value
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModuleConfiguration":
        return cls.model_validate(data)
