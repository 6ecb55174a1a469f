"""
Health forecaster — closed-form solution of the crew HP rate model.

The daily HP change of a crew member is a first-order linear ODE:

    dHP/dt = C + R·(max − HP)/100 − D·(HP − min)/100

where C is the sum of all additive rates (factors × multipliers plus flat
module deltas), R is total recuperation and D total decay (both %/day).
With k = (R + D)/100 the solution relaxes exponentially toward the balance
HP; with k = 0 it degenerates to linear drift.

Pure math with no config or framework dependencies. Times are in days.
Unreachable events are reported as None, never as a sentinel number.
"""

import math
from dataclasses import dataclass
from typing import Optional


# ─── Rate model ──────────────────────────────────────────────

def relaxation_rate(recuperation: float, decay: float) -> float:
    """Combined relaxation rate k (1/day)."""
    return (recuperation + decay) / 100.0


def change_per_day(
    hp: float,
    constant_rate: float,
    recuperation: float,
    decay: float,
    max_hp: float,
    min_hp: float,
) -> float:
    """Instantaneous dHP/dt at the given HP."""
    return (
        constant_rate
        + recuperation * (max_hp - hp) / 100.0
        - decay * (hp - min_hp) / 100.0
    )


def balance_hp(
    constant_rate: float,
    recuperation: float,
    decay: float,
    max_hp: float,
    min_hp: float,
) -> Optional[float]:
    """HP at which dHP/dt = 0, or None when there is no relaxation (k = 0)."""
    k = relaxation_rate(recuperation, decay)
    if k <= 0.0:
        return None
    return max_hp + (constant_rate - decay * (max_hp - min_hp) / 100.0) / k


# ─── Trajectory ──────────────────────────────────────────────

def hp_after(
    hp0: float,
    days: float,
    constant_rate: float,
    recuperation: float,
    decay: float,
    max_hp: float,
    min_hp: float,
) -> float:
    """Unclamped HP after `days` of constant rates."""
    if days == 0.0:
        return hp0
    k = relaxation_rate(recuperation, decay)
    if k <= 0.0:
        return hp0 + constant_rate * days
    target = max_hp + (constant_rate - decay * (max_hp - min_hp) / 100.0) / k
    return target + (hp0 - target) * math.exp(-k * days)


def clamp_hp(hp: float, max_hp: float, min_hp: float) -> float:
    return max(min_hp, min(max_hp, hp))


def time_to_hp(
    hp0: float,
    threshold: float,
    constant_rate: float,
    recuperation: float,
    decay: float,
    max_hp: float,
    min_hp: float,
) -> Optional[float]:
    """Days until HP reaches `threshold`, or None if it never does."""
    if threshold == hp0:
        return 0.0
    k = relaxation_rate(recuperation, decay)
    if k <= 0.0:
        if constant_rate == 0.0:
            return None
        t = (threshold - hp0) / constant_rate
        return t if t > 0.0 else None

    target = max_hp + (constant_rate - decay * (max_hp - min_hp) / 100.0) / k
    if hp0 == target:
        return None
    ratio = (threshold - target) / (hp0 - target)
    # ratio in (0, 1) means the threshold lies between HP0 and the asymptote
    if ratio <= 0.0 or ratio >= 1.0:
        return None
    return -math.log(ratio) / k


# ─── Result bundle ───────────────────────────────────────────

@dataclass(frozen=True)
class HealthForecast:
    hp: float
    max_hp: float
    min_hp: float
    constant_rate: float
    recuperation: float
    decay: float

    @property
    def relaxation_rate(self) -> float:
        return relaxation_rate(self.recuperation, self.decay)

    @property
    def change_per_day(self) -> float:
        return change_per_day(self.hp, self.constant_rate, self.recuperation, self.decay, self.max_hp, self.min_hp)

    @property
    def balance_hp(self) -> Optional[float]:
        return balance_hp(self.constant_rate, self.recuperation, self.decay, self.max_hp, self.min_hp)

    def hp_at(self, days: float) -> float:
        """Clamped HP after `days`."""
        raw = hp_after(self.hp, days, self.constant_rate, self.recuperation, self.decay, self.max_hp, self.min_hp)
        return clamp_hp(raw, self.max_hp, self.min_hp)

    def time_to(self, threshold: float) -> Optional[float]:
        if threshold > self.max_hp or threshold < self.min_hp:
            return None
        return time_to_hp(
            self.hp, threshold, self.constant_rate, self.recuperation, self.decay, self.max_hp, self.min_hp
        )
