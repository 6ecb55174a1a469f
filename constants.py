"""
Canonical shared constants for the crew health simulation.

Factor names, condition kinds and module defaults live here so that the
factor registry, the module aggregator and the HTTP layer agree on the
same identifiers.
"""

from typing import Dict, Tuple

# ---------------------------------------------------------------------------
# Factors
# ---------------------------------------------------------------------------

FACTOR_HOME = "Home"
FACTOR_LONELINESS = "Loneliness"
FACTOR_SICKNESS = "Sickness"

# Multiplier target that applies to every factor at once.
ALL_FACTORS = "All"

DEFAULT_FACTOR_RATES: Dict[str, float] = {
    FACTOR_HOME: 2.0,
    FACTOR_LONELINESS: -1.0,
    FACTOR_SICKNESS: -5.0,
}

# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------

CONDITION_SICK = "Sick"
CONDITION_TRAINING = "Training"
CONDITION_EXHAUSTED = "Exhausted"

CONDITION_KINDS: Tuple[str, ...] = (
    CONDITION_SICK,
    CONDITION_TRAINING,
    CONDITION_EXHAUSTED,
)

# ---------------------------------------------------------------------------
# Roster
# ---------------------------------------------------------------------------

ROSTER_AVAILABLE = "available"
ROSTER_ASSIGNED = "assigned"

# ---------------------------------------------------------------------------
# Evaluation modes
# ---------------------------------------------------------------------------

MODE_LIVE = "live"
MODE_ESTIMATE = "estimate"

# ---------------------------------------------------------------------------
# Health modules
# ---------------------------------------------------------------------------

DEFAULT_RESOURCE = "ElectricCharge"

# A module starves when it received less than this share of its request.
STARVATION_SUPPLY_RATIO = 0.5

# Derived module titles keyed by lower-cased multiply_factor.
MODULE_TITLES_BY_FACTOR: Dict[str, str] = {
    "stress": "Stress Relief",
    "confinement": "Comforts",
    "loneliness": "Meditation",
    "connected": "TV Set",
    "conditions": "Sick Bay",
}

MICROGRAVITY_PARAGRAVITY_MAX_MULTIPLIER = 0.25

MODULE_TITLE_RECUPERATION = "R&R"
MODULE_TITLE_DECAY = "Health Poisoning"
MODULE_TITLE_PARAGRAVITY = "Paragravity"
MODULE_TITLE_EXERCISE = "Exercise Equipment"
MODULE_TITLE_SPACE = "Living Quarters"
MODULE_TITLE_SHIELDING = "RadShield"
MODULE_TITLE_RADIATION = "Radiation"
MODULE_TITLE_DEFAULT = "Health Module"

# Abbreviations used in module descriptions.
RESOURCE_ABBREVIATIONS: Dict[str, str] = {
    "ElectricCharge": "EC",
    "Oxygen": "O2",
    "Water": "H2O",
}
