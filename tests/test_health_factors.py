"""
Factor evaluation tests.

Covers:
  - Loneliness (isolation) scenario with one and two crew
  - Home factor location/altitude predicate and estimate-mode toggle
  - Sickness driven by the Sick condition and excluded from caching
  - Missing-context inputs returning zero instead of raising
  - Registry uniqueness
"""

import pytest

from constants import CONDITION_SICK, FACTOR_HOME, FACTOR_LONELINESS, FACTOR_SICKNESS, ROSTER_ASSIGNED
from crew_health import CrewHealthStatus
from health_factors import (
    FACTORS,
    HOME_FACTOR,
    LONELINESS_FACTOR,
    SICKNESS_FACTOR,
    CrewAssignment,
    HealthFactor,
    get_factor,
    register_factor,
)


def _assigned(**kwargs) -> CrewAssignment:
    kwargs.setdefault("roster_status", ROSTER_ASSIGNED)
    kwargs.setdefault("vessel_id", "v1")
    kwargs.setdefault("body_id", "Mars")
    kwargs.setdefault("altitude_m", 100000.0)
    kwargs.setdefault("crew_count", 1)
    return CrewAssignment(**kwargs)


@pytest.fixture()
def status(settings):
    return CrewHealthStatus("Jeb", settings)


# ── Loneliness ─────────────────────────────────────────────

class TestLonelinessFactor:
    def test_alone_loses_base_rate(self, status, live_ctx):
        assert LONELINESS_FACTOR.change_per_day(status, _assigned(crew_count=1), live_ctx) == -5.0

    def test_two_crew_no_effect(self, status, live_ctx):
        assert LONELINESS_FACTOR.change_per_day(status, _assigned(crew_count=2), live_ctx) == 0.0

    def test_veteran_is_immune(self, settings, live_ctx):
        vet = CrewHealthStatus("Val", settings, is_veteran=True)
        assert LONELINESS_FACTOR.change_per_day(vet, _assigned(crew_count=1), live_ctx) == 0.0

    def test_not_assigned_no_effect(self, status, live_ctx):
        assert LONELINESS_FACTOR.change_per_day(status, CrewAssignment(), live_ctx) == 0.0

    def test_missing_assignment_is_zero(self, status, live_ctx):
        assert LONELINESS_FACTOR.change_per_day(status, None, live_ctx) == 0.0

    def test_estimate_uses_manifest_count(self, status, estimate_ctx):
        assert LONELINESS_FACTOR.change_per_day(status, CrewAssignment(crew_count=1), estimate_ctx) == -5.0
        estimate_ctx.set_factor_enabled(FACTOR_LONELINESS, False)
        assert LONELINESS_FACTOR.change_per_day(status, CrewAssignment(crew_count=1), estimate_ctx) == 0.0


# ── Home ───────────────────────────────────────────────────

class TestHomeFactor:
    def test_low_over_home_body(self, status, live_ctx):
        assert HOME_FACTOR.change_per_day(status, _assigned(body_id="Earth", altitude_m=500.0), live_ctx) == 2.0

    def test_above_flying_threshold(self, status, live_ctx):
        assert HOME_FACTOR.change_per_day(status, _assigned(body_id="Earth", altitude_m=20000.0), live_ctx) == 0.0

    def test_other_body(self, status, live_ctx):
        assert HOME_FACTOR.change_per_day(status, _assigned(body_id="Mars", altitude_m=10.0), live_ctx) == 0.0

    def test_unassigned(self, status, live_ctx):
        assert HOME_FACTOR.change_per_day(status, CrewAssignment(body_id="Earth"), live_ctx) == 0.0

    def test_unknown_body_is_zero(self, status, live_ctx):
        assert HOME_FACTOR.change_per_day(status, _assigned(body_id="Pluto"), live_ctx) == 0.0

    def test_missing_body_is_zero(self, status, live_ctx):
        assert HOME_FACTOR.change_per_day(status, _assigned(body_id=None), live_ctx) == 0.0

    def test_estimate_off_by_default(self, status, estimate_ctx):
        assert HOME_FACTOR.change_per_day(status, None, estimate_ctx) == 0.0

    def test_estimate_enabled_skips_location_check(self, status, estimate_ctx):
        estimate_ctx.set_factor_enabled(FACTOR_HOME, True)
        assert HOME_FACTOR.change_per_day(status, None, estimate_ctx) == 2.0

    def test_reset_toggles(self, status, estimate_ctx):
        estimate_ctx.set_factor_enabled(FACTOR_HOME, True)
        estimate_ctx.health_modules_enabled = False
        estimate_ctx.reset_toggles()
        assert HOME_FACTOR.change_per_day(status, None, estimate_ctx) == 0.0
        assert estimate_ctx.health_modules_enabled is True


# ── Sickness ───────────────────────────────────────────────

class TestSicknessFactor:
    def test_healthy(self, status, live_ctx):
        assert SICKNESS_FACTOR.change_per_day(status, _assigned(), live_ctx) == 0.0

    def test_sick(self, status, live_ctx):
        status.add_condition(CONDITION_SICK)
        assert SICKNESS_FACTOR.change_per_day(status, _assigned(), live_ctx) == -5.0

    def test_sick_without_context(self, status, live_ctx):
        status.add_condition(CONDITION_SICK)
        assert SICKNESS_FACTOR.change_per_day(status, None, live_ctx) == -5.0

    def test_not_cacheable(self):
        assert SICKNESS_FACTOR.constant_for_unloaded is False
        assert HOME_FACTOR.constant_for_unloaded is True


# ── Registry ───────────────────────────────────────────────

class TestRegistry:
    def test_builtin_names(self):
        assert set(FACTORS) >= {FACTOR_HOME, FACTOR_LONELINESS, FACTOR_SICKNESS}
        assert get_factor(FACTOR_SICKNESS) is SICKNESS_FACTOR

    def test_duplicate_name_rejected(self):
        dup = HealthFactor(name=FACTOR_HOME, title="Other home", evaluator=lambda f, s, a, c: 0.0)
        with pytest.raises(ValueError):
            register_factor(dup)
        assert FACTORS[FACTOR_HOME] is HOME_FACTOR

    def test_unknown_toggle_rejected(self, estimate_ctx):
        with pytest.raises(KeyError):
            estimate_ctx.set_factor_enabled("Gravity", False)

    def test_base_rate_from_settings(self, settings):
        assert HOME_FACTOR.base_change_per_day(settings) == 2.0
        assert LONELINESS_FACTOR.base_change_per_day(settings) == -5.0
