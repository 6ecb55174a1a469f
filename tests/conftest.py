"""
Shared pytest fixtures for the crew health simulation tests.

Provides:
  - Deterministic HealthSettings built through the config loader
  - Live and estimate evaluation contexts
  - A roster and a tick-driven simulation
  - Helpers for building modules and vessels
  - FastAPI TestClient with a fresh simulation per test
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# ---------------------------------------------------------------------------
# Ensure the project root is on sys.path so we can import app modules
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("LOG_LEVEL", "WARNING")

DAY_S = 86400.0

TEST_CONFIG: Dict[str, Any] = {
    "general": {"day_length_s": DAY_S, "base_exposure": 1.0},
    "hp": {
        "base_max_hp": 100,
        "hp_per_level": 10,
        "min_hp": 0,
        "exhaustion_start_health": 0.2,
        "exhaustion_end_health": 0.25,
    },
    "factors": {"Home": 2.0, "Loneliness": -5.0, "Sickness": -5.0},
    "free_time": {"recuperation": 10.0},
    "training": {
        "enabled": True,
        "training_cap": 0.6,
        "training_speed": 0.02,
        "stupidity_penalty": 1.0,
        "training_min_health": 0.8,
    },
    "bodies": [
        {"id": "Earth", "is_home": True, "flying_altitude_threshold_m": 18000},
        {"id": "Moon", "flying_altitude_threshold_m": 0},
        {"id": "Mars", "flying_altitude_threshold_m": 12000},
    ],
}


# ---------------------------------------------------------------------------
# Settings & contexts
# ---------------------------------------------------------------------------

@pytest.fixture()
def settings():
    from health_config import build_health_settings
    return build_health_settings(TEST_CONFIG)


@pytest.fixture()
def live_ctx(settings):
    from health_factors import EvaluationContext
    return EvaluationContext(settings=settings)


@pytest.fixture()
def estimate_ctx(settings):
    from health_report import new_estimate_context
    return new_estimate_context(settings)


@pytest.fixture()
def roster(settings):
    from roster import CrewRoster
    r = CrewRoster(settings)
    yield r
    r.clear()


@pytest.fixture()
def simulation(settings, roster):
    from health_service import HealthSimulation
    return HealthSimulation(settings, roster)


# ---------------------------------------------------------------------------
# Test data helpers
# ---------------------------------------------------------------------------

class TestHelpers:
    """Stateless helper methods for building modules and vessels."""

    @staticmethod
    def module(
        module_id: str = "m1",
        part_id: str = "cabin",
        complexity: float = 0.0,
        is_active: bool = True,
        **config: Any,
    ):
        from health_module import HealthModule
        from module_config import ModuleConfiguration
        return HealthModule(
            module_id=module_id,
            part_id=part_id,
            configs=[ModuleConfiguration(**config)],
            complexity=complexity,
            is_active=is_active,
        )

    @staticmethod
    def vessel(
        vessel_id: str = "v1",
        crew: Optional[Dict[str, str]] = None,
        modules: Optional[List[Any]] = None,
        body_id: Optional[str] = "Mars",
        altitude_m: float = 500000.0,
        loaded: bool = True,
    ):
        from health_service import VesselSnapshot
        return VesselSnapshot(
            vessel_id=vessel_id,
            name=vessel_id.upper(),
            body_id=body_id,
            altitude_m=altitude_m,
            loaded=loaded,
            modules=list(modules or []),
            crew=dict(crew or {}),
        )


@pytest.fixture()
def helpers() -> TestHelpers:
    return TestHelpers()


# ---------------------------------------------------------------------------
# FastAPI TestClient
# ---------------------------------------------------------------------------

@pytest.fixture()
def client():
    """Return a Starlette TestClient wired to a fresh simulation."""
    from fastapi.testclient import TestClient
    import main

    main.reset_simulation()
    with TestClient(main.app) as c:
        yield c
    main.reset_simulation()


# ---------------------------------------------------------------------------
# Simulation clock helpers
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _reset_sim_clock():
    """Ensure the simulation clock is reset between tests."""
    from sim_service import reset_simulation_clock
    reset_simulation_clock()
    yield
    reset_simulation_clock()
