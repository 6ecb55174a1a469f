import logging
import os
from typing import Any, Dict, Optional

from fastapi import FastAPI
from pydantic import BaseModel, Field

from health_config import HealthConfigError, get_health_settings
from health_router import router as health_router
from health_service import HealthSimulation
from sim_service import (
    advance_game_time,
    effective_time_scale,
    game_now_s,
    reset_simulation_clock,
    set_simulation_paused,
    simulation_paused,
)

logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())

app = FastAPI()
app.include_router(health_router)

_SIMULATION: Optional[HealthSimulation] = None


def get_simulation() -> HealthSimulation:
    global _SIMULATION
    if _SIMULATION is None:
        _SIMULATION = HealthSimulation(get_health_settings())
    return _SIMULATION


def reset_simulation() -> HealthSimulation:
    """Tear down the roster and vessels and start a fresh session."""
    global _SIMULATION
    if _SIMULATION is not None:
        with _SIMULATION.lock:
            _SIMULATION.roster.clear()
    _SIMULATION = None
    reset_simulation_clock()
    return get_simulation()


@app.on_event("startup")
def _startup():
    try:
        get_simulation()
    except HealthConfigError:
        logging.exception("Failed to load health settings")
        raise


class TickReq(BaseModel):
    advance_s: float = Field(default=0.0, ge=0.0)


@app.get("/api/health")
def api_health() -> Dict[str, Any]:
    return {
        "ok": True,
        "service": "crew-health",
        "crew": len(get_simulation().roster),
    }


@app.get("/api/time")
def api_time() -> Dict[str, Any]:
    return {
        "server_time": game_now_s(),
        "time_scale": effective_time_scale(),
        "paused": simulation_paused(),
    }


@app.post("/api/admin/simulation/toggle_pause")
def api_admin_toggle_pause() -> Dict[str, Any]:
    set_simulation_paused(not simulation_paused())
    return {
        "ok": True,
        "paused": simulation_paused(),
        "server_time": game_now_s(),
        "time_scale": effective_time_scale(),
    }


@app.post("/api/admin/reset_game")
def api_admin_reset_game() -> Dict[str, Any]:
    reset_simulation()
    return {
        "ok": True,
        "paused": simulation_paused(),
        "server_time": game_now_s(),
        "time_scale": effective_time_scale(),
    }


@app.post("/api/simulation/tick")
def api_simulation_tick(req: TickReq) -> Dict[str, Any]:
    now_s = advance_game_time(req.advance_s) if req.advance_s > 0 else game_now_s()
    sim = get_simulation()
    elapsed_days = sim.tick(now_s)
    return {
        "ok": True,
        "server_time": now_s,
        "elapsed_days": elapsed_days,
        "crew": sim.roster_payload(),
    }
