"""
Crew health API routes.

Read-only reporting (crew snapshots, forecasts, design-time reports) and
the commands the UI issues: register/remove crew, add/remove conditions,
start training, register vessels and toggle their health modules.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from health_module import HealthModule
from health_report import new_estimate_context
from health_service import VesselSnapshot
from module_config import ModuleConfiguration
from sim_service import game_now_s

router = APIRouter(tags=["health"])


def _main():
    """Lazy import to avoid circular dependency with main.py."""
    import main
    return main


# ── Pydantic models ────────────────────────────────────────

class CrewCreateReq(BaseModel):
    name: str = Field(min_length=1)
    experience_level: int = Field(default=0, ge=0)
    is_veteran: bool = False
    stupidity: float = Field(default=0.5, ge=0.0, le=1.0)
    hp: Optional[float] = None


class ConditionReq(BaseModel):
    kind: str
    duration_days: Optional[float] = Field(default=None, gt=0.0)


class TrainingReq(BaseModel):
    design_id: str


class ModuleReq(BaseModel):
    module_id: str
    part_id: str
    configs: List[ModuleConfiguration] = Field(default_factory=lambda: [ModuleConfiguration()])
    config_index: int = 0
    complexity: float = Field(default=0.0, ge=0.0)
    is_active: bool = True


class VesselReq(BaseModel):
    name: str = ""
    body_id: Optional[str] = None
    altitude_m: float = 0.0
    loaded: bool = True
    modules: List[ModuleReq] = Field(default_factory=list)
    crew: Dict[str, str] = Field(default_factory=dict)


class ReportReq(BaseModel):
    factor_toggles: Dict[str, bool] = Field(default_factory=dict)
    health_modules_enabled: bool = True
    training_enabled: bool = True


# ── Helpers ────────────────────────────────────────────────

def _sim():
    return _main().get_simulation()


def _not_found(exc: KeyError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc.args[0]) if exc.args else "Not found")


# ── Crew ───────────────────────────────────────────────────

@router.get("/api/crew")
def api_crew_list() -> Dict[str, Any]:
    return {"crew": _sim().roster_payload()}


@router.post("/api/crew")
def api_crew_register(req: CrewCreateReq) -> Dict[str, Any]:
    payload = _sim().register_crew(
        req.name,
        experience_level=req.experience_level,
        is_veteran=req.is_veteran,
        stupidity=req.stupidity,
        hp=req.hp,
    )
    if payload is None:
        raise HTTPException(status_code=409, detail=f"{req.name} is already tracked")
    return payload


@router.get("/api/crew/{name}")
def api_crew_get(name: str) -> Dict[str, Any]:
    try:
        return _sim().crew_payload(name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown crew member: {name}")


@router.delete("/api/crew/{name}")
def api_crew_remove(name: str) -> Dict[str, Any]:
    try:
        _sim().remove_crew(name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown crew member: {name}")
    return {"ok": True, "removed": name}


@router.get("/api/crew/{name}/forecast")
def api_crew_forecast(name: str) -> Dict[str, Any]:
    try:
        return _sim().forecast_payload(name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown crew member: {name}")


@router.post("/api/crew/{name}/conditions")
def api_crew_add_condition(name: str, req: ConditionReq) -> Dict[str, Any]:
    try:
        added, conditions = _sim().add_condition(name, req.kind, game_now_s(), req.duration_days)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown crew member: {name}")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"ok": True, "added": added, "conditions": conditions}


@router.delete("/api/crew/{name}/conditions/{kind}")
def api_crew_remove_condition(name: str, kind: str) -> Dict[str, Any]:
    try:
        removed, conditions = _sim().remove_condition(name, kind)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown crew member: {name}")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"ok": True, "removed": removed, "conditions": conditions}


@router.post("/api/crew/{name}/training")
def api_crew_start_training(name: str, req: TrainingReq) -> Dict[str, Any]:
    try:
        items = _sim().start_training(name, req.design_id, game_now_s())
    except KeyError as exc:
        raise _not_found(exc)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"ok": True, "items": [{"item_id": i.item_id, "complexity": i.complexity} for i in items]}


# ── Vessels & designs ──────────────────────────────────────

def _build_vessel(vessel_id: str, req: VesselReq) -> VesselSnapshot:
    try:
        modules = [
            HealthModule(
                module_id=m.module_id,
                part_id=m.part_id,
                configs=list(m.configs),
                config_index=m.config_index,
                complexity=m.complexity,
                is_active=m.is_active,
            )
            for m in req.modules
        ]
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return VesselSnapshot(
        vessel_id=vessel_id,
        name=req.name,
        body_id=req.body_id,
        altitude_m=req.altitude_m,
        loaded=req.loaded,
        modules=modules,
        crew=dict(req.crew),
    )


@router.put("/api/vessels/{vessel_id}")
def api_vessel_put(vessel_id: str, req: VesselReq) -> Dict[str, Any]:
    vessel = _build_vessel(vessel_id, req)
    _sim().set_vessel(vessel)
    return _sim().vessel_payload(vessel_id)


@router.get("/api/vessels/{vessel_id}")
def api_vessel_get(vessel_id: str) -> Dict[str, Any]:
    payload = _sim().vessel_payload(vessel_id)
    if payload is None:
        raise HTTPException(status_code=404, detail=f"Unknown vessel: {vessel_id}")
    return payload


@router.delete("/api/vessels/{vessel_id}")
def api_vessel_remove(vessel_id: str) -> Dict[str, Any]:
    if _sim().remove_vessel(vessel_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown vessel: {vessel_id}")
    return {"ok": True, "removed": vessel_id}


@router.post("/api/vessels/{vessel_id}/modules/{module_id}/toggle")
def api_vessel_toggle_module(vessel_id: str, module_id: str) -> Dict[str, Any]:
    try:
        return _sim().toggle_module(vessel_id, module_id)
    except KeyError as exc:
        raise _not_found(exc)


@router.post("/api/vessels/{vessel_id}/modules/{module_id}/switch")
def api_vessel_switch_module(vessel_id: str, module_id: str) -> Dict[str, Any]:
    try:
        return _sim().switch_module(vessel_id, module_id)
    except KeyError as exc:
        raise _not_found(exc)


@router.put("/api/designs/{design_id}")
def api_design_put(design_id: str, req: VesselReq) -> Dict[str, Any]:
    design = _build_vessel(design_id, req)
    _sim().set_design(design)
    return _sim().vessel_payload(design_id, design=True)


@router.post("/api/designs/{design_id}/report")
def api_design_report(design_id: str, req: ReportReq) -> Dict[str, Any]:
    sim = _sim()
    ctx = new_estimate_context(sim.settings)
    try:
        for factor_name, enabled in req.factor_toggles.items():
            ctx.set_factor_enabled(factor_name, enabled)
    except KeyError as exc:
        raise HTTPException(status_code=400, detail=f"Unknown factor: {exc.args[0]}")
    ctx.health_modules_enabled = req.health_modules_enabled
    ctx.training_enabled = req.training_enabled
    try:
        return sim.design_report(design_id, ctx)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown design: {design_id}")


@router.post("/api/designs/{design_id}/train")
def api_design_train(design_id: str) -> Dict[str, Any]:
    sim = _sim()
    try:
        return sim.train_design(design_id, new_estimate_context(sim.settings), game_now_s())
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown design: {design_id}")
