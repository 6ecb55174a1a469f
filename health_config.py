import json
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from constants import DEFAULT_FACTOR_RATES

APP_DIR = Path(__file__).resolve().parent
CONFIG_PATH = Path(os.environ.get("HEALTH_CONFIG_PATH", str(APP_DIR / "config" / "health_config.json")))


class HealthConfigError(ValueError):
    pass


@dataclass(frozen=True)
class CelestialBody:
    id: str
    name: str
    is_home: bool = False
    flying_altitude_threshold_m: float = 0.0


@dataclass(frozen=True)
class HealthSettings:
    day_length_s: float = 21600.0
    base_exposure: float = 1.0

    base_max_hp: float = 100.0
    hp_per_level: float = 10.0
    min_hp: float = 0.0
    exhaustion_start_health: float = 0.2
    exhaustion_end_health: float = 0.25

    factor_rates: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_FACTOR_RATES))

    free_time_recuperation: float = 10.0

    training_enabled: bool = True
    training_cap: float = 0.6
    training_speed: float = 0.02
    stupidity_penalty: float = 1.0
    training_min_health: float = 0.8

    bodies: Dict[str, CelestialBody] = field(default_factory=dict)

    def factor_rate(self, name: str) -> float:
        return float(self.factor_rates.get(name, 0.0))

    def body(self, body_id: Optional[str]) -> Optional[CelestialBody]:
        if not body_id:
            return None
        return self.bodies.get(body_id)

    def home_body(self) -> Optional[CelestialBody]:
        for body in self.bodies.values():
            if body.is_home:
                return body
        return None


def _as_float(value: Any, field: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise HealthConfigError(f"{field} must be numeric")


def _as_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"1", "true", "yes", "on", "0", "false", "no", "off"}:
        return value.strip().lower() in {"1", "true", "yes", "on"}
    raise HealthConfigError(f"{field} must be a boolean")


def _require_str(obj: Dict[str, Any], key: str, ctx: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str) or not value.strip():
        raise HealthConfigError(f"{ctx}.{key} must be a non-empty string")
    return value.strip()


def _section(raw: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = raw.get(key, {})
    if not isinstance(value, dict):
        raise HealthConfigError(f"{key} must be an object")
    return value


def load_health_config(path: Path = CONFIG_PATH) -> Dict[str, Any]:
    if not path.exists():
        raise HealthConfigError(f"Config not found: {path}")
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise HealthConfigError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise HealthConfigError("Root config must be an object")
    return raw


def _build_bodies(entries: Any) -> Dict[str, CelestialBody]:
    if not isinstance(entries, list):
        raise HealthConfigError("bodies must be a list")
    bodies: Dict[str, CelestialBody] = {}
    home_ids: List[str] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise HealthConfigError("bodies[] entries must be objects")
        bid = _require_str(entry, "id", "bodies[]")
        if bid in bodies:
            raise HealthConfigError(f"Duplicate body id: {bid}")
        is_home = _as_bool(entry.get("is_home", False), f"bodies[{bid}].is_home")
        bodies[bid] = CelestialBody(
            id=bid,
            name=str(entry.get("name") or bid),
            is_home=is_home,
            flying_altitude_threshold_m=_as_float(
                entry.get("flying_altitude_threshold_m", 0.0), f"bodies[{bid}].flying_altitude_threshold_m"
            ),
        )
        if is_home:
            home_ids.append(bid)
    if len(home_ids) > 1:
        raise HealthConfigError("Only one body may be marked is_home: " + ", ".join(home_ids))
    return bodies


def build_health_settings(config: Dict[str, Any]) -> HealthSettings:
    general = _section(config, "general")
    hp = _section(config, "hp")
    factors = _section(config, "factors")
    free_time = _section(config, "free_time")
    training = _section(config, "training")
    defaults = HealthSettings()

    factor_rates = dict(DEFAULT_FACTOR_RATES)
    for name, rate in factors.items():
        factor_rates[str(name)] = _as_float(rate, f"factors.{name}")

    settings = HealthSettings(
        day_length_s=_as_float(general.get("day_length_s", defaults.day_length_s), "general.day_length_s"),
        base_exposure=_as_float(general.get("base_exposure", defaults.base_exposure), "general.base_exposure"),
        base_max_hp=_as_float(hp.get("base_max_hp", defaults.base_max_hp), "hp.base_max_hp"),
        hp_per_level=_as_float(hp.get("hp_per_level", defaults.hp_per_level), "hp.hp_per_level"),
        min_hp=_as_float(hp.get("min_hp", defaults.min_hp), "hp.min_hp"),
        exhaustion_start_health=_as_float(
            hp.get("exhaustion_start_health", defaults.exhaustion_start_health), "hp.exhaustion_start_health"
        ),
        exhaustion_end_health=_as_float(
            hp.get("exhaustion_end_health", defaults.exhaustion_end_health), "hp.exhaustion_end_health"
        ),
        factor_rates=factor_rates,
        free_time_recuperation=_as_float(
            free_time.get("recuperation", defaults.free_time_recuperation), "free_time.recuperation"
        ),
        training_enabled=_as_bool(training.get("enabled", defaults.training_enabled), "training.enabled"),
        training_cap=_as_float(training.get("training_cap", defaults.training_cap), "training.training_cap"),
        training_speed=_as_float(training.get("training_speed", defaults.training_speed), "training.training_speed"),
        stupidity_penalty=_as_float(
            training.get("stupidity_penalty", defaults.stupidity_penalty), "training.stupidity_penalty"
        ),
        training_min_health=_as_float(
            training.get("training_min_health", defaults.training_min_health), "training.training_min_health"
        ),
        bodies=_build_bodies(config.get("bodies", [])),
    )

    if settings.day_length_s <= 0:
        raise HealthConfigError("general.day_length_s must be positive")
    if settings.base_max_hp <= settings.min_hp:
        raise HealthConfigError("hp.base_max_hp must exceed hp.min_hp")
    if not 0.0 <= settings.exhaustion_start_health <= settings.exhaustion_end_health <= 1.0:
        raise HealthConfigError("hp exhaustion thresholds must satisfy 0 <= start <= end <= 1")
    if settings.training_speed <= 0:
        raise HealthConfigError("training.training_speed must be positive")
    return settings


@lru_cache(maxsize=1)
def get_health_settings() -> HealthSettings:
    return build_health_settings(load_health_config(CONFIG_PATH))
