import os
import threading
import time
from typing import Any, Dict

GAME_TIME_SCALE = float(os.environ.get("GAME_TIME_SCALE", "48"))
RESET_GAME_EPOCH_S = 0.0
_REAL_TIME_ANCHOR_S = time.time()
_GAME_TIME_ANCHOR_S = RESET_GAME_EPOCH_S
_SIMULATION_PAUSED = False
_SIMULATION_LOCK = threading.Lock()


def _game_time_locked(now_real_s: float) -> float:
    if _SIMULATION_PAUSED:
        return _GAME_TIME_ANCHOR_S
    return _GAME_TIME_ANCHOR_S + ((now_real_s - _REAL_TIME_ANCHOR_S) * GAME_TIME_SCALE)


def game_now_s() -> float:
    now_real_s = time.time()
    with _SIMULATION_LOCK:
        return _game_time_locked(now_real_s)


def simulation_paused() -> bool:
    with _SIMULATION_LOCK:
        return _SIMULATION_PAUSED


def effective_time_scale() -> float:
    return 0.0 if simulation_paused() else GAME_TIME_SCALE


def set_simulation_paused(paused: bool) -> None:
    global _REAL_TIME_ANCHOR_S, _GAME_TIME_ANCHOR_S, _SIMULATION_PAUSED

    now_real_s = time.time()
    with _SIMULATION_LOCK:
        _GAME_TIME_ANCHOR_S = _game_time_locked(now_real_s)
        _REAL_TIME_ANCHOR_S = now_real_s
        _SIMULATION_PAUSED = bool(paused)


def advance_game_time(seconds: float) -> float:
    """Jump the game clock forward (time warp). Returns the new game time."""
    global _REAL_TIME_ANCHOR_S, _GAME_TIME_ANCHOR_S

    now_real_s = time.time()
    with _SIMULATION_LOCK:
        _GAME_TIME_ANCHOR_S = _game_time_locked(now_real_s) + max(0.0, float(seconds))
        _REAL_TIME_ANCHOR_S = now_real_s
        return _GAME_TIME_ANCHOR_S


def reset_simulation_clock() -> None:
    global _REAL_TIME_ANCHOR_S, _GAME_TIME_ANCHOR_S, _SIMULATION_PAUSED

    now_real_s = time.time()
    with _SIMULATION_LOCK:
        _REAL_TIME_ANCHOR_S = now_real_s
        _GAME_TIME_ANCHOR_S = RESET_GAME_EPOCH_S
        _SIMULATION_PAUSED = False


def export_simulation_state() -> Dict[str, Any]:
    with _SIMULATION_LOCK:
        return {
            "real_time_anchor_s": _REAL_TIME_ANCHOR_S,
            "game_time_anchor_s": _GAME_TIME_ANCHOR_S,
            "paused": _SIMULATION_PAUSED,
        }


def import_simulation_state(real_time_anchor_s: float, game_time_anchor_s: float, paused: bool) -> None:
    global _REAL_TIME_ANCHOR_S, _GAME_TIME_ANCHOR_S, _SIMULATION_PAUSED

    with _SIMULATION_LOCK:
        _REAL_TIME_ANCHOR_S = float(real_time_anchor_s)
        _GAME_TIME_ANCHOR_S = float(game_time_anchor_s)
        _SIMULATION_PAUSED = bool(paused)


def seconds_to_days(seconds: float, day_length_s: float) -> float:
    return float(seconds) / float(day_length_s)


def days_to_seconds(days: float, day_length_s: float) -> float:
    return float(days) * float(day_length_s)
