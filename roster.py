"""
Crew roster — the explicitly owned registry of tracked crew health states.

Built when a roster is loaded, torn down with ``clear()`` at session end.
Callers that only display data get deep-cloned snapshots so that an
in-progress tick never hands out half-updated state.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional

from crew_health import CrewHealthStatus
from health_config import HealthSettings

log = logging.getLogger(__name__)


class CrewRoster:
    def __init__(self, settings: HealthSettings):
        self.settings = settings
        self._crew: Dict[str, CrewHealthStatus] = {}

    def __len__(self) -> int:
        return len(self._crew)

    def __contains__(self, name: object) -> bool:
        return name in self._crew

    def __iter__(self) -> Iterator[CrewHealthStatus]:
        return iter(list(self._crew.values()))

    def names(self) -> List[str]:
        return sorted(self._crew)

    def register(
        self,
        name: str,
        experience_level: int = 0,
        is_veteran: bool = False,
        stupidity: float = 0.5,
        hp: Optional[float] = None,
    ) -> CrewHealthStatus:
        """Start tracking a crew member; returns the existing state if already tracked."""
        existing = self._crew.get(name)
        if existing is not None:
            return existing
        status = CrewHealthStatus(
            name,
            self.settings,
            experience_level=experience_level,
            is_veteran=is_veteran,
            stupidity=stupidity,
            hp=hp,
        )
        self._crew[name] = status
        log.info("Registered %s (max HP %.0f).", name, status.max_hp)
        return status

    def remove(self, name: str) -> CrewHealthStatus:
        status = self._crew.pop(name)
        log.info("Removed %s from the roster.", name)
        return status

    def find(self, name: str) -> Optional[CrewHealthStatus]:
        return self._crew.get(name)

    def get(self, name: str) -> CrewHealthStatus:
        status = self._crew.get(name)
        if status is None:
            raise KeyError(name)
        return status

    def snapshot(self, name: str) -> CrewHealthStatus:
        return self.get(name).clone()

    def snapshots(self) -> List[CrewHealthStatus]:
        return [self._crew[n].clone() for n in self.names()]

    def to_payload(self) -> List[Dict[str, Any]]:
        return [s.to_payload() for s in self.snapshots()]

    def clear(self) -> None:
        self._crew.clear()
