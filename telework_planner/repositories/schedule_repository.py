# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Week schedule data access.
Documents are addressed by (year, week number) under the key path
schedules/{year}/week{n}. NO business rules here, pure CRUD plus change
subscriptions. Last write wins per key.
"""

import copy
from typing import Any, Callable, Optional

from telework_planner.core.logging import get_logger
from telework_planner.services.calendar_math import schedule_key

logger = get_logger(__name__)

ScheduleListener = Callable[[Optional[dict[str, Any]]], None]


class ScheduleStoreError(RuntimeError):
    """The backing store could not be read or written."""


class ScheduleRepository:
    """Base store: subscription bookkeeping shared by every backend."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[ScheduleListener]] = {}

    # ── Read ──

    def get(self, year: int, week_number: int) -> Optional[dict[str, Any]]:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError

    # ── Write ──

    def put(self, schedule: dict[str, Any]) -> None:
        raise NotImplementedError

    def clear_all(self) -> None:
        raise NotImplementedError

    # ── Live updates ──

    def subscribe(
        self, year: int, week_number: int, on_change: ScheduleListener
    ) -> Callable[[], None]:
        """Call on_change with the new document (None after a reset)."""
        key = schedule_key(year, week_number)
        self._listeners.setdefault(key, []).append(on_change)

        def cancel() -> None:
            listeners = self._listeners.get(key, [])
            if on_change in listeners:
                listeners.remove(on_change)
            if not listeners:
                self._listeners.pop(key, None)

        return cancel

    def listener_count(self) -> int:
        return sum(len(v) for v in self._listeners.values())

    def _publish(self, key: str, document: Optional[dict[str, Any]]) -> None:
        for listener in list(self._listeners.get(key, [])):
            try:
                listener(copy.deepcopy(document))
            except Exception:
                logger.exception("Schedule listener failed for %s", key)

    def _publish_reset(self) -> None:
        for key in list(self._listeners):
            self._publish(key, None)


class InMemoryScheduleRepository(ScheduleRepository):
    """In-memory schedule storage keyed by document path."""

    def __init__(self) -> None:
        super().__init__()
        self._store: dict[str, dict[str, Any]] = {}

    def get(self, year: int, week_number: int) -> Optional[dict[str, Any]]:
        document = self._store.get(schedule_key(year, week_number))
        return copy.deepcopy(document) if document is not None else None

    def count(self) -> int:
        return len(self._store)

    def put(self, schedule: dict[str, Any]) -> None:
        key = schedule_key(schedule["year"], schedule["weekNumber"])
        self._store[key] = copy.deepcopy(schedule)
        self._publish(key, schedule)

    def clear_all(self) -> None:
        self._store.clear()
        self._publish_reset()
