# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Public announcement data access.
Manages the in-memory store of announcements shown above the planning.
"""

from typing import Any, Optional


class AnnouncementRepository:
    """In-memory announcement storage."""

    def __init__(self) -> None:
        self._store: dict[str, dict[str, Any]] = {}

    # ── Read ──

    def get_all(self) -> list[dict[str, Any]]:
        return list(self._store.values())

    def count(self) -> int:
        return len(self._store)

    # ── Write ──

    def save(self, announcement: dict[str, Any]) -> None:
        self._store[announcement["id"]] = announcement

    def delete(self, announcement_id: str) -> Optional[dict[str, Any]]:
        return self._store.pop(announcement_id, None)

    # ── Bulk / internal ──

    def clear(self) -> None:
        self._store.clear()
