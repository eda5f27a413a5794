# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Public announcements shown above a week's planning.
An announcement is pinned (always shown), tied to one ISO week, or to a
range of weeks within a year.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from telework_planner.core.logging import get_logger
from telework_planner.metrics.prometheus import ANNOUNCEMENTS_ACTIVE
from telework_planner.repositories.announcement_repository import AnnouncementRepository

logger = get_logger(__name__)

DISPLAY_TYPES: tuple[str, ...] = ("pinned", "week-range", "specific-week")


def is_visible_in_week(announcement: dict[str, Any], week_number: int, year: int) -> bool:
    display_type = announcement["display_type"]
    if display_type == "pinned":
        return True
    if announcement.get("year") != year:
        return False
    if display_type == "specific-week":
        return announcement.get("specific_week") == week_number
    if display_type == "week-range":
        start = announcement.get("start_week")
        end = announcement.get("end_week")
        return start is not None and end is not None and start <= week_number <= end
    return False


class AnnouncementService:
    """Business logic for public announcements."""

    def __init__(self, announcement_repo: AnnouncementRepository) -> None:
        self._announcements = announcement_repo

    # ── Commands ──

    def create_announcement(
        self,
        content: str,
        author: str,
        display_type: str,
        year: int,
        start_week: Optional[int] = None,
        end_week: Optional[int] = None,
        specific_week: Optional[int] = None,
    ) -> dict[str, Any]:
        """Store a new announcement. Raises ValueError on inconsistent weeks."""
        if display_type not in DISPLAY_TYPES:
            raise ValueError(f"display_type must be one of {DISPLAY_TYPES}")
        if display_type == "week-range":
            if start_week is None or end_week is None:
                raise ValueError("week-range announcements need start_week and end_week")
            if start_week > end_week:
                raise ValueError("start_week must not be after end_week")
        if display_type == "specific-week" and specific_week is None:
            raise ValueError("specific-week announcements need specific_week")

        announcement: dict[str, Any] = {
            "id": str(uuid.uuid4()),
            "content": content,
            "author": author,
            "display_type": display_type,
            "year": year,
            "start_week": start_week if display_type == "week-range" else None,
            "end_week": end_week if display_type == "week-range" else None,
            "specific_week": specific_week if display_type == "specific-week" else None,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        self._announcements.save(announcement)
        ANNOUNCEMENTS_ACTIVE.set(self._announcements.count())
        logger.info("Announcement created: id=%s, type=%s", announcement["id"], display_type)
        return announcement

    def delete_announcement(self, announcement_id: str) -> dict[str, str]:
        """Raises KeyError if the announcement does not exist."""
        if self._announcements.delete(announcement_id) is None:
            raise KeyError(f"No announcement with id '{announcement_id}'")
        ANNOUNCEMENTS_ACTIVE.set(self._announcements.count())
        logger.info("Announcement deleted: id=%s", announcement_id)
        return {"status": "deleted", "id": announcement_id}

    # ── Queries ──

    def list_announcements(self) -> list[dict[str, Any]]:
        """All announcements, newest first."""
        return sorted(self._announcements.get_all(), key=lambda a: a["timestamp"], reverse=True)

    def announcements_for_week(self, week_number: int, year: int) -> list[dict[str, Any]]:
        """Announcements to display for one ISO week, newest first."""
        return [
            a for a in self.list_announcements() if is_visible_in_week(a, week_number, year)
        ]
