# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection: wire repositories and services.
"""

from telework_planner.core.config import settings
from telework_planner.core.roster import load_roster
from telework_planner.repositories.announcement_repository import AnnouncementRepository
from telework_planner.repositories.history_repository import HistoryRepository
from telework_planner.repositories.schedule_repository import (
    InMemoryScheduleRepository,
    ScheduleRepository,
)
from telework_planner.services.announcement_service import AnnouncementService
from telework_planner.services.notification_client import NotificationClient
from telework_planner.services.planning_service import PlanningService


def build_schedule_repository(database_url: str) -> ScheduleRepository:
    """In-memory store unless a database URL is configured."""
    if not database_url:
        return InMemoryScheduleRepository()
    from telework_planner.core.database import build_engine
    from telework_planner.repositories.sql_schedule_repository import SqlScheduleRepository

    return SqlScheduleRepository(build_engine(database_url))


# ── Singleton instances ──
_roster = load_roster()
_schedule_repo = build_schedule_repository(settings.DATABASE_URL)
_history_repo = HistoryRepository()
_announcement_repo = AnnouncementRepository()
_notification_client = NotificationClient()

_planning_service = PlanningService(
    schedule_repo=_schedule_repo,
    history_repo=_history_repo,
    notification_client=_notification_client,
    roster=_roster,
)
_announcement_service = AnnouncementService(announcement_repo=_announcement_repo)


# ── FastAPI dependency functions ──
def get_planning_service() -> PlanningService:
    return _planning_service


def get_announcement_service() -> AnnouncementService:
    return _announcement_service


def get_schedule_repo() -> ScheduleRepository:
    return _schedule_repo


def get_history_repo() -> HistoryRepository:
    return _history_repo


def get_announcement_repo() -> AnnouncementRepository:
    return _announcement_repo
