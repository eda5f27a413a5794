# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Week planning - read-through generation, manual overrides, reset.
Coordinates the schedule store with the rotation engine, metrics, history
and change notifications.
"""

import copy
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable, Optional
from zoneinfo import ZoneInfo

from telework_planner.core.config import settings
from telework_planner.core.logging import get_logger
from telework_planner.core.roster import active_members, get_member_by_id
from telework_planner.metrics.prometheus import (
    DAY_OVERRIDES,
    PLACEHOLDER_REPAIRS,
    ROSTER_FALLBACKS,
    SCHEDULE_CACHE_HITS,
    SCHEDULE_RESETS,
    SCHEDULES_GENERATED,
    STORE_ERRORS,
    STORED_SCHEDULES,
)
from telework_planner.models.domain import RosterMember
from telework_planner.repositories.history_repository import HistoryRepository
from telework_planner.repositories.schedule_repository import (
    ScheduleRepository,
    ScheduleStoreError,
)
from telework_planner.services.calendar_math import (
    WeekIdentity,
    format_date_fr,
    monday_of,
    previous_week,
    shift_weeks,
    week_days,
    week_identity,
)
from telework_planner.services.holidays import holiday_for
from telework_planner.services.notification_client import NotificationClient
from telework_planner.services.rotation import DAY_NAMES, RotationResult, plan_rotation

logger = get_logger(__name__)

NO_PERSON = "—"


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def next_timestamp(previous: Optional[str]) -> str:
    """Current UTC time, nudged forward so it always sorts after `previous`."""
    now = datetime.now(timezone.utc)
    if previous:
        try:
            last = datetime.fromisoformat(previous.replace("Z", "+00:00"))
        except ValueError:
            last = None
        if last is not None:
            if last.tzinfo is None:
                last = last.replace(tzinfo=timezone.utc)
            if now <= last:
                now = last + timedelta(microseconds=1)
    return now.isoformat()


def build_week_schedule(
    week: WeekIdentity,
    assignment: dict[str, str],
    roster: list[RosterMember],
    last_updated: Optional[str] = None,
) -> dict[str, Any]:
    """Expand a day -> member id assignment into the persisted document."""
    days: list[dict[str, Any]] = []
    for day_name, day in zip(DAY_NAMES, week_days(week.monday())):
        member_id = assignment.get(day_name)
        member = get_member_by_id(roster, member_id) if member_id else None
        person_name = member.display_name if member is not None else None
        days.append({
            "date": datetime.combine(day, time.min).isoformat(),
            "dayName": day_name,
            "personName": person_name or NO_PERSON,
            "isRemote": person_name is not None,
        })
    return {
        "weekNumber": week.week_number,
        "year": week.year,
        "weekType": week.week_type,
        "days": days,
        "lastUpdated": last_updated or _utcnow_iso(),
    }


def week_range(schedule: dict[str, Any]) -> str:
    """'dd/mm/yyyy - dd/mm/yyyy' from Monday to Friday."""
    first = datetime.fromisoformat(schedule["days"][0]["date"])
    last = datetime.fromisoformat(schedule["days"][-1]["date"])
    return f"{format_date_fr(first)} - {format_date_fr(last)}"


class PlanningService:
    """Business logic for the weekly remote-work planning."""

    def __init__(
        self,
        schedule_repo: ScheduleRepository,
        history_repo: HistoryRepository,
        notification_client: NotificationClient,
        roster: list[RosterMember],
        today_provider: Optional[Callable[[], date]] = None,
    ) -> None:
        self._schedules = schedule_repo
        self._history = history_repo
        self._notifications = notification_client
        self._roster = roster
        self._today_provider = today_provider

    @property
    def roster(self) -> list[RosterMember]:
        return list(self._roster)

    def today(self) -> date:
        if self._today_provider is not None:
            return self._today_provider()
        return datetime.now(ZoneInfo(settings.PLANNING_TIMEZONE)).date()

    def resolve_week(self, week_offset: int = 0) -> WeekIdentity:
        """today + week_offset weeks -> ISO week identity of that Monday."""
        monday = monday_of(shift_weeks(self.today(), week_offset))
        return week_identity(monday)

    # ── Queries ──

    def get_or_generate_schedule(self, week_offset: int = 0) -> dict[str, Any]:
        """Persisted schedule for the week, generated and saved on first access."""
        return self.get_or_generate_week(self.resolve_week(week_offset))

    def get_or_generate_week(self, week: WeekIdentity) -> dict[str, Any]:
        existing = self._read(week)
        if existing is not None:
            SCHEDULE_CACHE_HITS.inc()
            return existing

        schedule = self.generate_week_schedule(week)
        self._write(schedule)
        SCHEDULES_GENERATED.inc()
        self._history.record_event(
            "schedule_generated",
            week.key,
            {
                "remote": {
                    d["dayName"]: d["personName"] for d in schedule["days"] if d["isRemote"]
                },
            },
        )
        logger.info(
            "Schedule generated: week=%s, remote_days=%d",
            week.key,
            sum(1 for d in schedule["days"] if d["isRemote"]),
            extra={"week_key": week.key},
        )
        return schedule

    def get_schedule(self, year: int, week_number: int) -> dict[str, Any]:
        schedule = self._read(WeekIdentity(year, week_number))
        if schedule is None:
            raise KeyError(f"No schedule stored for week {week_number} of {year}")
        return schedule

    def generate_week_schedule(self, week: WeekIdentity) -> dict[str, Any]:
        """Run the rotation for a week without persisting the result."""
        result = plan_rotation(week, active_members(self._roster), self._previous_schedule(week))
        self._report_degradations(result)
        return build_week_schedule(week, result.assignment, self._roster)

    def week_view(self, week_offset: int = 0) -> dict[str, Any]:
        """Schedule plus the bits a planning sheet prints around it."""
        schedule = self.get_or_generate_schedule(week_offset)
        holidays = []
        for day in schedule["days"]:
            holiday = holiday_for(datetime.fromisoformat(day["date"]).date())
            holidays.append({"dayName": day["dayName"], "holiday": holiday})
        return {
            "schedule": schedule,
            "week_range": week_range(schedule),
            "holidays": holidays,
        }

    # ── Commands ──

    def update_day_person(
        self,
        schedule: dict[str, Any],
        day_index: int,
        person_name: Optional[str],
    ) -> dict[str, Any]:
        """Manual override of one day. Raises ValueError on a bad day index."""
        if not 0 <= day_index < len(schedule.get("days", [])):
            raise ValueError(f"day_index must be between 0 and {len(DAY_NAMES) - 1}")

        name = (person_name or "").strip()
        if name == NO_PERSON:
            name = ""

        updated = copy.deepcopy(schedule)
        previous_name = updated["days"][day_index]["personName"]
        updated["days"][day_index] = {
            **updated["days"][day_index],
            "personName": name or NO_PERSON,
            "isRemote": bool(name),
        }
        updated["lastUpdated"] = next_timestamp(schedule.get("lastUpdated"))
        self._write(updated)

        week_key = WeekIdentity(updated["year"], updated["weekNumber"]).key
        DAY_OVERRIDES.inc()
        self._history.record_event(
            "day_updated",
            week_key,
            {
                "day": updated["days"][day_index]["dayName"],
                "old_person": previous_name,
                "new_person": name or NO_PERSON,
            },
        )
        logger.info(
            "Day updated: week=%s, day=%s, person=%s",
            week_key, updated["days"][day_index]["dayName"], name or NO_PERSON,
            extra={"week_key": week_key},
        )
        self._notifications.send(
            message=(
                f"Planning semaine {updated['weekNumber']}: "
                f"{updated['days'][day_index]['dayName']} -> {name or NO_PERSON}"
            ),
            week_key=week_key,
        )
        return updated

    def update_day(
        self,
        year: int,
        week_number: int,
        day_index: int,
        person_name: Optional[str],
    ) -> dict[str, Any]:
        """Load a stored week then override one day. Raises KeyError / ValueError."""
        return self.update_day_person(self.get_schedule(year, week_number), day_index, person_name)

    def reset_all_schedules(self) -> dict[str, Any]:
        """Drop every stored week. Next reads regenerate from scratch."""
        try:
            removed = self._schedules.count()
            self._schedules.clear_all()
        except ScheduleStoreError:
            STORE_ERRORS.labels(operation="clear").inc()
            raise
        STORED_SCHEDULES.set(0)
        SCHEDULE_RESETS.inc()
        self._history.record_event("schedules_reset", None, {"removed": removed})
        logger.warning("All schedules reset: %d removed", removed)
        self._notifications.send(message="Planning réinitialisé")
        return {"status": "reset", "removed": removed}

    # ── Stats ──

    def get_stats(self) -> dict[str, Any]:
        active = active_members(self._roster)
        return {
            "stored_schedules": self._schedules.count(),
            "roster_size": len(self._roster),
            "active_members": len(active),
            "active_placeholders": sum(1 for m in active if m.is_placeholder),
            "total_history_events": self._history.count(),
            "event_types": self._history.count_by_type(),
        }

    # ── Internal ──

    def _read(self, week: WeekIdentity) -> Optional[dict[str, Any]]:
        try:
            return self._schedules.get(week.year, week.week_number)
        except ScheduleStoreError:
            STORE_ERRORS.labels(operation="get").inc()
            raise

    def _write(self, schedule: dict[str, Any]) -> None:
        try:
            self._schedules.put(schedule)
        except ScheduleStoreError:
            STORE_ERRORS.labels(operation="put").inc()
            raise
        try:
            STORED_SCHEDULES.set(self._schedules.count())
        except ScheduleStoreError as exc:
            STORE_ERRORS.labels(operation="count").inc()
            logger.warning("Stored schedule count unavailable: %s", exc)

    def _previous_schedule(self, week: WeekIdentity) -> Optional[dict[str, Any]]:
        """Last week's stored schedule. Unreadable means no exclusions."""
        previous = previous_week(week)
        try:
            return self._schedules.get(previous.year, previous.week_number)
        except ScheduleStoreError as exc:
            STORE_ERRORS.labels(operation="get").inc()
            logger.warning(
                "Previous week %s unreadable, no exclusions applied: %s", previous.key, exc
            )
            return None

    def _report_degradations(self, result: RotationResult) -> None:
        if result.no_repeat_dropped:
            ROSTER_FALLBACKS.inc()
            self._history.record_event(
                "roster_fallback",
                result.week.key,
                {"excluded": sorted(result.excluded)},
            )
            logger.warning(
                "Not enough people outside last week's remote list for %s, "
                "using the full roster",
                result.week.key,
                extra={"week_key": result.week.key},
            )
        if result.placeholders_dropped:
            PLACEHOLDER_REPAIRS.inc()
            self._history.record_event(
                "placeholder_repaired",
                result.week.key,
                {"dropped": list(result.placeholders_dropped)},
            )
            logger.warning(
                "Extra placeholders removed from %s: %s",
                result.week.key,
                ", ".join(result.placeholders_dropped),
                extra={"week_key": result.week.key},
            )
