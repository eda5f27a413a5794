# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Calendar math - ISO-8601 week addressing, pure computation.

Every persisted schedule is keyed by the (ISO year, ISO week) pair of its
Monday. Weeks run Monday to Sunday and week 1 is the week holding the first
Thursday of the year, so the ISO year of a date can differ from its
calendar year around New Year.
"""

from datetime import date, datetime, timedelta
from typing import NamedTuple

WORKING_DAYS = 5


class WeekIdentity(NamedTuple):
    """Unique key of one persisted week schedule."""

    year: int
    week_number: int

    @property
    def key(self) -> str:
        return schedule_key(self.year, self.week_number)

    @property
    def week_type(self) -> str:
        return "PAIR" if self.week_number % 2 == 0 else "IMPAIR"

    def monday(self) -> date:
        return date.fromisocalendar(self.year, self.week_number, 1)


def schedule_key(year: int, week_number: int) -> str:
    """Document path of a week schedule in the backing store."""
    return f"schedules/{year}/week{week_number}"


def _as_date(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _thursday_of(value: date) -> date:
    value = _as_date(value)
    return value + timedelta(days=3 - value.weekday())


def iso_week_number(value: date) -> int:
    """ISO-8601 week number (1..53) of the given date."""
    thursday = _thursday_of(value)
    jan_first = date(thursday.year, 1, 1)
    first_thursday = jan_first + timedelta(days=(3 - jan_first.weekday()) % 7)
    return (thursday - first_thursday).days // 7 + 1


def iso_week_year(value: date) -> int:
    """Year owning the Thursday of the date's week."""
    return _thursday_of(value).year


def monday_of(value: date) -> date:
    """Roll back to the Monday of the date's week (Sunday counts as day 7)."""
    value = _as_date(value)
    return value - timedelta(days=value.isoweekday() - 1)


def week_days(monday: date) -> list[date]:
    """Monday to Friday inclusive."""
    monday = _as_date(monday)
    return [monday + timedelta(days=offset) for offset in range(WORKING_DAYS)]


def week_identity(value: date) -> WeekIdentity:
    return WeekIdentity(iso_week_year(value), iso_week_number(value))


def previous_week(identity: WeekIdentity) -> WeekIdentity:
    return week_identity(identity.monday() - timedelta(days=7))


def shift_weeks(value: date, week_offset: int) -> date:
    return _as_date(value) + timedelta(days=7 * week_offset)


def format_date_fr(value: date) -> str:
    """dd/mm/yyyy, the way dates are printed on the planning sheet."""
    return _as_date(value).strftime("%d/%m/%Y")
