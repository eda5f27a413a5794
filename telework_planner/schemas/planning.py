# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request / Response schemas: API contract definitions.
These are Pydantic models used ONLY at the controller (HTTP) boundary.
Schedule fields keep the camelCase names of the stored documents.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


# ── Schedule Schemas ──

class DayScheduleResponse(BaseModel):
    date: str
    dayName: str
    personName: str
    isRemote: bool


class WeekScheduleResponse(BaseModel):
    weekNumber: int = Field(..., ge=1, le=53)
    year: int
    weekType: Literal["PAIR", "IMPAIR"]
    days: list[DayScheduleResponse] = Field(..., min_length=5, max_length=5)
    lastUpdated: str


class DayUpdateRequest(BaseModel):
    """Body of PUT /api/v1/schedules/{year}/{week}/days/{day_index}."""
    person_name: Optional[str] = Field(
        default=None,
        max_length=255,
        description="Person working remotely that day; null or empty clears the day",
    )


class DayHoliday(BaseModel):
    dayName: str
    holiday: Optional[dict[str, Any]] = None


class WeekViewResponse(BaseModel):
    schedule: WeekScheduleResponse
    week_range: str
    holidays: list[DayHoliday]


class ResetResponse(BaseModel):
    status: str
    removed: int


# ── Announcement Schemas ──

class AnnouncementCreateRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    author: str = Field(..., min_length=1, max_length=255)
    display_type: Literal["pinned", "week-range", "specific-week"] = "pinned"
    year: int = Field(..., ge=2000, le=2100)
    start_week: Optional[int] = Field(default=None, ge=1, le=53)
    end_week: Optional[int] = Field(default=None, ge=1, le=53)
    specific_week: Optional[int] = Field(default=None, ge=1, le=53)


class AnnouncementResponse(BaseModel):
    id: str
    content: str
    author: str
    display_type: str
    year: int
    start_week: Optional[int] = None
    end_week: Optional[int] = None
    specific_week: Optional[int] = None
    timestamp: str
