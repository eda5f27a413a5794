# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Week planning, manual overrides, reset, history, roster.
Thin HTTP layer: delegates ALL logic to PlanningService.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from telework_planner.core.dependencies import get_history_repo, get_planning_service
from telework_planner.repositories.history_repository import HistoryRepository
from telework_planner.repositories.schedule_repository import ScheduleStoreError
from telework_planner.schemas.planning import (
    DayUpdateRequest,
    ResetResponse,
    WeekScheduleResponse,
    WeekViewResponse,
)
from telework_planner.services.holidays import holidays_for_year
from telework_planner.services.planning_service import PlanningService

router = APIRouter(prefix="/api/v1", tags=["Planning"])

STORE_UNAVAILABLE = "Schedule store unavailable, retry later"


# ── Weeks ──

@router.get("/planning/week", response_model=WeekScheduleResponse)
def get_week(
    offset: int = Query(default=0, ge=-520, le=520, description="Weeks from the current one"),
    service: PlanningService = Depends(get_planning_service),
):
    """Schedule of the week `offset` weeks from today, generated on first read."""
    try:
        return service.get_or_generate_schedule(offset)
    except ScheduleStoreError:
        raise HTTPException(status_code=503, detail=STORE_UNAVAILABLE)


@router.get("/planning/view", response_model=WeekViewResponse)
def get_week_view(
    offset: int = Query(default=0, ge=-520, le=520),
    service: PlanningService = Depends(get_planning_service),
):
    """Schedule with its date range and the holidays falling in it."""
    try:
        return service.week_view(offset)
    except ScheduleStoreError:
        raise HTTPException(status_code=503, detail=STORE_UNAVAILABLE)


@router.get("/schedules/{year}/{week}", response_model=WeekScheduleResponse)
def get_stored_week(
    year: int = Path(..., ge=2000, le=2100),
    week: int = Path(..., ge=1, le=53),
    service: PlanningService = Depends(get_planning_service),
):
    """A stored week, without generating it."""
    try:
        return service.get_schedule(year, week)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ScheduleStoreError:
        raise HTTPException(status_code=503, detail=STORE_UNAVAILABLE)


@router.put("/schedules/{year}/{week}/days/{day_index}", response_model=WeekScheduleResponse)
def update_day(
    payload: DayUpdateRequest,
    year: int = Path(..., ge=2000, le=2100),
    week: int = Path(..., ge=1, le=53),
    day_index: int = Path(..., description="0 = Monday ... 4 = Friday"),
    service: PlanningService = Depends(get_planning_service),
):
    """Manually set (or clear) the remote person of one day."""
    try:
        return service.update_day(year, week, day_index, payload.person_name)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ScheduleStoreError:
        raise HTTPException(status_code=503, detail=STORE_UNAVAILABLE)


@router.delete("/schedules", response_model=ResetResponse)
def reset_schedules(
    service: PlanningService = Depends(get_planning_service),
):
    """Delete every stored week."""
    try:
        return service.reset_all_schedules()
    except ScheduleStoreError:
        raise HTTPException(status_code=503, detail=STORE_UNAVAILABLE)


# ── History / Stats ──

@router.get("/planning/history")
def get_history(
    week_key: Optional[str] = None,
    event_type: Optional[str] = None,
    limit: int = Query(default=None, ge=1, description="Max results"),
    history_repo: HistoryRepository = Depends(get_history_repo),
):
    """Audit log of generations, overrides and resets."""
    return history_repo.get_all(week_key=week_key, event_type=event_type, limit=limit)


@router.get("/planning/stats")
def get_stats(
    service: PlanningService = Depends(get_planning_service),
):
    try:
        return service.get_stats()
    except ScheduleStoreError:
        raise HTTPException(status_code=503, detail=STORE_UNAVAILABLE)


# ── Roster / Holidays ──

@router.get("/roster")
def list_roster(
    active_only: bool = False,
    service: PlanningService = Depends(get_planning_service),
):
    """Configured roster, placeholders included."""
    members = service.roster
    if active_only:
        members = [m for m in members if m.active]
    return [m.model_dump() for m in members]


@router.get("/holidays/{year}")
def list_holidays(year: int = Path(..., ge=1900, le=2200)):
    """French public holidays of a year."""
    return holidays_for_year(year)
