# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Public announcement endpoints.
Thin HTTP layer: delegates ALL logic to AnnouncementService.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from telework_planner.core.dependencies import get_announcement_service
from telework_planner.schemas.planning import AnnouncementCreateRequest, AnnouncementResponse
from telework_planner.services.announcement_service import AnnouncementService

router = APIRouter(prefix="/api/v1", tags=["Announcements"])


@router.post("/announcements", status_code=201, response_model=AnnouncementResponse)
def create_announcement(
    payload: AnnouncementCreateRequest,
    service: AnnouncementService = Depends(get_announcement_service),
):
    """Publish an announcement."""
    try:
        return service.create_announcement(**payload.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/announcements", response_model=list[AnnouncementResponse])
def list_announcements(
    week: Optional[int] = Query(default=None, ge=1, le=53),
    year: Optional[int] = Query(default=None),
    service: AnnouncementService = Depends(get_announcement_service),
):
    """All announcements, or only those visible in `week` of `year`."""
    if week is None and year is None:
        return service.list_announcements()
    if week is None or year is None:
        raise HTTPException(status_code=400, detail="week and year go together")
    return service.announcements_for_week(week, year)


@router.delete("/announcements/{announcement_id}")
def delete_announcement(
    announcement_id: str,
    service: AnnouncementService = Depends(get_announcement_service),
):
    try:
        return service.delete_announcement(announcement_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
