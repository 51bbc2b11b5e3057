from datetime import date, datetime, time
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from database.postgres import get_db
from dependencies.auth import CurrentUser, get_current_user, require_role
from schemas.calendar_schema import (
    CalendarEventDTO,
    CreateAvailabilityEventDTO,
    DeletedEventsDTO,
    GoogleCalendarLinkDTO,
    MaterializeResponseDTO,
    UpdateAvailabilityEventDTO,
)
from schemas.enum import RoleEnum
from services.availability_service import get_availability
from services.calendar_service import (
    create_availability_event,
    delete_all_events_for_professional,
    delete_availability_event,
    export_to_icalendar,
    get_availability_event,
    get_professional_calendar,
    google_calendar_url,
    materialize_availability,
    project_availability_events,
    to_event_dto,
    update_availability_event,
)

router = APIRouter(prefix="/professionals", tags=["Calendar"])


def _range(start_date: date, end_date: date):
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must be after start_date")
    return datetime.combine(start_date, time.min), datetime.combine(end_date, time.max)


@router.get("/{professional_id}/calendar", response_model=List[CalendarEventDTO])
async def read_calendar(
    professional_id: str,
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    start, end = _range(start_date, end_date)
    return await get_professional_calendar(db, professional_id, start, end)


@router.get("/{professional_id}/calendar.ics")
async def export_calendar(
    professional_id: str,
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    start, end = _range(start_date, end_date)
    events = await get_professional_calendar(db, professional_id, start, end)
    return Response(
        content=export_to_icalendar(events),
        media_type="text/calendar",
        headers={"Content-Disposition": f'attachment; filename="calendar-{professional_id}.ics"'}
    )


@router.get("/{professional_id}/calendar/generated", response_model=List[CalendarEventDTO])
async def read_generated_calendar(
    professional_id: str,
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    _range(start_date, end_date)
    windows = await get_availability(db, professional_id)
    return project_availability_events(professional_id, windows, start_date, end_date)


@router.post("/me/calendar/materialize", response_model=MaterializeResponseDTO)
async def materialize_my_calendar(
    horizon_months: Optional[int] = Query(None, ge=1, le=12),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_role(RoleEnum.PROFESSIONAL))
):
    windows = await get_availability(db, current_user.id)
    kwargs = {"horizon_months": horizon_months} if horizon_months else {}
    created = await materialize_availability(db, current_user.id, windows, **kwargs)
    return MaterializeResponseDTO(professional_id=current_user.id, created=created)


@router.post("/me/calendar/events", response_model=CalendarEventDTO, status_code=status.HTTP_201_CREATED)
async def create_my_event(
    payload: CreateAvailabilityEventDTO,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_role(RoleEnum.PROFESSIONAL))
):
    if payload.end <= payload.start:
        raise HTTPException(status_code=400, detail="end must be after start")

    event = await create_availability_event(
        db,
        current_user.id,
        payload.start,
        payload.end,
        is_recurring=payload.is_recurring,
        pattern=payload.recurring_pattern
    )
    return to_event_dto(event)


async def _own_event(db: AsyncSession, event_id: str, current_user: CurrentUser):
    event = await get_availability_event(db, event_id)
    if event.professional_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not your calendar event")
    return event


@router.get("/me/calendar/events/{event_id}/google", response_model=GoogleCalendarLinkDTO)
async def google_link_for_my_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_role(RoleEnum.PROFESSIONAL))
):
    event = await _own_event(db, event_id, current_user)
    return GoogleCalendarLinkDTO(event_id=event.id, url=google_calendar_url(to_event_dto(event)))


@router.patch("/me/calendar/events/{event_id}", response_model=CalendarEventDTO)
async def update_my_event(
    event_id: str,
    payload: UpdateAvailabilityEventDTO,
    update_recurring: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_role(RoleEnum.PROFESSIONAL))
):
    await _own_event(db, event_id, current_user)
    try:
        event = await update_availability_event(db, event_id, payload, update_recurring=update_recurring)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return to_event_dto(event)


@router.delete("/me/calendar/events/{event_id}")
async def delete_my_event(
    event_id: str,
    delete_future_recurring: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_role(RoleEnum.PROFESSIONAL))
):
    await _own_event(db, event_id, current_user)
    removed = await delete_availability_event(db, event_id, delete_future_recurring=delete_future_recurring)
    return {"message": "Event deleted", "removed": removed}


@router.delete("/me/calendar/events", response_model=DeletedEventsDTO)
async def clear_my_calendar(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_role(RoleEnum.PROFESSIONAL))
):
    removed = await delete_all_events_for_professional(db, current_user.id)
    return DeletedEventsDTO(professional_id=current_user.id, removed=removed)
