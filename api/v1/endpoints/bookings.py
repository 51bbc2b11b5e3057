from datetime import date, time
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from database.postgres import get_db
from dependencies.auth import CurrentUser, get_current_user, require_role
from schemas.availability_schema import AvailabilityCheckDTO
from schemas.booking_schema import (
    BookingResponse,
    BookingStatisticsDTO,
    CompleteBookingDTO,
    CreateBookingDTO,
)
from schemas.enum import RoleEnum
from services.booking_service import (
    cancel_booking,
    check_availability,
    complete_booking,
    confirm_booking,
    create_booking,
    get_booking,
    get_booking_statistics,
)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def book_consultation(
    payload: CreateBookingDTO,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_role(RoleEnum.PATIENT))
):
    if payload.end_time <= payload.start_time:
        raise HTTPException(status_code=400, detail="end_time must be after start_time")

    if payload.patient_name is None and current_user.name:
        payload.patient_name = current_user.name

    return await create_booking(db, current_user.id, payload)


@router.get("/check", response_model=AvailabilityCheckDTO)
async def check_slot(
    professional_id: str = Query(...),
    target_date: date = Query(..., alias="date"),
    start_time: time = Query(...),
    end_time: time = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    available = await check_availability(db, professional_id, target_date, start_time, end_time)
    return AvailabilityCheckDTO(
        professional_id=professional_id,
        target_date=target_date,
        start_time=start_time,
        end_time=end_time,
        available=available,
        detail=None if available else "Slot already booked"
    )


@router.get("/statistics", response_model=BookingStatisticsDTO)
async def booking_statistics(
    professional_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_role(RoleEnum.PROFESSIONAL, RoleEnum.ADMIN))
):
    # Professionals only ever see their own figures
    if current_user.role == RoleEnum.PROFESSIONAL:
        professional_id = current_user.id
    return await get_booking_statistics(db, professional_id)


async def _booking_for(db: AsyncSession, booking_id: str, current_user: CurrentUser, allow_patient: bool):
    booking = await get_booking(db, booking_id)
    if current_user.role == RoleEnum.ADMIN:
        return booking
    if booking.professional_id == current_user.id:
        return booking
    if allow_patient and booking.patient_id == current_user.id:
        return booking
    raise HTTPException(status_code=403, detail="Not allowed to change this booking")


@router.post("/{booking_id}/confirm", response_model=BookingResponse)
async def confirm(
    booking_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    await _booking_for(db, booking_id, current_user, allow_patient=False)
    return await confirm_booking(db, booking_id)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel(
    booking_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    await _booking_for(db, booking_id, current_user, allow_patient=True)
    return await cancel_booking(db, booking_id)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
async def complete(
    booking_id: str,
    payload: Optional[CompleteBookingDTO] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    await _booking_for(db, booking_id, current_user, allow_patient=False)
    return await complete_booking(db, booking_id, payload.notes if payload else None)
