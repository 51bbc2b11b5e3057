from datetime import date, timedelta
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database.postgres import get_db
from dependencies.auth import CurrentUser, get_current_user, require_role
from schemas.availability_schema import (
    AvailabilityResponseDTO,
    AvailabilityUpdateDTO,
    AvailableDaysResponseDTO,
    SlotsResponseDTO,
)
from schemas.enum import RoleEnum
from services.availability_service import (
    get_availability,
    get_available_days,
    get_available_slots,
    update_availability,
)

MAX_RANGE_DAYS = 92

router = APIRouter(prefix="/professionals", tags=["Availability"])


@router.get("/{professional_id}/availability", response_model=AvailabilityResponseDTO)
async def read_availability(
    professional_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    windows = await get_availability(db, professional_id)
    return AvailabilityResponseDTO(professional_id=professional_id, availability=windows)


@router.put("/me/availability", response_model=AvailabilityResponseDTO)
async def replace_my_availability(
    payload: AvailabilityUpdateDTO,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_role(RoleEnum.PROFESSIONAL))
):
    windows = await update_availability(db, current_user.id, payload.availability)
    return AvailabilityResponseDTO(professional_id=current_user.id, availability=windows)


@router.get("/{professional_id}/slots", response_model=SlotsResponseDTO)
async def read_available_slots(
    professional_id: str,
    target_date: date = Query(..., alias="date"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    slots = await get_available_slots(db, professional_id, target_date)
    return SlotsResponseDTO(
        professional_id=professional_id,
        target_date=target_date,
        slots=slots
    )


@router.get("/{professional_id}/available-days", response_model=AvailableDaysResponseDTO)
async def read_available_days(
    professional_id: str,
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must be after start_date")
    if end_date - start_date > timedelta(days=MAX_RANGE_DAYS):
        raise HTTPException(status_code=400, detail=f"Range cannot exceed {MAX_RANGE_DAYS} days")

    days = await get_available_days(db, start_date, end_date, professional_id)
    return AvailableDaysResponseDTO(
        professional_id=professional_id,
        start_date=start_date,
        end_date=end_date,
        days=days
    )
