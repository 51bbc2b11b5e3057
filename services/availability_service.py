"""
Availability resolution: turn a professional's weekly windows into the bookable
slots of a given date (or date range), net of pending/confirmed bookings.

Degraded paths never raise to the caller:
  - profile missing, unreadable or malformed -> no slots
  - bookings unreadable -> slots returned unfiltered
"""

from datetime import date, timedelta
from typing import Dict, List

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import NotFoundError, ProfileValidationError
from core.retry import with_store_retry
from schemas.availability_schema import AvailabilityWindow, BookedInterval, CandidateSlot
from schemas.schemas import ProfessionalProfile
from services.booking_service import filter_available_slots, get_bookings
from services.calendar_service import DAY_NUMBERS, weekday_name
from services.slot_service import (
    ensure_availability_format,
    generate_time_slots,
    parse_time,
    slots_to_candidates,
)


async def get_profile_row(db: AsyncSession, professional_id: str) -> ProfessionalProfile:
    stmt = select(ProfessionalProfile).where(
        (ProfessionalProfile.id == professional_id) | (ProfessionalProfile.user_id == professional_id)
    )
    row = (await db.execute(stmt)).scalars().first()
    if row is None:
        raise NotFoundError("Professional", professional_id)
    return row


@with_store_retry
async def get_availability(db: AsyncSession, professional_id: str) -> List[AvailabilityWindow]:
    row = await get_profile_row(db, professional_id)
    return ensure_availability_format(row.availability)


def candidates_for_date(windows: List[AvailabilityWindow], target_date: date) -> List[CandidateSlot]:
    """Union of the slots of every window on the date's weekday, ordered and de-duplicated."""
    day = weekday_name(target_date)
    by_start: Dict = {}
    for window in windows:
        if window.day != day:
            continue
        for slot in slots_to_candidates(target_date, window.slots):
            by_start.setdefault(slot.start, slot)
    return [by_start[start] for start in sorted(by_start)]


async def get_available_slots(
    db: AsyncSession,
    professional_id: str,
    target_date: date
) -> List[CandidateSlot]:
    try:
        windows = await get_availability(db, professional_id)
    except Exception as e:
        logger.error(f"Error fetching availability for {professional_id}: {e}")
        return []

    candidates = candidates_for_date(windows, target_date)
    if not candidates:
        return []

    try:
        bookings = await get_bookings(db, professional_id, target_date, target_date)
    except Exception as e:
        logger.error(f"Error fetching bookings for {professional_id}, returning unfiltered slots: {e}")
        return candidates

    return filter_available_slots(candidates, bookings)


async def get_available_days(
    db: AsyncSession,
    start_date: date,
    end_date: date,
    professional_id: str
) -> List[date]:
    if end_date < start_date:
        return []

    try:
        windows = await get_availability(db, professional_id)
    except Exception as e:
        logger.error(f"Error fetching availability for {professional_id}: {e}")
        return []

    if not windows:
        return []

    bookings: List[BookedInterval] = []
    try:
        bookings = await get_bookings(db, professional_id, start_date, end_date)
    except Exception as e:
        logger.error(f"Error fetching bookings for {professional_id}, ignoring them: {e}")

    bookings_by_date: Dict[date, List[BookedInterval]] = {}
    for booked in bookings:
        bookings_by_date.setdefault(booked.booking_date, []).append(booked)

    days = []
    current = start_date
    while current <= end_date:
        candidates = candidates_for_date(windows, current)
        if filter_available_slots(candidates, bookings_by_date.get(current, [])):
            days.append(current)
        current += timedelta(days=1)
    return days


def validate_windows(windows: List[AvailabilityWindow]) -> List[str]:
    errors = []
    for i, window in enumerate(windows):
        if window.day not in DAY_NUMBERS:
            errors.append(f"availability[{i}]: unknown day '{window.day}'")
        start = parse_time(window.start_time)
        end = parse_time(window.end_time)
        if start is None or end is None:
            errors.append(f"availability[{i}]: times must be HH:MM")
        elif end <= start:
            errors.append(f"availability[{i}]: endTime must be after startTime")
    return errors


def rebuild_windows(windows: List[AvailabilityWindow]) -> List[AvailabilityWindow]:
    return [
        AvailabilityWindow(
            day=w.day,
            start_time=w.start_time,
            end_time=w.end_time,
            slots=generate_time_slots(w.start_time, w.end_time),
        )
        for w in windows
    ]


@with_store_retry
async def update_availability(
    db: AsyncSession,
    professional_id: str,
    windows: List[AvailabilityWindow]
) -> List[AvailabilityWindow]:
    """Overwrite the weekly windows; slots are always recomputed from the bounds."""
    errors = validate_windows(windows)
    if errors:
        raise ProfileValidationError(errors)

    row = await get_profile_row(db, professional_id)
    rebuilt = rebuild_windows(windows)
    row.availability = [w.to_document() for w in rebuilt]

    await db.commit()
    logger.info(f"Availability updated for professional {professional_id} ({len(rebuilt)} windows)")
    return rebuilt
