from datetime import date, datetime, time
from typing import Iterable, List, Optional

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import (
    BookingConflictError,
    InvalidBookingTransitionError,
    NotFoundError,
)
from core.retry import with_store_retry
from schemas.availability_schema import BookedInterval, CandidateSlot
from schemas.booking_schema import BookingStatisticsDTO, CreateBookingDTO
from schemas.enum import BookingStatus
from schemas.schemas import Booking

BLOCKING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})
TERMINAL_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED})


def slots_overlap(slot: CandidateSlot, booked: BookedInterval) -> bool:
    """
    True when the slot and the booking share any time.

    Touching endpoints (slot ending exactly when the booking starts, or the
    other way round) do not overlap.
    """
    starts_inside = booked.start <= slot.start < booked.end
    ends_inside = booked.start < slot.end <= booked.end
    contains = slot.start <= booked.start and slot.end >= booked.end
    return starts_inside or ends_inside or contains


def filter_available_slots(
    candidates: List[CandidateSlot],
    bookings: Iterable[BookedInterval]
) -> List[CandidateSlot]:
    blocking = [b for b in bookings if b.status in BLOCKING_STATUSES]
    if not blocking:
        return list(candidates)
    return [
        slot for slot in candidates
        if not any(slots_overlap(slot, booked) for booked in blocking)
    ]


@with_store_retry
async def get_bookings(
    db: AsyncSession,
    professional_id: str,
    range_start: date,
    range_end: date,
    statuses: Iterable[BookingStatus] = BLOCKING_STATUSES
) -> List[BookedInterval]:
    """Bookings of a professional whose date falls in ``[range_start, range_end]``."""
    stmt = select(Booking).where(
        Booking.professional_id == professional_id,
        Booking.booking_date >= range_start,
        Booking.booking_date <= range_end,
        Booking.status.in_(list(statuses)),
    )
    result = await db.execute(stmt)
    return [BookedInterval.model_validate(b) for b in result.scalars().all()]


async def check_availability(
    db: AsyncSession,
    professional_id: Optional[str],
    booking_date: date,
    start_time: time,
    end_time: time
) -> bool:
    """
    Whether ``[start_time, end_time)`` on ``booking_date`` is free.

    Answers True when the professional is unknown or bookings cannot be read;
    the booking itself is re-checked on creation.
    """
    if not professional_id:
        logger.warning("Professional ID is missing, assuming available")
        return True

    try:
        bookings = await get_bookings(db, professional_id, booking_date, booking_date)
    except Exception as e:
        logger.error(f"Error checking availability for {professional_id}: {e}")
        return True

    slot = CandidateSlot(
        start=datetime.combine(booking_date, start_time),
        end=datetime.combine(booking_date, end_time),
    )
    return not any(slots_overlap(slot, booked) for booked in bookings)


@with_store_retry
async def create_booking(db: AsyncSession, patient_id: str, data: CreateBookingDTO) -> Booking:
    existing = await db.execute(
        select(Booking.id).where(
            Booking.professional_id == data.professional_id,
            Booking.booking_date == data.booking_date,
            Booking.start_time == data.start_time,
            Booking.status.in_(list(BLOCKING_STATUSES)),
        )
    )
    if existing.first() is not None:
        raise BookingConflictError(data.professional_id, data.booking_date, data.start_time)

    booking = Booking(
        patient_id=patient_id,
        status=BookingStatus.PENDING,
        **data.model_dump(),
    )
    db.add(booking)
    await db.commit()
    await db.refresh(booking)

    logger.info(
        f"Booking {booking.id} created for professional {booking.professional_id} "
        f"on {booking.booking_date} at {booking.start_time}"
    )
    return booking


@with_store_retry
async def get_booking(db: AsyncSession, booking_id: str) -> Booking:
    booking = await db.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError("Booking", booking_id)
    return booking


@with_store_retry
async def update_booking_status(
    db: AsyncSession,
    booking_id: str,
    status: BookingStatus,
    notes: Optional[str] = None
) -> Booking:
    booking = await db.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError("Booking", booking_id)

    if booking.status in TERMINAL_STATUSES and booking.status != status:
        raise InvalidBookingTransitionError(booking.status.value, status.value)

    booking.status = status
    if notes is not None:
        booking.notes = notes

    await db.commit()
    await db.refresh(booking)
    logger.info(f"Booking {booking_id} is now {status.value}")
    return booking


async def confirm_booking(db: AsyncSession, booking_id: str) -> Booking:
    return await update_booking_status(db, booking_id, BookingStatus.CONFIRMED)


async def cancel_booking(db: AsyncSession, booking_id: str) -> Booking:
    return await update_booking_status(db, booking_id, BookingStatus.CANCELLED)


async def complete_booking(db: AsyncSession, booking_id: str, notes: Optional[str] = None) -> Booking:
    return await update_booking_status(db, booking_id, BookingStatus.COMPLETED, notes)


@with_store_retry
async def _count_by_status(db: AsyncSession, professional_id: Optional[str]):
    stmt = select(
        Booking.status,
        func.count(Booking.id),
        func.coalesce(func.sum(Booking.price), 0),
    ).group_by(Booking.status)
    if professional_id:
        stmt = stmt.where(Booking.professional_id == professional_id)
    return (await db.execute(stmt)).all()


async def get_booking_statistics(
    db: AsyncSession,
    professional_id: Optional[str] = None
) -> BookingStatisticsDTO:
    try:
        rows = await _count_by_status(db, professional_id)
    except Exception as e:
        logger.error(f"Error getting booking statistics: {e}")
        return BookingStatisticsDTO()

    counts = {status: 0 for status in BookingStatus}
    revenue = 0.0
    for status, count, total_price in rows:
        counts[BookingStatus(status)] = count
        if status == BookingStatus.COMPLETED:
            revenue = float(total_price or 0)

    total = sum(counts.values())

    def rate(n: int) -> int:
        return round(n / total * 100) if total else 0

    return BookingStatisticsDTO(
        total=total,
        pending=counts[BookingStatus.PENDING],
        confirmed=counts[BookingStatus.CONFIRMED],
        completed=counts[BookingStatus.COMPLETED],
        cancelled=counts[BookingStatus.CANCELLED],
        cancellation_rate=rate(counts[BookingStatus.CANCELLED]),
        completion_rate=rate(counts[BookingStatus.COMPLETED]),
        total_revenue=revenue,
    )
