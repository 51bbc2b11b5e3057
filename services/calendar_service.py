"""
Calendar projection of professional availability.

Turns the weekly windows (French weekday names) into concrete dates and
calendar events, materialises recurring events for a bounded horizon, and
exports events to iCalendar / Google Calendar.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple
from urllib.parse import quote

from dateutil.relativedelta import relativedelta
from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import CALENDAR_HORIZON_MONTHS, SLOT_DURATION_MINUTES
from core.exceptions import NotFoundError
from core.retry import with_store_retry
from schemas.availability_schema import AvailabilityWindow
from schemas.calendar_schema import CalendarEventDTO, RecurringPattern, UpdateAvailabilityEventDTO
from schemas.enum import RecurrenceFrequency, WeekDay
from schemas.schemas import Booking, CalendarEvent
from services.slot_service import parse_time, slots_to_candidates

# Index is the weekday number, 0 = Sunday .. 6 = Saturday
DAY_NAMES: List[str] = [day.value for day in WeekDay]
DAY_NUMBERS = {name: number for number, name in enumerate(DAY_NAMES)}


def day_number(day: str) -> Optional[int]:
    number = DAY_NUMBERS.get(day)
    if number is None:
        logger.warning(f"Unknown day: {day}, skipping")
    return number


def weekday_number(d: date) -> int:
    return d.isoweekday() % 7


def weekday_name(d: date) -> str:
    return DAY_NAMES[weekday_number(d)]


def dates_for_weekday(day: str, start_date: date, end_date: date) -> List[date]:
    """Every date in ``[start_date, end_date]`` that falls on ``day``."""
    number = day_number(day)
    if number is None or end_date < start_date:
        return []

    offset = (number - weekday_number(start_date)) % 7
    current = start_date + timedelta(days=offset)

    dates = []
    while current <= end_date:
        dates.append(current)
        current += timedelta(days=7)
    return dates


def project_availability_events(
    professional_id: str,
    windows: Iterable[AvailabilityWindow],
    start_date: date,
    end_date: date,
    duration_minutes: int = SLOT_DURATION_MINUTES
) -> List[CalendarEventDTO]:
    """
    Generate one available event per slot token per matching date.

    Nothing is persisted; ids are derived from the slot start so the same
    input always yields the same events.
    """
    events = []
    for window in windows:
        for d in dates_for_weekday(window.day, start_date, end_date):
            for slot in slots_to_candidates(d, window.slots, duration_minutes):
                events.append(
                    CalendarEventDTO(
                        id=f"generated_{professional_id}_{slot.start.strftime('%Y-%m-%d_%H-%M')}",
                        professional_id=professional_id,
                        title="Available",
                        start=slot.start,
                        end=slot.end,
                        is_available=True,
                        is_recurring=False,
                    )
                )

    events.sort(key=lambda e: e.start)
    return events


def _advance(current: datetime, frequency: RecurrenceFrequency, interval: int) -> datetime:
    if frequency == RecurrenceFrequency.DAILY:
        return current + timedelta(days=interval)
    if frequency == RecurrenceFrequency.WEEKLY:
        return current + timedelta(weeks=interval)
    return current + relativedelta(months=interval)


def generate_recurring_dates(
    start: datetime,
    end: datetime,
    frequency: RecurrenceFrequency,
    interval: int,
    until: datetime
) -> List[Tuple[datetime, datetime]]:
    """Occurrences of ``[start, end)`` up to ``until``, excluding the parent itself."""
    if interval < 1:
        raise ValueError("interval must be >= 1")

    duration = end - start
    instances = []
    current = _advance(start, frequency, interval)
    while current <= until:
        instances.append((current, current + duration))
        current = _advance(current, frequency, interval)
    return instances


def next_occurrence(day: str, today: date) -> Optional[date]:
    number = day_number(day)
    if number is None:
        return None
    return today + timedelta(days=(number - weekday_number(today)) % 7)


def to_event_dto(event: CalendarEvent) -> CalendarEventDTO:
    pattern = None
    if event.is_recurring and event.recurrence_frequency:
        pattern = RecurringPattern(
            frequency=event.recurrence_frequency,
            interval=event.recurrence_interval or 1,
            end_date=event.recurrence_end,
        )
    return CalendarEventDTO(
        id=event.id,
        professional_id=event.professional_id,
        title=event.title,
        start=event.start,
        end=event.end,
        is_available=event.is_available,
        is_recurring=event.is_recurring,
        parent_event_id=event.parent_event_id,
        recurring_pattern=pattern,
    )


def booking_to_event(booking: Booking) -> CalendarEventDTO:
    return CalendarEventDTO(
        id=f"booking_{booking.id}",
        professional_id=booking.professional_id,
        title=f"Appointment: {booking.patient_name}",
        start=datetime.combine(booking.booking_date, booking.start_time),
        end=datetime.combine(booking.booking_date, booking.end_time),
        is_available=False,
        is_recurring=False,
        booking_id=booking.id,
        patient_id=booking.patient_id,
        patient_name=booking.patient_name,
        status=booking.status,
    )


def _add_recurring_instances(db: AsyncSession, parent: CalendarEvent) -> int:
    instances = generate_recurring_dates(
        parent.start,
        parent.end,
        parent.recurrence_frequency,
        parent.recurrence_interval or 1,
        parent.recurrence_end,
    )
    for start, end in instances:
        db.add(
            CalendarEvent(
                professional_id=parent.professional_id,
                title="Available (Recurring)",
                start=start,
                end=end,
                is_available=True,
                is_recurring=False,
                parent_event_id=parent.id,
            )
        )
    return len(instances)


@with_store_retry
async def create_availability_event(
    db: AsyncSession,
    professional_id: str,
    start: datetime,
    end: datetime,
    is_recurring: bool = False,
    pattern: Optional[RecurringPattern] = None,
    now: Optional[datetime] = None
) -> CalendarEvent:
    if end <= start:
        raise ValueError("Event end must be after its start")

    event = CalendarEvent(
        professional_id=professional_id,
        title="Available",
        start=start,
        end=end,
        is_available=True,
        is_recurring=bool(is_recurring and pattern),
    )

    if event.is_recurring:
        now = now or datetime.now()
        event.recurrence_frequency = pattern.frequency
        event.recurrence_interval = pattern.interval
        # Bounded horizon so a pattern without an end never generates forever
        event.recurrence_end = pattern.end_date or now + relativedelta(months=CALENDAR_HORIZON_MONTHS)

    db.add(event)
    await db.flush()

    if event.is_recurring:
        count = _add_recurring_instances(db, event)
        logger.info(f"Generated {count} recurring instances for event {event.id}")

    await db.commit()
    await db.refresh(event)
    return event


@with_store_retry
async def materialize_availability(
    db: AsyncSession,
    professional_id: str,
    windows: Iterable[AvailabilityWindow],
    horizon_months: int = CALENDAR_HORIZON_MONTHS,
    today: Optional[date] = None
) -> int:
    """
    Persist each weekly window as a recurring parent event starting at the next
    occurrence of its weekday, plus its instances up to the horizon.

    Returns the number of parent events created.
    """
    today = today or date.today()
    until = datetime.combine(today, datetime.min.time()) + relativedelta(months=horizon_months)

    created = 0
    for window in windows:
        occurrence = next_occurrence(window.day, today)
        start_time = parse_time(window.start_time)
        end_time = parse_time(window.end_time)
        if occurrence is None or start_time is None or end_time is None or end_time <= start_time:
            logger.warning(f"Invalid availability window, skipping: {window!r}")
            continue

        parent = CalendarEvent(
            professional_id=professional_id,
            title=f"Available: {window.day}",
            start=datetime.combine(occurrence, start_time),
            end=datetime.combine(occurrence, end_time),
            is_available=True,
            is_recurring=True,
            recurrence_frequency=RecurrenceFrequency.WEEKLY,
            recurrence_interval=1,
            recurrence_end=until,
        )
        db.add(parent)
        await db.flush()
        _add_recurring_instances(db, parent)
        created += 1

    await db.commit()
    logger.info(f"Created {created} recurring events for professional {professional_id}")
    return created


async def get_availability_event(db: AsyncSession, event_id: str) -> CalendarEvent:
    event = await db.get(CalendarEvent, event_id)
    if event is None:
        raise NotFoundError("Calendar event", event_id)
    return event


async def _future_instances(db: AsyncSession, parent_id: str, now: datetime) -> List[CalendarEvent]:
    stmt = select(CalendarEvent).where(
        CalendarEvent.parent_event_id == parent_id,
        CalendarEvent.start >= now,
    )
    return list((await db.execute(stmt)).scalars().all())


@with_store_retry
async def update_availability_event(
    db: AsyncSession,
    event_id: str,
    updates: UpdateAvailabilityEventDTO,
    update_recurring: bool = False,
    now: Optional[datetime] = None
) -> CalendarEvent:
    event = await get_availability_event(db, event_id)
    changes = updates.model_dump(exclude_unset=True)

    start = changes.get("start") or event.start
    end = changes.get("end") or event.end
    if end <= start:
        raise ValueError("Event end must be after its start")

    for field, value in changes.items():
        setattr(event, field, value)

    if event.is_recurring and update_recurring:
        # Instances keep their own dates; only descriptive fields propagate
        shared = {k: v for k, v in changes.items() if k in ("title", "is_available")}
        instances = await _future_instances(db, event.id, now or datetime.now())
        for instance in instances:
            for field, value in shared.items():
                setattr(instance, field, value)
        logger.info(f"Updated {len(instances)} future recurring instances of {event.id}")

    await db.commit()
    await db.refresh(event)
    return event


@with_store_retry
async def delete_availability_event(
    db: AsyncSession,
    event_id: str,
    delete_future_recurring: bool = False,
    now: Optional[datetime] = None
) -> int:
    """Delete an event; returns how many events were removed in total."""
    event = await get_availability_event(db, event_id)
    removed = 1

    if event.is_recurring and delete_future_recurring:
        instances = await _future_instances(db, event.id, now or datetime.now())
        for instance in instances:
            await db.delete(instance)
        removed += len(instances)

    await db.delete(event)
    await db.commit()
    return removed


@with_store_retry
async def delete_all_events_for_professional(db: AsyncSession, professional_id: str) -> int:
    result = await db.execute(
        delete(CalendarEvent).where(CalendarEvent.professional_id == professional_id)
    )
    await db.commit()
    logger.info(f"Deleted {result.rowcount} calendar events for professional {professional_id}")
    return result.rowcount


@with_store_retry
async def get_professional_calendar(
    db: AsyncSession,
    professional_id: str,
    start: datetime,
    end: datetime
) -> List[CalendarEventDTO]:
    """Stored events starting in ``[start, end]`` plus bookings in the same range."""
    events_stmt = (
        select(CalendarEvent)
        .where(
            CalendarEvent.professional_id == professional_id,
            CalendarEvent.start >= start,
            CalendarEvent.start <= end,
        )
        .order_by(CalendarEvent.start)
    )
    events = [to_event_dto(e) for e in (await db.execute(events_stmt)).scalars().all()]

    bookings_stmt = select(Booking).where(
        Booking.professional_id == professional_id,
        Booking.booking_date >= start.date(),
        Booking.booking_date <= end.date(),
    )
    bookings = [booking_to_event(b) for b in (await db.execute(bookings_stmt)).scalars().all()]

    return events + bookings


def format_ical_date(value: datetime) -> str:
    """UTC form for aware datetimes, floating local time for naive ones."""
    if value.tzinfo is None:
        return value.strftime("%Y%m%dT%H%M%S")
    return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def escape_ical_text(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\r", "\\n")
        .replace("\n", "\\n")
    )


def fold_ical_line(line: str, limit: int = 75) -> List[str]:
    """Split a content line into chunks of at most ``limit`` octets."""
    parts = []
    current = ""
    size = 0
    for char in line:
        width = len(char.encode("utf-8"))
        if size + width > limit:
            parts.append(current)
            # Continuation lines start with a space, which counts toward the limit
            current = " "
            size = 1
        current += char
        size += width
    parts.append(current)
    return parts


def export_to_icalendar(events: Iterable[CalendarEventDTO], stamp: Optional[datetime] = None) -> str:
    stamp = stamp or datetime.now(timezone.utc)
    # DTSTAMP is always UTC
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Health-e//Calendar//EN",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
    ]
    for event in events:
        lines += [
            "BEGIN:VEVENT",
            f"UID:{event.id}@health-e.com",
            f"DTSTAMP:{format_ical_date(stamp)}",
            f"DTSTART:{format_ical_date(event.start)}",
            f"DTEND:{format_ical_date(event.end)}",
            *fold_ical_line(f"SUMMARY:{escape_ical_text(event.title)}"),
            "END:VEVENT",
        ]
    lines.append("END:VCALENDAR")
    return "\r\n".join(lines)


def google_calendar_url(event: CalendarEventDTO) -> str:
    dates = f"{format_ical_date(event.start)}/{format_ical_date(event.end)}"
    return (
        "https://www.google.com/calendar/render?action=TEMPLATE"
        f"&text={quote(event.title)}"
        f"&dates={dates}"
        f"&details={quote('Health-e Calendar Event')}"
    )
