from datetime import date, datetime, time, timedelta
from typing import Any, List, Optional

from loguru import logger

from core.config import SLOT_DURATION_MINUTES, SLOT_GRANULARITY_MINUTES
from schemas.availability_schema import AvailabilityWindow, CandidateSlot

TIME_FORMAT = "%H:%M"


def parse_time(value: Any) -> Optional[time]:
    """Parse an ``HH:MM`` wall-clock string; ``None`` when it is not one."""
    if isinstance(value, time):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.strptime(value.strip(), TIME_FORMAT).time()
    except ValueError:
        return None


def format_time(value: time) -> str:
    return value.strftime(TIME_FORMAT)


def generate_time_slots(
    start_time: Optional[str],
    end_time: Optional[str],
    granularity_minutes: int = SLOT_GRANULARITY_MINUTES
) -> List[str]:
    """
    Enumerate slot start tokens for a window.

    Tokens start at ``start_time`` and advance by ``granularity_minutes``; the
    last one is always strictly before ``end_time``. A missing, unparsable or
    inverted window yields no slots instead of an error.
    """
    start = parse_time(start_time)
    end = parse_time(end_time)

    if start is None or end is None:
        logger.warning(f"Invalid start or end time: {start_time!r} {end_time!r}")
        return []

    if end <= start:
        logger.warning(f"End time is earlier than or equal to start time: {start_time} {end_time}")
        return []

    slots = []
    cursor = datetime.combine(date.min, start)
    end_dt = datetime.combine(date.min, end)
    step = timedelta(minutes=granularity_minutes)

    while cursor < end_dt:
        slots.append(format_time(cursor.time()))
        cursor += step

    return slots


def _has_slots(entry: dict) -> bool:
    slots = entry.get("slots")
    return isinstance(slots, list) and len(slots) > 0


def needs_slot_backfill(availability: Any) -> bool:
    if not isinstance(availability, list):
        return False
    return any(isinstance(entry, dict) and not _has_slots(entry) for entry in availability)


def ensure_availability_format(availability: Any) -> List[AvailabilityWindow]:
    """
    Normalise stored availability into windows with trustworthy ``slots``.

    Entries lacking ``day``, ``startTime`` or ``endTime`` are dropped. Missing
    or empty ``slots`` are regenerated from the window bounds.
    """
    if not isinstance(availability, list):
        if availability is not None:
            logger.warning("Availability is not a list, returning no windows")
        return []

    windows = []
    for entry in availability:
        if isinstance(entry, AvailabilityWindow):
            entry = entry.to_document()

        if not isinstance(entry, dict) or not entry.get("day") \
                or not entry.get("startTime") or not entry.get("endTime"):
            logger.warning(f"Invalid availability entry, skipping: {entry!r}")
            continue

        slots = entry["slots"] if _has_slots(entry) else generate_time_slots(
            entry["startTime"], entry["endTime"]
        )

        windows.append(
            AvailabilityWindow(
                day=entry["day"],
                start_time=entry["startTime"],
                end_time=entry["endTime"],
                slots=list(slots),
            )
        )

    return windows


def slots_to_candidates(
    target_date: date,
    slots: List[str],
    duration_minutes: int = SLOT_DURATION_MINUTES
) -> List[CandidateSlot]:
    candidates = []
    for token in slots:
        slot_time = parse_time(token)
        if slot_time is None:
            logger.warning(f"Skipping malformed slot token {token!r}")
            continue
        start = datetime.combine(target_date, slot_time)
        candidates.append(CandidateSlot(start=start, end=start + timedelta(minutes=duration_minutes)))
    return candidates
