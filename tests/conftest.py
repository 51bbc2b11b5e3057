"""Shared test fixtures: an in-memory store, seeded professionals and bookings."""

from datetime import date, time
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from core import config
from database.postgres import Database
from schemas.enum import BookingStatus
from schemas.schemas import Booking, ProfessionalProfile

MONDAY = date(2024, 1, 8)
PROFESSIONAL_ID = "pro-1"


@pytest.fixture(autouse=True)
def no_retry_delay(monkeypatch):
    """Retries run back to back in tests."""
    monkeypatch.setattr(config, "STORE_RETRY_DELAY_SECONDS", 0)


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    db = Database(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def session(database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session() as s:
        yield s


def make_professional(**overrides) -> ProfessionalProfile:
    fields = dict(
        id=PROFESSIONAL_ID,
        user_id=PROFESSIONAL_ID,
        name="Dr Awa Ndiaye",
        email="awa@example.com",
        schema_version=2,
        category="mental-health",
        primary_specialty="psychologue-clinicien",
        languages=["fr"],
        description="Psychologue clinicienne à Dakar",
        availability=[
            {"day": "Lundi", "startTime": "09:00", "endTime": "11:00", "slots": []},
        ],
    )
    fields.update(overrides)
    return ProfessionalProfile(**fields)


def make_booking(
    start: str,
    end: str,
    status: BookingStatus = BookingStatus.CONFIRMED,
    booking_date: date = MONDAY,
    professional_id: str = PROFESSIONAL_ID,
    **overrides
) -> Booking:
    fields = dict(
        patient_id="patient-1",
        professional_id=professional_id,
        patient_name="Moussa Diop",
        booking_date=booking_date,
        start_time=time.fromisoformat(start),
        end_time=time.fromisoformat(end),
        status=status,
    )
    fields.update(overrides)
    return Booking(**fields)


@pytest_asyncio.fixture
async def professional(session) -> ProfessionalProfile:
    row = make_professional()
    session.add(row)
    await session.commit()
    return row


@pytest.fixture
def professional_factory():
    return make_professional


@pytest.fixture
def booking_factory():
    return make_booking
