from sqlalchemy import (
    String, Boolean, DateTime, Date, Time,
    Integer, Enum as SQLEnum,
    Numeric, Text, JSON, Float, Index
)
from sqlalchemy.orm import (
    declarative_base, Mapped, mapped_column
)
from datetime import date, datetime, time, timezone
from typing import Optional
import uuid

from schemas.enum import (
    BookingStatus,
    ConsultationType,
    RecurrenceFrequency,
)

Base = declarative_base()
utcnow = lambda: datetime.now(timezone.utc)
new_id = lambda: uuid.uuid4().hex


def enum_values(enum_cls):
    return [member.value for member in enum_cls]


class ProfessionalProfile(Base):
    """
    Professional document. Keyed by the identity provider's user id.

    ``specialty``/``service_type`` are the version-1 fields, kept so legacy rows
    can still be read; ``category``/``primary_specialty`` replace them from
    version 2 onwards. ``availability`` holds the weekly windows with the
    camelCase keys used by existing documents.
    """
    __tablename__ = "professionals"

    id: Mapped[str] = mapped_column(String(128), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)

    schema_version: Mapped[int] = mapped_column(Integer, default=2, nullable=False)
    specialty: Mapped[Optional[str]] = mapped_column(String(255))
    service_type: Mapped[Optional[str]] = mapped_column(String(32))
    category: Mapped[Optional[str]] = mapped_column(String(32))
    primary_specialty: Mapped[Optional[str]] = mapped_column(String(64))

    languages: Mapped[list] = mapped_column(JSON, default=list)
    description: Mapped[Optional[str]] = mapped_column(Text)
    education: Mapped[list] = mapped_column(JSON, default=list)
    experience: Mapped[Optional[str]] = mapped_column(Text)

    price: Mapped[Optional[float]] = mapped_column(Numeric(10, 2))
    currency: Mapped[str] = mapped_column(String(10), default="XOF")
    offers_free_consultations: Mapped[bool] = mapped_column(Boolean, default=False)

    availability: Mapped[Optional[list]] = mapped_column(JSON, default=list)

    is_available_now: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_approved: Mapped[bool] = mapped_column(Boolean, default=False)
    rating: Mapped[float] = mapped_column(Float, default=5.0)
    reviews: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)

    patient_id: Mapped[str] = mapped_column(String(128), nullable=False)
    professional_id: Mapped[str] = mapped_column(String(128), nullable=False)
    patient_name: Mapped[Optional[str]] = mapped_column(String(255))
    professional_name: Mapped[Optional[str]] = mapped_column(String(255))

    booking_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)

    consultation_type: Mapped[ConsultationType] = mapped_column(
        SQLEnum(ConsultationType, name="consultation_type_enum", values_callable=enum_values),
        default=ConsultationType.VIDEO,
        nullable=False
    )
    status: Mapped[BookingStatus] = mapped_column(
        SQLEnum(BookingStatus, name="booking_status_enum", values_callable=enum_values),
        default=BookingStatus.PENDING,
        nullable=False
    )

    duration: Mapped[int] = mapped_column(Integer, default=60)
    price: Mapped[Optional[float]] = mapped_column(Numeric(10, 2))
    notes: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_bookings_professional_date", "professional_id", "booking_date"),
    )


class CalendarEvent(Base):
    """
    Materialised availability (or a recurring parent of it). Never authoritative:
    the professional's weekly windows remain the source of truth.
    """
    __tablename__ = "calendar_events"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    professional_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    start: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    is_available: Mapped[bool] = mapped_column(Boolean, default=True)
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False)
    parent_event_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)

    recurrence_frequency: Mapped[Optional[RecurrenceFrequency]] = mapped_column(
        SQLEnum(RecurrenceFrequency, name="recurrence_frequency_enum", values_callable=enum_values)
    )
    recurrence_interval: Mapped[Optional[int]] = mapped_column(Integer)
    recurrence_end: Mapped[Optional[datetime]] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
