from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from schemas.enum import BookingStatus, RecurrenceFrequency


class RecurringPattern(BaseModel):
    frequency: RecurrenceFrequency
    interval: int = Field(default=1, ge=1)
    end_date: Optional[datetime] = None


class CalendarEventDTO(BaseModel):
    id: str
    professional_id: str
    title: str
    start: datetime
    end: datetime
    is_available: bool = True
    is_recurring: bool = False
    parent_event_id: Optional[str] = None
    recurring_pattern: Optional[RecurringPattern] = None
    # Set when the event is a projection of a booking
    booking_id: Optional[str] = None
    patient_id: Optional[str] = None
    patient_name: Optional[str] = None
    status: Optional[BookingStatus] = None


class CreateAvailabilityEventDTO(BaseModel):
    start: datetime
    end: datetime
    is_recurring: bool = False
    recurring_pattern: Optional[RecurringPattern] = None


class UpdateAvailabilityEventDTO(BaseModel):
    title: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    is_available: Optional[bool] = None


class MaterializeResponseDTO(BaseModel):
    professional_id: str
    created: int


class GoogleCalendarLinkDTO(BaseModel):
    event_id: str
    url: str


class DeletedEventsDTO(BaseModel):
    professional_id: str
    removed: int
