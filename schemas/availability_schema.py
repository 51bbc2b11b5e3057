from pydantic import BaseModel, Field, computed_field
from datetime import date, datetime, time
from typing import Optional, List

from schemas.enum import BookingStatus


class AvailabilityWindow(BaseModel):
    """One weekly recurring block, as stored on the professional document."""
    day: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    slots: List[str] = Field(default_factory=list)

    class Config:
        populate_by_name = True

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class AvailabilityUpdateDTO(BaseModel):
    availability: List[AvailabilityWindow]


class CandidateSlot(BaseModel):
    start: datetime
    end: datetime

    @computed_field
    @property
    def time(self) -> str:
        return self.start.strftime("%H:%M")


class BookedInterval(BaseModel):
    professional_id: str
    booking_date: date
    start_time: time
    end_time: time
    status: BookingStatus

    class Config:
        from_attributes = True

    @property
    def start(self) -> datetime:
        return datetime.combine(self.booking_date, self.start_time)

    @property
    def end(self) -> datetime:
        return datetime.combine(self.booking_date, self.end_time)


class AvailabilityResponseDTO(BaseModel):
    professional_id: str
    availability: List[AvailabilityWindow]


class SlotsResponseDTO(BaseModel):
    professional_id: str
    target_date: date
    slots: List[CandidateSlot]


class AvailableDaysResponseDTO(BaseModel):
    professional_id: str
    start_date: date
    end_date: date
    days: List[date]


class AvailabilityCheckDTO(BaseModel):
    professional_id: str
    target_date: date
    start_time: time
    end_time: time
    available: bool
    detail: Optional[str] = None
