from pydantic import BaseModel, Field
from datetime import date, datetime, time
from typing import Optional

from schemas.enum import BookingStatus, ConsultationType


class CreateBookingDTO(BaseModel):
    professional_id: str
    professional_name: Optional[str] = None
    patient_name: Optional[str] = None
    booking_date: date
    start_time: time
    end_time: time
    consultation_type: ConsultationType = ConsultationType.VIDEO
    duration: int = Field(default=60, ge=15, le=240)
    price: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None


class BookingResponse(BaseModel):
    id: str
    patient_id: str
    professional_id: str
    patient_name: Optional[str]
    professional_name: Optional[str]
    booking_date: date
    start_time: time
    end_time: time
    consultation_type: ConsultationType
    status: BookingStatus
    duration: int
    price: Optional[float]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CompleteBookingDTO(BaseModel):
    notes: Optional[str] = None


class BookingStatisticsDTO(BaseModel):
    total: int = 0
    pending: int = 0
    confirmed: int = 0
    completed: int = 0
    cancelled: int = 0
    cancellation_rate: int = 0
    completion_rate: int = 0
    total_revenue: float = 0
