"""Booking domain schemas - Pydantic models for validation"""

import re
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_time(value: str) -> str:
    value = (value or "").strip()
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM (24-hour) format")
    return value


class BookingCreate(BaseModel):
    """Schema for booking a service into a time slot"""

    serviceName: str = Field(..., min_length=1)
    serviceDescription: str = ""
    servicePrice: float = Field(..., ge=0)
    serviceDuration: int = Field(..., gt=0, description="Duration in minutes")
    bookingDate: date
    bookingTime: str
    consentForm: bool
    city: Optional[str] = None
    age: Optional[int] = Field(None, ge=0, le=150)

    @field_validator("bookingTime")
    @classmethod
    def validate_booking_time(cls, v):
        return validate_time(v)


class RescheduleRequest(BaseModel):
    """Requested new slot; the original booking slot is left unchanged"""

    requestedDate: date
    requestedTime: str

    @field_validator("requestedTime")
    @classmethod
    def validate_requested_time(cls, v):
        return validate_time(v)


class BookingResponse(BaseModel):
    id: str
    serviceName: str
    serviceDescription: Optional[str] = None
    servicePrice: Optional[float] = None
    serviceDuration: Optional[int] = None
    bookingDate: Optional[str] = None
    bookingTime: Optional[str] = None
    consentForm: Optional[bool] = None
    name: Optional[str] = None
    email: Optional[str] = None
    city: Optional[str] = None
    age: Optional[int] = None
    status: str
    rescheduleRequestedDate: Optional[str] = None
    rescheduleRequestedTime: Optional[str] = None
    createdAt: Optional[str] = None


class BookingCreateResponse(BaseModel):
    success: bool = True
    booking: BookingResponse
    email_sent: bool
    email_status: Optional[str] = None


class BookingActionResponse(BaseModel):
    success: bool = True
    booking_id: str
    message: str
    booking: Optional[BookingResponse] = None
