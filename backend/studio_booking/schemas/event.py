"""
Pydantic schemas for event-related request/response validation.

Request bodies accept the camelCase field names used by existing clients
(`maxSeats`, `instructor`) as well as snake_case. Responses are camelCase
(see schemas.base).
"""

import datetime as dt
from typing import Optional
from pydantic import BaseModel, Field

from studio_booking.models.event import MIN_DURATION_MINUTES, MAX_DURATION_MINUTES
from studio_booking.schemas.base import ResponseModel
from studio_booking.schemas.instructor import InstructorResponse

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    date: dt.date
    time: str = Field(..., pattern=TIME_PATTERN, description="Start time, HH:MM")
    duration: int = Field(..., ge=MIN_DURATION_MINUTES, le=MAX_DURATION_MINUTES)
    instructor_id: int = Field(..., alias="instructor")
    max_seats: int = Field(..., ge=1, le=100000, alias="maxSeats")

    model_config = {"str_strip_whitespace": True, "populate_by_name": True}


class EventResponse(ResponseModel):
    id: int
    title: str
    date: dt.date
    time: str
    duration: int
    max_seats: int
    booked: int
    instructor_id: int
    instructor: Optional[InstructorResponse] = None
    created_at: dt.datetime


class AttendeeResponse(ResponseModel):
    id: int
    name: str
    country_code: str
    phone: str


class EventWithAttendeesResponse(EventResponse):
    """`booked` here is counted from live bookings, not read from the stored counter."""

    attendees: list[AttendeeResponse] = []


class EventSummary(ResponseModel):
    id: int
    title: str
    duration: int


class CounterCorrection(ResponseModel):
    event_id: int
    stored: int
    live: int
    corrected_to: int


class ReconcileResponse(ResponseModel):
    checked: int
    corrections: list[CounterCorrection]
