"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import datetime
from pydantic import BaseModel, Field

from studio_booking.schemas.base import ResponseModel
from studio_booking.schemas.event import EventSummary


class BookingCreate(BaseModel):
    event_id: int = Field(..., alias="event")
    name: str = Field(..., min_length=1, max_length=255)
    country_code: str = Field(..., min_length=1, max_length=8, alias="countryCode")
    phone: str = Field(..., min_length=1, max_length=32)

    model_config = {
        "str_strip_whitespace": True,
        "populate_by_name": True,
        # Clients send phone numbers as JSON numbers too
        "coerce_numbers_to_str": True,
    }


class BookingResponse(ResponseModel):
    id: int
    event_id: int
    name: str
    country_code: str
    phone: str
    created_at: datetime
    event: EventSummary


class BookingDeleteResponse(ResponseModel):
    message: str
    booking_id: int
