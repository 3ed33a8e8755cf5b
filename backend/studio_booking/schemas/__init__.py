from studio_booking.schemas.instructor import InstructorCreate, InstructorResponse
from studio_booking.schemas.event import (
    EventCreate, EventResponse, EventWithAttendeesResponse, AttendeeResponse,
    EventSummary, ReconcileResponse,
)
from studio_booking.schemas.booking import BookingCreate, BookingResponse, BookingDeleteResponse

__all__ = [
    "InstructorCreate", "InstructorResponse",
    "EventCreate", "EventResponse", "EventWithAttendeesResponse", "AttendeeResponse",
    "EventSummary", "ReconcileResponse",
    "BookingCreate", "BookingResponse", "BookingDeleteResponse",
]
