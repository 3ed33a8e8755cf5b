from studio_booking.models.instructor import Instructor
from studio_booking.models.event import Event
from studio_booking.models.booking import Booking

__all__ = ["Instructor", "Event", "Booking"]
