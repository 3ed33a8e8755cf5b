"""
Booking endpoints with concurrency-safe seat reservation.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from studio_booking.db.session import get_db
from studio_booking.schemas.booking import BookingCreate, BookingDeleteResponse
from studio_booking.schemas.event import EventResponse
from studio_booking.services.booking_service import create_booking, cancel_booking
from studio_booking.services.cache_service import invalidate_event_cache
from studio_booking.services.capacity import CapacityLedger, get_ledger

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_booking_endpoint(
    booking_data: BookingCreate,
    db: AsyncSession = Depends(get_db),
    ledger: CapacityLedger = Depends(get_ledger),
):
    """
    Book one seat of an event and return the event with its new `booked` count.

    409 with code `event_full` when no seat is left.
    """
    event = await create_booking(
        db,
        ledger,
        booking_data.event_id,
        booking_data.name,
        booking_data.country_code,
        booking_data.phone,
    )
    await invalidate_event_cache()
    return event


@router.delete("/{booking_id}", response_model=BookingDeleteResponse)
async def cancel_booking_endpoint(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    ledger: CapacityLedger = Depends(get_ledger),
):
    """Cancel a booking and release its seat back to the event."""
    await cancel_booking(db, ledger, booking_id)
    await invalidate_event_cache()
    return BookingDeleteResponse(message="Booking deleted successfully", booking_id=booking_id)
