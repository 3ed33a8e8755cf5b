"""
Event endpoints. The attendee listing is cached in Redis when enabled.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from studio_booking.db.session import get_db
from studio_booking.schemas.booking import BookingResponse
from studio_booking.schemas.event import (
    EventCreate,
    EventResponse,
    EventWithAttendeesResponse,
    ReconcileResponse,
)
from studio_booking.services.booking_service import list_bookings_for_event
from studio_booking.services.cache_service import get_cached_events, set_cached_events, invalidate_event_cache
from studio_booking.services.capacity import CapacityLedger, get_ledger
from studio_booking.services.event_service import (
    create_event,
    get_event,
    list_events_with_attendees,
    reconcile_booked_counters,
)
from studio_booking.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.get("", response_model=list[EventWithAttendeesResponse])
async def list_events_endpoint(
    instructor: Optional[int] = Query(None, description="Only events run by this instructor"),
    db: AsyncSession = Depends(get_db),
):
    """
    List events with attendees and a `booked` count taken from live bookings.
    Cached briefly; invalidated on any booking, cancellation or new event.
    """
    cached = await get_cached_events(instructor)
    if cached is not None:
        logger.debug("events_list_cache_hit", instructor=instructor)
        return cached

    listing = await list_events_with_attendees(db, instructor)
    response_data = [item.model_dump(mode="json") for item in listing]
    await set_cached_events(instructor, response_data)
    return response_data


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(event_data: EventCreate, db: AsyncSession = Depends(get_db)):
    event = await create_event(db, event_data)
    await invalidate_event_cache()
    return event


@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile_endpoint(
    db: AsyncSession = Depends(get_db),
    ledger: CapacityLedger = Depends(get_ledger),
):
    """Reset every drifted `booked` counter to its live-booking count."""
    report = await reconcile_booked_counters(db, ledger)
    if report.corrections:
        await invalidate_event_cache()
    return report


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(event_id: int, db: AsyncSession = Depends(get_db)):
    """Get a single event by ID. Not cached (needs real-time seat counts)."""
    return await get_event(db, event_id)


@router.get("/{event_id}/bookings", response_model=list[BookingResponse])
async def list_event_bookings_endpoint(event_id: int, db: AsyncSession = Depends(get_db)):
    """Bookings for an event, most recent first."""
    return await list_bookings_for_event(db, event_id)
