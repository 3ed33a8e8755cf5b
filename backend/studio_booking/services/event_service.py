"""
Event service handling CRUD, attendee listings and counter reconciliation.
"""

from collections import defaultdict
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from studio_booking.core.exceptions import NotFoundError, ValidationError
from studio_booking.core.logging import get_logger
from studio_booking.models.booking import Booking
from studio_booking.models.event import Event
from studio_booking.models.instructor import Instructor
from studio_booking.schemas.event import (
    AttendeeResponse,
    CounterCorrection,
    EventCreate,
    EventWithAttendeesResponse,
    ReconcileResponse,
)
from studio_booking.services.capacity import CapacityLedger

logger = get_logger(__name__)


async def create_event(db: AsyncSession, event_data: EventCreate) -> Event:
    """Create a new event with every seat free."""
    instructor = await db.get(Instructor, event_data.instructor_id)
    if instructor is None:
        raise ValidationError(f"Instructor {event_data.instructor_id} does not exist")

    event = Event(
        title=event_data.title,
        date=event_data.date,
        time=event_data.time,
        duration=event_data.duration,
        max_seats=event_data.max_seats,
        booked=0,
        instructor_id=instructor.id,
    )
    db.add(event)
    await db.commit()

    logger.info("event_created", event_id=event.id, title=event.title, seats=event.max_seats)
    return await get_event(db, event.id)


async def get_event(db: AsyncSession, event_id: int) -> Event:
    """Get a single event (instructor resolved) by ID."""
    result = await db.execute(
        select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
    )
    event = result.unique().scalar_one_or_none()

    if not event:
        raise NotFoundError("Event not found")
    return event


async def list_events_with_attendees(
    db: AsyncSession,
    instructor_id: Optional[int] = None,
) -> list[EventWithAttendeesResponse]:
    """
    List events with their attendees.

    `booked` is the number of live booking rows for each event, so this view
    stays truthful even when the stored counter has drifted.
    """
    query = select(Event).order_by(Event.date.asc(), Event.time.asc(), Event.id.asc())
    if instructor_id is not None:
        query = query.where(Event.instructor_id == instructor_id)
    events = list((await db.execute(query)).unique().scalars().all())

    attendees_by_event: dict[int, list[AttendeeResponse]] = defaultdict(list)
    if events:
        bookings = await db.execute(
            select(Booking)
            .where(Booking.event_id.in_([e.id for e in events]))
            .order_by(Booking.created_at.asc(), Booking.id.asc())
        )
        for booking in bookings.scalars():
            attendees_by_event[booking.event_id].append(AttendeeResponse.model_validate(booking))

    listing = []
    for event in events:
        attendees = attendees_by_event.get(event.id, [])
        item = EventWithAttendeesResponse.model_validate(event)
        item.attendees = attendees
        item.booked = len(attendees)
        listing.append(item)
    return listing


async def count_live_bookings(db: AsyncSession) -> dict[int, int]:
    """Live booking count per event id (events without bookings are absent)."""
    result = await db.execute(
        select(Booking.event_id, func.count(Booking.id)).group_by(Booking.event_id)
    )
    return {event_id: count for event_id, count in result.all()}


async def reconcile_booked_counters(db: AsyncSession, ledger: CapacityLedger) -> ReconcileResponse:
    """
    Compare each event's stored counter with its live bookings and let the
    ledger correct any drift (e.g. after a failed compensation).
    """
    live = await count_live_bookings(db)
    result = await db.execute(select(Event.id, Event.booked).order_by(Event.id))
    stored = result.all()

    corrections = []
    for event_id, booked in stored:
        live_count = live.get(event_id, 0)
        if booked == live_count:
            continue
        corrected = await ledger.sync(db, event_id, live_count)
        if corrected is None:
            continue
        corrections.append(
            CounterCorrection(event_id=event_id, stored=booked, live=live_count, corrected_to=corrected)
        )

    logger.info("reconciliation_finished", checked=len(stored), corrected=len(corrections))
    return ReconcileResponse(checked=len(stored), corrections=corrections)
