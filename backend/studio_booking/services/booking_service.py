"""
Booking service: turns booking/cancellation requests into capacity ledger
calls plus booking-row writes.

FLOW
====

create_booking:
  1. validate attendee fields (no side effects on failure)
  2. load the event                      -> NotFoundError
  3. ledger.try_reserve(event_id)        -> CapacityExceededError / NotFoundError
     (shielded; a request cancelled while it commits releases a granted seat)
  4. insert + commit the booking row
  5. if step 4 fails (store error, request cancelled or timed out) the seat is
     released again before the error propagates. The release is retried; if
     it still fails we log a consistency alarm; reconciliation
     (event_service.reconcile_booked_counters) repairs the counter later.

cancel_booking:
  delete the booking row, then ledger.release(event_id). Only the request
  whose DELETE actually removed the row releases; a concurrent duplicate
  cancel gets NotFoundError. A missing event is treated as already released.
"""

import asyncio

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from studio_booking.core.config import get_settings
from studio_booking.core.exceptions import (
    CapacityExceededError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from studio_booking.core.logging import get_logger
from studio_booking.core.metrics import (
    booking_cancellations,
    compensation_failures,
    record_booking_attempt,
)
from studio_booking.models.booking import Booking
from studio_booking.models.event import Event
from studio_booking.services.capacity import CapacityLedger, ReleaseOutcome, ReserveOutcome

logger = get_logger(__name__)


def validate_attendee(name: str | None, country_code: str | None, phone: str | None) -> tuple[str, str, str]:
    """Return trimmed attendee fields or raise ValidationError naming the missing ones."""
    fields = {"name": name, "country_code": country_code, "phone": phone}
    cleaned = {key: str(value).strip() if value is not None else "" for key, value in fields.items()}
    missing = [key for key, value in cleaned.items() if not value]
    if missing:
        raise ValidationError(f"Name, country code & phone required (missing: {', '.join(missing)})")
    return cleaned["name"], cleaned["country_code"], cleaned["phone"]


async def _load_event(db: AsyncSession, event_id: int) -> Event | None:
    # populate_existing: the ledger writes `booked` behind the identity map
    result = await db.execute(
        select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
    )
    return result.unique().scalar_one_or_none()


async def _compensate(db: AsyncSession, ledger: CapacityLedger, event_id: int) -> bool:
    """Release a seat whose booking row was never written. Retries with backoff."""
    settings = get_settings()
    attempts = max(1, settings.COMPENSATION_RETRY_ATTEMPTS)
    delay = settings.COMPENSATION_RETRY_DELAY

    for attempt in range(1, attempts + 1):
        try:
            await db.rollback()
            outcome = await ledger.release(db, event_id)
            logger.info(
                "capacity_compensated",
                event_id=event_id,
                attempt=attempt,
                outcome=outcome.value,
            )
            return True
        except SQLAlchemyError as e:
            logger.warning(
                "capacity_compensation_retry",
                event_id=event_id,
                attempt=attempt,
                error=str(e),
            )
            if attempt < attempts:
                await asyncio.sleep(delay * 2 ** (attempt - 1))

    compensation_failures.inc()
    logger.error(
        "capacity_compensation_failed",
        event_id=event_id,
        attempts=attempts,
        message="booked counter now exceeds live bookings; reconciliation required",
    )
    return False


async def _reserve(db: AsyncSession, ledger: CapacityLedger, event_id: int) -> ReserveOutcome:
    """
    Run try_reserve so that a caller cancelled mid-commit cannot strand a seat.

    The ledger call runs to completion under shield. If the caller is cancelled
    while waiting and the reservation turns out GRANTED, the seat is released
    before the cancellation propagates.
    """
    reservation = asyncio.ensure_future(ledger.try_reserve(db, event_id))
    try:
        return await asyncio.shield(reservation)
    except asyncio.CancelledError:
        outcome = await reservation
        if outcome is ReserveOutcome.GRANTED:
            record_booking_attempt("error")
            logger.warning("booking_cancelled_mid_reserve", event_id=event_id)
            await asyncio.shield(_compensate(db, ledger, event_id))
        raise


async def create_booking(
    db: AsyncSession,
    ledger: CapacityLedger,
    event_id: int,
    name: str,
    country_code: str,
    phone: str,
) -> Event:
    """
    Reserve a seat and record the booking.
    Returns the event with its updated `booked` count.
    """
    try:
        name, country_code, phone = validate_attendee(name, country_code, phone)
    except ValidationError:
        record_booking_attempt("invalid")
        raise

    if await _load_event(db, event_id) is None:
        record_booking_attempt("not_found")
        raise NotFoundError("Event not found")

    outcome = await _reserve(db, ledger, event_id)
    if outcome is ReserveOutcome.FULL:
        record_booking_attempt("full")
        logger.info("booking_rejected_full", event_id=event_id)
        raise CapacityExceededError()
    if outcome is ReserveOutcome.NOT_FOUND:
        record_booking_attempt("not_found")
        raise NotFoundError("Event not found")

    try:
        booking = Booking(
            event_id=event_id,
            name=name,
            country_code=country_code,
            phone=phone,
        )
        db.add(booking)
        await db.commit()
    except SQLAlchemyError as e:
        record_booking_attempt("error")
        logger.error("booking_write_failed", event_id=event_id, error=str(e))
        await asyncio.shield(_compensate(db, ledger, event_id))
        raise StoreError() from e
    except asyncio.CancelledError:
        record_booking_attempt("error")
        logger.warning("booking_cancelled_mid_write", event_id=event_id)
        await asyncio.shield(_compensate(db, ledger, event_id))
        raise

    record_booking_attempt("granted")
    logger.info("booking_created", booking_id=booking.id, event_id=event_id)

    event = await _load_event(db, event_id)
    if event is None:
        # Event removed underneath us; the booking row cascades with it
        raise NotFoundError("Event not found")
    return event


async def cancel_booking(db: AsyncSession, ledger: CapacityLedger, booking_id: int) -> None:
    """Delete a booking and give its seat back."""
    event_id = (
        await db.execute(select(Booking.event_id).where(Booking.id == booking_id))
    ).scalar_one_or_none()
    if event_id is None:
        raise NotFoundError("Booking not found")

    # Only the request whose DELETE removed the row may release its seat
    result = await db.execute(
        delete(Booking)
        .where(Booking.id == booking_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await db.rollback()
        logger.info("booking_cancel_lost_race", booking_id=booking_id, event_id=event_id)
        raise NotFoundError("Booking not found")
    await db.commit()
    booking_cancellations.inc()

    outcome = await ledger.release(db, event_id)
    if outcome is ReleaseOutcome.NOT_FOUND:
        logger.warning("booking_cancelled_orphan", booking_id=booking_id, event_id=event_id)
    else:
        logger.info("booking_cancelled", booking_id=booking_id, event_id=event_id)


async def list_bookings_for_event(db: AsyncSession, event_id: int) -> list[Booking]:
    """Bookings of one event, most recent first."""
    result = await db.execute(
        select(Booking)
        .where(Booking.event_id == event_id)
        .options(selectinload(Booking.event))
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())
