"""
Capacity ledger: the only writer of an event's `booked` counter.

CONCURRENCY STRATEGY
====================

Problem:
  Two attendees try to book the last seat simultaneously.
  Both read booked=max_seats-1, both increment, both succeed.
  Result: Overbooking.

Solution:
  The capacity check and the increment are one indivisible step per event.
  Two strategies implement that contract:

  ConditionalUpdateLedger ("conditional", default)
    UPDATE events SET booked = booked + 1
    WHERE id = :event_id AND booked < max_seats
    rows_affected == 1 -> granted, 0 -> full (or missing event).
    The database serializes writers on the row, so this holds across any
    number of service instances. No read-then-write window exists.

  LockingLedger ("locked")
    One asyncio.Lock per event id serializes read-check-write inside this
    process. Only correct for a single instance; useful where the store
    cannot express a conditional update.

  Both commit the counter change before returning, so no per-event lock is
  held while the caller writes its booking row. Events never share a lock.

  Releases clamp at zero: releasing an event with booked == 0 is a no-op
  that still reports success.
"""

import asyncio
import enum
import time
import weakref
from abc import ABC, abstractmethod

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from studio_booking.core.config import get_settings
from studio_booking.core.logging import get_logger
from studio_booking.core.metrics import (
    capacity_operation_latency,
    booked_counter_drift,
    record_release,
)
from studio_booking.models.event import Event

logger = get_logger(__name__)


class ReserveOutcome(str, enum.Enum):
    GRANTED = "granted"
    FULL = "full"
    NOT_FOUND = "not_found"


class ReleaseOutcome(str, enum.Enum):
    RELEASED = "released"
    NOT_FOUND = "not_found"


class CapacityLedger(ABC):
    """
    Interface for capacity ledgers.

    Implementations:
    - ConditionalUpdateLedger: atomic conditional UPDATE in the store
    - LockingLedger: per-event in-process lock around read-check-write
    """

    @abstractmethod
    async def try_reserve(self, db: AsyncSession, event_id: int) -> ReserveOutcome:
        """
        Atomically claim one seat of an event.

        Returns:
            GRANTED if a seat was taken (already committed)
            FULL if booked == max_seats
            NOT_FOUND if the event does not exist
        """

    @abstractmethod
    async def release(self, db: AsyncSession, event_id: int) -> ReleaseOutcome:
        """Give one seat back. Never drops `booked` below zero."""

    async def sync(self, db: AsyncSession, event_id: int, live_count: int) -> int | None:
        """
        Reset the stored counter to the live-booking count (reconciliation).

        The value is clamped to [0, max_seats]. Returns the value written,
        or None if the event does not exist.
        """
        result = await db.execute(select(Event.booked, Event.max_seats).where(Event.id == event_id))
        row = result.one_or_none()
        if row is None:
            await db.rollback()
            return None

        stored, max_seats = row
        target = max(0, min(live_count, max_seats))
        if live_count > max_seats:
            logger.error(
                "live_bookings_exceed_capacity",
                event_id=event_id,
                live=live_count,
                max_seats=max_seats,
            )

        await db.execute(update(Event).where(Event.id == event_id).values(booked=target))
        await db.commit()

        if target != stored:
            booked_counter_drift.inc()
            logger.warning(
                "booked_counter_drift",
                event_id=event_id,
                stored=stored,
                live=live_count,
                corrected_to=target,
            )
        return target

    @staticmethod
    async def _event_exists(db: AsyncSession, event_id: int) -> bool:
        result = await db.execute(select(Event.id).where(Event.id == event_id))
        return result.scalar_one_or_none() is not None


class ConditionalUpdateLedger(CapacityLedger):
    """Check-and-increment as a single conditional UPDATE."""

    async def try_reserve(self, db: AsyncSession, event_id: int) -> ReserveOutcome:
        started = time.perf_counter()
        try:
            result = await db.execute(
                update(Event)
                .where(Event.id == event_id, Event.booked < Event.max_seats)
                .values(booked=Event.booked + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                await db.commit()
                return ReserveOutcome.GRANTED

            await db.rollback()
            # Nothing was granted; this read only decides which denial to report
            if await self._event_exists(db, event_id):
                return ReserveOutcome.FULL
            return ReserveOutcome.NOT_FOUND
        finally:
            capacity_operation_latency.labels(operation="reserve").observe(
                time.perf_counter() - started
            )

    async def release(self, db: AsyncSession, event_id: int) -> ReleaseOutcome:
        started = time.perf_counter()
        try:
            result = await db.execute(
                update(Event)
                .where(Event.id == event_id, Event.booked > 0)
                .values(booked=Event.booked - 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                await db.commit()
                record_release(ReleaseOutcome.RELEASED.value)
                return ReleaseOutcome.RELEASED

            await db.rollback()
            if await self._event_exists(db, event_id):
                logger.warning("capacity_release_at_zero", event_id=event_id)
                record_release(ReleaseOutcome.RELEASED.value)
                return ReleaseOutcome.RELEASED
            record_release(ReleaseOutcome.NOT_FOUND.value)
            return ReleaseOutcome.NOT_FOUND
        finally:
            capacity_operation_latency.labels(operation="release").observe(
                time.perf_counter() - started
            )


class LockingLedger(CapacityLedger):
    """Per-event asyncio.Lock serializing read-check-write. Single instance only."""

    def __init__(self):
        # Entries disappear once no coroutine holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, event_id: int) -> asyncio.Lock:
        lock = self._locks.get(event_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[event_id] = lock
        return lock

    async def _load_counter(self, db: AsyncSession, event_id: int) -> tuple[int, int] | None:
        result = await db.execute(select(Event.booked, Event.max_seats).where(Event.id == event_id))
        row = result.one_or_none()
        return (row.booked, row.max_seats) if row is not None else None

    async def try_reserve(self, db: AsyncSession, event_id: int) -> ReserveOutcome:
        started = time.perf_counter()
        try:
            async with self._lock_for(event_id):
                counter = await self._load_counter(db, event_id)
                if counter is None:
                    await db.rollback()
                    return ReserveOutcome.NOT_FOUND
                booked, max_seats = counter
                if booked >= max_seats:
                    await db.rollback()
                    return ReserveOutcome.FULL

                await db.execute(
                    update(Event)
                    .where(Event.id == event_id)
                    .values(booked=booked + 1)
                    .execution_options(synchronize_session=False)
                )
                await db.commit()
                return ReserveOutcome.GRANTED
        finally:
            capacity_operation_latency.labels(operation="reserve").observe(
                time.perf_counter() - started
            )

    async def release(self, db: AsyncSession, event_id: int) -> ReleaseOutcome:
        started = time.perf_counter()
        try:
            async with self._lock_for(event_id):
                counter = await self._load_counter(db, event_id)
                if counter is None:
                    await db.rollback()
                    record_release(ReleaseOutcome.NOT_FOUND.value)
                    return ReleaseOutcome.NOT_FOUND

                booked, _ = counter
                if booked > 0:
                    await db.execute(
                        update(Event)
                        .where(Event.id == event_id)
                        .values(booked=booked - 1)
                        .execution_options(synchronize_session=False)
                    )
                    await db.commit()
                else:
                    await db.rollback()
                    logger.warning("capacity_release_at_zero", event_id=event_id)
                record_release(ReleaseOutcome.RELEASED.value)
                return ReleaseOutcome.RELEASED
        finally:
            capacity_operation_latency.labels(operation="release").observe(
                time.perf_counter() - started
            )

    async def sync(self, db: AsyncSession, event_id: int, live_count: int) -> int | None:
        async with self._lock_for(event_id):
            return await super().sync(db, event_id, live_count)


LEDGER_STRATEGIES = {
    "conditional": ConditionalUpdateLedger,
    "locked": LockingLedger,
}


def create_ledger(strategy: str) -> CapacityLedger:
    try:
        return LEDGER_STRATEGIES[strategy]()
    except KeyError:
        raise ValueError(
            f"Unknown capacity ledger strategy {strategy!r}; "
            f"expected one of {sorted(LEDGER_STRATEGIES)}"
        ) from None


# Singleton instance
_ledger: CapacityLedger | None = None


def get_ledger() -> CapacityLedger:
    """Get the configured capacity ledger singleton (FastAPI dependency)."""
    global _ledger
    if _ledger is None:
        _ledger = create_ledger(get_settings().CAPACITY_LEDGER_STRATEGY)
    return _ledger
