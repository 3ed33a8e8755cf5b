"""
Event model with seat capacity tracking.

Key design decisions:
- `booked` is a denormalized counter of live bookings; only the capacity
  ledger writes it (see services/capacity.py)
- CHECK constraints keep 0 <= booked <= max_seats even if a writer misbehaves
- Index on (date, time) for the chronological listing
"""

from sqlalchemy import Column, Integer, String, Date, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from studio_booking.db.base import Base, TimestampMixin

MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 240


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)  # HH:MM
    duration = Column(Integer, nullable=False, default=60)  # minutes
    max_seats = Column(Integer, nullable=False)
    booked = Column(Integer, nullable=False, default=0)
    instructor_id = Column(Integer, ForeignKey("instructors.id"), nullable=False, index=True)

    instructor = relationship("Instructor", back_populates="events", lazy="joined")
    bookings = relationship("Booking", back_populates="event", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("booked >= 0", name="check_booked_non_negative"),
        CheckConstraint("booked <= max_seats", name="check_booked_lte_max_seats"),
        CheckConstraint("max_seats > 0", name="check_max_seats_positive"),
        CheckConstraint(
            f"duration BETWEEN {MIN_DURATION_MINUTES} AND {MAX_DURATION_MINUTES}",
            name="check_duration_range",
        ),
        Index("ix_events_date_time", "date", "time"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, booked={self.booked}/{self.max_seats})>"
