"""
Booking model: one attendee holding one seat of an event.

A booking is immutable once created; cancellation deletes the row.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, Index
from sqlalchemy.orm import relationship

from studio_booking.db.base import Base, TimestampMixin


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    country_code = Column(String(8), nullable=False)
    phone = Column(String(32), nullable=False)

    event = relationship("Event", back_populates="bookings")

    __table_args__ = (
        # Covers "bookings for event X, newest first"
        Index("ix_bookings_event_created", "event_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, event={self.event_id}, name={self.name})>"
