"""
Instructor model. Plain lookup data referenced by events.
"""

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from studio_booking.db.base import Base, TimestampMixin


class Instructor(Base, TimestampMixin):
    __tablename__ = "instructors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)

    events = relationship("Event", back_populates="instructor")

    def __repr__(self) -> str:
        return f"<Instructor(id={self.id}, name={self.name})>"
