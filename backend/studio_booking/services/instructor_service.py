"""
Instructor lookups. No lifecycle beyond create/read.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studio_booking.core.exceptions import NotFoundError, ValidationError
from studio_booking.core.logging import get_logger
from studio_booking.models.instructor import Instructor

logger = get_logger(__name__)


async def list_instructors(db: AsyncSession) -> list[Instructor]:
    result = await db.execute(select(Instructor).order_by(Instructor.name.asc(), Instructor.id.asc()))
    return list(result.scalars().all())


async def create_instructor(db: AsyncSession, name: str) -> Instructor:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required")

    instructor = Instructor(name=name)
    db.add(instructor)
    await db.commit()

    logger.info("instructor_created", instructor_id=instructor.id, name=name)
    return instructor


async def get_instructor(db: AsyncSession, instructor_id: int) -> Instructor:
    instructor = await db.get(Instructor, instructor_id)
    if instructor is None:
        raise NotFoundError("Instructor not found")
    return instructor
