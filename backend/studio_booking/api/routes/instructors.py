"""
Instructor endpoints.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from studio_booking.db.session import get_db
from studio_booking.schemas.instructor import InstructorCreate, InstructorResponse
from studio_booking.services.instructor_service import create_instructor, get_instructor, list_instructors

router = APIRouter(prefix="/instructors", tags=["Instructors"])


@router.get("", response_model=list[InstructorResponse])
async def list_instructors_endpoint(db: AsyncSession = Depends(get_db)):
    """All instructors, sorted by name."""
    return await list_instructors(db)


@router.post("", response_model=InstructorResponse, status_code=status.HTTP_201_CREATED)
async def create_instructor_endpoint(data: InstructorCreate, db: AsyncSession = Depends(get_db)):
    return await create_instructor(db, data.name)


@router.get("/{instructor_id}", response_model=InstructorResponse)
async def get_instructor_endpoint(instructor_id: int, db: AsyncSession = Depends(get_db)):
    return await get_instructor(db, instructor_id)
