"""
Pydantic schemas for instructor request/response validation.
"""

from pydantic import BaseModel, Field

from studio_booking.schemas.base import ResponseModel


class InstructorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)

    model_config = {"str_strip_whitespace": True}


class InstructorResponse(ResponseModel):
    id: int
    name: str
