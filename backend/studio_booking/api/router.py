"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from studio_booking.api.routes import instructors, events, bookings

api_router = APIRouter(prefix="/api")
api_router.include_router(instructors.router)
api_router.include_router(events.router)
api_router.include_router(bookings.router)
