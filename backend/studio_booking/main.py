"""
Studio Booking API - Main Application Entry Point

Instructors publish time-boxed sessions with limited seats; attendees book
one of the remaining seats. Seat allocation is capacity-safe under
concurrent requests (see services/capacity.py).
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studio_booking.core.config import get_settings
from studio_booking.core.exceptions import register_exception_handlers
from studio_booking.core.logging import setup_logging, get_logger
from studio_booking.core.metrics import metrics_endpoint
from studio_booking.api.router import api_router
from studio_booking.api.middleware import RequestLoggingMiddleware
from studio_booking.db.session import AsyncSessionLocal
from studio_booking.services.cache_service import get_redis, close_redis, get_cache_stats
from studio_booking.services.capacity import get_ledger
from studio_booking.services.event_service import reconcile_booked_counters

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        ledger=settings.CAPACITY_LEDGER_STRATEGY,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    if settings.RECONCILE_ON_STARTUP:
        async with AsyncSessionLocal() as db:
            await reconcile_booked_counters(db, get_ledger())

    yield

    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Session booking API with capacity-safe seat reservations",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)
app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)
app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "capacity_ledger": settings.CAPACITY_LEDGER_STRATEGY,
        "cache": cache_stats,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(
        "studio_booking.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )


if __name__ == "__main__":
    run()
