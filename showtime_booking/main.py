"""FastAPI application setup and configuration."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from showtime_booking.config import settings
from showtime_booking.api import api_router
from showtime_booking.database import init_database, close_database
from showtime_booking.middleware import (
    ErrorHandlerMiddleware,
    LoggingMiddleware,
    request_validation_exception_handler
)
from showtime_booking.utils.logging_config import setup_logging

setup_logging(
    log_level="DEBUG" if settings.debug else settings.log_level,
    log_file="logs/showtime.log" if settings.environment == "production" else None,
    enable_json_logging=settings.enable_json_logging or settings.environment == "production"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting Showtime booking service")
    await init_database()
    yield
    logger.info("Shutting down Showtime booking service")
    await close_database()


app = FastAPI(
    title="Showtime Booking API",
    description="""
    ## Showtime Booking

    Theatre seat reservations with optional parking and loyalty points.

    ### Booking

    A booking selects seats for one show, optionally one parking spot at the
    show's theatre, and optionally redeems loyalty points against the bill.
    Seats are committed first. If the parking spot is taken by the time it is
    reserved, the seats stay booked and the response is `409` carrying the
    receipt.

    ### Authentication

    Identity comes from a bearer JWT whose `sub` is the user ID:
    `Authorization: Bearer <token>`.

    ### Errors

    ```json
    {
      "error": "Seat Row 0, Col 0 is already booked",
      "error_code": "SEAT_ALREADY_BOOKED",
      "details": {"show_id": 12, "row_number": 0, "col_number": 0},
      "suggestions": ["Choose a different seat"]
    }
    ```
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "bookings", "description": "Seat and parking reservation"},
        {"name": "shows", "description": "Show details and seat maps"},
        {"name": "theatres", "description": "Theatre parking maps"},
        {"name": "users", "description": "Loyalty points balance"},
        {"name": "health", "description": "Service health endpoints"}
    ],
    lifespan=lifespan,
)

# Middleware added later wraps earlier ones; logging ends up outermost
app.add_middleware(ErrorHandlerMiddleware, debug=settings.debug)

if settings.enable_request_logging:
    app.add_middleware(LoggingMiddleware, log_requests=True, log_responses=True)

if settings.debug:
    cors_origins = ["*"]
    cors_allow_credentials = False
else:
    cors_origins = settings.cors_origins
    cors_allow_credentials = settings.cors_allow_credentials

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
    expose_headers=settings.cors_expose_headers
)

app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

app.include_router(api_router)


@app.get("/", tags=["health"])
async def root():
    """Basic information about the API."""
    return {
        "message": "Showtime Booking API",
        "version": "1.0.0",
        "docs_url": "/docs",
        "status": "operational"
    }


@app.get("/health", tags=["health"])
async def health_check():
    """Liveness probe for uptime monitoring."""
    return {"status": "healthy", "service": "showtime-booking"}
