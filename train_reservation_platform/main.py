"""FastAPI application setup and configuration."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from train_reservation_platform.config import settings
from train_reservation_platform.api import api_router
from train_reservation_platform.database import init_database, close_database
from train_reservation_platform.middleware import (
    ErrorHandlerMiddleware,
    LoggingMiddleware,
    register_exception_handlers
)
from train_reservation_platform.utils.logging_config import setup_logging

# Set up logging
setup_logging(
    log_level="DEBUG" if settings.debug else settings.log_level,
    log_file=settings.log_file,
    enable_json_logging=settings.enable_json_logging or settings.environment == "production"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting Train Reservation Platform")
    await init_database()
    yield
    logger.info("Shutting down Train Reservation Platform")
    await close_database()

app = FastAPI(
    title="Train Reservation Platform API",
    description="""
    ## Train Reservation Platform

    Seat reservations for a train with first, second and economy cars.

    ### Authentication

    1. `POST /api/v1/sessions` with username and password
    2. Send the token as `Authorization: Bearer <access_token>`
    3. First-class seats additionally need `POST /api/v1/sessions/totp`

    ### Concurrency

    A reservation either gets every requested seat or none. When another
    user takes one of the seats first, the response is `409 SEAT_CONFLICT`
    listing the lost seats; refresh the seat map and select again.
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "authentication", "description": "Login, second factor and logout"},
        {"name": "seats", "description": "Seat maps per car class"},
        {"name": "reservations", "description": "Creating, listing and cancelling reservations"},
        {"name": "consistency", "description": "Admin seat consistency audit"},
        {"name": "health", "description": "System health endpoints"}
    ],
    lifespan=lifespan,
)

register_exception_handlers(app)

# Logging wraps everything so even error responses carry a request id
app.add_middleware(
    ErrorHandlerMiddleware,
    debug=settings.debug
)
app.add_middleware(LoggingMiddleware)

if settings.debug:
    # Development: credentials cannot be combined with wildcard origins
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

# Include API routes
app.include_router(api_router)


@app.get("/", tags=["health"])
async def root():
    """Root endpoint for API information."""
    return {
        "message": "Train Reservation Platform API",
        "version": "1.0.0",
        "docs_url": "/docs",
        "status": "operational"
    }


@app.get("/health", tags=["health"])
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "train-reservation-platform"}
