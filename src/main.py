# pyright: reportMissingTypeStubs=false
"""
Barbershop Booking Backend API

A FastAPI application for a barbershop appointment booking platform.

Features:
- Public booking: available slots, booking submission, lookup and
  cancellation by code
- Barber dashboard: configuration, services, schedule, special days,
  clients and appointments
- Background auto-completion of past appointments
- PostgreSQL database with SQLAlchemy ORM
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api import booking, dashboard
from core.config import AUTO_COMPLETE_ENABLED
from core.constants import CORS_ORIGINS
from core.exceptions import BookingError
from services.auto_complete_scheduler import start_auto_complete_scheduler, stop_auto_complete_scheduler

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

logger = logging.getLogger(__name__)
logger.info("💈 Barbershop Booking API starting...")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("🚀 Starting Barbershop Booking Backend API")

    # Note: Database sessions are created fresh for each scheduler run
    if AUTO_COMPLETE_ENABLED:
        try:
            await start_auto_complete_scheduler()
            logger.info("✅ Auto-complete scheduler started")
        except Exception as e:
            logger.exception(f"❌ Failed to start auto-complete scheduler: {e}")

    yield

    if AUTO_COMPLETE_ENABLED:
        try:
            await stop_auto_complete_scheduler()
            logger.info("🛑 Auto-complete scheduler stopped")
        except Exception as e:
            logger.exception(f"❌ Error stopping auto-complete scheduler: {e}")

    logger.info("🛑 Shutting down Barbershop Booking Backend API")


# Create FastAPI application
app = FastAPI(
    title="Barbershop Booking Backend",
    description="Appointment booking platform for barbershops",
    version="1.0.0",
    docs_url="/docs",  # Swagger UI
    redoc_url="/redoc",  # ReDoc
    lifespan=lifespan,
)

# CORS middleware for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(
    booking.router,
    prefix="/api/booking",
    tags=["booking"],
    responses={
        400: {"description": "Validation error"},
        404: {"description": "Resource not found"},
        409: {"description": "Conflict"},
        503: {"description": "Temporarily unavailable"},
        500: {"description": "Internal server error"},
    },
)
app.include_router(
    dashboard.router,
    prefix="/api/barbers/{barber_id}",
    tags=["dashboard"],
    responses={
        400: {"description": "Validation error"},
        404: {"description": "Resource not found"},
        409: {"description": "Conflict"},
        500: {"description": "Internal server error"},
    },
)


@app.get(
    "/",
    summary="Root endpoint",
    description="Returns basic API information",
)
async def root() -> dict[str, str]:
    """Get API information."""
    return {
        "message": "Barbershop Booking API",
        "version": "1.0.0",
        "status": "running"
    }


@app.get(
    "/health",
    summary="Health check",
    description="Returns the health status of the API",
)
async def health_check() -> dict[str, str]:
    """Check if the API is healthy and responding."""
    return {"status": "healthy"}


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
    )


# Global exception handlers
@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    """Handle expected booking-domain errors."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors in the common error envelope."""
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Handle malformed request bodies and parameters."""
    errors = exc.errors()
    message = "Datos de la solicitud inválidos"
    if errors:
        first = errors[0]
        detail = str(first.get("msg", "")).removeprefix("Value error, ")
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"{field}: {detail}" if field else detail
    logger.warning(f"Request validation failed on {request.url.path}: {message}")
    return _error_response(400, message)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle ValueError exceptions."""
    logger.warning(f"ValueError: {exc}")
    return _error_response(400, str(exc))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions globally."""
    logger.exception(f"Unhandled exception: {exc}")
    return _error_response(500, "Error interno del servidor")
