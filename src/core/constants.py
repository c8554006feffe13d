"""Application constants and configuration values."""

from datetime import date

from core.config import FRONTEND_URL

# Database field lengths
MAX_STRING_LENGTH = 255
MAX_NOTES_LENGTH = 500

# Database connection settings
DB_POOL_RECYCLE_SECONDS = 300  # 5 minutes

# CORS origins for development and production
# Note: production URLs should be added via FRONTEND_URL environment variable
_CORS_ORIGINS_RAW = [
    "http://localhost:5173",      # Booking form dev server (Vite)
    "http://localhost:3000",      # Dashboard dev server
    FRONTEND_URL,
]

# Filter out None values and empty strings to avoid CORS errors
CORS_ORIGINS = [origin for origin in _CORS_ORIGINS_RAW if origin and origin.strip()]

# Slot computation
DEFAULT_SERVICE_DURATION_MINUTES = 30  # Used when a slot query names no (valid) service

# Barber configuration defaults (applied when the barber never saved a configuration)
DEFAULT_BUFFER_MINUTES = 5
DEFAULT_LEAD_TIME_MINUTES = 1440  # 24 hours
DEFAULT_MAX_BOOKINGS_PER_DAY = 20
DEFAULT_ALLOW_SAME_DAY_BOOKING = True
DEFAULT_SHOW_PRICES = True
DEFAULT_CURRENCY = "ARS"
DEFAULT_TIMEZONE = "America/Argentina/Buenos_Aires"

# Cancellation codes
CANCEL_CODE_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
CANCEL_CODE_LENGTH = 6
CANCEL_CODE_MAX_ATTEMPTS = 10

# Date validation
MIN_BOOKABLE_DATE = date(2020, 1, 1)

# Client validation
MIN_PHONE_DIGITS = 7

# Client management
CLIENT_SEARCH_LIMIT = 20
CLIENT_HISTORY_LIMIT = 20

# Auto-completion sweep
AUTO_COMPLETE_BATCH_LIMIT = 50
AUTO_COMPLETE_INTERVAL_HOURS = 4
PENDING_CACHE_REFRESH_INTERVAL_HOURS = 2
