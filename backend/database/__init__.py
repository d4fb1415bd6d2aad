# Database Package - Centralized imports

from .connection import (
    engine,
    Base,
    SessionLocal,
    get_db,
)

from .models import (
    UserRole,
    BookingStatus,
    User,
    Doctor,
    Booking,
    Prescription,
)

__all__ = [
    # Connection
    "engine",
    "Base",
    "SessionLocal",
    "get_db",

    # Models
    "UserRole",
    "BookingStatus",
    "User",
    "Doctor",
    "Booking",
    "Prescription",
]
