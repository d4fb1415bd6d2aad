# API Package - Centralized imports

from .auth import get_current_principal, require_role, create_access_token
from .bookings import router as bookings_router
from .admin import router as admin_router
from .doctors import router as doctors_router
from .users import router as users_router

__all__ = [
    # Auth
    "get_current_principal",
    "require_role",
    "create_access_token",

    # Routers
    "bookings_router",
    "admin_router",
    "doctors_router",
    "users_router",
]
