import sys
from pathlib import Path

# Add backend directory to path for imports to work when running directly
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

import logging
from typing import List

from fastapi import APIRouter, Depends

from api.auth import require_role
from api.deps import get_lifecycle, get_metrics, get_store
from database.models import User
from services.booking_lifecycle import BookingLifecycleManager
from services.booking_store import BookingStore
from services.errors import NotFoundError, ValidationError
from services.metrics import MetricsSink
from services.schemas import (
    Principal,
    ProfileUpdateRequest,
    serialize_booking,
    serialize_prescription,
    serialize_user,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["User"])


def _current_user(store: BookingStore, principal: Principal) -> User:
    user = store.get_user(principal.id)
    if not user:
        raise NotFoundError("User not found", code="user_not_found")
    return user


# ==================== PROFILE ====================

@router.get("/me", response_model=dict)
async def my_profile(
    principal: Principal = Depends(require_role("user")),
    store: BookingStore = Depends(get_store),
    metrics: MetricsSink = Depends(get_metrics),
):
    user = _current_user(store, principal)
    metrics.increment("user_operations", "get_profile", "success")
    return serialize_user(user)


@router.put("/update", response_model=dict)
async def update_profile(
    request: ProfileUpdateRequest,
    principal: Principal = Depends(require_role("user")),
    store: BookingStore = Depends(get_store),
    metrics: MetricsSink = Depends(get_metrics),
):
    """
    ✏️ Update name, date of birth, gender and (optionally) email

    The phone number identifies the account and cannot be changed here.
    """
    user = _current_user(store, principal)
    if request.number and request.number != user.number:
        metrics.increment("user_operations", "update_profile", "phone_change_denied")
        raise ValidationError("Phone number cannot be changed", code="phone_change_denied")

    fields = {"username": request.username, "dob": request.dob, "gender": request.gender}
    if request.email:
        fields["email"] = request.email

    user = store.update_user_profile(user, **fields)
    logger.info("User %s updated their profile", user.id)
    metrics.increment("user_operations", "update_profile", "success")
    return {"message": "User updated successfully", "user": serialize_user(user)}


# ==================== BOOKINGS & PRESCRIPTIONS ====================

@router.get("/bookings", response_model=List[dict])
async def my_bookings(
    principal: Principal = Depends(require_role("user")),
    lifecycle: BookingLifecycleManager = Depends(get_lifecycle),
):
    return [
        serialize_booking(booking, with_doctor=True)
        for booking in lifecycle.list_user_bookings(principal)
    ]


@router.get("/prescriptions", response_model=List[dict])
async def my_prescriptions(
    principal: Principal = Depends(require_role("user")),
    store: BookingStore = Depends(get_store),
):
    """Every prescription written for the caller, newest first, with doctor letterhead fields"""
    return [
        serialize_prescription(prescription, enriched=True)
        for prescription in store.find_prescriptions(principal.id)
    ]


@router.get("/prescriptions/{booking_id}", response_model=dict)
async def my_prescription(
    booking_id: str,
    principal: Principal = Depends(require_role("user")),
    store: BookingStore = Depends(get_store),
    metrics: MetricsSink = Depends(get_metrics),
):
    prescription = store.get_prescription(booking_id)
    if not prescription or prescription.patient_id != principal.id:
        metrics.increment("prescription_operations", "get", "not_found")
        raise NotFoundError("Prescription not found", code="prescription_not_found")
    metrics.increment("prescription_operations", "get", "success")
    return serialize_prescription(prescription, enriched=True)
