import sys
from pathlib import Path

# Add backend directory to path for imports to work when running directly
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

import logging

from fastapi import APIRouter, Depends

from api.auth import require_role
from api.deps import get_metrics, get_store
from services.booking_store import BookingStore
from services.errors import ForbiddenError, NotFoundError
from services.metrics import MetricsSink
from services.schemas import (
    AvailabilityRequest,
    PrescriptionRequest,
    Principal,
    serialize_doctor,
    serialize_prescription,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/doctor", tags=["Doctor"])


@router.get("/me", response_model=dict)
async def doctor_profile(
    principal: Principal = Depends(require_role("doctor")),
    store: BookingStore = Depends(get_store),
):
    doctor = store.get_doctor(principal.id)
    if not doctor:
        raise NotFoundError("Doctor not found", code="doctor_not_found")
    return serialize_doctor(doctor)


@router.get("/availability", response_model=dict)
async def get_availability(
    principal: Principal = Depends(require_role("doctor")),
    store: BookingStore = Depends(get_store),
):
    doctor = store.get_doctor(principal.id)
    return {"availability": (doctor.availability if doctor else None) or {}}


@router.post("/availability", response_model=dict)
async def update_availability(
    request: AvailabilityRequest,
    principal: Principal = Depends(require_role("doctor")),
    store: BookingStore = Depends(get_store),
):
    """Replace the weekly slot map; no check against existing bookings"""
    if not store.update_availability(principal.id, request.availability):
        raise NotFoundError("Doctor not found", code="doctor_not_found")
    return {"status": "success", "availability": request.availability}


# ==================== PRESCRIPTIONS ====================

@router.post("/prescription", response_model=dict)
async def save_prescription(
    request: PrescriptionRequest,
    principal: Principal = Depends(require_role("doctor")),
    store: BookingStore = Depends(get_store),
    metrics: MetricsSink = Depends(get_metrics),
):
    """
    📋 Write the prescription for one of the caller's bookings

    Saving again for the same booking updates the fields the request carries.
    """
    booking = store.get_booking(request.booking_id)
    if not booking:
        metrics.increment("prescription_operations", "save", "booking_not_found")
        raise NotFoundError("Booking not found", code="booking_not_found")
    if booking.doctor_id != principal.id:
        metrics.increment("prescription_operations", "save", "forbidden")
        raise ForbiddenError("Booking is not assigned to you", code="not_assigned_doctor")

    prescription = store.save_prescription(booking, **request.model_dump(exclude={"booking_id"}, exclude_unset=True))
    logger.info("Doctor %s saved prescription for booking %s", principal.id, booking.id)
    metrics.increment("prescription_operations", "save", "success")
    return {"message": "Prescription saved", "prescription": serialize_prescription(prescription)}


@router.get("/prescription/{booking_id}", response_model=dict)
async def get_prescription(
    booking_id: str,
    principal: Principal = Depends(require_role("doctor")),
    store: BookingStore = Depends(get_store),
    metrics: MetricsSink = Depends(get_metrics),
):
    prescription = store.get_prescription(booking_id)
    if not prescription or prescription.doctor_id != principal.id:
        metrics.increment("prescription_operations", "get", "not_found")
        raise NotFoundError("No prescription found", code="prescription_not_found")
    metrics.increment("prescription_operations", "get", "success")
    return serialize_prescription(prescription)
