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
from api.deps import get_lifecycle, get_metrics, get_rooms, get_store
from services.booking_lifecycle import BookingLifecycleManager
from services.booking_store import BookingStore
from services.errors import ConflictError, NotFoundError, ProvisionError
from services.metrics import MetricsSink
from services.schemas import (
    AssignDoctorRequest,
    CreateDoctorRequest,
    Principal,
    serialize_booking,
    serialize_doctor,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/bookings", response_model=List[dict])
async def all_bookings(
    principal: Principal = Depends(require_role("admin")),
    lifecycle: BookingLifecycleManager = Depends(get_lifecycle),
):
    """All bookings with patient and doctor, newest slot first"""
    return [
        serialize_booking(booking, with_user=True, with_doctor=True)
        for booking in lifecycle.list_all_bookings()
    ]


@router.post("/assign-doctor", response_model=dict)
async def assign_doctor(
    request: AssignDoctorRequest,
    principal: Principal = Depends(require_role("admin")),
    lifecycle: BookingLifecycleManager = Depends(get_lifecycle),
):
    """
    👨‍⚕️ Assign a doctor to a booking

    - Reuses (or creates once) the doctor's video room
    - Mints doctor + patient join links
    - Confirms the booking, then notifies both sides in the background
    """
    logger.info("Admin %s assigning doctor %s to booking %s", principal.id, request.doctor_id, request.booking_id)
    booking = await lifecycle.assign_doctor(request.booking_id, request.doctor_id)
    return {"msg": "assigned doctor", "booking": serialize_booking(booking)}


@router.get("/doctors", response_model=List[dict])
async def all_doctors(
    principal: Principal = Depends(require_role("admin")),
    store: BookingStore = Depends(get_store),
):
    return [serialize_doctor(doctor) for doctor in store.list_doctors()]


@router.post("/create-doctor", response_model=dict)
async def create_doctor(
    request: CreateDoctorRequest,
    principal: Principal = Depends(require_role("admin")),
    store: BookingStore = Depends(get_store),
    rooms=Depends(get_rooms),
    metrics: MetricsSink = Depends(get_metrics),
):
    """
    🩺 Register a doctor and provision their video room up front

    A provider failure leaves the room unset; it is then created on the
    doctor's first assignment.
    """
    with metrics.timer("admin_duration", "create_doctor"):
        doctor = store.create_doctor(**request.model_dump())
        try:
            await rooms.ensure_room(doctor, store)
        except ProvisionError as e:
            logger.warning("Room for new doctor %s not provisioned: %s", doctor.id, e)
            metrics.increment("admin_operations", "create_doctor", "room_deferred")

    logger.info("Admin %s created doctor %s", principal.id, doctor.id)
    metrics.increment("admin_operations", "create_doctor", "success")
    return {"doctor": serialize_doctor(doctor)}


@router.delete("/delete-doctor/{doctor_id}", response_model=dict)
async def delete_doctor(
    doctor_id: int,
    principal: Principal = Depends(require_role("admin")),
    store: BookingStore = Depends(get_store),
    metrics: MetricsSink = Depends(get_metrics),
):
    """Remove a doctor who has no bookings assigned"""
    if not store.get_doctor(doctor_id):
        metrics.increment("admin_operations", "delete_doctor", "not_found")
        raise NotFoundError("Doctor not found", code="doctor_not_found")
    if store.doctor_has_bookings(doctor_id):
        metrics.increment("admin_operations", "delete_doctor", "has_bookings")
        raise ConflictError("Doctor has assigned bookings", code="doctor_has_bookings")

    store.delete_doctor(doctor_id)
    logger.info("Admin %s deleted doctor %s", principal.id, doctor_id)
    metrics.increment("admin_operations", "delete_doctor", "success")
    return {"message": "Doctor deleted successfully"}
