import sys
from pathlib import Path

# Add backend directory to path for imports to work when running directly
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from typing import List

from fastapi import APIRouter, Depends

from api.auth import require_role
from api.deps import get_lifecycle
from services.booking_lifecycle import BookingLifecycleManager
from services.schemas import (
    BookingDetails,
    ConfirmBookingRequest,
    PreparePaymentRequest,
    Principal,
    serialize_booking,
)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


@router.post("/prepare", response_model=dict)
async def prepare_payment(
    request: PreparePaymentRequest,
    principal: Principal = Depends(require_role("user")),
    lifecycle: BookingLifecycleManager = Depends(get_lifecycle),
):
    """
    💳 STEP 1: Create a Razorpay order

    Returns the provider's order as-is so the client can complete checkout.
    """
    return await lifecycle.prepare_payment(request)


@router.post("/confirm", response_model=dict)
async def confirm_booking(
    request: ConfirmBookingRequest,
    principal: Principal = Depends(require_role("user")),
    lifecycle: BookingLifecycleManager = Depends(get_lifecycle),
):
    """
    ✅ STEP 2: Verify the payment signature and save a pending booking

    A forged or mismatched signature is a 400 and nothing is saved.
    """
    booking = lifecycle.confirm_booking(request, principal)
    return {"message": "Booking confirmed", "booking": serialize_booking(booking)}


@router.post("", response_model=dict)
async def create_booking(
    details: BookingDetails,
    principal: Principal = Depends(require_role("user")),
    lifecycle: BookingLifecycleManager = Depends(get_lifecycle),
):
    """📝 Save a pending booking for flows without payment (free consults)"""
    booking = lifecycle.create_booking(details, principal)
    return {"message": "Booking saved", "booking": serialize_booking(booking)}


@router.get("/mine", response_model=List[dict])
async def my_bookings(
    principal: Principal = Depends(require_role("user")),
    lifecycle: BookingLifecycleManager = Depends(get_lifecycle),
):
    return [
        serialize_booking(booking, with_doctor=True)
        for booking in lifecycle.list_user_bookings(principal)
    ]


@router.get("/assigned", response_model=List[dict])
async def assigned_bookings(
    principal: Principal = Depends(require_role("doctor")),
    lifecycle: BookingLifecycleManager = Depends(get_lifecycle),
):
    return [
        serialize_booking(booking, with_user=True)
        for booking in lifecycle.list_doctor_bookings(principal)
    ]
