"""
Booking Lifecycle Manager

Drives a booking from creation (``pending``) to doctor assignment
(``confirmed``) and coordinates the payment, video and messaging adapters.

FLOW:
- prepare_payment: convert to minor units, create a Razorpay order
- confirm_booking: verify the payment signature, then persist a pending booking
- create_booking: persist a pending booking with no payment
- assign_doctor: validate, provision room + join links, confirm atomically,
  then hand two notifications to the outbox
"""
import asyncio
import functools
import logging
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi.concurrency import run_in_threadpool

from database.models import Booking, Doctor, User
from .booking_store import BookingStore
from .errors import BookingError, GatewayError, InvalidSignature, NotFoundError, ProvisionError, ValidationError
from .metrics import MetricsSink, NullMetrics
from .outbox import NotificationOutbox
from .schemas import BookingDetails, ConfirmBookingRequest, PreparePaymentRequest, Principal

logger = logging.getLogger(__name__)


def to_minor_units(amount, currency: str, exponents: Dict[str, int]) -> int:
    """
    Scale ``amount`` by the currency's minor-unit exponent.

    Currencies missing from ``exponents`` are passed through unchanged.
    """
    exponent = exponents.get(currency.upper(), 0)
    scaled = Decimal(str(amount)).scaleb(exponent)
    if not scaled.is_finite() or scaled <= 0:
        raise ValidationError(f"Amount {amount} is not a positive finite number")
    if scaled != scaled.to_integral_value():
        raise ValidationError(f"Amount {amount} is too precise for {currency}")
    return int(scaled)


class BookingLifecycleManager:
    def __init__(
        self,
        store: BookingStore,
        gateway,
        rooms,
        notifier,
        outbox: Optional[NotificationOutbox] = None,
        metrics: Optional[MetricsSink] = None,
        minor_unit_exponents: Optional[Dict[str, int]] = None,
    ):
        self.store = store
        self.gateway = gateway
        self.rooms = rooms
        self.notifier = notifier
        self.metrics = metrics or NullMetrics()
        self.outbox = outbox or NotificationOutbox(self.metrics)
        self.minor_unit_exponents = {"USD": 2} if minor_unit_exponents is None else minor_unit_exponents

    # ==================== PAYMENT ====================

    async def prepare_payment(self, request: PreparePaymentRequest) -> dict:
        amount = to_minor_units(request.amount, request.currency, self.minor_unit_exponents)
        with self.metrics.timer("booking_duration", "payment_prepare"):
            try:
                order = await run_in_threadpool(self.gateway.create_order, amount, request.currency)
            except BookingError:
                self.metrics.increment("payment_operations", "prepare", "failure")
                raise
            except Exception as e:
                logger.exception("Payment gateway raised an unexpected error")
                self.metrics.increment("payment_operations", "prepare", "failure")
                raise GatewayError("Payment creation failed") from e
        self.metrics.increment("payment_operations", "prepare", "success")
        return order

    def confirm_booking(self, request: ConfirmBookingRequest, principal: Principal) -> Booking:
        """Persist a pending booking only when the payment signature verifies."""
        is_valid = self.gateway.verify_signature(
            request.razorpay_order_id,
            request.razorpay_payment_id,
            request.razorpay_signature,
        )
        if not is_valid:
            logger.warning(
                "Rejected payment confirmation from user %s: bad signature for order %s",
                principal.id, request.razorpay_order_id,
            )
            self.metrics.increment("payment_operations", "verify", "invalid_signature")
            raise InvalidSignature()

        self.metrics.increment("payment_operations", "verify", "success")
        return self._create(request.details, principal, "booking_confirm")

    def create_booking(self, details: BookingDetails, principal: Principal) -> Booking:
        return self._create(details, principal, "booking_create")

    def _create(self, details: BookingDetails, principal: Principal, operation: str) -> Booking:
        booking = self.store.create_booking(principal.id, **details.model_dump(by_alias=False))
        logger.info("Booking %s created for user %s via %s", booking.id, principal.id, operation)
        self.metrics.increment("booking_operations", operation, "success")
        self.metrics.increment("bookings_by_status", "pending")
        return booking

    # ==================== ASSIGNMENT ====================

    async def assign_doctor(self, booking_id: str, doctor_id: int) -> Booking:
        with self.metrics.timer("booking_duration", "assign_doctor"):
            try:
                booking = await self._assign(booking_id, doctor_id)
            except NotFoundError as e:
                self.metrics.increment("doctor_assignments", e.code)
                raise
            except Exception:
                self.metrics.increment("doctor_assignments", "error")
                raise
        self.metrics.increment("doctor_assignments", "success")
        return booking

    async def _assign(self, booking_id: str, doctor_id: int) -> Booking:
        # Check order is part of the contract: doctor, then booking, then user
        doctor = self.store.get_doctor(doctor_id)
        if not doctor or not doctor.name:
            raise NotFoundError("Doctor not found", code="doctor_not_found")

        booking = self.store.get_booking(booking_id)
        if not booking:
            raise NotFoundError("Booking not found", code="booking_not_found")

        user = self.store.get_user(booking.user_id)
        if not user:
            raise NotFoundError("User not found", code="user_not_found")

        video_link = await self._provision_links(doctor, user)

        slot_date, slot_time = booking.date, booking.time
        self.store.confirm_assignment(booking.id, doctor.id, video_link)
        logger.info("Booking %s confirmed with doctor %s", booking.id, doctor.id)
        self.metrics.increment("bookings_by_status", "confirmed")

        self._notify_assignment(doctor, user, slot_date, slot_time, video_link)
        return self.store.get_booking(booking_id)

    async def _provision_links(self, doctor: Doctor, user: User) -> Dict[str, str]:
        """Doctor and patient join links; any provider failure leaves that link empty."""
        try:
            room_id = await self.rooms.ensure_room(doctor, self.store)
        except ProvisionError as e:
            logger.warning("Room provisioning failed for doctor %s: %s", doctor.id, e)
            self.metrics.increment("video_links", "room", "failure")
            return {"doctor": "", "user": ""}

        doctor_link, user_link = await asyncio.gather(
            self.rooms.mint_join_link(room_id, doctor.name, "doctor"),
            self.rooms.mint_join_link(room_id, user.username or str(user.id), "guest"),
            return_exceptions=True,
        )
        return {
            "doctor": self._link_or_empty(doctor_link, "doctor"),
            "user": self._link_or_empty(user_link, "guest"),
        }

    def _link_or_empty(self, result, role: str) -> str:
        if isinstance(result, ProvisionError):
            logger.warning("Join link for role %s failed: %s", role, result)
            self.metrics.increment("video_links", role, "failure")
            return ""
        if isinstance(result, BaseException):
            raise result
        self.metrics.increment("video_links", role, "success" if result else "missing")
        return result

    def _notify_assignment(self, doctor: Doctor, user: User, slot_date, slot_time, video_link: dict) -> None:
        if user.number:
            message = (
                f"🩺 Dr. {doctor.name} has been assigned for your consultation "
                f"at {slot_time} on {slot_date}. Join: {video_link['user']}"
            )
            self.outbox.submit(
                "user_assignment",
                functools.partial(self.notifier.send, user.number, message, user.country_code),
            )
        else:
            logger.info("User %s has no phone number, skipping assignment notice", user.id)

        if doctor.number:
            message = (
                f"👩‍⚕️ Dr. {doctor.name} you have a new booking assigned for {user.username} "
                f"at {slot_time} on {slot_date}. Join: {video_link['doctor']}"
            )
            self.outbox.submit(
                "doctor_assignment",
                functools.partial(self.notifier.send, doctor.number, message),
            )
        else:
            logger.info("Doctor %s has no phone number, skipping assignment notice", doctor.id)

    # ==================== READS ====================

    def list_user_bookings(self, principal: Principal) -> List[Booking]:
        return self.store.find_bookings(user_id=principal.id, with_doctor=True)

    def list_doctor_bookings(self, principal: Principal) -> List[Booking]:
        return self.store.find_bookings(doctor_id=principal.id, with_user=True)

    def list_all_bookings(self) -> List[Booking]:
        return self.store.find_bookings(with_user=True, with_doctor=True)
