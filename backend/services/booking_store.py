"""
Booking Store

Thin repository over the SQLAlchemy session. Every write that must be atomic
is a single UPDATE statement followed by a commit.
"""
import logging
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from database.models import Booking, BookingStatus, Doctor, Prescription, User

logger = logging.getLogger(__name__)


class BookingStore:
    def __init__(self, db: Session):
        self.db = db

    # ==================== LOOKUPS ====================

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        return self.db.query(Booking).filter(Booking.id == booking_id).first()

    def get_doctor(self, doctor_id: int) -> Optional[Doctor]:
        return self.db.query(Doctor).filter(Doctor.id == doctor_id).first()

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def find_bookings(
        self,
        user_id: Optional[int] = None,
        doctor_id: Optional[int] = None,
        with_user: bool = False,
        with_doctor: bool = False,
    ) -> List[Booking]:
        query = self.db.query(Booking)
        if with_user:
            query = query.options(joinedload(Booking.user))
        if with_doctor:
            query = query.options(joinedload(Booking.doctor))
        if user_id is not None:
            query = query.filter(Booking.user_id == user_id)
        if doctor_id is not None:
            query = query.filter(Booking.doctor_id == doctor_id)
        return query.order_by(desc(Booking.date), desc(Booking.created_at)).all()

    def list_doctors(self) -> List[Doctor]:
        return self.db.query(Doctor).order_by(Doctor.id).all()

    # ==================== WRITES ====================

    def create_booking(self, user_id: int, **details) -> Booking:
        booking = Booking(user_id=user_id, status=BookingStatus.PENDING, **details)
        self.db.add(booking)
        self.db.commit()
        self.db.refresh(booking)
        return booking

    def confirm_assignment(self, booking_id: str, doctor_id: int, video_link: dict) -> None:
        """Set doctor, both links and status in one statement."""
        updated = self.db.query(Booking).filter(Booking.id == booking_id).update(
            {
                Booking.doctor_id: doctor_id,
                Booking.video_link_doctor: video_link.get("doctor") or "",
                Booking.video_link_user: video_link.get("user") or "",
                Booking.status: BookingStatus.CONFIRMED,
            },
            synchronize_session=False,
        )
        if updated != 1:
            self.db.rollback()
            raise LookupError(f"Booking {booking_id} vanished during assignment")
        self.db.commit()

    def current_room_id(self, doctor_id: int) -> Optional[str]:
        return self.db.query(Doctor.room_id).filter(Doctor.id == doctor_id).scalar()

    def claim_doctor_room(self, doctor_id: int, room_id: str) -> str:
        """
        Compare-and-set the doctor's room id.

        Returns whichever id ended up persisted, which is ``room_id`` only when
        no other writer got there first.
        """
        claimed = self.db.query(Doctor).filter(
            Doctor.id == doctor_id,
            Doctor.room_id.is_(None),
        ).update({Doctor.room_id: room_id}, synchronize_session=False)
        self.db.commit()
        persisted = self.current_room_id(doctor_id)
        if not claimed:
            logger.warning(
                "Doctor %s already had room %s, discarding freshly created room %s",
                doctor_id, persisted, room_id,
            )
        return persisted

    def update_availability(self, doctor_id: int, availability: dict) -> bool:
        updated = self.db.query(Doctor).filter(Doctor.id == doctor_id).update(
            {Doctor.availability: availability},
            synchronize_session=False,
        )
        self.db.commit()
        return bool(updated)

    # ==================== DOCTORS ====================

    def create_doctor(self, **fields) -> Doctor:
        doctor = Doctor(availability={}, **fields)
        self.db.add(doctor)
        self.db.commit()
        self.db.refresh(doctor)
        return doctor

    def doctor_has_bookings(self, doctor_id: int) -> bool:
        return self.db.query(Booking.id).filter(Booking.doctor_id == doctor_id).first() is not None

    def delete_doctor(self, doctor_id: int) -> bool:
        deleted = self.db.query(Doctor).filter(Doctor.id == doctor_id).delete(synchronize_session=False)
        self.db.commit()
        return bool(deleted)

    # ==================== USERS ====================

    def update_user_profile(self, user: User, **fields) -> User:
        for key, value in fields.items():
            setattr(user, key, value)
        self.db.commit()
        self.db.refresh(user)
        return user

    # ==================== PRESCRIPTIONS ====================

    def get_prescription(self, booking_id: str) -> Optional[Prescription]:
        return self.db.query(Prescription).filter(Prescription.booking_id == booking_id).first()

    def save_prescription(self, booking: Booking, **fields) -> Prescription:
        """Create the booking's prescription, or update the given fields of the existing one."""
        prescription = self.get_prescription(booking.id)
        if prescription is None:
            prescription = Prescription(
                booking_id=booking.id,
                doctor_id=booking.doctor_id,
                patient_id=booking.user_id,
                **fields,
            )
            self.db.add(prescription)
            try:
                self.db.commit()
            except IntegrityError:
                # Another writer created it first; overwrite theirs
                self.db.rollback()
                prescription = self.get_prescription(booking.id)
                if prescription is None:
                    raise
            else:
                self.db.refresh(prescription)
                return prescription

        for key, value in fields.items():
            setattr(prescription, key, value)
        self.db.commit()
        self.db.refresh(prescription)
        return prescription

    def find_prescriptions(self, patient_id: int) -> List[Prescription]:
        return (
            self.db.query(Prescription)
            .options(joinedload(Prescription.doctor), joinedload(Prescription.patient))
            .filter(Prescription.patient_id == patient_id)
            .order_by(desc(Prescription.created_at))
            .all()
        )
