"""
Telehealth Booking - Database Models
Patients, doctors, the bookings that tie them to a video room, and prescriptions
"""
import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from .connection import Base


# ============================================
# ENUMS
# ============================================

class UserRole(str, enum.Enum):
    USER = "user"
    DOCTOR = "doctor"
    ADMIN = "admin"


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"


def generate_booking_id() -> str:
    return uuid.uuid4().hex


# ============================================
# USER MANAGEMENT
# ============================================

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), nullable=False)
    number = Column(String(20), index=True)
    country_code = Column(String(5), default="+91")
    email = Column(String(100))
    dob = Column(String(20))
    gender = Column(String(20))
    created_at = Column(DateTime, default=datetime.now)

    # Relationships
    bookings = relationship("Booking", back_populates="user")
    prescriptions = relationship("Prescription", back_populates="patient")


# ============================================
# DOCTOR MANAGEMENT
# ============================================

class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100))
    number = Column(String(20))
    email = Column(String(100))
    speciality = Column(String(100))
    experience = Column(String(50))
    degree = Column(String(100))
    registration_number = Column(String(50))

    # Provisioned on first assignment, then reused for every booking
    room_id = Column(String(100), nullable=True)

    # {"monday": ["09:00", "09:30"], ...}
    availability = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.now)

    # Relationships
    bookings = relationship("Booking", back_populates="doctor")
    prescriptions = relationship("Prescription", back_populates="doctor")


# ============================================
# BOOKINGS
# ============================================

class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(32), primary_key=True, default=generate_booking_id)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=True, index=True)

    date = Column(String(20))
    time = Column(String(20))
    speciality = Column(String(100))
    chief_complaint = Column(Text)

    status = Column(
        SQLEnum(BookingStatus, values_callable=lambda e: [m.value for m in e], native_enum=False),
        default=BookingStatus.PENDING,
        nullable=False,
    )

    # Written together with doctor_id and status
    video_link_doctor = Column(String(500), default="")
    video_link_user = Column(String(500), default="")

    created_at = Column(DateTime, default=datetime.now)

    # Relationships
    user = relationship("User", back_populates="bookings")
    doctor = relationship("Doctor", back_populates="bookings")
    prescription = relationship("Prescription", back_populates="booking", uselist=False)

    @property
    def video_link(self) -> dict:
        return {"doctor": self.video_link_doctor or "", "user": self.video_link_user or ""}


# ============================================
# PRESCRIPTIONS
# ============================================

class Prescription(Base):
    __tablename__ = "prescriptions"

    id = Column(Integer, primary_key=True, index=True)
    # One prescription per booking; saving again updates it
    booking_id = Column(String(32), ForeignKey("bookings.id"), nullable=False, unique=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    diagnosis = Column(Text)
    treatment = Column(Text)
    diet = Column(Text)
    investigations = Column(Text)
    followup = Column(Text)
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # Relationships
    booking = relationship("Booking", back_populates="prescription")
    doctor = relationship("Doctor", back_populates="prescriptions")
    patient = relationship("User", back_populates="prescriptions")
