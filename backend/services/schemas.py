"""
Validated request bodies and response shapes for the booking flow.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from database.models import Booking, Doctor, Prescription, User


class Principal(BaseModel):
    """Verified caller identity handed over by the auth layer."""
    id: int
    role: str


# ==================== REQUESTS ====================

class PreparePaymentRequest(BaseModel):
    amount: float = Field(..., gt=0, allow_inf_nan=False, description="Amount in major currency units")
    currency: str = Field(..., min_length=3, max_length=3, description="ISO 4217 code")

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, value: str) -> str:
        if not value.isalpha():
            raise ValueError("currency must be a 3-letter code")
        return value.upper()


class BookingDetails(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid", str_strip_whitespace=True)

    date: Optional[str] = Field(None, max_length=20)
    time: Optional[str] = Field(None, max_length=20)
    speciality: Optional[str] = Field(None, max_length=100)
    chief_complaint: Optional[str] = Field(None, alias="chiefComplaint", max_length=2000)


class ConfirmBookingRequest(BaseModel):
    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)
    details: BookingDetails = Field(default_factory=BookingDetails)


class AssignDoctorRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    booking_id: str = Field(..., alias="bookingId", min_length=1)
    doctor_id: int = Field(..., alias="doctorId")


class AvailabilityRequest(BaseModel):
    availability: Dict[str, List[str]]


class PrescriptionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid", str_strip_whitespace=True)

    booking_id: str = Field(..., alias="bookingId", min_length=1)
    diagnosis: Optional[str] = Field(None, max_length=5000)
    treatment: Optional[str] = Field(None, max_length=5000)
    diet: Optional[str] = Field(None, max_length=5000)
    investigations: Optional[str] = Field(None, max_length=5000)
    followup: Optional[str] = Field(None, max_length=2000)
    notes: Optional[str] = Field(None, max_length=5000)


class ProfileUpdateRequest(BaseModel):
    """Editable patient profile; the phone number is fixed at signup"""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    username: str = Field(..., min_length=1, max_length=100)
    dob: str = Field(..., min_length=1, max_length=20)
    gender: str = Field(..., min_length=1, max_length=20)
    email: Optional[str] = Field(None, max_length=100)
    number: Optional[str] = Field(None, max_length=20)


class CreateDoctorRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid", str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    number: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=100)
    speciality: Optional[str] = Field(None, max_length=100)
    experience: Optional[str] = Field(None, max_length=50)
    degree: Optional[str] = Field(None, max_length=100)
    registration_number: Optional[str] = Field(None, alias="registrationNumber", max_length=50)


# ==================== RESPONSES ====================

def serialize_user(user: Optional[User]) -> Optional[dict]:
    if user is None:
        return None
    return {
        "id": user.id,
        "username": user.username,
        "number": user.number,
        "country_code": user.country_code or "+91",
        "email": user.email,
        "dob": user.dob,
        "gender": user.gender,
    }


def serialize_doctor(doctor: Optional[Doctor]) -> Optional[dict]:
    if doctor is None:
        return None
    return {
        "id": doctor.id,
        "name": doctor.name,
        "number": doctor.number,
        "email": doctor.email,
        "speciality": doctor.speciality,
        "experience": doctor.experience,
        "degree": doctor.degree,
        "registration_number": doctor.registration_number,
        "room_id": doctor.room_id,
        "availability": doctor.availability or {},
    }


def serialize_booking(booking: Booking, with_user: bool = False, with_doctor: bool = False) -> dict:
    data = {
        "id": booking.id,
        "user_id": booking.user_id,
        "doctor_id": booking.doctor_id,
        "date": booking.date,
        "time": booking.time,
        "speciality": booking.speciality,
        "chief_complaint": booking.chief_complaint,
        "status": booking.status.value,
        "video_link": booking.video_link,
    }
    if with_user:
        data["user"] = serialize_user(booking.user)
    if with_doctor:
        data["doctor"] = serialize_doctor(booking.doctor)
    return data


def serialize_prescription(prescription: Prescription, enriched: bool = False) -> dict:
    data = {
        "id": prescription.id,
        "booking_id": prescription.booking_id,
        "doctor_id": prescription.doctor_id,
        "patient_id": prescription.patient_id,
        "diagnosis": prescription.diagnosis,
        "treatment": prescription.treatment,
        "diet": prescription.diet,
        "investigations": prescription.investigations,
        "followup": prescription.followup,
        "notes": prescription.notes,
    }
    if enriched:
        # Letterhead fields for the patient's prescription list
        doctor, patient = prescription.doctor, prescription.patient
        data.update({
            "doctor_name": (doctor.name if doctor else None) or "Unknown",
            "doctor_degree": (doctor.degree if doctor else None) or "N/A",
            "doctor_registration_number": (doctor.registration_number if doctor else None) or "N/A",
            "patient_name": (patient.username if patient else None) or "Unknown",
            "date": prescription.created_at.date().isoformat() if prescription.created_at else None,
        })
    return data
