"""
Patient profile, booking history and prescription endpoints.
"""
import pytest

from database.models import Prescription


@pytest.fixture
def prescription(db, assigned_booking):
    pres = Prescription(
        booking_id=assigned_booking.id,
        doctor_id=assigned_booking.doctor_id,
        patient_id=assigned_booking.user_id,
        diagnosis="Seasonal allergy",
        treatment="Cetirizine 10mg at night",
    )
    db.add(pres)
    db.commit()
    db.refresh(pres)
    return pres


# ==================== PROFILE ====================

def test_profile(client, user_headers):
    profile = client.get("/api/user/me", headers=user_headers).json()

    assert profile["username"] == "Rahul Kumar"
    assert profile["number"] == "98765-43210"
    assert profile["country_code"] == "+91"


def test_profile_of_deleted_account_is_404(client, auth_headers):
    response = client.get("/api/user/me", headers=auth_headers(4242, "user"))

    assert response.status_code == 404
    assert response.json()["code"] == "user_not_found"


def test_update_profile(client, user_headers, patient, db):
    response = client.put(
        "/api/user/update",
        json={"username": "Rahul K", "dob": "1990-04-12", "gender": "male", "email": "rahul@example.com"},
        headers=user_headers,
    )

    assert response.status_code == 200
    assert response.json()["user"]["dob"] == "1990-04-12"
    db.refresh(patient)
    assert patient.username == "Rahul K"
    assert patient.email == "rahul@example.com"


def test_update_profile_keeps_email_when_omitted(client, user_headers, patient, db):
    patient.email = "old@example.com"
    db.commit()

    client.put("/api/user/update", json={"username": "Rahul", "dob": "1990-04-12", "gender": "male"}, headers=user_headers)

    db.refresh(patient)
    assert patient.email == "old@example.com"


def test_phone_number_cannot_be_changed(client, user_headers, patient, db):
    response = client.put(
        "/api/user/update",
        json={"username": "Rahul", "dob": "1990-04-12", "gender": "male", "number": "9000000000"},
        headers=user_headers,
    )

    assert response.status_code == 400
    assert response.json()["code"] == "phone_change_denied"
    db.refresh(patient)
    assert patient.number == "98765-43210"


def test_update_profile_requires_name_dob_and_gender(client, user_headers):
    response = client.put("/api/user/update", json={"username": "Rahul"}, headers=user_headers)

    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


# ==================== HISTORY ====================

def test_booking_history_matches_mine(client, user_headers, make_booking):
    make_booking(date="2026-11-01")
    make_booking(date="2026-11-09")

    history = client.get("/api/user/bookings", headers=user_headers).json()

    assert [b["date"] for b in history] == ["2026-11-09", "2026-11-01"]
    assert history == client.get("/api/bookings/mine", headers=user_headers).json()


def test_prescription_list_carries_doctor_letterhead(client, user_headers, prescription, doctor, db):
    doctor.degree = "MBBS"
    db.commit()

    listed = client.get("/api/user/prescriptions", headers=user_headers).json()

    assert len(listed) == 1
    assert listed[0]["diagnosis"] == "Seasonal allergy"
    assert listed[0]["doctor_name"] == "Anjali Mehta"
    assert listed[0]["doctor_degree"] == "MBBS"
    assert listed[0]["doctor_registration_number"] == "N/A"
    assert listed[0]["patient_name"] == "Rahul Kumar"


def test_no_prescriptions_is_an_empty_list(client, user_headers):
    assert client.get("/api/user/prescriptions", headers=user_headers).json() == []


def test_patient_reads_own_prescription(client, user_headers, prescription):
    response = client.get(f"/api/user/prescriptions/{prescription.booking_id}", headers=user_headers)

    assert response.status_code == 200
    assert response.json()["treatment"] == "Cetirizine 10mg at night"


def test_other_patients_prescription_is_hidden(client, auth_headers, prescription, db):
    response = client.get(
        f"/api/user/prescriptions/{prescription.booking_id}",
        headers=auth_headers(prescription.patient_id + 1, "user"),
    )

    assert response.status_code == 404
    assert response.json()["code"] == "prescription_not_found"


def test_profile_routes_are_for_patients_only(client, doctor_headers):
    assert client.get("/api/user/me", headers=doctor_headers).status_code == 403
