# backend/tests/conftest.py
"""
Pytest configuration: SQLite database, fake payment/messaging clients and an
``httpx.MockTransport`` standing in for the 100ms API.
"""
import os

# Set BEFORE any app imports; config reads the environment at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["LOG_LEVEL"] = "WARNING"

import asyncio
import hashlib
import hmac
import json

import httpx
import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from api.auth import create_access_token
from database.connection import Base, get_db
from database.models import Booking, BookingStatus, Doctor, User
from integrations.razorpay_gateway import RazorpayGateway
from integrations.video_rooms import VideoRoomProvisioner
from services.booking_lifecycle import BookingLifecycleManager
from services.booking_store import BookingStore
from services.errors import DeliveryError
from services.metrics import PrometheusMetrics
from services.outbox import NotificationOutbox
from services.schemas import Principal

RAZORPAY_SECRET = "test_razorpay_secret"
HMS_API = "https://hms.test/v2"
MEETING_HOST = "meet.test"


def sign(order_id: str, payment_id: str, secret: str = RAZORPAY_SECRET) -> str:
    return hmac.new(secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()


def sample(registry, name: str, **labels) -> float:
    """Current value of a sample in ``registry``; 0 when never recorded."""
    return registry.get_sample_value(name, labels) or 0


# ============================================================================
# FAKE PROVIDERS
# ============================================================================

class FakeRazorpayOrders:
    def __init__(self):
        self.calls = []
        self.error = None

    def create(self, data=None, **options):
        self.calls.append({"data": data, "options": options})
        if self.error is not None:
            raise self.error
        return {
            "id": f"order_{len(self.calls)}",
            "entity": "order",
            "amount": data["amount"],
            "currency": data["currency"],
            "status": "created",
        }


class FakeRazorpayClient:
    def __init__(self):
        self.order = FakeRazorpayOrders()


class HmsStub:
    """Async handler for httpx.MockTransport mimicking the 100ms REST API."""

    def __init__(self):
        self.requests = []
        self.rooms_created = 0
        self.roles = {"doctor", "guest"}
        self.room_status = 200
        self.code_status = 200
        self.room_timeout = False
        self.delay = 0.01
        self.on_room_create = None

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = json.loads(request.content or b"{}")
        await asyncio.sleep(self.delay)

        if request.url.path == "/v2/rooms":
            if self.room_timeout:
                raise httpx.ReadTimeout("timed out", request=request)
            if self.room_status != 200:
                return httpx.Response(self.room_status, json={"message": "boom"})
            if self.on_room_create is not None:
                self.on_room_create()
            self.rooms_created += 1
            return httpx.Response(200, json={"id": f"room-id-{self.rooms_created}", "name": body["name"]})

        if request.url.path.startswith("/v2/room-codes/room/"):
            if self.code_status != 200:
                return httpx.Response(self.code_status, json={"message": "boom"})
            room_id = request.url.path.rsplit("/", 1)[-1]
            return httpx.Response(
                200,
                json={"data": [{"role": role, "code": f"{room_id}-{role}"} for role in sorted(self.roles)]},
            )

        return httpx.Response(404)

    def room_requests(self):
        return [r for r in self.requests if r.url.path == "/v2/rooms"]


class FakeNotifier:
    def __init__(self):
        self.sent = []
        self.fail_numbers = set()

    async def send(self, number, message, country_code=None):
        if number in self.fail_numbers:
            raise DeliveryError("Provider rejected message")
        self.sent.append(("whatsapp", number, message, country_code))
        return "SM123"

    async def send_notice(self, number, message, country_code=None):
        if number in self.fail_numbers:
            raise DeliveryError("Provider rejected message")
        self.sent.append(("sms", number, message, country_code))
        return "SM124"


# ============================================================================
# DATABASE
# ============================================================================

@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def store(db):
    return BookingStore(db)


@pytest.fixture
def patient(db):
    user = User(username="Rahul Kumar", number="98765-43210", country_code="+91")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def doctor(db):
    doc = Doctor(name="Anjali Mehta", number="9811111111", speciality="General Physician")
    db.add(doc)
    db.commit()
    db.refresh(doc)
    return doc


@pytest.fixture
def make_booking(db, patient):
    def _make(user_id=None, **details):
        booking = Booking(
            user_id=user_id or patient.id,
            status=BookingStatus.PENDING,
            date=details.get("date", "2026-11-02"),
            time=details.get("time", "10:30"),
            speciality=details.get("speciality", "General Physician"),
            chief_complaint=details.get("chief_complaint", "Fever for three days"),
        )
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return _make


# ============================================================================
# PROVIDERS & CORE
# ============================================================================

@pytest.fixture
def razorpay_client():
    return FakeRazorpayClient()


@pytest.fixture
def gateway(razorpay_client):
    return RazorpayGateway("rzp_test_key", RAZORPAY_SECRET, timeout=10, client=razorpay_client)


@pytest.fixture
def hms():
    return HmsStub()


@pytest.fixture
def rooms(hms):
    return VideoRoomProvisioner(
        "hms-token",
        "template-1",
        api_base=HMS_API,
        meeting_host=MEETING_HOST,
        timeout=10,
        transport=httpx.MockTransport(hms),
    )


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def metrics(registry):
    return PrometheusMetrics(registry)


@pytest.fixture
def lifecycle(store, gateway, rooms, notifier, metrics):
    return BookingLifecycleManager(
        store=store,
        gateway=gateway,
        rooms=rooms,
        notifier=notifier,
        outbox=NotificationOutbox(metrics),
        metrics=metrics,
        minor_unit_exponents={"USD": 2},
    )


@pytest.fixture
def principal(patient):
    return Principal(id=patient.id, role="user")


# ============================================================================
# HTTP
# ============================================================================

@pytest.fixture
def app(db, gateway, rooms, notifier, metrics):
    from main import create_app

    application = create_app(
        gateway=gateway,
        rooms=rooms,
        notifier=notifier,
        metrics=metrics,
        minor_unit_exponents={"USD": 2},
    )

    def override_get_db():
        yield db

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    def _headers(user_id: int, role: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}

    return _headers


@pytest.fixture
def user_headers(auth_headers, patient):
    return auth_headers(patient.id, "user")


@pytest.fixture
def admin_headers(auth_headers):
    return auth_headers(1, "admin")


@pytest.fixture
def doctor_headers(auth_headers, doctor):
    return auth_headers(doctor.id, "doctor")


@pytest.fixture
def assigned_booking(db, make_booking, doctor):
    """A confirmed booking with ``doctor`` assigned, written straight to the table."""
    booking = make_booking()
    booking.doctor_id = doctor.id
    booking.status = BookingStatus.CONFIRMED
    db.commit()
    db.refresh(booking)
    return booking
