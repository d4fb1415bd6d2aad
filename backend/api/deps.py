from fastapi import Depends, Request
from sqlalchemy.orm import Session

from database.connection import get_db
from services.booking_lifecycle import BookingLifecycleManager
from services.booking_store import BookingStore
from services.metrics import MetricsSink


def get_store(db: Session = Depends(get_db)) -> BookingStore:
    return BookingStore(db)


def get_lifecycle(request: Request, store: BookingStore = Depends(get_store)) -> BookingLifecycleManager:
    """Per-request manager over the app-wide provider adapters."""
    state = request.app.state
    return BookingLifecycleManager(
        store=store,
        gateway=state.gateway,
        rooms=state.rooms,
        notifier=state.notifier,
        outbox=state.outbox,
        metrics=state.metrics,
        minor_unit_exponents=state.minor_unit_exponents,
    )


def get_metrics(request: Request) -> MetricsSink:
    return request.app.state.metrics


def get_rooms(request: Request):
    return request.app.state.rooms
