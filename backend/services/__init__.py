# Services Package - booking core

from .booking_lifecycle import BookingLifecycleManager, to_minor_units
from .booking_store import BookingStore
from .errors import (
    BookingError,
    ValidationError,
    NotFoundError,
    InvalidSignature,
    GatewayError,
    ProvisionError,
    DeliveryError,
    ForbiddenError,
    ConflictError,
)
from .metrics import MetricsSink, NullMetrics, PrometheusMetrics
from .outbox import NotificationOutbox

__all__ = [
    "BookingLifecycleManager",
    "to_minor_units",
    "BookingStore",

    # Errors
    "BookingError",
    "ValidationError",
    "NotFoundError",
    "InvalidSignature",
    "GatewayError",
    "ProvisionError",
    "DeliveryError",
    "ForbiddenError",
    "ConflictError",

    # Metrics & notifications
    "MetricsSink",
    "NullMetrics",
    "PrometheusMetrics",
    "NotificationOutbox",
]
