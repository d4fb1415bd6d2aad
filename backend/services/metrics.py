"""
Metrics sinks handed to the booking services.

Nothing here is process-global: the app builds one sink over its own
``CollectorRegistry`` at startup and passes it in, tests build their own or
use ``NullMetrics``.
"""
from contextlib import contextmanager

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest

# sink name -> (metric name, help, label names)
COUNTERS = {
    "booking_operations": (
        "antarnaa_booking_operations_total",
        "Total number of booking operations",
        ["operation", "status"],
    ),
    "payment_operations": (
        "antarnaa_payment_operations_total",
        "Total number of payment operations",
        ["operation", "status"],
    ),
    "bookings_by_status": (
        "antarnaa_booking_status_transitions_total",
        "Bookings entering each status",
        ["status"],
    ),
    "doctor_assignments": (
        "antarnaa_doctor_assignments_total",
        "Total number of doctor assignments",
        ["status"],
    ),
    "video_links": (
        "antarnaa_video_links_total",
        "Join links minted per role",
        ["role", "status"],
    ),
    "notifications": (
        "antarnaa_whatsapp_notifications_total",
        "Total number of WhatsApp notifications sent",
        ["type", "status"],
    ),
    "admin_operations": (
        "antarnaa_admin_operations_total",
        "Total number of admin operations",
        ["operation", "status"],
    ),
    "user_operations": (
        "antarnaa_user_operations_total",
        "Total number of user operations",
        ["operation", "status"],
    ),
    "prescription_operations": (
        "antarnaa_prescription_operations_total",
        "Total number of prescription operations",
        ["operation", "status"],
    ),
}

HISTOGRAMS = {
    "booking_duration": (
        "antarnaa_booking_duration_seconds",
        "Duration of booking operations",
        ["operation"],
        (0.1, 0.5, 1, 2, 5),
    ),
    "admin_duration": (
        "antarnaa_admin_duration_seconds",
        "Duration of admin operations",
        ["operation"],
        (0.1, 0.5, 1, 2, 5, 10),
    ),
}


class MetricsSink:
    """Interface: counters and timers keyed by name and label values."""

    def increment(self, name: str, *labels: str) -> None:
        raise NotImplementedError

    def observe(self, name: str, seconds: float, *labels: str) -> None:
        raise NotImplementedError

    def timer(self, name: str, *labels: str):
        """Context manager observing the block's duration."""
        raise NotImplementedError


class NullMetrics(MetricsSink):
    def increment(self, name: str, *labels: str) -> None:
        pass

    def observe(self, name: str, seconds: float, *labels: str) -> None:
        pass

    @contextmanager
    def timer(self, name: str, *labels: str):
        yield


class PrometheusMetrics(MetricsSink):
    """
    Prometheus counters and histograms registered on an injected registry.

    Every sink name used by the services must be declared in ``COUNTERS`` or
    ``HISTOGRAMS``; an unknown name raises ``KeyError``.
    """

    def __init__(self, registry: CollectorRegistry = None):
        self.registry = registry if registry is not None else CollectorRegistry()
        self._counters = {
            key: Counter(name, doc, labels, registry=self.registry)
            for key, (name, doc, labels) in COUNTERS.items()
        }
        self._histograms = {
            key: Histogram(name, doc, labels, registry=self.registry, buckets=buckets)
            for key, (name, doc, labels, buckets) in HISTOGRAMS.items()
        }

    def increment(self, name: str, *labels: str) -> None:
        self._counters[name].labels(*labels).inc()

    def observe(self, name: str, seconds: float, *labels: str) -> None:
        self._histograms[name].labels(*labels).observe(seconds)

    @contextmanager
    def timer(self, name: str, *labels: str):
        with self._histograms[name].labels(*labels).time():
            yield

    def exposition(self):
        """Text exposition format and its content type, for a scrape endpoint."""
        return generate_latest(self.registry), CONTENT_TYPE_LATEST
