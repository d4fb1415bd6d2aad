import asyncio

from prometheus_client import CollectorRegistry

from conftest import sample
from services.errors import DeliveryError
from services.metrics import PrometheusMetrics
from services.outbox import NotificationOutbox


async def test_submit_returns_before_the_job_runs():
    registry = CollectorRegistry()
    outbox = NotificationOutbox(PrometheusMetrics(registry))
    started = asyncio.Event()

    async def job():
        started.set()

    outbox.submit("user_assignment", job)

    assert not started.is_set()
    await outbox.drain()
    assert started.is_set()
    assert sample(registry, "antarnaa_whatsapp_notifications_total", type="user_assignment", status="success") == 1


async def test_failures_are_counted_not_raised():
    registry = CollectorRegistry()
    outbox = NotificationOutbox(PrometheusMetrics(registry))

    async def boom():
        raise DeliveryError("Invalid mobile number")

    async def fine():
        return "SM1"

    outbox.submit("user_assignment", boom)
    outbox.submit("doctor_assignment", fine)
    await outbox.drain()

    assert sample(registry, "antarnaa_whatsapp_notifications_total", type="user_assignment", status="failure") == 1
    assert sample(registry, "antarnaa_whatsapp_notifications_total", type="doctor_assignment", status="success") == 1
    assert outbox.pending == 0


async def test_drain_with_nothing_pending_returns():
    await NotificationOutbox().drain()
