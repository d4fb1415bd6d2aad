"""
Fire-and-forget notification outbox.

Contract: ``submit`` never raises and never waits on delivery. Each job runs as
its own task; its outcome is observed (logged and counted under
``notifications:<kind>:success|failure``) and never propagated to the caller.
No retries, no ordering between jobs.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Set

from .metrics import MetricsSink, NullMetrics

logger = logging.getLogger(__name__)


class NotificationOutbox:
    def __init__(self, metrics: MetricsSink = None):
        self.metrics = metrics or NullMetrics()
        self._pending: Set[asyncio.Task] = set()

    def submit(self, kind: str, job: Callable[[], Awaitable]) -> asyncio.Task:
        task = asyncio.create_task(self._run(kind, job))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _run(self, kind: str, job: Callable[[], Awaitable]) -> bool:
        try:
            await job()
        except Exception:
            logger.warning("Notification %s failed", kind, exc_info=True)
            self.metrics.increment("notifications", kind, "failure")
            return False
        self.metrics.increment("notifications", kind, "success")
        return True

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for everything submitted so far. Used on shutdown and in tests."""
        if self._pending:
            await asyncio.gather(*list(self._pending))
