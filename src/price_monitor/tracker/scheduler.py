"""Background wake scheduler for periodic refresh cycles."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import timedelta

from price_monitor.core.models import RunResult, RunStatus

logger = logging.getLogger(__name__)

WakeHandler = Callable[[], Awaitable[RunResult]]


class WakeScheduler:
    """In-process stand-in for an OS background refresh trigger.

    ``request_wake`` stores the earliest time the next cycle may start; the
    latest request replaces any earlier one. The handler runs no earlier than
    that, possibly later, and is expected to re-arm the next wake itself.
    """

    def __init__(
        self,
        handler: WakeHandler | None = None,
        default_interval: timedelta = timedelta(hours=1),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.handler = handler
        self.default_interval = default_interval
        self._clock = clock
        self._next_wake_at: float | None = None
        self._wake_changed = asyncio.Event()
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._stats: dict[str, int] = {
            "cycles_total": 0,
            "cycles_completed": 0,
            "cycles_partial": 0,
            "cycles_failed": 0,
            "items_failed": 0,
            "drops_detected": 0,
        }

    def request_wake(self, not_before: timedelta) -> None:
        delay = max(not_before.total_seconds(), 0.0)
        self._next_wake_at = self._clock() + delay
        self._wake_changed.set()
        logger.debug("Next wake requested in %.0f seconds", delay)

    @property
    def running(self) -> bool:
        return self._running

    @property
    def next_wake_in(self) -> float | None:
        if self._next_wake_at is None:
            return None
        return max(self._next_wake_at - self._clock(), 0.0)

    async def start(self, run_immediately: bool = False) -> None:
        """Start the background loop."""
        if self._running:
            logger.warning("Scheduler already running")
            return
        if self.handler is None:
            raise RuntimeError("WakeScheduler.start() called without a handler")

        self._running = True
        if self._next_wake_at is None or run_immediately:
            self.request_wake(timedelta(0) if run_immediately else self.default_interval)
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Wake scheduler started")

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        self._running = False
        self._wake_changed.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Wake scheduler stopped")

    async def _run_loop(self) -> None:
        """Main scheduler loop."""
        while self._running:
            await self._sleep_until_due()
            if not self._running:
                break

            self._next_wake_at = None
            self._stats["cycles_total"] += 1
            try:
                if self.handler is None:
                    raise RuntimeError("WakeScheduler has no handler")
                result = await self.handler()
            except Exception as e:
                self._stats["cycles_failed"] += 1
                logger.error(f"Periodic refresh error: {e}", exc_info=True)
            else:
                self._record(result)

            if self._next_wake_at is None:
                # The handler failed before re-arming.
                self.request_wake(self.default_interval)

    async def _sleep_until_due(self) -> None:
        while self._running:
            self._wake_changed.clear()
            if self._next_wake_at is None:
                await self._wake_changed.wait()
                continue
            delay = self._next_wake_at - self._clock()
            if delay <= 0:
                return
            try:
                await asyncio.wait_for(self._wake_changed.wait(), timeout=delay)
            except TimeoutError:
                pass

    def _record(self, result: RunResult) -> None:
        if result.status is RunStatus.CANCELLED_PARTIAL:
            self._stats["cycles_partial"] += 1
        else:
            self._stats["cycles_completed"] += 1
        self._stats["items_failed"] += len(result.failed)
        self._stats["drops_detected"] += len(result.dropped)

    def get_status(self) -> dict[str, bool | float | dict[str, int] | None]:
        """Get scheduler status and statistics."""
        return {
            "running": self.running,
            "next_wake_in": self.next_wake_in,
            "stats": dict(self._stats),
        }


__all__ = ["WakeHandler", "WakeScheduler"]
