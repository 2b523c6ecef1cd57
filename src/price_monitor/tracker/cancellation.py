"""Cooperative cancellation for refresh cycles."""

from __future__ import annotations

import asyncio
import contextlib


class CancellationToken:
    """Signal polled by the orchestrator between items.

    ``cancel()`` is a soft stop: the in-flight fetch finishes (its settle wait is
    cut short) and no further items are started. ``expire()`` is a hard stop
    raised by a deadline: the in-flight fetch is abandoned as well.
    """

    def __init__(self) -> None:
        self._cancelled = asyncio.Event()
        self._expired = asyncio.Event()
        self._deadline: asyncio.TimerHandle | None = None

    @classmethod
    def with_deadline(cls, seconds: float | None) -> CancellationToken:
        """Create a token that expires after ``seconds``. Must run inside an event loop."""
        token = cls()
        if seconds is not None:
            loop = asyncio.get_running_loop()
            token._deadline = loop.call_later(seconds, token.expire)
        return token

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self._expired.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def expire(self) -> None:
        self._expired.set()
        self._cancelled.set()

    async def wait(self, timeout: float | None = None) -> bool:
        """Sleep up to ``timeout`` seconds; return True early if cancelled."""
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._cancelled.wait(), timeout=timeout)
        return self.cancelled

    async def wait_expired(self) -> None:
        await self._expired.wait()

    def close(self) -> None:
        """Disarm the deadline timer, if any."""
        if self._deadline is not None:
            self._deadline.cancel()
            self._deadline = None


__all__ = ["CancellationToken"]
