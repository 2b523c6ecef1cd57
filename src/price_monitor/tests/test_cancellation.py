"""Tests for CancellationToken."""

import asyncio

import pytest

from price_monitor.tracker.cancellation import CancellationToken


class TestCancellationToken:
    """Tests for CancellationToken."""

    @pytest.mark.asyncio
    async def test_cancel_is_soft(self) -> None:
        """Test cancel() does not mark the token expired."""
        token = CancellationToken()
        token.cancel()

        assert token.cancelled is True
        assert token.expired is False

    @pytest.mark.asyncio
    async def test_expire_implies_cancel(self) -> None:
        """Test a hard stop also stops further items."""
        token = CancellationToken()
        token.expire()

        assert token.cancelled is True
        assert token.expired is True

    @pytest.mark.asyncio
    async def test_wait_returns_early_on_cancel(self) -> None:
        """Test the settle wait is cut short by cancellation."""
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)

        assert await asyncio.wait_for(token.wait(10), timeout=1) is True

    @pytest.mark.asyncio
    async def test_wait_times_out(self) -> None:
        """Test wait returns False when nothing happens."""
        assert await CancellationToken().wait(0.01) is False

    @pytest.mark.asyncio
    async def test_deadline_expires(self) -> None:
        """Test with_deadline expires the token."""
        token = CancellationToken.with_deadline(0.01)

        await asyncio.wait_for(token.wait_expired(), timeout=1)

        assert token.expired is True

    @pytest.mark.asyncio
    async def test_close_disarms_deadline(self) -> None:
        """Test a closed token never expires."""
        token = CancellationToken.with_deadline(0.01)
        token.close()
        await asyncio.sleep(0.03)

        assert token.expired is False

    @pytest.mark.asyncio
    async def test_no_deadline(self) -> None:
        """Test a None budget never arms a timer."""
        token = CancellationToken.with_deadline(None)
        await asyncio.sleep(0.01)
        assert token.expired is False
