"""Tests for drop notifiers."""

import logging

import httpx
import pytest
import respx

from price_monitor.core.config import Settings
from price_monitor.tracker.notifier import (
    ALERT_TITLE,
    EmailNotifier,
    LogNotifier,
    alert_message,
    build_notifier,
)


def _email_notifier() -> EmailNotifier:
    return EmailNotifier(
        api_key="re_test",
        from_email="alerts@example.com",
        to_email="me@example.com",
        currency="BRL",
    )


class TestAlertText:
    """Tests for alert wording."""

    def test_alert_message(self) -> None:
        """Test the message names the item and both prices."""
        assert alert_message("Linen Shirt", 1299.9, 999.0) == (
            "Linen Shirt dropped from 1.299,90 to 999,00!"
        )

    def test_build_alert_html_escapes_and_shows_saving(self) -> None:
        """Test _build_alert_html output."""
        html = _email_notifier()._build_alert_html("Shirt <b>", 100.0, 80.0)

        assert "<!DOCTYPE html>" in html
        assert ALERT_TITLE in html
        assert "Shirt &lt;b&gt;" in html
        assert "Shirt <b>" not in html
        assert "BRL 100,00" in html
        assert "BRL 80,00" in html
        assert "BRL 20,00" in html


class TestLogNotifier:
    """Tests for LogNotifier."""

    @pytest.mark.asyncio
    async def test_logs_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test the alert is written to the log."""
        with caplog.at_level(logging.WARNING, logger="price_monitor.tracker.notifier"):
            assert await LogNotifier().notify("Shirt", 100.0, 80.0) is True

        assert "Shirt dropped from 100,00 to 80,00!" in caplog.text


class TestEmailNotifier:
    """Tests for EmailNotifier."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_sends_via_resend(self) -> None:
        """Test a 200 from Resend counts as delivered."""
        route = respx.post(EmailNotifier.RESEND_API_URL).mock(
            return_value=httpx.Response(200, json={"id": "abc"})
        )

        assert await _email_notifier().notify("Shirt", 100.0, 80.0) is True

        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer re_test"
        body = request.read().decode()
        assert '"to":["me@example.com"]' in body.replace(" ", "")
        assert f"{ALERT_TITLE} Shirt" in body

    @pytest.mark.asyncio
    @respx.mock
    async def test_api_error_returns_false(self) -> None:
        """Test a non-200 response is reported as not delivered."""
        respx.post(EmailNotifier.RESEND_API_URL).mock(
            return_value=httpx.Response(422, json={"message": "invalid"})
        )

        assert await _email_notifier().notify("Shirt", 100.0, 80.0) is False

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_error_returns_false(self) -> None:
        """Test network errors do not propagate."""
        respx.post(EmailNotifier.RESEND_API_URL).mock(side_effect=httpx.ConnectError("down"))

        assert await _email_notifier().notify("Shirt", 100.0, 80.0) is False


class TestBuildNotifier:
    """Tests for build_notifier."""

    def test_defaults_to_log_notifier(self) -> None:
        """Test alerts are only logged without Resend settings."""
        assert isinstance(build_notifier(Settings(resend_api_key=None)), LogNotifier)

    def test_email_when_configured(self) -> None:
        """Test Resend settings select the email notifier."""
        settings = Settings(resend_api_key="re_test", notify_to_email="me@example.com")
        notifier = build_notifier(settings)

        assert isinstance(notifier, EmailNotifier)
        assert notifier.to_email == "me@example.com"

    def test_partial_resend_settings_fall_back_to_log(self) -> None:
        """Test an API key without a recipient does not build an email notifier."""
        settings = Settings(resend_api_key="re_test", notify_to_email="")

        assert isinstance(build_notifier(settings), LogNotifier)
