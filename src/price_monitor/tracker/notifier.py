"""Price drop notifications."""

import html
import logging

import httpx

from price_monitor.core.config import Settings
from price_monitor.core.protocols import INotifier
from price_monitor.tracker.parser import format_price

logger = logging.getLogger(__name__)

ALERT_TITLE = "Price Drop Alert!"


def alert_message(item_name: str, old_price: float, new_price: float) -> str:
    return f"{item_name} dropped from {format_price(old_price)} to {format_price(new_price)}!"


class LogNotifier:
    """Write drop alerts to the log. Used when no email transport is configured."""

    async def notify(self, item_name: str, old_price: float, new_price: float) -> bool:
        logger.warning(
            "%s %s",
            ALERT_TITLE,
            alert_message(item_name, old_price, new_price),
            extra={"item_name": item_name, "old_price": old_price, "new_price": new_price},
        )
        return True


class EmailNotifier:
    """Send drop alerts via the Resend email API."""

    RESEND_API_URL = "https://api.resend.com/emails"

    def __init__(self, api_key: str, from_email: str, to_email: str, currency: str = "BRL") -> None:
        self.api_key = api_key
        self.from_email = from_email
        self.to_email = to_email
        self.currency = currency

    async def notify(self, item_name: str, old_price: float, new_price: float) -> bool:
        subject = f"{ALERT_TITLE} {item_name}"
        html_body = self._build_alert_html(item_name, old_price, new_price)
        return await self._send_email(self.to_email, subject, html_body)

    def _build_alert_html(self, item_name: str, old_price: float, new_price: float) -> str:
        """Build HTML for price drop email."""
        name = html.escape(item_name)
        saved = format_price(old_price - new_price)
        return f"""
        <!DOCTYPE html>
        <html lang="pt-BR">
        <head><meta charset="UTF-8"></head>
        <body style="font-family: Arial, sans-serif; max-width: 600px;
                     margin: 0 auto; padding: 20px;">
            <h2 style="color: #111;">{ALERT_TITLE}</h2>
            <p>{html.escape(alert_message(item_name, old_price, new_price))}</p>

            <table style="width: 100%; border-collapse: collapse; margin: 20px 0;">
                <tr>
                    <td style="padding: 8px; border-bottom: 1px solid #eee;">Product:</td>
                    <td style="padding: 8px; border-bottom: 1px solid #eee;">{name}</td>
                </tr>
                <tr>
                    <td style="padding: 8px; border-bottom: 1px solid #eee;">Previous price:</td>
                    <td style="padding: 8px; border-bottom: 1px solid #eee;">
                        <s>{self.currency} {format_price(old_price)}</s>
                    </td>
                </tr>
                <tr>
                    <td style="padding: 8px; border-bottom: 1px solid #eee;">New price:</td>
                    <td style="padding: 8px; border-bottom: 1px solid #eee; font-size: 1.2em;">
                        <strong>{self.currency} {format_price(new_price)}</strong>
                    </td>
                </tr>
                <tr>
                    <td style="padding: 8px; border-bottom: 1px solid #eee;">You save:</td>
                    <td style="padding: 8px; border-bottom: 1px solid #eee;">
                        {self.currency} {saved}
                    </td>
                </tr>
            </table>

            <hr style="margin-top: 30px; border: none; border-top: 1px solid #eee;">
            <p style="color: #666; font-size: 0.9em;">
                Sent by Price Monitor because you track this product.
            </p>
        </body>
        </html>
        """

    async def _send_email(self, to_email: str, subject: str, html_body: str) -> bool:
        """Send email via Resend API."""
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.RESEND_API_URL,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "from": self.from_email,
                        "to": [to_email],
                        "subject": subject,
                        "html": html_body,
                    },
                    timeout=30.0,
                )

                if response.status_code == 200:
                    logger.info("Drop alert sent to %s", to_email)
                    return True
                logger.error(
                    "Failed to send drop alert: %s - %s", response.status_code, response.text
                )
                return False

        except httpx.HTTPError as e:
            logger.error("Drop alert send error: %s", e)
            return False


def build_notifier(settings: Settings) -> INotifier:
    if settings.resend_api_key and settings.notify_to_email:
        return EmailNotifier(
            api_key=settings.resend_api_key,
            from_email=settings.notify_from_email,
            to_email=settings.notify_to_email,
            currency=settings.home_currency,
        )
    return LogNotifier()


__all__ = ["ALERT_TITLE", "EmailNotifier", "LogNotifier", "alert_message", "build_notifier"]
