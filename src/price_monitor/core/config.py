"""Configuration management for the price monitor."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, ClassVar, Literal

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

# Ensure .env values are loaded before settings initialisation.
load_dotenv()

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    ENV_PREFIX: ClassVar[str] = "PRICE_MONITOR_"

    model_config = ConfigDict(extra="ignore")

    app_name: str = Field(default="Price Monitor", description="Human friendly service name.")
    environment: Literal["development", "production", "test"] = Field(
        default="development",
        description="Runtime environment used for logging and diagnostics.",
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///data/price_monitor.sqlite",
        description="SQLAlchemy async URL of the item store.",
    )

    page_loader: Literal["browser", "http"] = Field(
        default="browser",
        description="Render pages in a headless browser or fetch the raw HTML over HTTP.",
    )
    navigation_timeout: float = Field(
        default=20.0,
        description="Seconds to wait for navigation before extracting from the partial DOM.",
    )
    settle_delay: float = Field(
        default=5.0,
        description="Seconds to let client-side rendering populate the page after load.",
    )
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User agent sent by loaders.")
    accept_language: str = Field(
        default="en-US,en;q=0.9", description="Accept-Language header sent by loaders."
    )

    home_currency: str = Field(
        default="BRL", description="Currency assumed when a page does not declare one."
    )
    asset_domain_pattern: str = Field(
        default=r"static\.zara\.net",
        description="Regex matched against image sources to find product photos.",
    )

    wake_interval_seconds: int = Field(
        default=60 * 60,
        description="Minimum delay requested from the scheduler between periodic cycles.",
    )
    cycle_time_budget: float | None = Field(
        default=300.0,
        description="Seconds a periodic cycle may run before it expires. None disables.",
    )

    resend_api_key: str | None = Field(
        default=None, description="Resend API key. Drop alerts are only logged when unset."
    )
    notify_from_email: str = Field(
        default="alerts@price-monitor.local", description="Sender address for drop alerts."
    )
    notify_to_email: str | None = Field(default=None, description="Recipient of drop alerts.")

    log_level: str = Field(default="INFO", description="Python logging level.")
    log_format: Literal["json", "text"] = Field(default="text", description="Log output format.")

    def __init__(self, **data: Any) -> None:  # noqa: D401 - inherited docstring
        env_values = type(self)._load_environment_values()
        env_values.update(data)
        super().__init__(**env_values)

    @classmethod
    def _load_environment_values(cls) -> dict[str, Any]:
        """Return field values sourced from the current environment."""

        values: dict[str, Any] = {}
        for field_name in cls.model_fields:
            env_key = f"{cls.ENV_PREFIX}{field_name.upper()}"
            if env_key in os.environ:
                values[field_name] = os.environ[env_key]
        return values


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a singleton instance of :class:`Settings`."""

    return Settings()


__all__ = ["Settings", "get_settings"]
