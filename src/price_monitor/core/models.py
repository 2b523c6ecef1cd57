"""Domain models for tracked products and refresh results."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from .errors import ErrorKind


def utc_now() -> datetime:
    """Return an aware UTC timestamp."""
    return datetime.now(UTC)


class PricePoint(BaseModel):
    """A single price observation."""

    price: float = Field(description="Observed price in the item currency.")
    observed_at: datetime = Field(description="When the price was observed.")


class MonitoredItem(BaseModel):
    """A product whose page is refreshed periodically.

    ``price_history`` is append-only and never empty; ``current_price`` mirrors its
    last entry. Mutate prices through :func:`price_monitor.tracker.history.append_price`.
    """

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    source_url: str = Field(description="Product page that is fetched on refresh.")
    name: str = Field(default="Unknown Product")
    image_url: str | None = None
    currency: str = Field(default="BRL")
    initial_price: float = Field(description="Baseline captured when tracking began.")
    current_price: float
    target_price: float | None = Field(
        default=None, description="Optional user threshold, display only."
    )
    is_monitoring: bool = True
    last_checked_at: datetime = Field(default_factory=utc_now)
    created_at: datetime = Field(default_factory=utc_now)
    price_history: list[PricePoint] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_history(self) -> MonitoredItem:
        if not self.price_history:
            raise ValueError("price_history must contain at least one point")
        previous = self.price_history[0].observed_at
        for point in self.price_history[1:]:
            if point.observed_at < previous:
                raise ValueError("price_history must be ordered by observed_at")
            previous = point.observed_at
        if self.current_price != self.price_history[-1].price:
            raise ValueError("current_price must equal the latest history price")
        return self


@dataclass(slots=True)
class ExtractedRecord:
    """Product data pulled from one page load. Never persisted."""

    name: str
    price: float
    currency: str
    image_url: str | None = None


class RunStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED_PARTIAL = "cancelled_partial"


@dataclass(slots=True, frozen=True)
class PriceDrop:
    item_id: uuid.UUID
    old_price: float
    new_price: float


@dataclass(slots=True, frozen=True)
class FailedItem:
    item_id: uuid.UUID
    kind: ErrorKind
    message: str = ""


@dataclass(slots=True)
class RunResult:
    """Outcome of one refresh cycle."""

    status: RunStatus = RunStatus.RUNNING
    updated: list[uuid.UUID] = field(default_factory=list)
    unchanged: list[uuid.UUID] = field(default_factory=list)
    dropped: list[PriceDrop] = field(default_factory=list)
    failed: list[FailedItem] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.updated) + len(self.unchanged) + len(self.failed)


__all__ = [
    "ExtractedRecord",
    "FailedItem",
    "MonitoredItem",
    "PriceDrop",
    "PricePoint",
    "RunResult",
    "RunStatus",
    "utc_now",
]
