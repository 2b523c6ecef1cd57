"""Price history operations and derived metrics for monitored items."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from price_monitor.core.errors import DuplicateProductError
from price_monitor.core.models import ExtractedRecord, MonitoredItem, PricePoint, utc_now

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class AppendOutcome:
    """Result of feeding a fresh price into an item's history."""

    changed: bool
    dropped: bool
    previous_price: float
    new_price: float


def normalize_url(url: str) -> str:
    """Uniqueness key for tracked URLs."""
    return url.strip().casefold()


def register(new_url: str, existing: Iterable[MonitoredItem]) -> None:
    """Refuse a URL that is already tracked.

    Raises:
        DuplicateProductError: If the normalized URL matches an existing item.
    """
    key = normalize_url(new_url)
    for item in existing:
        if normalize_url(item.source_url) == key:
            raise DuplicateProductError(new_url)


def create_item(
    url: str,
    record: ExtractedRecord,
    *,
    target_price: float | None = None,
    now: datetime | None = None,
) -> MonitoredItem:
    """Build a new item whose history is seeded with the extracted price."""
    timestamp = now or utc_now()
    return MonitoredItem(
        source_url=url.strip(),
        name=record.name,
        image_url=record.image_url,
        currency=record.currency,
        initial_price=record.price,
        current_price=record.price,
        target_price=target_price,
        last_checked_at=timestamp,
        created_at=timestamp,
        price_history=[PricePoint(price=record.price, observed_at=timestamp)],
    )


def append_price(
    item: MonitoredItem,
    price: float,
    image_url: str | None = None,
    now: datetime | None = None,
) -> AppendOutcome:
    """Record a refreshed price on ``item`` in place.

    An unchanged price only advances ``last_checked_at``. A changed price appends
    a history point, becomes ``current_price`` and replaces the image when a new
    one is given. The caller decides whether to notify on a drop.
    """
    timestamp = now or utc_now()
    previous = item.current_price
    last_observed = item.price_history[-1].observed_at
    if timestamp < last_observed:
        # Clock went backwards; keep the series ordered.
        timestamp = last_observed

    if price == previous:
        item.last_checked_at = timestamp
        return AppendOutcome(changed=False, dropped=False, previous_price=previous, new_price=price)

    item.price_history.append(PricePoint(price=price, observed_at=timestamp))
    item.current_price = price
    item.last_checked_at = timestamp
    if image_url:
        item.image_url = image_url

    dropped = price < previous
    logger.info(
        "Price changed for %s: %.2f -> %.2f",
        item.name,
        previous,
        price,
        extra={"item_id": str(item.id), "dropped": dropped},
    )
    return AppendOutcome(changed=True, dropped=dropped, previous_price=previous, new_price=price)


def percent_change(item: MonitoredItem) -> float:
    """Change since tracking began, in percent of the baseline."""
    if item.initial_price == 0:
        return 0.0
    return (item.current_price - item.initial_price) * 100 / item.initial_price


def absolute_change(item: MonitoredItem) -> float:
    return item.current_price - item.initial_price


def is_below_target(item: MonitoredItem) -> bool:
    return item.target_price is not None and item.current_price <= item.target_price


__all__ = [
    "AppendOutcome",
    "absolute_change",
    "append_price",
    "create_item",
    "is_below_target",
    "normalize_url",
    "percent_change",
    "register",
]
