"""SQLAlchemy implementation of the item store."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from price_monitor.core.errors import DuplicateProductError
from price_monitor.core.models import MonitoredItem, PricePoint
from price_monitor.storage.models import MonitoredItemRow, PricePointRow
from price_monitor.tracker.history import normalize_url

logger = logging.getLogger(__name__)


def _aware(value: datetime) -> datetime:
    """SQLite drops tzinfo; every stored timestamp is UTC."""
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _to_model(row: MonitoredItemRow) -> MonitoredItem:
    return MonitoredItem(
        id=row.id,
        source_url=row.source_url,
        name=row.name,
        image_url=row.image_url,
        currency=row.currency,
        initial_price=row.initial_price,
        current_price=row.current_price,
        target_price=row.target_price,
        is_monitoring=row.is_monitoring,
        last_checked_at=_aware(row.last_checked_at),
        created_at=_aware(row.created_at),
        price_history=[
            PricePoint(price=point.price, observed_at=_aware(point.observed_at))
            for point in row.price_points
        ],
    )


def _copy_fields(item: MonitoredItem, row: MonitoredItemRow) -> None:
    row.source_url = item.source_url
    row.normalized_url = normalize_url(item.source_url)
    row.name = item.name
    row.image_url = item.image_url
    row.currency = item.currency
    row.initial_price = item.initial_price
    row.current_price = item.current_price
    row.target_price = item.target_price
    row.is_monitoring = item.is_monitoring
    row.last_checked_at = item.last_checked_at


def _append_new_points(item: MonitoredItem, row: MonitoredItemRow) -> int:
    stored = len(row.price_points)
    for position, point in enumerate(item.price_history[stored:], start=stored):
        row.price_points.append(
            PricePointRow(position=position, price=point.price, observed_at=point.observed_at)
        )
    return len(item.price_history) - stored


def _to_row(item: MonitoredItem) -> MonitoredItemRow:
    row = MonitoredItemRow(id=item.id, created_at=item.created_at, price_points=[])
    _copy_fields(item, row)
    _append_new_points(item, row)
    return row


class SqlItemStore:
    """Item store backed by an async SQLAlchemy session factory.

    ``save`` writes every item of the batch in a single transaction and only
    ever inserts history points beyond those already stored.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def fetch_monitored(self) -> list[MonitoredItem]:
        async with self.session_factory() as session:
            stmt = (
                select(MonitoredItemRow)
                .options(selectinload(MonitoredItemRow.price_points))
                .order_by(MonitoredItemRow.created_at)
            )
            result = await session.execute(stmt)
            return [_to_model(row) for row in result.scalars().all()]

    async def insert(self, item: MonitoredItem) -> None:
        async with self.session_factory() as session:
            session.add(_to_row(item))
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise DuplicateProductError(item.source_url) from e
        logger.debug("Inserted item %s", item.id)

    async def save(self, items: Iterable[MonitoredItem]) -> None:
        async with self.session_factory() as session:
            try:
                appended = 0
                for item in items:
                    row = await session.get(
                        MonitoredItemRow,
                        item.id,
                        options=[selectinload(MonitoredItemRow.price_points)],
                    )
                    if row is None:
                        logger.warning("Skipping save for unknown item %s", item.id)
                        continue
                    _copy_fields(item, row)
                    appended += _append_new_points(item, row)
                await session.commit()
            except Exception:
                await session.rollback()
                logger.exception("Failed to save tracked items")
                raise
        logger.debug("Saved items, %d new price points", appended)

    async def delete(self, item_id: uuid.UUID) -> None:
        async with self.session_factory() as session:
            row = await session.get(
                MonitoredItemRow,
                item_id,
                options=[selectinload(MonitoredItemRow.price_points)],
            )
            if row is None:
                logger.warning("Delete requested for unknown item %s", item_id)
                return
            await session.delete(row)
            await session.commit()


__all__ = ["SqlItemStore"]
