"""Single-writer access to the tracked item collection."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Iterable

from price_monitor.core.errors import ItemNotFoundError
from price_monitor.core.models import ExtractedRecord, MonitoredItem
from price_monitor.core.protocols import IItemStore
from price_monitor.tracker.history import AppendOutcome, append_price, create_item, register

logger = logging.getLogger(__name__)


class ItemRepository:
    """Owns the in-memory item collection and serializes every mutation.

    Manual and periodic refreshes share one repository; both must go through
    it so history appends, registration and persistence queue on the same lock
    instead of racing.
    """

    def __init__(self, store: IItemStore) -> None:
        self.store = store
        self._lock = asyncio.Lock()
        self._items: dict[uuid.UUID, MonitoredItem] | None = None

    async def _loaded(self) -> dict[uuid.UUID, MonitoredItem]:
        if self._items is None:
            items = await self.store.fetch_monitored()
            self._items = {item.id: item for item in items}
            logger.debug("Loaded %d tracked items", len(self._items))
        return self._items

    async def list_items(self) -> list[MonitoredItem]:
        """Return tracked items in stable (creation) order."""
        async with self._lock:
            return list((await self._loaded()).values())

    async def get(self, item_id: uuid.UUID) -> MonitoredItem:
        async with self._lock:
            return await self._require(item_id)

    async def add(
        self, url: str, record: ExtractedRecord, target_price: float | None = None
    ) -> MonitoredItem:
        """Register and insert a new item.

        Raises:
            DuplicateProductError: If the URL is already tracked.
        """
        async with self._lock:
            items = await self._loaded()
            register(url, items.values())
            item = create_item(url, record, target_price=target_price)
            await self.store.insert(item)
            items[item.id] = item
            logger.info("Tracking %s", item.name, extra={"item_id": str(item.id), "url": url})
            return item

    async def apply(
        self, item: MonitoredItem, price: float, image_url: str | None = None
    ) -> AppendOutcome | None:
        """Record a refreshed price, or return None if the item was removed meanwhile."""
        async with self._lock:
            if not self._is_tracked(await self._loaded(), item):
                logger.info("Skipping refresh of removed item %s", item.id)
                return None
            return append_price(item, price, image_url)

    async def persist(self, items: Iterable[MonitoredItem] | None = None) -> None:
        async with self._lock:
            tracked = await self._loaded()
            if items is None:
                batch = list(tracked.values())
            else:
                batch = [item for item in items if self._is_tracked(tracked, item)]
            if batch:
                await self.store.save(batch)

    async def remove(self, item_id: uuid.UUID) -> None:
        async with self._lock:
            items = await self._loaded()
            if item_id not in items:
                raise ItemNotFoundError(f"No tracked item {item_id}")
            await self.store.delete(item_id)
            del items[item_id]

    async def set_target_price(self, item_id: uuid.UUID, target_price: float | None) -> MonitoredItem:
        async with self._lock:
            item = await self._require(item_id)
            item.target_price = target_price
            await self.store.save([item])
            return item

    async def set_monitoring(self, item_id: uuid.UUID, enabled: bool) -> MonitoredItem:
        async with self._lock:
            item = await self._require(item_id)
            item.is_monitoring = enabled
            await self.store.save([item])
            return item

    @staticmethod
    def _is_tracked(items: dict[uuid.UUID, MonitoredItem], item: MonitoredItem) -> bool:
        return items.get(item.id) is item

    async def _require(self, item_id: uuid.UUID) -> MonitoredItem:
        items = await self._loaded()
        try:
            return items[item_id]
        except KeyError:
            raise ItemNotFoundError(f"No tracked item {item_id}") from None


__all__ = ["ItemRepository"]
