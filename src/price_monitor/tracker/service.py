"""Price monitor service: wires the store, loader, pipeline and orchestrator."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncEngine

from price_monitor.core.config import Settings
from price_monitor.core.errors import ParsingError
from price_monitor.core.models import ExtractedRecord, MonitoredItem, RunResult
from price_monitor.core.protocols import INotifier, IPageLoader
from price_monitor.storage import SqlItemStore, create_engine, create_session_factory, init_models
from price_monitor.tracker.cancellation import CancellationToken
from price_monitor.tracker.extractors import ExtractionPipeline
from price_monitor.tracker.loader import build_page_loader, is_product_page, validate_url
from price_monitor.tracker.notifier import build_notifier
from price_monitor.tracker.orchestrator import ProgressCallback, RefreshOrchestrator
from price_monitor.tracker.repository import ItemRepository
from price_monitor.tracker.scheduler import WakeScheduler

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TrackResult:
    item: MonitoredItem
    looks_like_product_page: bool


class PriceMonitorService:
    """Operations exposed to the CLI.

    Handles previews, tracking, user edits and manual refreshes. Every mutation
    goes through the shared :class:`ItemRepository`.
    """

    def __init__(
        self,
        repository: ItemRepository,
        orchestrator: RefreshOrchestrator,
        scheduler: WakeScheduler | None = None,
        engine: AsyncEngine | None = None,
    ) -> None:
        self.repository = repository
        self.orchestrator = orchestrator
        self.scheduler = scheduler
        self._engine = engine

    async def aclose(self) -> None:
        """Stop the scheduler and release database connections."""
        if self.scheduler is not None and self.scheduler.running:
            await self.scheduler.stop()
        if self._engine is not None:
            await self._engine.dispose()

    async def preview(self, url: str) -> ExtractedRecord:
        """Fetch and extract a page without tracking it."""
        return await self.orchestrator.fetch_one(url)

    async def track(self, url: str, target_price: float | None = None) -> TrackResult:
        """Start tracking a product page.

        Raises:
            ScraperError: If the page cannot be loaded or carries no price.
            DuplicateProductError: If the URL is already tracked.
        """
        target = validate_url(url)
        record = await self.orchestrator.fetch_one(target)
        if record.price <= 0:
            raise ParsingError("No price found on page", url=target)
        item = await self.repository.add(target, record, target_price=target_price)
        return TrackResult(item=item, looks_like_product_page=is_product_page(target))

    async def list_items(self) -> list[MonitoredItem]:
        return await self.repository.list_items()

    async def get_item(self, item_id: uuid.UUID) -> MonitoredItem:
        return await self.repository.get(item_id)

    async def remove(self, item_id: uuid.UUID) -> None:
        await self.repository.remove(item_id)

    async def set_target_price(self, item_id: uuid.UUID, price: float | None) -> MonitoredItem:
        return await self.repository.set_target_price(item_id, price)

    async def set_monitoring(self, item_id: uuid.UUID, enabled: bool) -> MonitoredItem:
        return await self.repository.set_monitoring(item_id, enabled)

    async def refresh(
        self,
        item_id: uuid.UUID | None = None,
        cancel: CancellationToken | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> RunResult:
        return await self.orchestrator.refresh(item_id, cancel=cancel, on_progress=on_progress)


async def build_service(
    settings: Settings,
    *,
    loader: IPageLoader | None = None,
    notifier: INotifier | None = None,
    engine: AsyncEngine | None = None,
) -> PriceMonitorService:
    """Assemble a service from settings, creating tables if needed."""
    engine = engine or create_engine(settings.database_url)
    await init_models(engine)
    repository = ItemRepository(SqlItemStore(create_session_factory(engine)))

    wake_interval = timedelta(seconds=settings.wake_interval_seconds)
    scheduler = WakeScheduler(default_interval=wake_interval)
    orchestrator = RefreshOrchestrator(
        repository=repository,
        loader=loader or build_page_loader(settings),
        pipeline=ExtractionPipeline(
            home_currency=settings.home_currency,
            asset_domain_pattern=settings.asset_domain_pattern,
        ),
        notifier=notifier or build_notifier(settings),
        scheduler=scheduler,
        wake_interval=wake_interval,
        cycle_time_budget=settings.cycle_time_budget,
    )
    scheduler.handler = orchestrator.run_periodic
    logger.debug("Price monitor service ready", extra={"database": settings.database_url})
    return PriceMonitorService(repository, orchestrator, scheduler, engine)


__all__ = ["PriceMonitorService", "TrackResult", "build_service"]
