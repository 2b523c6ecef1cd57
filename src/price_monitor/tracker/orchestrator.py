"""Refresh cycles: fetch, diff, append, persist and notify."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable, Iterable
from datetime import timedelta

from price_monitor.core.errors import ErrorKind, FetchTimeoutError, ParsingError, ScraperError
from price_monitor.core.models import (
    ExtractedRecord,
    FailedItem,
    MonitoredItem,
    PriceDrop,
    RunResult,
    RunStatus,
)
from price_monitor.core.protocols import INotifier, IPageLoader, IScheduler
from price_monitor.tracker.cancellation import CancellationToken
from price_monitor.tracker.extractors import ExtractionPipeline
from price_monitor.tracker.repository import ItemRepository

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, MonitoredItem], None]


class RefreshOrchestrator:
    """Runs extraction over monitored items and applies the results.

    Items are visited one at a time in input order, never concurrently. A
    failing item is recorded and skipped without aborting the cycle. There are
    no retries within a cycle.
    """

    def __init__(
        self,
        repository: ItemRepository,
        loader: IPageLoader,
        pipeline: ExtractionPipeline,
        notifier: INotifier,
        scheduler: IScheduler | None = None,
        wake_interval: timedelta = timedelta(hours=1),
        cycle_time_budget: float | None = 300.0,
    ) -> None:
        self.repository = repository
        self.loader = loader
        self.pipeline = pipeline
        self.notifier = notifier
        self.scheduler = scheduler
        self.wake_interval = wake_interval
        self.cycle_time_budget = cycle_time_budget
        self.state = RunStatus.IDLE

    async def fetch_one(self, url: str, cancel: CancellationToken | None = None) -> ExtractedRecord:
        """Load a page and extract its product record.

        Raises:
            ScraperError: InvalidURLError, NoDataError or ParsingError from the loader.
        """
        document = await self.loader.load(url, cancel)
        return self.pipeline.extract(document)

    async def refresh(
        self,
        item_id: uuid.UUID | None = None,
        cancel: CancellationToken | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> RunResult:
        """Manual refresh of one item (even if paused) or of every monitored item."""
        if item_id is not None:
            item = await self.repository.get(item_id)
            return await self.run_cycle(
                [item], cancel, respect_monitoring=False, on_progress=on_progress
            )
        items = await self.repository.list_items()
        return await self.run_cycle(items, cancel, on_progress=on_progress)

    async def run_periodic(self, cancel: CancellationToken | None = None) -> RunResult:
        """Entry point for the scheduler's wake signal.

        The next wake is requested before any work starts so a crash mid-cycle
        does not leave the schedule unarmed.
        """
        if self.scheduler is not None:
            self.scheduler.request_wake(self.wake_interval)

        token = cancel or CancellationToken.with_deadline(self.cycle_time_budget)
        try:
            items = await self.repository.list_items()
            return await self.run_cycle(items, token)
        finally:
            if cancel is None:
                token.close()

    async def run_cycle(
        self,
        items: Iterable[MonitoredItem],
        cancel: CancellationToken | None = None,
        *,
        respect_monitoring: bool = True,
        on_progress: ProgressCallback | None = None,
    ) -> RunResult:
        token = cancel or CancellationToken()
        targets = [item for item in items if item.is_monitoring or not respect_monitoring]
        result = RunResult()
        touched: list[MonitoredItem] = []
        drops: list[tuple[MonitoredItem, PriceDrop]] = []
        stopped_early = False

        self.state = RunStatus.RUNNING
        logger.info("Refresh cycle started", extra={"items": len(targets)})

        try:
            for index, item in enumerate(targets):
                if token.cancelled:
                    stopped_early = True
                    logger.info(
                        "Refresh cycle cancelled",
                        extra={"processed": index, "remaining": len(targets) - index},
                    )
                    break

                if on_progress is not None:
                    on_progress(index, len(targets), item)

                try:
                    record = await self._fetch_until_expired(item.source_url, token)
                    if record.price <= 0:
                        raise ParsingError("No price found on page", url=item.source_url)
                except FetchTimeoutError as exc:
                    result.failed.append(FailedItem(item.id, exc.kind, str(exc)))
                    logger.warning(
                        "Refresh cycle expired while fetching %s",
                        item.name,
                        extra={"item_id": str(item.id)},
                    )
                    stopped_early = True
                    break
                except ScraperError as exc:
                    result.failed.append(FailedItem(item.id, exc.kind, str(exc)))
                    logger.warning(
                        "Failed to refresh %s: %s",
                        item.name,
                        exc,
                        extra={"item_id": str(item.id), "kind": exc.kind.value},
                    )
                    continue
                except Exception as exc:
                    result.failed.append(FailedItem(item.id, ErrorKind.NO_DATA, str(exc)))
                    logger.exception(
                        "Unexpected error refreshing %s", item.name, extra={"item_id": str(item.id)}
                    )
                    continue

                outcome = await self.repository.apply(item, record.price, record.image_url)
                if outcome is None:
                    continue
                touched.append(item)
                if outcome.changed:
                    result.updated.append(item.id)
                else:
                    result.unchanged.append(item.id)
                if outcome.dropped:
                    drop = PriceDrop(item.id, outcome.previous_price, outcome.new_price)
                    result.dropped.append(drop)
                    drops.append((item, drop))
        finally:
            if touched:
                await self.repository.persist(touched)

        result.status = RunStatus.CANCELLED_PARTIAL if stopped_early else RunStatus.COMPLETED
        self.state = result.status

        for item, drop in drops:
            await self._notify(item, drop)

        logger.info(
            "Refresh cycle finished",
            extra={
                "status": result.status.value,
                "updated": len(result.updated),
                "unchanged": len(result.unchanged),
                "dropped": len(result.dropped),
                "failed": len(result.failed),
            },
        )
        return result

    async def _fetch_until_expired(self, url: str, token: CancellationToken) -> ExtractedRecord:
        """Run one fetch, abandoning it if the token expires first."""
        fetch = asyncio.create_task(self.fetch_one(url, token))
        expiry = asyncio.create_task(token.wait_expired())
        try:
            done, _ = await asyncio.wait({fetch, expiry}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            fetch.cancel()
            await asyncio.gather(fetch, return_exceptions=True)
            raise
        finally:
            expiry.cancel()

        if fetch in done:
            return fetch.result()

        fetch.cancel()
        try:
            await fetch
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.debug("Abandoned fetch failed", exc_info=True)
        raise FetchTimeoutError("Refresh cycle expired during fetch", url=url)

    async def _notify(self, item: MonitoredItem, drop: PriceDrop) -> None:
        try:
            await self.notifier.notify(item.name, drop.old_price, drop.new_price)
        except Exception:
            logger.exception("Drop notification failed", extra={"item_id": str(item.id)})


__all__ = ["ProgressCallback", "RefreshOrchestrator"]
