"""Protocols for the collaborators the refresh engine depends on."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from price_monitor.core.models import MonitoredItem
    from price_monitor.tracker.cancellation import CancellationToken


@dataclass(slots=True, frozen=True)
class ImageRef:
    """An ``<img>`` element as seen by the extraction strategies."""

    src: str
    alt: str = ""
    css_class: str = ""


@runtime_checkable
class IDocument(Protocol):
    """Query surface over a rendered product page."""

    url: str

    def structured_data(self) -> list[str]:
        """Return the raw text of every embedded JSON-LD block."""
        ...

    def select_text(self, selector: str) -> str | None:
        """Return the stripped text of the first element matching a CSS selector."""
        ...

    def meta(self, key: str) -> str | None:
        """Return the ``content`` of a meta tag keyed by ``property``, ``name`` or ``itemprop``."""
        ...

    def title(self) -> str | None: ...

    def images(self) -> Sequence[ImageRef]: ...

    def text_fragments(self, limit: int) -> Iterator[str]:
        """Yield stripped text from at most ``limit`` text-bearing elements."""
        ...


@runtime_checkable
class IPageLoader(Protocol):
    """Loads a product page into an :class:`IDocument`.

    Raises InvalidURLError, NoDataError or ParsingError. A navigation timeout
    is not an error: the document reflects whatever rendered in time.
    """

    async def load(self, url: str, cancel: CancellationToken | None = None) -> IDocument: ...


@runtime_checkable
class IItemStore(Protocol):
    """Durable storage of tracked items. One ``save`` call is atomic."""

    async def fetch_monitored(self) -> list[MonitoredItem]:
        """Return every tracked item, oldest first."""
        ...

    async def save(self, items: Iterable[MonitoredItem]) -> None:
        """Update stored items. Items that are not stored are skipped."""
        ...

    async def insert(self, item: MonitoredItem) -> None: ...

    async def delete(self, item_id: uuid.UUID) -> None: ...


@runtime_checkable
class INotifier(Protocol):
    """Delivers price drop alerts. Fire-and-forget."""

    async def notify(self, item_name: str, old_price: float, new_price: float) -> bool: ...


@runtime_checkable
class IScheduler(Protocol):
    """External wake trigger. A wake never happens before ``not_before`` elapses."""

    def request_wake(self, not_before: timedelta) -> None: ...


__all__ = ["IDocument", "IItemStore", "INotifier", "IPageLoader", "IScheduler", "ImageRef"]
