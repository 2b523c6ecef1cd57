"""Base protocol and helpers for field extraction strategies."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from price_monitor.core.protocols import IDocument

logger = logging.getLogger(__name__)

T_co = TypeVar("T_co", covariant=True)
T = TypeVar("T")


@runtime_checkable
class FieldStrategy(Protocol[T_co]):
    """Pure function over a document.

    Returns the field value on success, None to signal fallback to the next strategy.
    """

    def __call__(self, document: IDocument) -> T_co | None: ...


def first_result(
    strategies: Sequence[Callable[[IDocument], T | None]], document: IDocument
) -> T | None:
    """Run strategies in order and return the first non-empty result."""
    for strategy in strategies:
        value = strategy(document)
        if value:
            logger.debug(
                "Strategy %s matched",
                getattr(strategy, "__name__", repr(strategy)),
                extra={"url": document.url},
            )
            return value
    return None


__all__ = ["FieldStrategy", "first_result"]
