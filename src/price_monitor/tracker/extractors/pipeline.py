"""Ordered fallback extraction of a product record from a rendered page."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from functools import partial

from price_monitor.core.models import ExtractedRecord
from price_monitor.core.protocols import IDocument
from price_monitor.tracker.extractors.base import first_result
from price_monitor.tracker.extractors.dom import (
    PRICE_SELECTORS,
    currency_from_meta,
    image_from_content,
    image_from_social_meta,
    name_from_heading,
    name_from_social_title,
    name_from_title,
    price_from_meta,
    price_from_selectors,
    price_from_text_scan,
)
from price_monitor.tracker.extractors.structured_data import (
    image_from_structured_data,
    name_from_structured_data,
    offer_from_structured_data,
)

logger = logging.getLogger(__name__)

DEFAULT_NAME = "Unknown Product"


class ExtractionPipeline:
    """Build an :class:`ExtractedRecord` from whatever signals a page offers.

    Each field is resolved independently by its own strategy chain; the first
    strategy that yields a value wins. Missing fields fall back to defaults, so
    ``extract`` never raises for a loaded document.
    """

    def __init__(
        self,
        home_currency: str = "BRL",
        asset_domain_pattern: str = r"static\.zara\.net",
        price_selectors: Sequence[str] = PRICE_SELECTORS,
    ) -> None:
        self.home_currency = home_currency
        self.name_strategies: list[Callable[[IDocument], str | None]] = [
            name_from_structured_data,
            name_from_heading,
            name_from_social_title,
            name_from_title,
        ]
        self.image_strategies: list[Callable[[IDocument], str | None]] = [
            image_from_structured_data,
            image_from_social_meta,
            partial(image_from_content, asset_pattern=asset_domain_pattern),
        ]
        # Structured data is handled separately because it also carries the currency.
        self.price_strategies: list[Callable[[IDocument], float | None]] = [
            partial(price_from_selectors, selectors=tuple(price_selectors)),
            price_from_meta,
            price_from_text_scan,
        ]

    def extract(self, document: IDocument) -> ExtractedRecord:
        currency = self.home_currency
        price: float | None = None

        offer = offer_from_structured_data(document)
        if offer is not None:
            price = offer.price
            if offer.currency:
                currency = offer.currency
        else:
            price = first_result(self.price_strategies, document)

        if currency == self.home_currency:
            currency = currency_from_meta(document) or currency

        name = first_result(self.name_strategies, document) or DEFAULT_NAME
        image_url = first_result(self.image_strategies, document)

        if not price:
            logger.warning("No price found on page", extra={"url": document.url})

        record = ExtractedRecord(
            name=name,
            price=price or 0.0,
            currency=currency,
            image_url=image_url,
        )
        logger.debug(
            "Extracted %s at %s %.2f",
            record.name,
            record.currency,
            record.price,
            extra={"url": document.url},
        )
        return record


__all__ = ["DEFAULT_NAME", "ExtractionPipeline"]
