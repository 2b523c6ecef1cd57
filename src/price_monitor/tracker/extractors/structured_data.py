"""schema.org Product extraction from embedded JSON-LD blocks."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from price_monitor.core.protocols import IDocument
from price_monitor.tracker.parser import parse_machine_price

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class OfferPrice:
    price: float
    currency: str | None = None


def _is_product(node: dict[str, Any]) -> bool:
    kind = node.get("@type")
    if isinstance(kind, list):
        return "Product" in kind
    return kind == "Product"


def _walk(node: Any) -> Iterator[dict[str, Any]]:
    if isinstance(node, list):
        for entry in node:
            yield from _walk(entry)
    elif isinstance(node, dict):
        if _is_product(node):
            yield node
        graph = node.get("@graph")
        if graph is not None:
            yield from _walk(graph)


def product_blocks(document: IDocument) -> list[dict[str, Any]]:
    """Decode every JSON-LD block and return the ``Product`` nodes in page order.

    Blocks that fail to decode are skipped.
    """
    products: list[dict[str, Any]] = []
    for raw in document.structured_data():
        try:
            data = json.loads(raw)
        except ValueError:
            logger.debug("Skipping undecodable JSON-LD block", extra={"url": document.url})
            continue
        products.extend(_walk(data))
    return products


def name_from_structured_data(document: IDocument) -> str | None:
    for product in product_blocks(document):
        name = product.get("name")
        if isinstance(name, str) and name.strip():
            return name.strip()
    return None


def image_from_structured_data(document: IDocument) -> str | None:
    for product in product_blocks(document):
        image = product.get("image")
        if isinstance(image, list):
            image = image[0] if image else None
        if isinstance(image, dict):
            image = image.get("url") or image.get("contentUrl")
        if isinstance(image, str) and image.strip():
            return image.strip()
    return None


def _offer_entries(offers: Any) -> list[dict[str, Any]]:
    if isinstance(offers, dict):
        return [offers]
    if isinstance(offers, list):
        return [entry for entry in offers if isinstance(entry, dict)]
    return []


def offer_from_structured_data(document: IDocument) -> OfferPrice | None:
    """Return the first strictly positive offer price with its declared currency.

    Supports a single AggregateOffer (``lowPrice`` then ``price``), a single Offer
    (``price``) and lists of either.
    """
    for product in product_blocks(document):
        for offer in _offer_entries(product.get("offers")):
            for key in ("lowPrice", "price"):
                price = parse_machine_price(offer.get(key))
                if price > 0:
                    currency = offer.get("priceCurrency")
                    if not isinstance(currency, str) or not currency.strip():
                        currency = None
                    return OfferPrice(price=price, currency=currency.strip() if currency else None)
    return None


__all__ = [
    "OfferPrice",
    "image_from_structured_data",
    "name_from_structured_data",
    "offer_from_structured_data",
    "product_blocks",
]
