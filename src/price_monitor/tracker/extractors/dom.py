"""Extraction strategies that read the visible DOM and page metadata."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from price_monitor.core.protocols import IDocument
from price_monitor.tracker.parser import parse_machine_price, parse_price

logger = logging.getLogger(__name__)

# Known price displays on product pages, most specific first.
PRICE_SELECTORS: tuple[str, ...] = (
    "[data-qa-qualifier='price-amount-current']",
    ".price-current__amount",
    ".product-detail-info__price .money-amount__main",
    ".price__amount--current",
    ".money-amount__main",
    ".price__amount",
    "[itemprop='price']",
)

PRICE_META_KEY = "product:price:amount"
CURRENCY_META_KEYS: tuple[str, ...] = ("product:price:currency", "og:price:currency")

MAX_SCANNED_FRAGMENTS = 500
MAX_FRAGMENT_LENGTH = 40
MAX_PLAUSIBLE_PRICE = 50000.0

# "R$ 1.299,90", "R$129,00", "BRL 89,90"
_CURRENCY_AMOUNT_RE = re.compile(
    r"(?:R\$|BRL)\s*(\d{1,3}(?:\.\d{3})+(?:,\d{1,2})?|\d+(?:,\d{1,2})?)"
)

# " | ZARA Brasil", " - Loja Oficial"
_TITLE_SUFFIX_RE = re.compile(r"\s+[|–—-]\s+[^|–—-]+$")

_EXCLUDED_IMAGE_MARKERS = ("logo", "icon")


def price_from_selectors(
    document: IDocument, selectors: Sequence[str] = PRICE_SELECTORS
) -> float | None:
    for selector in selectors:
        text = document.select_text(selector)
        if not text:
            continue
        price = parse_price(text)
        if price > 0:
            return price
    return None


def price_from_meta(document: IDocument) -> float | None:
    price = parse_machine_price(document.meta(PRICE_META_KEY))
    return price or None


def price_from_text_scan(
    document: IDocument, limit: int = MAX_SCANNED_FRAGMENTS
) -> float | None:
    """Scan short text fragments for a currency-prefixed amount.

    Amounts outside ``0 < price < MAX_PLAUSIBLE_PRICE`` are ignored so SKUs and
    other long numbers are not mistaken for prices.
    """
    for fragment in document.text_fragments(limit):
        if len(fragment) > MAX_FRAGMENT_LENGTH:
            continue
        match = _CURRENCY_AMOUNT_RE.search(fragment)
        if not match:
            continue
        price = parse_price(match.group(1))
        if 0 < price < MAX_PLAUSIBLE_PRICE:
            return price
    return None


def name_from_heading(document: IDocument) -> str | None:
    return document.select_text("h1")


def name_from_social_title(document: IDocument) -> str | None:
    return document.meta("og:title")


def name_from_title(document: IDocument) -> str | None:
    title = document.title()
    if not title:
        return None
    stripped = _TITLE_SUFFIX_RE.sub("", title).strip()
    return stripped or None


def image_from_social_meta(document: IDocument) -> str | None:
    return document.meta("og:image")


def image_from_content(document: IDocument, asset_pattern: str) -> str | None:
    """Return the first product photo served from the store's asset domain."""
    pattern = re.compile(asset_pattern)
    for image in document.images():
        if not pattern.search(image.src):
            continue
        haystack = f"{image.src} {image.alt} {image.css_class}".lower()
        if any(marker in haystack for marker in _EXCLUDED_IMAGE_MARKERS):
            continue
        return image.src
    return None


def currency_from_meta(document: IDocument) -> str | None:
    for key in CURRENCY_META_KEYS:
        value = document.meta(key)
        if value:
            return value.upper()
    return None


__all__ = [
    "MAX_PLAUSIBLE_PRICE",
    "MAX_SCANNED_FRAGMENTS",
    "PRICE_SELECTORS",
    "currency_from_meta",
    "image_from_content",
    "image_from_social_meta",
    "name_from_heading",
    "name_from_social_title",
    "name_from_title",
    "price_from_meta",
    "price_from_selectors",
    "price_from_text_scan",
]
