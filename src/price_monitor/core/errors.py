"""Error taxonomy shared by loaders, the orchestrator and the repository."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_URL = "invalid_url"
    NO_DATA = "no_data"
    PARSING_ERROR = "parsing_error"
    TIMEOUT = "timeout"
    DUPLICATE_PRODUCT = "duplicate_product"


class ScraperError(Exception):
    """Base class for failures while fetching or extracting a product page."""

    kind: ErrorKind = ErrorKind.NO_DATA

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class InvalidURLError(ScraperError):
    """The URL cannot be loaded at all; raised before any network activity."""

    kind = ErrorKind.INVALID_URL


class NoDataError(ScraperError):
    """The page was unreachable or answered with a non-success status."""

    kind = ErrorKind.NO_DATA


class ParsingError(ScraperError):
    """The page loaded but yielded no decodable product data."""

    kind = ErrorKind.PARSING_ERROR


class FetchTimeoutError(ScraperError):
    """The fetch was abandoned because the refresh cycle expired."""

    kind = ErrorKind.TIMEOUT


class DuplicateProductError(Exception):
    """A product with the same normalized URL is already tracked."""

    kind = ErrorKind.DUPLICATE_PRODUCT

    def __init__(self, url: str) -> None:
        super().__init__(f"Product already tracked: {url}")
        self.url = url


class ItemNotFoundError(LookupError):
    """No tracked item has the requested id."""


__all__ = [
    "DuplicateProductError",
    "ErrorKind",
    "FetchTimeoutError",
    "InvalidURLError",
    "ItemNotFoundError",
    "NoDataError",
    "ParsingError",
    "ScraperError",
]
