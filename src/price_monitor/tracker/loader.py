"""Page loaders that turn a product URL into a queryable document.

Every call owns its own session (HTTP client or browser context) and tears it
down before returning, so loaders hold no state between fetches and concurrent
fetches never share cookies or storage.
"""

from __future__ import annotations

import logging
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import urlparse

import httpx
from playwright.async_api import Browser, BrowserContext, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from price_monitor.core.config import Settings
from price_monitor.core.errors import InvalidURLError, NoDataError, ParsingError
from price_monitor.tracker.cancellation import CancellationToken
from price_monitor.tracker.document import HtmlDocument

logger = logging.getLogger(__name__)

# Product pages carry "-p" followed by the numeric product id, e.g. "-p04174046.html".
_PRODUCT_PAGE_RE = re.compile(r"-p\d{4,}")


def validate_url(url: str) -> str:
    """Return the trimmed URL or raise :class:`InvalidURLError`."""
    candidate = (url or "").strip()
    parsed = urlparse(candidate)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidURLError(f"Invalid product URL: {url!r}", url=url)
    return candidate


def is_product_page(url: str) -> bool:
    """Heuristic check that a URL points at a single product, not a listing."""
    return bool(_PRODUCT_PAGE_RE.search(urlparse(url).path))


class HttpPageLoader:
    """Fetch raw HTML with httpx. No script execution."""

    def __init__(self, settings: Settings) -> None:
        self.timeout = settings.navigation_timeout
        self.headers = {
            "User-Agent": settings.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": settings.accept_language,
        }

    async def load(self, url: str, cancel: CancellationToken | None = None) -> HtmlDocument:
        target = validate_url(url)
        async with httpx.AsyncClient(
            timeout=self.timeout, headers=self.headers, follow_redirects=True
        ) as client:
            try:
                response = await client.get(target)
            except httpx.HTTPError as exc:
                raise NoDataError(f"Request failed: {exc}", url=target) from exc

        if response.status_code != 200:
            raise NoDataError(f"Unexpected status {response.status_code}", url=target)

        try:
            html = response.content.decode(response.encoding or "utf-8")
        except (LookupError, UnicodeDecodeError) as exc:
            raise ParsingError("Response body is not decodable text", url=target) from exc

        return HtmlDocument(html, url=str(response.url))


class BrowserPageLoader:
    """Render pages in headless Chromium before extraction.

    A navigation timeout is tolerated: the DOM available at that point is still
    handed to the extraction pipeline. After navigation the loader waits
    ``settle_delay`` seconds for client-side rendering; a cancelled token cuts the
    wait short but the page is still captured.
    """

    def __init__(self, settings: Settings) -> None:
        self.navigation_timeout = settings.navigation_timeout
        self.settle_delay = settings.settle_delay
        self.user_agent = settings.user_agent
        self.accept_language = settings.accept_language

    @asynccontextmanager
    async def _render_session(self) -> AsyncIterator[BrowserContext]:
        async with async_playwright() as playwright:
            browser: Browser = await playwright.chromium.launch(headless=True)
            try:
                context = await browser.new_context(
                    user_agent=self.user_agent,
                    extra_http_headers={"Accept-Language": self.accept_language},
                    is_mobile=True,
                    viewport={"width": 390, "height": 844},
                )
                try:
                    yield context
                finally:
                    await context.close()
            finally:
                await browser.close()

    async def load(self, url: str, cancel: CancellationToken | None = None) -> HtmlDocument:
        target = validate_url(url)
        token = cancel or CancellationToken()

        try:
            async with self._render_session() as context:
                page = await context.new_page()
                timed_out = False
                try:
                    response = await page.goto(
                        target,
                        wait_until="domcontentloaded",
                        timeout=self.navigation_timeout * 1000,
                    )
                except PlaywrightTimeoutError:
                    logger.warning(
                        "Navigation timed out, extracting from partial DOM",
                        extra={"url": target},
                    )
                    timed_out = True
                    response = None

                if not timed_out and (response is None or not response.ok):
                    status = response.status if response is not None else "no response"
                    raise NoDataError(f"Unexpected status {status}", url=target)

                if not timed_out and self.settle_delay > 0:
                    if await token.wait(self.settle_delay):
                        logger.info("Settle wait interrupted", extra={"url": target})

                try:
                    html = await page.content()
                except PlaywrightError as exc:
                    raise ParsingError(f"Could not read rendered page: {exc}", url=target) from exc
                final_url = page.url or target
        except PlaywrightError as exc:
            # Raised for navigation failures such as DNS errors or refused connections.
            raise NoDataError(f"Browser navigation failed: {exc}", url=target) from exc

        return HtmlDocument(html, url=final_url)


def build_page_loader(settings: Settings) -> HttpPageLoader | BrowserPageLoader:
    if settings.page_loader == "http":
        return HttpPageLoader(settings)
    return BrowserPageLoader(settings)


__all__ = [
    "BrowserPageLoader",
    "HttpPageLoader",
    "build_page_loader",
    "is_product_page",
    "validate_url",
]
