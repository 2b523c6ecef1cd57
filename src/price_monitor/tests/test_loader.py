"""Tests for URL validation and the page loaders."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import respx
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from price_monitor.core.config import Settings
from price_monitor.core.errors import ErrorKind, InvalidURLError, NoDataError, ParsingError
from price_monitor.tracker import loader as loader_module
from price_monitor.tracker.cancellation import CancellationToken
from price_monitor.tracker.loader import (
    BrowserPageLoader,
    HttpPageLoader,
    build_page_loader,
    is_product_page,
    validate_url,
)

PRODUCT_URL = "https://www.zara.com/br/pt/camisa-linho-p04174046.html"
RENDERED_PAGE = "<html><head><title>Camisa | ZARA Brasil</title></head><body></body></html>"


class TestValidateUrl:
    """Tests for validate_url."""

    def test_accepts_and_trims_http_urls(self) -> None:
        """Test valid URLs are returned trimmed."""
        assert validate_url(f"  {PRODUCT_URL} ") == PRODUCT_URL
        assert validate_url("http://example.com") == "http://example.com"

    @pytest.mark.parametrize("url", ["", "   ", "not a url", "ftp://zara.com/x", "https://", "zara.com/p"])
    def test_rejects_unloadable_urls(self, url: str) -> None:
        """Test invalid URLs raise before any network activity."""
        with pytest.raises(InvalidURLError) as exc_info:
            validate_url(url)
        assert exc_info.value.kind is ErrorKind.INVALID_URL


class TestIsProductPage:
    """Tests for the product page heuristic."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            (PRODUCT_URL, True),
            ("https://www.zara.com/br/pt/camisa-p04174046.html?v1=123", True),
            ("https://www.zara.com/br/pt/mulher-camisas-l1217.html", False),
            ("https://www.zara.com/br/pt/search?q=-p12345", False),
        ],
    )
    def test_detects_product_urls(self, url: str, expected: bool) -> None:
        """Test '-p' followed by a product id marks a single product."""
        assert is_product_page(url) is expected


class TestHttpPageLoader:
    """Tests for HttpPageLoader."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_loads_document(self) -> None:
        """Test a 200 response becomes a queryable document."""
        route = respx.get(PRODUCT_URL).mock(
            return_value=httpx.Response(
                200,
                html="<html><head><title>Camisa | ZARA Brasil</title></head><body></body></html>",
            )
        )
        loader = HttpPageLoader(Settings())

        document = await loader.load(PRODUCT_URL)

        assert document.title() == "Camisa | ZARA Brasil"
        assert document.url == PRODUCT_URL
        assert "iPhone" in route.calls.last.request.headers["User-Agent"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_success_status_is_no_data(self) -> None:
        """Test error statuses raise NoDataError."""
        respx.get(PRODUCT_URL).mock(return_value=httpx.Response(404))

        with pytest.raises(NoDataError):
            await HttpPageLoader(Settings()).load(PRODUCT_URL)

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_error_is_no_data(self) -> None:
        """Test connection failures raise NoDataError."""
        respx.get(PRODUCT_URL).mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(NoDataError) as exc_info:
            await HttpPageLoader(Settings()).load(PRODUCT_URL)
        assert exc_info.value.url == PRODUCT_URL

    @pytest.mark.asyncio
    async def test_invalid_url_raises_before_request(self) -> None:
        """Test invalid URLs are rejected without a request."""
        with respx.mock(assert_all_called=False) as router:
            with pytest.raises(InvalidURLError):
                await HttpPageLoader(Settings()).load("javascript:alert(1)")
            assert router.calls.call_count == 0


def _browser_page(html: str = RENDERED_PAGE, ok: bool = True, status: int = 200) -> MagicMock:
    page = MagicMock()
    page.url = PRODUCT_URL
    page.goto = AsyncMock(return_value=MagicMock(ok=ok, status=status))
    page.content = AsyncMock(return_value=html)
    return page


def _patch_playwright(
    monkeypatch: pytest.MonkeyPatch, page: MagicMock
) -> tuple[MagicMock, AsyncMock, AsyncMock]:
    """Replace async_playwright with mocks serving ``page``.

    Returns (launch_mock, context_mock, browser_mock).
    """
    context = AsyncMock()
    context.new_page.return_value = page
    browser = AsyncMock()
    browser.new_context.return_value = context
    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser)
    manager = MagicMock()
    manager.__aenter__ = AsyncMock(return_value=playwright)
    manager.__aexit__ = AsyncMock(return_value=False)
    monkeypatch.setattr(loader_module, "async_playwright", MagicMock(return_value=manager))
    return playwright.chromium.launch, context, browser


class TestBrowserPageLoader:
    """Tests for BrowserPageLoader with a mocked Playwright."""

    @pytest.mark.asyncio
    async def test_renders_page(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a rendered page becomes a document and the session is closed."""
        page = _browser_page()
        launch, context, browser = _patch_playwright(monkeypatch, page)

        document = await BrowserPageLoader(Settings(settle_delay=0)).load(PRODUCT_URL)

        assert document.title() == "Camisa | ZARA Brasil"
        assert document.url == PRODUCT_URL
        launch.assert_awaited_once_with(headless=True)
        page.goto.assert_awaited_once_with(
            PRODUCT_URL, wait_until="domcontentloaded", timeout=20000.0
        )
        context.close.assert_awaited_once()
        browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_navigation_timeout_uses_partial_dom(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a timed out navigation still returns the DOM loaded so far."""
        page = _browser_page(html="<html><body><p>R$ 259,90</p></body></html>")
        page.goto.side_effect = PlaywrightTimeoutError("Timeout 20000ms exceeded")
        _patch_playwright(monkeypatch, page)

        document = await asyncio.wait_for(
            BrowserPageLoader(Settings(settle_delay=30)).load(PRODUCT_URL), timeout=1
        )

        assert document.select_text("p") == "R$ 259,90"
        page.content.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_non_ok_response_is_no_data(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test an error status raises NoDataError and closes the session."""
        page = _browser_page(ok=False, status=404)
        _, context, browser = _patch_playwright(monkeypatch, page)

        with pytest.raises(NoDataError) as exc_info:
            await BrowserPageLoader(Settings(settle_delay=0)).load(PRODUCT_URL)

        assert "404" in str(exc_info.value)
        page.content.assert_not_awaited()
        context.close.assert_awaited_once()
        browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_navigation_failure_is_no_data(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test browser errors during navigation raise NoDataError."""
        page = _browser_page()
        page.goto.side_effect = PlaywrightError("net::ERR_NAME_NOT_RESOLVED")
        _, context, browser = _patch_playwright(monkeypatch, page)

        with pytest.raises(NoDataError) as exc_info:
            await BrowserPageLoader(Settings(settle_delay=0)).load(PRODUCT_URL)

        assert exc_info.value.url == PRODUCT_URL
        context.close.assert_awaited_once()
        browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unreadable_page_is_parsing_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a failure reading the rendered page raises ParsingError."""
        page = _browser_page()
        page.content.side_effect = PlaywrightError("Target page, context or browser has been closed")
        _, context, browser = _patch_playwright(monkeypatch, page)

        with pytest.raises(ParsingError) as exc_info:
            await BrowserPageLoader(Settings(settle_delay=0)).load(PRODUCT_URL)

        assert exc_info.value.kind is ErrorKind.PARSING_ERROR
        context.close.assert_awaited_once()
        browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cancelled_token_cuts_settle_wait_short(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test cancellation skips the rest of the settle delay but still captures the page."""
        page = _browser_page()
        _patch_playwright(monkeypatch, page)
        token = CancellationToken()
        token.cancel()

        document = await asyncio.wait_for(
            BrowserPageLoader(Settings(settle_delay=30)).load(PRODUCT_URL, token), timeout=1
        )

        assert document.title() == "Camisa | ZARA Brasil"
        page.content.assert_awaited_once()


class TestBuildPageLoader:
    """Tests for build_page_loader."""

    def test_selects_loader_from_settings(self) -> None:
        """Test the page_loader setting picks the implementation."""
        assert isinstance(build_page_loader(Settings(page_loader="http")), HttpPageLoader)
        assert isinstance(build_page_loader(Settings(page_loader="browser")), BrowserPageLoader)
