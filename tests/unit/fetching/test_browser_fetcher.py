from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from list_watcher.fetching.browser_fetcher import BrowserFetcher, classify_browser_error
from list_watcher.fetching.browser_pool import BrowserPool, BrowserPoolSettings
from list_watcher.fetching.models import FetchErrorKind, RenderType
from tests.test_utils.factories import SAMPLE_PAGE_URL
from tests.test_utils.fakes import FakePage, FakePlaywright
from tests.test_utils.helpers import read_fixture

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


async def _started_pool(playwright: FakePlaywright) -> BrowserPool:
    pool = BrowserPool(BrowserPoolSettings(), playwright_factory=playwright)
    await pool.init()
    return pool


@pytest.fixture
async def rendered_fetcher() -> AsyncIterator[tuple[BrowserFetcher, FakePlaywright]]:
    playwright = FakePlaywright(page_template=FakePage(html=read_fixture("html/posts_initial.html")))
    pool = await _started_pool(playwright)
    yield BrowserFetcher(pool, timeout_seconds=30), playwright
    await pool.shutdown()


@pytest.mark.unit
class TestBrowserFetcher:
    async def test_renders_page(self, rendered_fetcher: tuple[BrowserFetcher, FakePlaywright]) -> None:
        fetcher, playwright = rendered_fetcher

        result = await fetcher.fetch(SAMPLE_PAGE_URL)

        assert result.success
        assert result.detected_render_type == RenderType.DYNAMIC
        assert result.title == "Example Engineering Blog"
        assert result.status_code == 200
        assert result.text is not None
        assert "Hello world" in result.text
        page = playwright.browsers[0].contexts[0].page
        assert page.visited == [SAMPLE_PAGE_URL]
        assert page.closed

    async def test_is_ready_follows_pool(self) -> None:
        pool = BrowserPool(BrowserPoolSettings(), playwright_factory=FakePlaywright())
        fetcher = BrowserFetcher(pool)

        assert not fetcher.is_ready()
        await pool.init()
        assert fetcher.is_ready()
        await pool.shutdown()

    async def test_uninitialized_pool_is_unknown_error(self) -> None:
        fetcher = BrowserFetcher(BrowserPool(BrowserPoolSettings(), playwright_factory=FakePlaywright()))

        result = await fetcher.fetch(SAMPLE_PAGE_URL)

        assert result.error_kind == FetchErrorKind.UNKNOWN
        assert result.error == "UNKNOWN: Browser pool not initialized"

    @pytest.mark.parametrize(
        ("status", "kind"),
        [(404, FetchErrorKind.NOT_FOUND), (403, FetchErrorKind.FORBIDDEN), (502, FetchErrorKind.SERVER_ERROR)],
    )
    async def test_http_error_status(self, status: int, kind: FetchErrorKind) -> None:
        pool = await _started_pool(FakePlaywright(page_template=FakePage(status=status)))

        result = await BrowserFetcher(pool).fetch(SAMPLE_PAGE_URL)

        assert result.error_kind == kind
        assert result.status_code == status
        await pool.shutdown()

    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (PlaywrightTimeoutError("Timeout 30000ms exceeded."), FetchErrorKind.TIMEOUT),
            (PlaywrightError("net::ERR_NAME_NOT_RESOLVED at https://blog.example.com/blog"), FetchErrorKind.NETWORK_ERROR),
            (PlaywrightError("Target page, context or browser has been closed"), FetchErrorKind.UNKNOWN),
        ],
    )
    async def test_navigation_errors_are_classified(self, error: Exception, kind: FetchErrorKind) -> None:
        playwright = FakePlaywright(page_template=FakePage(goto_error=error))
        pool = await _started_pool(playwright)

        result = await BrowserFetcher(pool).fetch(SAMPLE_PAGE_URL)

        assert result.error_kind == kind
        assert playwright.browsers[0].contexts[0].page.closed
        await pool.shutdown()

    async def test_thin_render_is_extraction_error(self) -> None:
        pool = await _started_pool(FakePlaywright(page_template=FakePage(html="<html><body><div id='root'></div></body></html>")))

        result = await BrowserFetcher(pool).fetch(SAMPLE_PAGE_URL)

        assert result.error_kind == FetchErrorKind.EXTRACTION_ERROR
        await pool.shutdown()

    async def test_missing_response_still_reads_content(self) -> None:
        html = read_fixture("html/posts_initial.html")
        pool = await _started_pool(FakePlaywright(page_template=FakePage(html=html, status=None)))

        result = await BrowserFetcher(pool).fetch(SAMPLE_PAGE_URL)

        assert result.success
        assert result.status_code == 200
        await pool.shutdown()


@pytest.mark.parametrize(
    ("message", "kind"),
    [
        ("Timeout 60000ms exceeded while waiting for networkidle", FetchErrorKind.TIMEOUT),
        ("net::ERR_CONNECTION_REFUSED", FetchErrorKind.NETWORK_ERROR),
        ("Navigation failed because page crashed!", FetchErrorKind.NETWORK_ERROR),
        ("Execution context was destroyed", FetchErrorKind.UNKNOWN),
    ],
)
def test_classify_browser_error(message: str, kind: FetchErrorKind) -> None:
    assert classify_browser_error(PlaywrightError(message)) == kind


@pytest.mark.unit
async def test_timeout_during_page_close_returns_slot_to_pool() -> None:
    close_gate = asyncio.Event()
    playwright = FakePlaywright(page_template=FakePage(html=read_fixture("html/posts_initial.html"), close_gate=close_gate))
    pool = BrowserPool(
        BrowserPoolSettings(max_browsers=1, max_open_pages_per_browser=1),
        playwright_factory=playwright,
    )
    await pool.init()
    fetcher = BrowserFetcher(pool, timeout_seconds=0.05)

    timed_out = await fetcher.fetch(SAMPLE_PAGE_URL)
    close_gate.set()
    rendered = await asyncio.wait_for(fetcher.fetch(SAMPLE_PAGE_URL), timeout=1)
    await pool.shutdown()

    assert timed_out.error_kind == FetchErrorKind.TIMEOUT
    assert rendered.success
    assert len(playwright.launch_calls) == 1
