"""Process-owned pool of headless Chromium instances driven through Playwright."""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from list_watcher.observability import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from playwright.async_api import Browser, BrowserContext, Page

logger = get_logger(__name__)

_LAUNCH_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
)


class BrowserPoolError(RuntimeError):
    """Raised when a page is requested from a pool that is not running."""


@dataclass(frozen=True, slots=True)
class BrowserPoolSettings:
    max_browsers: int = 1
    max_open_pages_per_browser: int = 10
    retire_browser_after_page_count: int = 50
    max_browser_lifetime_seconds: float = 1800.0
    headless: bool = True
    user_agent: str | None = None
    launch_attempts: int = 3

    def __post_init__(self) -> None:
        if self.max_browsers < 1:
            msg = "max_browsers must be positive"
            raise ValueError(msg)
        if self.max_open_pages_per_browser < 1:
            msg = "max_open_pages_per_browser must be positive"
            raise ValueError(msg)
        if self.retire_browser_after_page_count < 1:
            msg = "retire_browser_after_page_count must be positive"
            raise ValueError(msg)


@dataclass(slots=True)
class _PooledBrowser:
    browser: Browser
    launched_at: float
    pages_served: int = 0
    open_pages: int = 0

    def is_retired(self, settings: BrowserPoolSettings, now: float) -> bool:
        if self.pages_served >= settings.retire_browser_after_page_count:
            return True
        return now - self.launched_at >= settings.max_browser_lifetime_seconds

    def has_capacity(self, settings: BrowserPoolSettings, now: float) -> bool:
        return self.open_pages < settings.max_open_pages_per_browser and not self.is_retired(settings, now)


class BrowserPool:
    """
    Bounded set of reusable browsers.

    Pages are borrowed with ``async with pool.page() as page`` and are always
    closed on exit, including when the body raises or is cancelled by a
    timeout. A browser is retired once it has served its page quota or
    outlived its lifetime, and is closed as soon as its last page returns.
    """

    def __init__(
        self,
        settings: BrowserPoolSettings | None = None,
        *,
        playwright_factory: Callable[[], Any] = async_playwright,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings or BrowserPoolSettings()
        self._playwright_factory = playwright_factory
        self._clock = clock
        self._playwright: Any = None
        self._browsers: list[_PooledBrowser] = []
        self._launching = 0
        self._condition = asyncio.Condition()

    @property
    def settings(self) -> BrowserPoolSettings:
        return self._settings

    @property
    def browser_count(self) -> int:
        return len(self._browsers)

    def is_ready(self) -> bool:
        return self._playwright is not None

    async def init(self) -> None:
        if self._playwright is not None:
            return
        logger.info("browser_pool_initializing", max_browsers=self._settings.max_browsers)
        self._playwright = await self._playwright_factory().start()
        logger.info("browser_pool_initialized")

    async def shutdown(self) -> None:
        if self._playwright is None:
            return
        logger.info("browser_pool_shutting_down", browsers=len(self._browsers))
        async with self._condition:
            browsers, self._browsers = self._browsers, []
            for pooled in browsers:
                await self._close_browser(pooled)
            playwright, self._playwright = self._playwright, None
            self._condition.notify_all()
        await playwright.stop()
        logger.info("browser_pool_destroyed")

    async def __aenter__(self) -> BrowserPool:
        await self.init()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.shutdown()
    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        pooled = await self._acquire()
        context: BrowserContext | None = None
        page: Page | None = None
        try:
            context = await pooled.browser.new_context(user_agent=self._settings.user_agent)
            page = await context.new_page()
            yield page
        finally:
            try:
                await self._close_page(page, context)
            finally:
                await self._release(pooled)

    async def _acquire(self) -> _PooledBrowser:
        async with self._condition:
            while True:
                if self._playwright is None:
                    msg = "Browser pool not initialized"
                    raise BrowserPoolError(msg)
                pooled = await self._claim_open_browser()
                if pooled is not None:
                    return pooled
                if len(self._browsers) + self._launching < self._settings.max_browsers:
                    self._launching += 1
                    break
                await self._condition.wait()
        return await self._launch_reserved()

    async def _claim_open_browser(self) -> _PooledBrowser | None:
        now = self._clock()
        for pooled in list(self._browsers):
            if pooled.open_pages == 0 and pooled.is_retired(self._settings, now):
                self._browsers.remove(pooled)
                await self._close_browser(pooled)

        for pooled in self._browsers:
            if pooled.has_capacity(self._settings, now):
                pooled.open_pages += 1
                pooled.pages_served += 1
                return pooled
        return None

    async def _launch_reserved(self) -> _PooledBrowser:
        # Caller has reserved a launch slot and released the condition.
        try:
            browser = await self._launch()
        except BaseException:
            self._launching -= 1
            await asyncio.shield(self._wake_waiters())
            raise

        self._launching -= 1
        pooled = _PooledBrowser(browser=browser, launched_at=self._clock(), pages_served=1, open_pages=1)
        if self._playwright is None:
            await self._close_browser(pooled)
            msg = "Browser pool shut down during launch"
            raise BrowserPoolError(msg)

        self._browsers.append(pooled)
        try:
            await asyncio.shield(self._wake_waiters())
        except asyncio.CancelledError:
            pooled.open_pages -= 1
            raise
        return pooled

    async def _release(self, pooled: _PooledBrowser) -> None:
        pooled.open_pages -= 1
        retire = pooled.open_pages == 0 and pooled.is_retired(self._settings, self._clock()) and pooled in self._browsers
        if retire:
            self._browsers.remove(pooled)
        try:
            await asyncio.shield(self._wake_waiters())
        finally:
            if retire:
                await self._close_browser(pooled)

    async def _wake_waiters(self) -> None:
        async with self._condition:
            self._condition.notify_all()

    async def _launch(self) -> Browser:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(PlaywrightError),
            wait=wait_exponential(multiplier=0.5, max=5),
            stop=stop_after_attempt(self._settings.launch_attempts),
            reraise=True,
        ):
            with attempt:
                browser = await self._playwright.chromium.launch(
                    headless=self._settings.headless,
                    args=list(_LAUNCH_ARGS),
                )
        logger.info("browser_launched", browsers=len(self._browsers) + 1)
        return browser

    async def _close_browser(self, pooled: _PooledBrowser) -> None:
        try:
            await pooled.browser.close()
        except PlaywrightError as exc:
            logger.warning("browser_close_failed", error=str(exc))
        else:
            logger.info("browser_retired", pages_served=pooled.pages_served)

    @staticmethod
    async def _close_page(page: Page | None, context: BrowserContext | None) -> None:
        try:
            if page is not None:
                await page.close()
        except PlaywrightError as exc:
            logger.warning("page_close_failed", error=str(exc))
        finally:
            if context is not None:
                await _close_context(context)


async def _close_context(context: BrowserContext) -> None:
    try:
        await context.close()
    except PlaywrightError as exc:
        logger.warning("context_close_failed", error=str(exc))
