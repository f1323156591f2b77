from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Protocol

from list_watcher.fetching.content import is_content_sufficient
from list_watcher.fetching.models import FetchResult, RenderType
from list_watcher.observability import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

logger = get_logger(__name__)


class PageFetcher(Protocol):
    async def fetch(self, url: str) -> FetchResult: ...


class RenderingFetcher(PageFetcher, Protocol):
    def is_ready(self) -> bool: ...


class SmartFetcher:
    """
    Chooses between a static HTTP fetch and a headless-browser render.

    A known render type goes straight to the matching fetcher. An unknown one
    tries the static fetch first and escalates to the browser only when the
    static text fails ``is_content_sufficient``. Every result reports the
    render type that produced it so callers can cache it. When the render
    fails, a static probe that did load is returned in its place.
    """

    def __init__(
        self,
        *,
        static_fetcher: PageFetcher,
        browser_fetcher: RenderingFetcher | None = None,
        sufficiency_check: Callable[[FetchResult], bool] = is_content_sufficient,
    ) -> None:
        self._static = static_fetcher
        self._browser = browser_fetcher
        self._is_sufficient = sufficiency_check

    def browser_available(self) -> bool:
        return self._browser is not None and self._browser.is_ready()

    async def fetch(
        self,
        url: str,
        *,
        render_type: RenderType | None = None,
        force_browser: bool = False,
    ) -> FetchResult:
        if force_browser or render_type == RenderType.DYNAMIC:
            return await self._fetch_rendered(url)
        if render_type == RenderType.STATIC:
            return await self._fetch_static(url)

        logger.debug("smart_fetch_probe_static", url=url)
        static_result = await self._fetch_static(url)
        if self._is_sufficient(static_result):
            logger.debug("smart_fetch_static_sufficient", url=url)
            return static_result

        logger.info(
            "smart_fetch_escalating",
            url=url,
            static_success=static_result.success,
            text_length=len(static_result.text or ""),
        )
        return await self._fetch_rendered(url, static_fallback=static_result)

    async def _fetch_static(self, url: str) -> FetchResult:
        result = await self._static.fetch(url)
        return replace(result, detected_render_type=RenderType.STATIC)

    async def _fetch_rendered(self, url: str, *, static_fallback: FetchResult | None = None) -> FetchResult:
        browser = self._browser
        if browser is None or not browser.is_ready():
            logger.warning("browser_pool_unavailable", url=url)
            if static_fallback is not None:
                return static_fallback
            return await self._fetch_static(url)

        result = await browser.fetch(url)
        if not result.success and static_fallback is not None and static_fallback.success and static_fallback.html:
            logger.info("smart_fetch_render_failed_using_static", url=url, error=result.error)
            return static_fallback
        return replace(result, detected_render_type=RenderType.DYNAMIC)
