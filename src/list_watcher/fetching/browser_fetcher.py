from __future__ import annotations

import asyncio
import time
from http import HTTPStatus
from typing import TYPE_CHECKING

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from list_watcher.fetching.browser_pool import BrowserPoolError
from list_watcher.fetching.content import MIN_RENDERED_TEXT_LENGTH, extract_text
from list_watcher.fetching.http_fetcher import elapsed_ms
from list_watcher.fetching.models import FetchErrorKind, FetchResult, RenderType, error_kind_for_status
from list_watcher.observability import get_logger

if TYPE_CHECKING:
    from list_watcher.fetching.browser_pool import BrowserPool

logger = get_logger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 60.0
_NETWORK_ERROR_MARKERS = ("net::", "ERR_", "Navigation failed")


def classify_browser_error(exc: PlaywrightError) -> FetchErrorKind:
    message = str(exc)
    if isinstance(exc, PlaywrightTimeoutError) or "Timeout" in message:
        return FetchErrorKind.TIMEOUT
    if any(marker in message for marker in _NETWORK_ERROR_MARKERS):
        return FetchErrorKind.NETWORK_ERROR
    return FetchErrorKind.UNKNOWN


class BrowserFetcher:
    """Renders a page in a pooled headless browser and returns the settled DOM."""

    def __init__(
        self,
        pool: BrowserPool,
        *,
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
        wait_until: str = "networkidle",
    ) -> None:
        self._pool = pool
        self._timeout_seconds = timeout_seconds
        self._wait_until = wait_until

    def is_ready(self) -> bool:
        return self._pool.is_ready()

    async def fetch(self, url: str) -> FetchResult:
        started = time.monotonic()
        status_code: int | None = None
        try:
            async with asyncio.timeout(self._timeout_seconds), self._pool.page() as page:
                response = await page.goto(
                    url,
                    timeout=self._timeout_seconds * 1000,
                    wait_until=self._wait_until,
                )
                status_code = response.status if response is not None else None
                if status_code is not None and status_code >= HTTPStatus.BAD_REQUEST:
                    return FetchResult.failure(
                        url,
                        error_kind_for_status(status_code),
                        f"HTTP {status_code} error",
                        duration_ms=elapsed_ms(started),
                        status_code=status_code,
                    )
                html = await page.content()
        except TimeoutError:
            message = f"Page load timed out after {self._timeout_seconds:g}s"
            return FetchResult.failure(url, FetchErrorKind.TIMEOUT, message, duration_ms=elapsed_ms(started))
        except BrowserPoolError as exc:
            return FetchResult.failure(url, FetchErrorKind.UNKNOWN, str(exc), duration_ms=elapsed_ms(started))
        except PlaywrightError as exc:
            kind = classify_browser_error(exc)
            logger.warning("browser_fetch_failed", url=url, error_kind=kind, error=str(exc))
            return FetchResult.failure(url, kind, str(exc), duration_ms=elapsed_ms(started))

        title, text = extract_text(html)
        if len(text) < MIN_RENDERED_TEXT_LENGTH:
            return FetchResult.failure(
                url,
                FetchErrorKind.EXTRACTION_ERROR,
                "Failed to extract sufficient content from rendered page",
                duration_ms=elapsed_ms(started),
                status_code=status_code,
            )

        return FetchResult(
            url=url,
            success=True,
            duration_ms=elapsed_ms(started),
            html=html,
            text=text,
            title=title,
            status_code=status_code or HTTPStatus.OK,
            detected_render_type=RenderType.DYNAMIC,
        )
