from __future__ import annotations

import asyncio
import time
from enum import StrEnum
from http import HTTPStatus

import httpx

from list_watcher.fetching.content import extract_text
from list_watcher.fetching.models import FetchErrorKind, FetchResult, RenderType, error_kind_for_status
from list_watcher.observability import get_logger

logger = get_logger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 30.0
_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


class HTTPHeader(StrEnum):
    USER_AGENT = "User-Agent"
    ACCEPT = "Accept"
    ACCEPT_LANGUAGE = "Accept-Language"


def elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class HttpFetcher:
    """Plain HTTP GET of a page; the cheap path of the fetch-strategy selector."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
        user_agent: str | None = None,
        accept_language: str | None = None,
    ) -> None:
        self._client = client
        self._timeout_seconds = timeout_seconds
        self._headers: dict[str, str] = {HTTPHeader.ACCEPT: _ACCEPT}
        if user_agent:
            self._headers[HTTPHeader.USER_AGENT] = user_agent
        if accept_language:
            self._headers[HTTPHeader.ACCEPT_LANGUAGE] = accept_language

    async def fetch(self, url: str) -> FetchResult:
        started = time.monotonic()
        try:
            async with asyncio.timeout(self._timeout_seconds):
                response = await self._client.get(url, headers=self._headers, follow_redirects=True)
        except (TimeoutError, httpx.TimeoutException):
            message = f"Request timed out after {self._timeout_seconds:g}s"
            return FetchResult.failure(url, FetchErrorKind.TIMEOUT, message, duration_ms=elapsed_ms(started))
        except httpx.TransportError as exc:
            return FetchResult.failure(url, FetchErrorKind.NETWORK_ERROR, str(exc) or type(exc).__name__, duration_ms=elapsed_ms(started))
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return FetchResult.failure(url, FetchErrorKind.UNKNOWN, str(exc) or type(exc).__name__, duration_ms=elapsed_ms(started))

        if response.status_code >= HTTPStatus.BAD_REQUEST:
            logger.info("static_fetch_http_error", url=url, status_code=response.status_code)
            return FetchResult.failure(
                url,
                error_kind_for_status(response.status_code),
                f"HTTP {response.status_code} error",
                duration_ms=elapsed_ms(started),
                status_code=response.status_code,
            )

        html = response.text
        title, text = extract_text(html)
        return FetchResult(
            url=url,
            success=True,
            duration_ms=elapsed_ms(started),
            html=html,
            text=text,
            title=title,
            status_code=response.status_code,
            detected_render_type=RenderType.STATIC,
        )
