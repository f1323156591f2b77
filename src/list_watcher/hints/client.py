from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from list_watcher.hints.parsing import parse_lca_reply, parse_selector_list
from list_watcher.observability import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = get_logger(__name__)


class HttpSelectorHints:
    """
    Selector hints served over HTTP.

    ``POST {endpoint}/stable-selectors`` and ``POST {endpoint}/lca`` receive
    JSON and answer with text. Replies are parsed tolerantly; transport and
    status errors are logged and turned into empty results.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoint: str,
        *,
        api_key: str | None = None,
        timeout_seconds: float = 20.0,
    ) -> None:
        self._client = client
        self._endpoint = endpoint.rstrip("/")
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds

    async def extract_stable_selectors(self, selector_hierarchy: str, current_selector: str) -> list[str]:
        text = await self._post(
            "stable-selectors",
            {"selector_hierarchy": selector_hierarchy, "current_selector": current_selector},
        )
        if text is None:
            return []
        selectors = parse_selector_list(text)
        logger.info("hints_stable_selectors_received", count=len(selectors), current_selector=current_selector)
        return selectors

    async def find_lca(self, selector_hierarchy: str, target_urls: Sequence[str]) -> str | None:
        text = await self._post(
            "lca",
            {"selector_hierarchy": selector_hierarchy, "target_urls": list(target_urls)},
        )
        if text is None:
            return None
        selector = parse_lca_reply(text)
        if selector is None:
            logger.warning("hints_lca_invalid", reply=text[:100])
        return selector

    async def _post(self, path: str, payload: dict[str, object]) -> str | None:
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else None
        try:
            response = await self._client.post(
                f"{self._endpoint}/{path}",
                json=payload,
                headers=headers,
                timeout=self._timeout_seconds,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("hints_request_failed", path=path, error=str(exc))
            return None
        return response.text
