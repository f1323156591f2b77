from __future__ import annotations

import time
from dataclasses import replace
from typing import TYPE_CHECKING, Protocol

from soupsieve import escape

from list_watcher.detection.class_filter import is_stable_id, stable_classes
from list_watcher.detection.dom import Document, DomNode, InvalidSelectorError
from list_watcher.detection.hierarchy import DEFAULT_MAX_DEPTH, serialize_hierarchy
from list_watcher.detection.models import ListDiffResult, UrlLookupResult
from list_watcher.detection.url_normalizer import normalize_url, resolve_link
from list_watcher.fetching.models import FetchErrorKind, FetchResult, RenderType
from list_watcher.observability import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = get_logger(__name__)

MIN_LINKS_FOR_CONTAINER = 2
MAX_CLIMB_DEPTH = 10
NO_URLS_ERROR = "No URLs found in the selected container"


class ListFetcher(Protocol):
    async def fetch(
        self,
        url: str,
        *,
        render_type: RenderType | None = None,
        force_browser: bool = False,
    ) -> FetchResult: ...


def diff_urls(previous: Iterable[str], current: Iterable[str]) -> list[str]:
    seen = set(previous)
    return [url for url in current if url not in seen]


def extract_urls(container: DomNode, base_url: str) -> list[str]:
    anchors = container.links()
    if container.tag_name == "a" and container.get("href") is not None:
        anchors.insert(0, container)

    urls: list[str] = []
    seen: set[str] = set()
    for anchor in anchors:
        url = resolve_link(anchor.get("href"), base_url)
        if url is None or url in seen:
            continue
        seen.add(url)
        urls.append(url)
    return urls


def get_element_selector(node: DomNode) -> str:
    """Coarse ``#id`` / ``tag.class`` / ``tag`` selector, kept as a hint for later fetches."""
    node_id = node.id
    if node_id and is_stable_id(node_id):
        return f"#{escape(node_id)}"
    classes = stable_classes(node.classes)
    if classes:
        return node.tag_name + "".join(f".{escape(cls)}" for cls in classes)
    return node.tag_name


def find_container_with_multiple_links(element: DomNode) -> DomNode:
    current = element.parent
    depth = 0
    while current is not None and depth < MAX_CLIMB_DEPTH:
        if current.is_boundary:
            break
        if len(current.links()) >= MIN_LINKS_FOR_CONTAINER:
            return current
        current = current.parent
        depth += 1
    return element


def _ancestor_chain(node: DomNode) -> list[DomNode]:
    chain = [node]
    current = node.parent
    while current is not None and not current.is_boundary:
        chain.append(current)
        current = current.parent
    chain.reverse()
    return chain


def find_lca(elements: Sequence[DomNode]) -> DomNode:
    """
    Return the deepest node that contains every element in ``elements``.

    A single element has no siblings to intersect with, so the search climbs
    instead until it reaches something that looks like a list (two or more
    links). Chains stop below ``body``; when they share nothing the common
    parent above them is returned.
    """
    if not elements:
        msg = "find_lca requires at least one element"
        raise ValueError(msg)
    if len(elements) == 1:
        return find_container_with_multiple_links(elements[0])

    chains = [_ancestor_chain(element) for element in elements]
    lca: DomNode | None = None
    for level in zip(*chains, strict=False):
        first = level[0]
        if any(node != first for node in level[1:]):
            break
        lca = first

    if lca is not None:
        return lca
    top = chains[0][0]
    return top.parent or top


class ListDiffEngine:
    """
    Extracts the link list of a page region and relocates it after markup drift.

    ``fetch`` reads the container a selector points at. ``lookup_urls_in_page``
    works backwards from URLs seen on a previous check to the element that now
    holds them. Both return tagged results instead of raising; a result with
    ``error_kind`` set means the page itself could not be loaded.
    """

    diff_urls = staticmethod(diff_urls)

    def __init__(self, fetcher: ListFetcher, *, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._fetcher = fetcher
        self._max_depth = max_depth

    async def fetch(
        self,
        page_url: str,
        selector: str,
        *,
        render_type: RenderType | None = None,
        max_depth: int | None = None,
    ) -> ListDiffResult:
        started = time.monotonic()
        logger.debug("list_fetch_started", url=page_url, selector=selector, render_type=render_type)

        fetch_result = await self._fetcher.fetch(page_url, render_type=render_type)
        if not fetch_result.success or fetch_result.html is None:
            error, kind = _fetch_failure(fetch_result)
            logger.warning("list_fetch_failed", url=page_url, error=error)
            return ListDiffResult(
                success=False,
                error=error,
                error_kind=kind,
                detected_render_type=fetch_result.detected_render_type,
                duration_ms=_elapsed_ms(started),
            )

        document = Document.from_html(fetch_result.html)
        result = extract_list(document, page_url, selector, max_depth=self._depth(max_depth))
        return replace(
            result,
            detected_render_type=fetch_result.detected_render_type,
            duration_ms=_elapsed_ms(started),
        )

    async def lookup_urls_in_page(
        self,
        page_url: str,
        known_urls: Sequence[str],
        *,
        render_type: RenderType | None = None,
        max_depth: int | None = None,
    ) -> UrlLookupResult:
        started = time.monotonic()
        logger.debug("url_lookup_started", url=page_url, known_urls=len(known_urls))

        fetch_result = await self._fetcher.fetch(page_url, render_type=render_type)
        if not fetch_result.success or fetch_result.html is None:
            error, kind = _fetch_failure(fetch_result)
            logger.warning("url_lookup_fetch_failed", url=page_url, error=error)
            return UrlLookupResult(
                found=False,
                error=error,
                error_kind=kind,
                detected_render_type=fetch_result.detected_render_type,
                duration_ms=_elapsed_ms(started),
            )

        document = Document.from_html(fetch_result.html)
        result = locate_known_urls(document, page_url, known_urls, max_depth=self._depth(max_depth))
        return replace(
            result,
            detected_render_type=fetch_result.detected_render_type,
            duration_ms=_elapsed_ms(started),
        )

    def _depth(self, max_depth: int | None) -> int:
        return self._max_depth if max_depth is None else max_depth


def extract_list(
    document: Document,
    page_url: str,
    selector: str,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ListDiffResult:
    try:
        container = document.select_one(selector)
    except InvalidSelectorError as exc:
        logger.warning("list_selector_invalid", url=page_url, selector=selector)
        return ListDiffResult(success=False, error=str(exc))

    if container is None:
        logger.warning("list_selector_not_found", url=page_url, selector=selector)
        return ListDiffResult(success=False, error=f"Selector not found: {selector}")

    urls = extract_urls(container, page_url)
    if not urls:
        logger.warning("list_container_empty", url=page_url, selector=selector)
        return ListDiffResult(success=False, error=NO_URLS_ERROR)

    logger.debug("list_urls_extracted", url=page_url, selector=selector, url_count=len(urls))
    return ListDiffResult(
        success=True,
        urls=tuple(urls),
        selector_hierarchy=serialize_hierarchy(container, max_depth),
        container_selector=selector,
    )


def locate_known_urls(
    document: Document,
    page_url: str,
    known_urls: Iterable[str],
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> UrlLookupResult:
    href_to_anchor: dict[str, DomNode] = {}
    for anchor in document.links():
        url = resolve_link(anchor.get("href"), page_url)
        if url is not None and url not in href_to_anchor:
            href_to_anchor[url] = anchor

    matched: list[DomNode] = []
    found_urls: list[str] = []
    seen: set[str] = set()
    for known_url in known_urls:
        try:
            normalized = normalize_url(known_url, base_url=page_url)
        except ValueError:
            continue
        anchor = href_to_anchor.get(normalized)
        if anchor is None or normalized in seen:
            continue
        seen.add(normalized)
        matched.append(anchor)
        found_urls.append(normalized)

    if not matched:
        logger.debug("url_lookup_no_match", url=page_url)
        return UrlLookupResult(found=False)

    container = find_lca(matched)
    container_selector = get_element_selector(container)
    container_urls = extract_urls(container, page_url)
    logger.debug(
        "url_lookup_container_found",
        url=page_url,
        container_selector=container_selector,
        matched=len(found_urls),
        container_urls=len(container_urls),
    )
    return UrlLookupResult(
        found=True,
        found_urls=tuple(found_urls),
        container_selector=container_selector,
        container_urls=tuple(container_urls),
        selector_hierarchy=serialize_hierarchy(container, max_depth),
    )


def _fetch_failure(result: FetchResult) -> tuple[str, FetchErrorKind]:
    kind = result.error_kind or FetchErrorKind.EXTRACTION_ERROR
    return result.error or f"{kind}: Empty response body", kind


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
