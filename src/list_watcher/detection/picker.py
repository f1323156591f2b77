from __future__ import annotations

from list_watcher.detection.dom import Document
from list_watcher.detection.hierarchy import DEFAULT_MAX_DEPTH
from list_watcher.detection.list_diff import extract_list, find_container_with_multiple_links
from list_watcher.detection.models import PickResult
from list_watcher.detection.selector_generator import generate_selector, simplify_selector
from list_watcher.detection.url_normalizer import normalize_url, resolve_link
from list_watcher.observability import get_logger

logger = get_logger(__name__)


def pick_container(
    html: str,
    page_url: str,
    sample_url: str,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> PickResult | None:
    """
    Pick the list container that holds ``sample_url`` and build a selector for it.

    This is the non-interactive counterpart of clicking a list item in the
    browser: the user supplies one post URL they can see on the page and the
    nearest ancestor holding at least two links becomes the container. The
    preview URLs come from the same extraction ``ListDiffEngine.fetch`` uses,
    so what the user confirms is what a later check will see. Returns None
    when no anchor on the page points at ``sample_url``.
    """
    try:
        target = normalize_url(sample_url, base_url=page_url)
    except ValueError:
        logger.warning("pick_sample_url_invalid", sample_url=sample_url)
        return None

    document = Document.from_html(html)
    anchor = next(
        (link for link in document.links() if resolve_link(link.get("href"), page_url) == target),
        None,
    )
    if anchor is None:
        logger.info("pick_sample_url_not_found", url=page_url, sample_url=target)
        return None

    container = find_container_with_multiple_links(anchor)
    selector = simplify_selector(generate_selector(container), document)
    extraction = extract_list(document, page_url, selector, max_depth=max_depth)
    logger.info("pick_container_selected", url=page_url, selector=selector, url_count=len(extraction.urls))
    return PickResult(selector=selector, urls=extraction.urls, selector_hierarchy=extraction.selector_hierarchy)
