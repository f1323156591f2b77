from list_watcher.detection.class_filter import clean_classes, is_dynamic_token, is_stable_id, stable_classes
from list_watcher.detection.dom import Document, DomNode, InvalidSelectorError
from list_watcher.detection.hierarchy import DEFAULT_MAX_DEPTH, serialize_hierarchy
from list_watcher.detection.list_diff import (
    ListDiffEngine,
    ListFetcher,
    diff_urls,
    extract_list,
    extract_urls,
    find_container_with_multiple_links,
    find_lca,
    get_element_selector,
    locate_known_urls,
)
from list_watcher.detection.models import ListDiffResult, PickResult, UrlLookupResult
from list_watcher.detection.picker import pick_container
from list_watcher.detection.selector_generator import generate_selector, simplify_selector, validate_selector
from list_watcher.detection.url_normalizer import normalize_url, resolve_link

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "Document",
    "DomNode",
    "InvalidSelectorError",
    "ListDiffEngine",
    "ListDiffResult",
    "ListFetcher",
    "PickResult",
    "UrlLookupResult",
    "clean_classes",
    "diff_urls",
    "extract_list",
    "extract_urls",
    "find_container_with_multiple_links",
    "find_lca",
    "generate_selector",
    "get_element_selector",
    "is_dynamic_token",
    "is_stable_id",
    "locate_known_urls",
    "normalize_url",
    "pick_container",
    "resolve_link",
    "serialize_hierarchy",
    "simplify_selector",
    "stable_classes",
    "validate_selector",
]
