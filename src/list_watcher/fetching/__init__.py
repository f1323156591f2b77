from list_watcher.fetching.browser_fetcher import BrowserFetcher
from list_watcher.fetching.browser_pool import BrowserPool, BrowserPoolError, BrowserPoolSettings
from list_watcher.fetching.content import extract_text, is_content_sufficient, meaningful_ratio
from list_watcher.fetching.http_fetcher import HttpFetcher
from list_watcher.fetching.models import FetchErrorKind, FetchResult, RenderType
from list_watcher.fetching.smart_fetcher import PageFetcher, SmartFetcher

__all__ = [
    "BrowserFetcher",
    "BrowserPool",
    "BrowserPoolError",
    "BrowserPoolSettings",
    "FetchErrorKind",
    "FetchResult",
    "HttpFetcher",
    "PageFetcher",
    "RenderType",
    "SmartFetcher",
    "extract_text",
    "is_content_sufficient",
    "meaningful_ratio",
]
