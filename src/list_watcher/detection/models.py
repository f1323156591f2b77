from __future__ import annotations

from dataclasses import dataclass

from list_watcher.fetching.models import FetchErrorKind, RenderType


@dataclass(frozen=True, slots=True)
class ListDiffResult:
    success: bool
    urls: tuple[str, ...] = ()
    selector_hierarchy: str = ""
    error: str | None = None
    error_kind: FetchErrorKind | None = None
    detected_render_type: RenderType | None = None
    duration_ms: int = 0
    container_selector: str | None = None

    def __post_init__(self) -> None:
        if self.success and self.error is not None:
            msg = "successful result cannot carry an error"
            raise ValueError(msg)
        if not self.success and self.error is None:
            msg = "failed result requires an error"
            raise ValueError(msg)

    @property
    def fetch_failed(self) -> bool:
        """True when the page itself could not be loaded, as opposed to a missing or empty container."""
        return self.error_kind is not None


@dataclass(frozen=True, slots=True)
class UrlLookupResult:
    found: bool
    found_urls: tuple[str, ...] = ()
    container_selector: str | None = None
    container_urls: tuple[str, ...] = ()
    selector_hierarchy: str = ""
    error: str | None = None
    error_kind: FetchErrorKind | None = None
    detected_render_type: RenderType | None = None
    duration_ms: int = 0

    @property
    def fetch_failed(self) -> bool:
        return self.error_kind is not None


@dataclass(frozen=True, slots=True)
class PickResult:
    selector: str
    urls: tuple[str, ...]
    selector_hierarchy: str
