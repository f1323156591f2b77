from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence


class SelectorHints(Protocol):
    """Best-effort selector suggestions. Implementations never raise; they return empty results instead."""

    async def extract_stable_selectors(self, selector_hierarchy: str, current_selector: str) -> list[str]: ...

    async def find_lca(self, selector_hierarchy: str, target_urls: Sequence[str]) -> str | None: ...


class NullSelectorHints:
    async def extract_stable_selectors(self, selector_hierarchy: str, current_selector: str) -> list[str]:  # noqa: ARG002
        return []

    async def find_lca(self, selector_hierarchy: str, target_urls: Sequence[str]) -> str | None:  # noqa: ARG002
        return None
