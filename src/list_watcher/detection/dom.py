"""
Narrow document abstraction over BeautifulSoup.

Selector generation, container lookup and hierarchy serialization only see
``Document`` and ``DomNode``: tag name, attributes, parent, element children,
text, and CSS queries. Node equality is identity, never structural, so two
identical ``<li>`` siblings remain distinct nodes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from list_watcher.detection.html_parser import parse_html

if TYPE_CHECKING:
    from collections.abc import Iterator

LINK_SELECTOR = "a[href]"
_BOUNDARY_TAGS = frozenset({"body", "html"})


class InvalidSelectorError(ValueError):
    """Raised when a CSS selector cannot be parsed."""

    def __init__(self, selector: str) -> None:
        self.selector = selector
        super().__init__(f"Invalid selector: {selector}")


def _select(scope: Tag, selector: str) -> list[Tag]:
    if not selector or not selector.strip():
        raise InvalidSelectorError(selector)
    try:
        return list(scope.select(selector))
    except (SelectorSyntaxError, NotImplementedError, ValueError) as exc:
        raise InvalidSelectorError(selector) from exc


class DomNode:
    __slots__ = ("_tag",)

    def __init__(self, tag: Tag) -> None:
        self._tag = tag

    def __eq__(self, other: object) -> bool:
        return isinstance(other, DomNode) and other._tag is self._tag

    def __hash__(self) -> int:
        return id(self._tag)

    def __repr__(self) -> str:
        return f"DomNode(<{self.tag_name}>)"

    @property
    def tag_name(self) -> str:
        return (self._tag.name or "").lower()

    @property
    def id(self) -> str | None:
        value = self.get("id")
        return value or None

    @property
    def classes(self) -> list[str]:
        raw = self._tag.get("class")
        if raw is None:
            return []
        if isinstance(raw, str):
            return raw.split()
        return [str(cls) for cls in raw if cls]

    @property
    def attributes(self) -> dict[str, str]:
        return {name: self._join(value) for name, value in self._tag.attrs.items()}

    def get(self, name: str) -> str | None:
        value = self._tag.get(name)
        if value is None:
            return None
        return self._join(value)

    @property
    def parent(self) -> DomNode | None:
        parent = self._tag.parent
        if parent is None or isinstance(parent, BeautifulSoup):
            return None
        return DomNode(parent)

    @property
    def children(self) -> list[DomNode]:
        return [DomNode(child) for child in self._tag.children if isinstance(child, Tag)]

    @property
    def is_boundary(self) -> bool:
        return self.tag_name in _BOUNDARY_TAGS

    def ancestors(self) -> Iterator[DomNode]:
        current = self.parent
        while current is not None:
            yield current
            current = current.parent

    def text(self) -> str:
        return self._tag.get_text(" ", strip=True)

    def select(self, selector: str) -> list[DomNode]:
        return [DomNode(tag) for tag in _select(self._tag, selector)]

    def links(self) -> list[DomNode]:
        return self.select(LINK_SELECTOR)

    def document(self) -> Document:
        # Detached subtrees query against their topmost element
        root: Tag = self._tag
        for parent in self._tag.parents:
            root = parent
        return Document(root)

    @staticmethod
    def _join(value: object) -> str:
        if isinstance(value, (list, tuple)):
            return " ".join(str(item) for item in value)
        return str(value)


class Document:
    __slots__ = ("_root",)

    def __init__(self, root: Tag) -> None:
        self._root = root

    @classmethod
    def from_html(cls, html: str) -> Document:
        return cls(parse_html(html))

    @property
    def body(self) -> DomNode | None:
        body = self._root.find("body")
        return DomNode(body) if isinstance(body, Tag) else None

    def select(self, selector: str) -> list[DomNode]:
        return [DomNode(tag) for tag in _select(self._root, selector)]

    def select_one(self, selector: str) -> DomNode | None:
        matches = _select(self._root, selector)
        return DomNode(matches[0]) if matches else None

    def count(self, selector: str) -> int:
        return len(_select(self._root, selector))

    def links(self) -> list[DomNode]:
        return self.select(LINK_SELECTOR)
