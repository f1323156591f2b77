"""
CSS selector generation for a picked list container.

Selectors are built bottom-up from the picked element. Each step prefers a
stable id, then stable classes, then a semantic attribute, then a positional
``:nth-of-type``. Build-tool hashes (``sc-abc123``, ``css-1x2y3z``, ``_1a2b3c``)
never make it into a segment because they change on every redeploy.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from soupsieve import escape

from list_watcher.detection.class_filter import is_stable_id, stable_classes
from list_watcher.detection.dom import InvalidSelectorError

if TYPE_CHECKING:
    from list_watcher.detection.dom import Document, DomNode

SEGMENT_SEPARATOR = " > "
SEMANTIC_ATTRIBUTES = ("role", "data-testid", "aria-label", "name")
MAX_STABLE_CLASSES = 2


def _quote_attribute(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return escaped.replace("\n", "\\a ").replace("\r", "\\d ")


def _same_tag_index(node: DomNode) -> tuple[int, int]:
    parent = node.parent
    if parent is None:
        return 1, 1
    siblings = [child for child in parent.children if child.tag_name == node.tag_name]
    return siblings.index(node) + 1, len(siblings)


def _positional_segment(node: DomNode) -> str:
    index, total = _same_tag_index(node)
    if total <= 1:
        return node.tag_name
    return f"{node.tag_name}:nth-of-type({index})"


def _is_unique(selector: str, document: Document) -> bool:
    try:
        return document.count(selector) == 1
    except InvalidSelectorError:
        return False


def _id_selector(node: DomNode, document: Document) -> str | None:
    node_id = node.id
    if not node_id or not is_stable_id(node_id):
        return None
    selector = f"#{escape(node_id)}"
    return selector if _is_unique(selector, document) else None


def element_segment(node: DomNode, document: Document) -> tuple[str, bool]:
    """Return the selector segment for ``node`` and whether it is an id segment."""
    id_selector = _id_selector(node, document)
    if id_selector is not None:
        return id_selector, True

    tag = node.tag_name
    classes = stable_classes(node.classes)[:MAX_STABLE_CLASSES]
    if classes:
        return tag + "".join(f".{escape(cls)}" for cls in classes), False

    for attribute in SEMANTIC_ATTRIBUTES:
        value = node.get(attribute)
        if value:
            return f'{tag}[{attribute}="{_quote_attribute(value)}"]', False

    return _positional_segment(node), False


def _qualified_path(element: DomNode, document: Document) -> str:
    # Every segment pinned to its sibling position and anchored at the boundary
    segments: list[str] = []
    current: DomNode | None = element
    while current is not None and not current.is_boundary:
        segment, is_id = element_segment(current, document)
        if is_id:
            segments.insert(0, segment)
            return SEGMENT_SEPARATOR.join(segments)
        index, total = _same_tag_index(current)
        if total > 1 and ":nth-of-type(" not in segment:
            segment = f"{segment}:nth-of-type({index})"
        segments.insert(0, segment)
        current = current.parent
    if current is not None:
        segments.insert(0, current.tag_name)
    return SEGMENT_SEPARATOR.join(segments)


def generate_selector(element: DomNode) -> str:
    document = element.document()

    id_selector = _id_selector(element, document)
    if id_selector is not None:
        return id_selector

    segments: list[str] = []
    current: DomNode | None = element
    while current is not None and not current.is_boundary:
        segment, is_id = element_segment(current, document)
        segments.insert(0, segment)
        selector = SEGMENT_SEPARATOR.join(segments)
        if is_id or _is_unique(selector, document):
            return selector
        current = current.parent

    if not segments:
        return element.tag_name

    qualified = _qualified_path(element, document)
    if _is_unique(qualified, document):
        return qualified
    return SEGMENT_SEPARATOR.join(segments)


def simplify_selector(selector: str, document: Document) -> str:
    """Return the shortest trailing part of ``selector`` that still matches exactly one element."""
    parts = selector.split(SEGMENT_SEPARATOR)
    for start in range(len(parts) - 1, -1, -1):
        candidate = SEGMENT_SEPARATOR.join(parts[start:])
        if _is_unique(candidate, document):
            return candidate
    return selector


def validate_selector(selector: str, element: DomNode) -> bool:
    try:
        matched = element.document().select_one(selector)
    except InvalidSelectorError:
        return False
    return matched is not None and matched == element
