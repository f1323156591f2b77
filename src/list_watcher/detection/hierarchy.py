from __future__ import annotations

from typing import TYPE_CHECKING

from list_watcher.detection.class_filter import clean_classes

if TYPE_CHECKING:
    from list_watcher.detection.dom import DomNode

DEFAULT_MAX_DEPTH = 5
MAX_HREF_LENGTH = 50
MAX_LINK_TEXT_LENGTH = 30


def truncate(value: str, max_length: int) -> str:
    if len(value) <= max_length:
        return value
    return f"{value[:max_length]}..."


def serialize_hierarchy(container: DomNode, max_depth: int = DEFAULT_MAX_DEPTH) -> str:
    """
    Serialize the container subtree into a compact, attribute-pruned HTML outline.

    Only ``id``, cleaned ``class`` and (for links) ``href`` survive, link text
    is kept short, and nodes deeper than ``max_depth`` below the container are
    dropped. The output is meant for selector-ranking hints, not rendering.
    """
    return _serialize(container, 0, max_depth)


def _serialize(node: DomNode, depth: int, max_depth: int) -> str:
    if depth > max_depth:
        return ""

    tag = node.tag_name
    parts = [f"<{tag}"]
    node_id = node.id
    if node_id:
        parts.append(f' id="{node_id}"')
    classes = clean_classes(node.classes)
    if classes:
        parts.append(f' class="{classes}"')
    href = node.get("href") if tag == "a" else None
    if href:
        parts.append(f' href="{truncate(href, MAX_HREF_LENGTH)}"')
    parts.append(">")

    if tag == "a":
        text = node.text()
        if text:
            parts.append(truncate(text, MAX_LINK_TEXT_LENGTH))

    parts.extend(_serialize(child, depth + 1, max_depth) for child in node.children)
    parts.append(f"</{tag}>")
    return "".join(parts)
