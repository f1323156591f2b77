from __future__ import annotations

import json
import re

_JSON_ARRAY_PATTERN = re.compile(r"\[.*\]", re.DOTALL)
_BARE_TAG_PATTERN = re.compile(r"^[a-z]+$", re.IGNORECASE)


def parse_selector_list(text: str) -> list[str]:
    """
    Pull a ranked selector list out of a free-form reply.

    The first ``[...]`` span is read as a JSON array. When that span is not
    valid JSON, lines that start with a double quote are taken instead, with
    quotes and commas stripped. Anything else yields an empty list.
    """
    match = _JSON_ARRAY_PATTERN.search(text)
    if match is None:
        return []
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        lines = [line.strip() for line in text.splitlines() if line.strip().startswith('"')]
        return [cleaned for line in lines if (cleaned := line.replace('"', "").replace(",", "").strip())]
    if not isinstance(parsed, list):
        return []
    return [item.strip() for item in parsed if isinstance(item, str) and item.strip()]


def looks_like_selector(value: str) -> bool:
    return bool(value) and ("." in value or "#" in value or bool(_BARE_TAG_PATTERN.match(value)))


def parse_lca_reply(text: str) -> str | None:
    selector = text.strip()
    return selector if looks_like_selector(selector) else None
