"""Classification of class and id tokens into build-tool hashes and semantic names."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

DYNAMIC_TOKEN_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^sc-[a-z0-9]+$", re.IGNORECASE),  # styled-components
    re.compile(r"^css-[a-z0-9]+$", re.IGNORECASE),  # emotion
    re.compile(r"^jsx-[a-z0-9]+$", re.IGNORECASE),  # styled-jsx
    re.compile(r"^svelte-[a-z0-9]+$", re.IGNORECASE),
    re.compile(r"^tw-[a-z0-9]+$", re.IGNORECASE),
    re.compile(r"^_(?=[a-z0-9]*\d)[a-z0-9]{4,}$", re.IGNORECASE),  # CSS modules: _1a2b3c
    re.compile(r"__(?=[a-z0-9]*\d)[a-z0-9]{5,}$", re.IGNORECASE),  # CSS modules suffix: Title__3xYz1
    re.compile(r"^[a-z]{1,3}\d{4,}$", re.IGNORECASE),  # short prefix + long number: a12345
    re.compile(r"^(?=[a-z0-9]*\d)(?=[a-z0-9]*[a-z])[a-z0-9]{6,}$", re.IGNORECASE),  # mixed hash: x7f3k9q
)
_NUMERIC_PATTERN = re.compile(r"^\d+$")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def is_dynamic_token(token: str) -> bool:
    return any(pattern.search(token) for pattern in DYNAMIC_TOKEN_PATTERNS)


def is_stable_id(value: str) -> bool:
    if not value or _NUMERIC_PATTERN.match(value):
        return False
    return not is_dynamic_token(value)


def stable_classes(classes: Iterable[str]) -> list[str]:
    return [cls for cls in classes if cls and not is_dynamic_token(cls) and not _NUMERIC_PATTERN.match(cls)]


def clean_classes(classes: str | Iterable[str]) -> str:
    """Drop hash-like tokens and return the remaining classes space-joined."""
    tokens = _WHITESPACE_PATTERN.split(classes) if isinstance(classes, str) else list(classes)
    return " ".join(stable_classes(tokens))
