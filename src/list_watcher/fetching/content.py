"""Text extraction and the content-sufficiency check used to pick a render strategy."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from list_watcher.detection.html_parser import parse_html

if TYPE_CHECKING:
    from list_watcher.fetching.models import FetchResult

MIN_CONTENT_LENGTH = 500
MIN_RENDERED_TEXT_LENGTH = 100
MIN_MEANINGFUL_RATIO = 0.3

_NON_CONTENT_TAGS = ["script", "style", "noscript", "template", "svg"]
_WHITESPACE_PATTERN = re.compile(r"\s+")
_LOADING_PATTERN = re.compile(
    r"loading\.\.\.|please wait|fetching\.\.\.|로딩 중|잠시만 기다려|불러오는 중|読み込み中|加载中",
    re.IGNORECASE,
)
_SKELETON_PATTERN = re.compile(r"[█░▒]|skeleton|placeholder", re.IGNORECASE)


def extract_text(html: str) -> tuple[str | None, str]:
    """Return the page title and its visible text with whitespace collapsed."""
    soup = parse_html(html)
    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag is not None else None

    for tag in soup(_NON_CONTENT_TAGS):
        tag.decompose()
    source = soup.body if soup.body is not None else soup
    text = _WHITESPACE_PATTERN.sub(" ", source.get_text(" ")).strip()
    return title or None, text


def meaningful_ratio(text: str) -> float:
    if not text:
        return 0.0
    # str.isalpha covers Latin, Hangul and CJK ideographs alike
    letters = sum(1 for char in text if char.isalpha())
    return letters / len(text)


def looks_like_placeholder(text: str) -> bool:
    return bool(_LOADING_PATTERN.search(text) or _SKELETON_PATTERN.search(text))


def is_content_sufficient(result: FetchResult) -> bool:
    if not result.success or not result.text:
        return False

    text = result.text
    if len(text) < MIN_CONTENT_LENGTH:
        return False
    if looks_like_placeholder(text):
        return False
    return meaningful_ratio(text) >= MIN_MEANINGFUL_RATIO
