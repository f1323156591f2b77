from __future__ import annotations

from bs4 import BeautifulSoup, FeatureNotFound
from bs4.builder import ParserRejectedMarkup

from list_watcher.observability import get_logger

logger = get_logger(__name__)


def parse_html(html: str) -> BeautifulSoup:
    """Parse with lxml; html5lib takes over when lxml is missing or rejects the markup."""
    try:
        return BeautifulSoup(html, "lxml")
    except (FeatureNotFound, ParserRejectedMarkup) as exc:
        logger.debug("html_parser_fallback", parser="html5lib", error=str(exc))
        return BeautifulSoup(html, "html5lib")
