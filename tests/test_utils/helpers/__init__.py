"""Test helpers."""

from tests.test_utils.helpers.fetching import fixture_page, links_html, page_result
from tests.test_utils.helpers.fixture import fixture_path, read_fixture

__all__ = [
    "fixture_page",
    "fixture_path",
    "links_html",
    "page_result",
    "read_fixture",
]
