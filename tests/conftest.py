"""Shared pytest configuration for all test levels."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from hypothesis import HealthCheck, settings

from tests.test_utils.helpers import fixture_page

if TYPE_CHECKING:
    from list_watcher.fetching.models import FetchResult


@pytest.fixture
def posts_initial() -> FetchResult:
    return fixture_page("posts_initial.html")


@pytest.fixture
def posts_updated() -> FetchResult:
    return fixture_page("posts_updated.html")


@pytest.fixture
def posts_redesigned() -> FetchResult:
    return fixture_page("posts_redesigned.html")


# Configure Hypothesis global settings
settings.register_profile(
    "dev",
    max_examples=50,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.register_profile(
    "ci",
    max_examples=100,
    deadline=5000,
)

if os.getenv("CI"):
    settings.load_profile("ci")
else:
    settings.load_profile("dev")


_LEVEL_MARKERS = {
    "unit": pytest.mark.unit,
    "integration": pytest.mark.integration,
    "e2e": pytest.mark.e2e,
}


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        rel = item.path.relative_to(Path(__file__).resolve().parent) if item.path else None
        if rel is None:
            continue
        for level, marker in _LEVEL_MARKERS.items():
            if rel.parts[0] == level:
                item.add_marker(marker)
                break
