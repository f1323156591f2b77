from __future__ import annotations

from datetime import UTC, datetime

from factory.base import Factory
from factory.declarations import Sequence

from list_watcher.fetching.models import RenderType
from list_watcher.storage.models import (
    ContentItem,
    ContentItemSource,
    ContentItemStatus,
    Subscription,
    SubscriptionHistory,
    SubscriptionStatus,
)
from tests.test_utils.factories.fetching import SAMPLE_PAGE_URL


class SubscriptionFactory(Factory[Subscription]):
    class Meta:
        model = Subscription

    id = Sequence(lambda n: f"sub-{n}")
    url = SAMPLE_PAGE_URL
    name = "Example Engineering Blog"
    initial_selector = "section.posts"
    status = SubscriptionStatus.ACTIVE
    check_interval = 60
    render_type = RenderType.UNKNOWN
    error_message = None
    last_checked_at = None
    created_at = datetime(2024, 1, 1, tzinfo=UTC)
    updated_at = datetime(2024, 1, 1, tzinfo=UTC)


class SubscriptionHistoryFactory(Factory[SubscriptionHistory]):
    class Meta:
        model = SubscriptionHistory

    subscription_id = "sub-1"
    checked_at = datetime(2024, 1, 1, tzinfo=UTC)
    urls = ()
    stable_selectors = ()
    selector_hierarchy = ""
    has_changed = False
    error = None
    id = None


class ContentItemFactory(Factory[ContentItem]):
    class Meta:
        model = ContentItem

    id = Sequence(lambda n: f"item-{n}")
    url = "https://blog.example.com/post/1"
    subscription_id = "sub-1"
    render_type = RenderType.STATIC
    source = ContentItemSource.SUBSCRIPTION
    status = ContentItemStatus.PENDING
    created_at = datetime(2024, 1, 1, tzinfo=UTC)
