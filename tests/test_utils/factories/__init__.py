from tests.test_utils.factories.fetching import SAMPLE_PAGE_URL, SAMPLE_SITE_URL, FetchResultFactory
from tests.test_utils.factories.storage import ContentItemFactory, SubscriptionFactory, SubscriptionHistoryFactory

__all__ = [
    "SAMPLE_PAGE_URL",
    "SAMPLE_SITE_URL",
    "ContentItemFactory",
    "FetchResultFactory",
    "SubscriptionFactory",
    "SubscriptionHistoryFactory",
]
