from .database import Database
from .models import (
    ContentItem,
    ContentItemSource,
    ContentItemStatus,
    Subscription,
    SubscriptionHistory,
    SubscriptionStatus,
)
from .repository import ContentItemRepository, SubscriptionHistoryRepository, SubscriptionRepository

__all__ = [
    "ContentItem",
    "ContentItemRepository",
    "ContentItemSource",
    "ContentItemStatus",
    "Database",
    "Subscription",
    "SubscriptionHistory",
    "SubscriptionHistoryRepository",
    "SubscriptionRepository",
    "SubscriptionStatus",
]
