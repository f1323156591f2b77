from list_watcher.core.coordinator import (
    CheckResult,
    ContentSink,
    ResolutionStrategy,
    SubscriptionCheckCoordinator,
    WatchResult,
)
from list_watcher.core.scheduler import SubscriptionScheduler

__all__ = [
    "CheckResult",
    "ContentSink",
    "ResolutionStrategy",
    "SubscriptionCheckCoordinator",
    "SubscriptionScheduler",
    "WatchResult",
]
