from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from list_watcher.fetching.models import RenderType

DEFAULT_CHECK_INTERVAL_MINUTES = 60


def utc_now() -> datetime:
    return datetime.now(UTC)


class SubscriptionStatus(StrEnum):
    ACTIVE = "active"
    PAUSED = "paused"
    BROKEN = "broken"


class ContentItemSource(StrEnum):
    READ_LATER = "read_later"
    SUBSCRIPTION = "subscription"


class ContentItemStatus(StrEnum):
    PENDING = "pending"
    READY = "ready"
    DONE = "done"
    ARCHIVED = "archived"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Subscription:
    id: str
    url: str
    name: str
    initial_selector: str
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    check_interval: int = DEFAULT_CHECK_INTERVAL_MINUTES
    render_type: RenderType = RenderType.UNKNOWN
    error_message: str | None = None
    last_checked_at: datetime | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        if not self.id:
            msg = "id cannot be empty"
            raise ValueError(msg)
        if not self.url:
            msg = "url cannot be empty"
            raise ValueError(msg)
        if not self.initial_selector:
            msg = "initial_selector cannot be empty"
            raise ValueError(msg)
        if self.check_interval <= 0:
            msg = "check_interval must be positive"
            raise ValueError(msg)
        if (self.status == SubscriptionStatus.BROKEN) != (self.error_message is not None):
            msg = "error_message must be set exactly when the subscription is broken"
            raise ValueError(msg)

    def is_due(self, now: datetime) -> bool:
        if self.last_checked_at is None:
            return True
        return self.last_checked_at + timedelta(minutes=self.check_interval) <= now


@dataclass(frozen=True, slots=True)
class SubscriptionHistory:
    subscription_id: str
    checked_at: datetime
    urls: tuple[str, ...] = ()
    stable_selectors: tuple[str, ...] = ()
    selector_hierarchy: str = ""
    has_changed: bool = False
    error: str | None = None
    id: int | None = None

    def __post_init__(self) -> None:
        if not self.subscription_id:
            msg = "subscription_id cannot be empty"
            raise ValueError(msg)
        if self.error is not None and self.has_changed:
            msg = "a failed check cannot report a change"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class ContentItem:
    id: str
    url: str
    subscription_id: str | None
    render_type: RenderType = RenderType.UNKNOWN
    source: ContentItemSource = ContentItemSource.SUBSCRIPTION
    status: ContentItemStatus = ContentItemStatus.PENDING
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        if not self.url:
            msg = "url cannot be empty"
            raise ValueError(msg)
