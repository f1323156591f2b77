from __future__ import annotations

import random
import uuid
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

from list_watcher.config import ConfigError
from list_watcher.detection.list_diff import diff_urls
from list_watcher.fetching.models import RenderType
from list_watcher.notification import Notification, Notifier
from list_watcher.observability import get_logger
from list_watcher.storage.models import (
    DEFAULT_CHECK_INTERVAL_MINUTES,
    ContentItem,
    Subscription,
    SubscriptionHistory,
    SubscriptionStatus,
    utc_now,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime

    from list_watcher.config import ConfigProvider
    from list_watcher.detection.models import ListDiffResult, UrlLookupResult
    from list_watcher.hints import SelectorHints

logger = get_logger(__name__)

DEFAULT_REFRESH_PROBABILITY = 0.1


class ListDiff(Protocol):
    async def fetch(
        self,
        page_url: str,
        selector: str,
        *,
        render_type: RenderType | None = None,
    ) -> ListDiffResult: ...

    async def lookup_urls_in_page(
        self,
        page_url: str,
        known_urls: Sequence[str],
        *,
        render_type: RenderType | None = None,
    ) -> UrlLookupResult: ...


class SubscriptionStore(Protocol):
    def add(self, subscription: Subscription) -> None: ...
    def get(self, subscription_id: str) -> Subscription | None: ...
    def update(self, subscription: Subscription) -> bool: ...
    def list_all(self) -> list[Subscription]: ...
    def list_by_status(self, status: SubscriptionStatus) -> list[Subscription]: ...
    def delete(self, subscription_id: str) -> bool: ...


class HistoryStore(Protocol):
    def add(self, entry: SubscriptionHistory) -> SubscriptionHistory: ...
    def latest_successful(self, subscription_id: str) -> SubscriptionHistory | None: ...
    def list_by_subscription_id(self, subscription_id: str, *, limit: int | None = None) -> list[SubscriptionHistory]: ...


class ContentSink(Protocol):
    def add(self, item: ContentItem) -> None: ...


class ResolutionStrategy(StrEnum):
    REVERSE_LOOKUP = "reverse_lookup"
    STABLE_SELECTOR = "stable_selector"
    INITIAL_SELECTOR = "initial_selector"


@dataclass(frozen=True, slots=True)
class WatchResult:
    success: bool
    subscription_id: str | None = None
    url_count: int = 0
    error: str | None = None


@dataclass(frozen=True, slots=True)
class CheckResult:
    subscription_id: str
    success: bool
    new_urls: tuple[str, ...] = ()
    total_urls: int = 0
    error: str | None = None
    broken: bool = False
    strategy: ResolutionStrategy | None = None


@dataclass(frozen=True, slots=True)
class _Resolution:
    strategy: ResolutionStrategy
    selector: str
    urls: tuple[str, ...]
    selector_hierarchy: str
    detected_render_type: RenderType | None


@dataclass(frozen=True, slots=True)
class _Failure:
    error: str
    transient: bool
    detected_render_type: RenderType | None = None


class SubscriptionCheckCoordinator:
    """
    Runs one check cycle per subscription and keeps it alive across markup drift.

    Strategies are tried one at a time, first success wins:

    1. reverse lookup of the previously seen URLs,
    2. the cached stable selectors in rank order,
    3. the selector the user originally picked.

    A page that cannot be fetched ends the check early and is retried on the
    next scheduled run. A page that loads but where no strategy finds a list
    marks the subscription broken. Every attempt appends exactly one history
    row.
    """

    def __init__(
        self,
        *,
        list_diff: ListDiff,
        subscriptions: SubscriptionStore,
        history: HistoryStore,
        content_sink: ContentSink,
        hints: SelectorHints,
        notifier: Notifier | None = None,
        refresh_probability: float = DEFAULT_REFRESH_PROBABILITY,
        random_source: Callable[[], float] = random.random,
        default_check_interval: int = DEFAULT_CHECK_INTERVAL_MINUTES,
        clock: Callable[[], datetime] = utc_now,
        config_provider: ConfigProvider | None = None,
    ) -> None:
        if not 0.0 <= refresh_probability <= 1.0:
            msg = "refresh_probability must be between 0 and 1"
            raise ValueError(msg)
        self._list_diff = list_diff
        self._subscriptions = subscriptions
        self._history = history
        self._content_sink = content_sink
        self._hints = hints
        self._notifier = notifier
        self._refresh_probability = refresh_probability
        self._random = random_source
        self._default_check_interval = default_check_interval
        self._clock = clock
        self._config_provider = config_provider

    async def initialize_watch(
        self,
        url: str,
        selector: str,
        name: str,
        check_interval: int | None = None,
    ) -> WatchResult:
        if check_interval is not None and check_interval <= 0:
            return WatchResult(success=False, error="check_interval must be positive")

        result = await self._list_diff.fetch(url, selector)
        if not result.success:
            logger.info("watch_initialize_failed", url=url, selector=selector, error=result.error)
            return WatchResult(success=False, error=result.error)

        now = self._clock()
        subscription = Subscription(
            id=str(uuid.uuid4()),
            url=url,
            name=name,
            initial_selector=selector,
            check_interval=check_interval or self._default_check_interval,
            render_type=result.detected_render_type or RenderType.UNKNOWN,
            last_checked_at=now,
            created_at=now,
            updated_at=now,
        )
        self._subscriptions.add(subscription)
        self._history.add(
            SubscriptionHistory(
                subscription_id=subscription.id,
                checked_at=now,
                urls=result.urls,
                selector_hierarchy=result.selector_hierarchy,
                has_changed=False,
            ),
        )
        logger.info(
            "watch_initialized",
            subscription_id=subscription.id,
            url=url,
            selector=selector,
            url_count=len(result.urls),
            render_type=subscription.render_type,
        )
        return WatchResult(success=True, subscription_id=subscription.id, url_count=len(result.urls))

    async def check_subscription(self, subscription_id: str) -> CheckResult:
        subscription = self._subscriptions.get(subscription_id)
        if subscription is None:
            return CheckResult(subscription_id=subscription_id, success=False, error=f"Subscription not found: {subscription_id}")
        if subscription.status != SubscriptionStatus.ACTIVE:
            return CheckResult(subscription_id=subscription_id, success=False, error=f"Subscription is {subscription.status}")

        previous = self._history.latest_successful(subscription_id)
        previous_urls = previous.urls if previous is not None else ()
        stable_selectors = previous.stable_selectors if previous is not None else ()

        logger.info(
            "check_started",
            subscription_id=subscription_id,
            previous_urls=len(previous_urls),
            stable_selectors=len(stable_selectors),
        )
        outcome = await self._resolve(subscription, previous_urls, stable_selectors)
        if isinstance(outcome, _Failure):
            return await self._record_failure(subscription, outcome, stable_selectors)
        return await self._record_success(subscription, outcome, previous_urls, stable_selectors)

    async def check_due(self, now: datetime | None = None) -> list[CheckResult]:
        self._reload_settings()
        now = now or self._clock()
        due = [subscription for subscription in self._subscriptions.list_by_status(SubscriptionStatus.ACTIVE) if subscription.is_due(now)]
        logger.info("check_cycle_started", due=len(due))

        results = [await self.check_subscription(subscription.id) for subscription in due]

        logger.info(
            "check_cycle_completed",
            checked=len(results),
            succeeded=sum(1 for result in results if result.success),
            broken=sum(1 for result in results if result.broken),
        )
        return results

    def pause_subscription(self, subscription_id: str) -> Subscription | None:
        return self._transition(subscription_id, SubscriptionStatus.ACTIVE, SubscriptionStatus.PAUSED)

    def resume_subscription(self, subscription_id: str) -> Subscription | None:
        return self._transition(subscription_id, SubscriptionStatus.PAUSED, SubscriptionStatus.ACTIVE)

    def delete_subscription(self, subscription_id: str) -> bool:
        deleted = self._subscriptions.delete(subscription_id)
        if deleted:
            logger.info("subscription_deleted", subscription_id=subscription_id)
        return deleted

    def list_subscriptions(self, status: SubscriptionStatus | None = None) -> list[Subscription]:
        if status is None:
            return self._subscriptions.list_all()
        return self._subscriptions.list_by_status(status)

    def get_history(self, subscription_id: str, *, limit: int | None = None) -> list[SubscriptionHistory]:
        return self._history.list_by_subscription_id(subscription_id, limit=limit)

    def _reload_settings(self) -> None:
        if self._config_provider is None:
            return
        try:
            watch = self._config_provider.get().watch
        except ConfigError as exc:
            logger.warning("config_reload_failed", error=str(exc))
            return
        self._refresh_probability = watch.stable_selector_refresh_probability
        self._default_check_interval = watch.default_check_interval_minutes

    def _transition(
        self,
        subscription_id: str,
        source: SubscriptionStatus,
        target: SubscriptionStatus,
    ) -> Subscription | None:
        subscription = self._subscriptions.get(subscription_id)
        if subscription is None or subscription.status != source:
            return subscription
        updated = replace(subscription, status=target, updated_at=self._clock())
        self._subscriptions.update(updated)
        logger.info("subscription_status_changed", subscription_id=subscription_id, status=target)
        return updated

    async def _resolve(
        self,
        subscription: Subscription,
        previous_urls: tuple[str, ...],
        stable_selectors: tuple[str, ...],
    ) -> _Resolution | _Failure:
        render_type = subscription.render_type if subscription.render_type != RenderType.UNKNOWN else None
        last_error = "No resolution strategy available"

        if previous_urls:
            lookup = await self._list_diff.lookup_urls_in_page(subscription.url, previous_urls, render_type=render_type)
            if lookup.fetch_failed:
                return _Failure(error=lookup.error or "", transient=True, detected_render_type=lookup.detected_render_type)
            render_type = render_type or lookup.detected_render_type
            if lookup.found and lookup.container_urls:
                return _Resolution(
                    strategy=ResolutionStrategy.REVERSE_LOOKUP,
                    selector=lookup.container_selector or subscription.initial_selector,
                    urls=lookup.container_urls,
                    selector_hierarchy=lookup.selector_hierarchy,
                    detected_render_type=render_type,
                )
            last_error = "None of the previously seen URLs were found on the page"
            logger.info("strategy_failed", subscription_id=subscription.id, strategy=ResolutionStrategy.REVERSE_LOOKUP)

        attempts = [(ResolutionStrategy.STABLE_SELECTOR, selector) for selector in stable_selectors]
        attempts.append((ResolutionStrategy.INITIAL_SELECTOR, subscription.initial_selector))
        tried: set[str] = set()
        for strategy, selector in attempts:
            if selector in tried:
                continue
            tried.add(selector)

            result = await self._list_diff.fetch(subscription.url, selector, render_type=render_type)
            if result.fetch_failed:
                return _Failure(error=result.error or "", transient=True, detected_render_type=result.detected_render_type)
            render_type = render_type or result.detected_render_type
            if result.success:
                return _Resolution(
                    strategy=strategy,
                    selector=selector,
                    urls=result.urls,
                    selector_hierarchy=result.selector_hierarchy,
                    detected_render_type=render_type,
                )
            last_error = result.error or last_error
            logger.info("strategy_failed", subscription_id=subscription.id, strategy=strategy, selector=selector, error=result.error)

        return _Failure(
            error=f"All resolution strategies failed: {last_error}",
            transient=False,
            detected_render_type=render_type,
        )

    async def _record_success(
        self,
        subscription: Subscription,
        resolution: _Resolution,
        previous_urls: tuple[str, ...],
        stable_selectors: tuple[str, ...],
    ) -> CheckResult:
        now = self._clock()
        render_type = subscription.render_type
        if render_type == RenderType.UNKNOWN and resolution.detected_render_type not in (None, RenderType.UNKNOWN):
            render_type = resolution.detected_render_type
            logger.info("render_type_detected", subscription_id=subscription.id, render_type=render_type)

        refreshed = await self._refresh_stable_selectors(subscription, resolution, stable_selectors)

        new_urls = diff_urls(previous_urls, resolution.urls)
        for url in new_urls:
            self._content_sink.add(
                ContentItem(id=str(uuid.uuid4()), url=url, subscription_id=subscription.id, render_type=render_type),
            )
        self._history.add(
            SubscriptionHistory(
                subscription_id=subscription.id,
                checked_at=now,
                urls=resolution.urls,
                stable_selectors=refreshed,
                selector_hierarchy=resolution.selector_hierarchy,
                has_changed=bool(new_urls),
            ),
        )
        self._subscriptions.update(replace(subscription, render_type=render_type, last_checked_at=now, updated_at=now))

        logger.info(
            "check_succeeded",
            subscription_id=subscription.id,
            strategy=resolution.strategy,
            new_urls=len(new_urls),
            total_urls=len(resolution.urls),
        )
        if new_urls:
            await self._notify(
                Notification(
                    title=f"New entries: {subscription.name}",
                    body=f"{len(new_urls)} new entries on {subscription.name}",
                    url=subscription.url,
                    links=tuple(new_urls),
                ),
            )
        return CheckResult(
            subscription_id=subscription.id,
            success=True,
            new_urls=tuple(new_urls),
            total_urls=len(resolution.urls),
            strategy=resolution.strategy,
        )

    async def _record_failure(
        self,
        subscription: Subscription,
        failure: _Failure,
        stable_selectors: tuple[str, ...],
    ) -> CheckResult:
        now = self._clock()
        self._history.add(
            SubscriptionHistory(
                subscription_id=subscription.id,
                checked_at=now,
                stable_selectors=stable_selectors,
                has_changed=False,
                error=failure.error,
            ),
        )

        if failure.transient:
            self._subscriptions.update(replace(subscription, last_checked_at=now, updated_at=now))
            logger.warning("check_fetch_failed", subscription_id=subscription.id, error=failure.error)
            return CheckResult(subscription_id=subscription.id, success=False, error=failure.error)

        self._subscriptions.update(
            replace(
                subscription,
                status=SubscriptionStatus.BROKEN,
                error_message=failure.error,
                last_checked_at=now,
                updated_at=now,
            ),
        )
        logger.warning("subscription_broken", subscription_id=subscription.id, error=failure.error)
        await self._notify(
            Notification(
                title=f"Subscription broken: {subscription.name}",
                body=failure.error,
                url=subscription.url,
            ),
        )
        return CheckResult(subscription_id=subscription.id, success=False, error=failure.error, broken=True)

    async def _refresh_stable_selectors(
        self,
        subscription: Subscription,
        resolution: _Resolution,
        cached: tuple[str, ...],
    ) -> tuple[str, ...]:
        if cached and self._random() >= self._refresh_probability:
            return cached
        if not resolution.selector_hierarchy:
            return cached

        try:
            candidates = await self._hints.extract_stable_selectors(resolution.selector_hierarchy, resolution.selector)
            if candidates:
                logger.info("stable_selectors_refreshed", subscription_id=subscription.id, count=len(candidates))
                return tuple(candidates)
            if cached:
                return cached
            lca = await self._hints.find_lca(resolution.selector_hierarchy, resolution.urls)
        except Exception as exc:  # noqa: BLE001
            logger.warning("stable_selector_refresh_failed", subscription_id=subscription.id, error=str(exc))
            return cached

        if lca:
            logger.info("stable_selectors_seeded_from_lca", subscription_id=subscription.id, selector=lca)
            return (lca,)
        return cached

    async def _notify(self, notification: Notification) -> None:
        if self._notifier is None:
            return
        try:
            await self._notifier.send(notification)
        except Exception as exc:  # noqa: BLE001
            logger.warning("notification_failed", title=notification.title, error=str(exc))
