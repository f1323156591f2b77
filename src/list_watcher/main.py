from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import httpx
import typer

from list_watcher.config import ConfigError, FileConfigProvider
from list_watcher.core import SubscriptionCheckCoordinator, SubscriptionScheduler
from list_watcher.detection import ListDiffEngine, pick_container
from list_watcher.fetching import BrowserFetcher, BrowserPool, BrowserPoolSettings, HttpFetcher, SmartFetcher
from list_watcher.hints import HttpSelectorHints, NullSelectorHints
from list_watcher.notification import SlackNotifier
from list_watcher.observability import configure_logging, get_logger
from list_watcher.storage import (
    ContentItemRepository,
    Database,
    SubscriptionHistoryRepository,
    SubscriptionRepository,
    SubscriptionStatus,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from list_watcher.config import AppConfig
    from list_watcher.core import CheckResult
    from list_watcher.hints import SelectorHints
    from list_watcher.storage import Subscription

logger = get_logger(__name__)

app = typer.Typer(add_completion=False)

ConfigOption = Annotated[Path, typer.Option("-c", "--config", help="Path to the TOML config file.")]


@dataclass(frozen=True, slots=True)
class ApplicationComponents:
    config: AppConfig
    db: Database
    client: httpx.AsyncClient
    browser_pool: BrowserPool | None
    fetcher: SmartFetcher
    coordinator: SubscriptionCheckCoordinator
    scheduler: SubscriptionScheduler


@asynccontextmanager
async def create_application(config_path: Path) -> AsyncIterator[ApplicationComponents]:
    config_provider = FileConfigProvider(config_path)
    config = config_provider.get()

    db = Database(config.database.path)
    db.initialize()

    client = httpx.AsyncClient(timeout=httpx.Timeout(config.fetch.timeout_seconds))
    browser_pool = _create_browser_pool(config)
    try:
        if browser_pool is not None:
            await browser_pool.init()

        fetcher = SmartFetcher(
            static_fetcher=HttpFetcher(
                client,
                timeout_seconds=config.fetch.timeout_seconds,
                user_agent=config.fetch.user_agent,
                accept_language=config.fetch.accept_language,
            ),
            browser_fetcher=(
                BrowserFetcher(
                    browser_pool,
                    timeout_seconds=config.fetch.browser_timeout_seconds,
                    wait_until=config.browser.wait_until,
                )
                if browser_pool is not None
                else None
            ),
        )
        coordinator = SubscriptionCheckCoordinator(
            list_diff=ListDiffEngine(fetcher, max_depth=config.watch.max_hierarchy_depth),
            subscriptions=SubscriptionRepository(db),
            history=SubscriptionHistoryRepository(db),
            content_sink=ContentItemRepository(db),
            hints=_create_hints(config, client),
            notifier=SlackNotifier(client=client, config=config.slack) if config.slack is not None else None,
            refresh_probability=config.watch.stable_selector_refresh_probability,
            default_check_interval=config.watch.default_check_interval_minutes,
            config_provider=config_provider,
        )
        scheduler = SubscriptionScheduler(
            interval_seconds=config.watch.scheduler_interval_seconds,
            coordinator=coordinator,
            config_provider=config_provider,
        )

        yield ApplicationComponents(
            config=config,
            db=db,
            client=client,
            browser_pool=browser_pool,
            fetcher=fetcher,
            coordinator=coordinator,
            scheduler=scheduler,
        )
    finally:
        if browser_pool is not None:
            await browser_pool.shutdown()
        await client.aclose()
        db.close()


def _create_browser_pool(config: AppConfig) -> BrowserPool | None:
    if not config.browser.enabled:
        return None
    return BrowserPool(
        BrowserPoolSettings(
            max_browsers=config.browser.max_browsers,
            max_open_pages_per_browser=config.browser.max_open_pages_per_browser,
            retire_browser_after_page_count=config.browser.retire_browser_after_page_count,
            max_browser_lifetime_seconds=config.browser.max_browser_lifetime_seconds,
            user_agent=config.fetch.user_agent,
        ),
    )


def _create_hints(config: AppConfig, client: httpx.AsyncClient) -> SelectorHints:
    if config.hints.endpoint is None:
        return NullSelectorHints()
    return HttpSelectorHints(
        client,
        config.hints.endpoint,
        api_key=config.hints.api_key,
        timeout_seconds=config.hints.timeout_seconds,
    )


def _execute(config_path: Path, action: Callable[[ApplicationComponents], Awaitable[int]]) -> None:
    configure_logging()

    async def _main() -> int:
        async with create_application(config_path) as components:
            return await action(components)

    try:
        exit_code = asyncio.run(_main())
    except ConfigError as exc:
        typer.echo(f"Config error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    if exit_code:
        raise typer.Exit(code=exit_code)


def _format_subscription(subscription: Subscription) -> str:
    checked = subscription.last_checked_at.isoformat() if subscription.last_checked_at else "never"
    line = f"{subscription.id}  [{subscription.status}]  {subscription.name}  {subscription.url}  (render={subscription.render_type}, last checked {checked})"
    if subscription.error_message:
        line += f"\n    error: {subscription.error_message}"
    return line


def _echo_check_result(result: CheckResult) -> int:
    if result.success:
        typer.echo(f"{result.subscription_id}: {len(result.new_urls)} new of {result.total_urls} URLs (via {result.strategy})")
        for url in result.new_urls:
            typer.echo(f"  + {url}")
        return 0
    suffix = " (subscription marked broken)" if result.broken else ""
    typer.echo(f"{result.subscription_id}: check failed: {result.error}{suffix}", err=True)
    return 1


@app.command()
def watch(
    url: Annotated[str, typer.Argument(help="Page holding the list to watch.")],
    selector: Annotated[str, typer.Argument(help="CSS selector of the list container.")],
    config: ConfigOption,
    name: Annotated[str, typer.Option("--name", help="Display name for the subscription.")],
    interval: Annotated[int | None, typer.Option("--interval", help="Check interval in minutes.")] = None,
) -> None:
    """Validate a selector against the live page and start watching it."""

    async def action(components: ApplicationComponents) -> int:
        result = await components.coordinator.initialize_watch(url, selector, name, interval)
        if not result.success:
            typer.echo(f"Watch failed: {result.error}", err=True)
            return 1
        typer.echo(f"Watching {url} as {result.subscription_id} ({result.url_count} URLs)")
        return 0

    _execute(config, action)


@app.command()
def check(
    subscription_id: Annotated[str, typer.Argument()],
    config: ConfigOption,
) -> None:
    """Run one check of a subscription now."""

    async def action(components: ApplicationComponents) -> int:
        return _echo_check_result(await components.coordinator.check_subscription(subscription_id))

    _execute(config, action)


@app.command()
def pick(
    url: Annotated[str, typer.Argument(help="Page holding the list.")],
    config: ConfigOption,
    sample_url: Annotated[str, typer.Option("--sample-url", help="URL of one entry visible in the list.")],
) -> None:
    """Suggest a container selector from one known entry URL."""

    async def action(components: ApplicationComponents) -> int:
        fetched = await components.fetcher.fetch(url)
        if not fetched.success or fetched.html is None:
            typer.echo(f"Fetch failed: {fetched.error}", err=True)
            return 1
        result = pick_container(fetched.html, url, sample_url, max_depth=components.config.watch.max_hierarchy_depth)
        if result is None:
            typer.echo(f"No link to {sample_url} found on {url}", err=True)
            return 1
        typer.echo(f"Selector: {result.selector}")
        for entry in result.urls:
            typer.echo(f"  {entry}")
        return 0

    _execute(config, action)


@app.command(name="list")
def list_subscriptions(
    config: ConfigOption,
    status: Annotated[SubscriptionStatus | None, typer.Option("--status")] = None,
) -> None:
    """List subscriptions, optionally filtered by status."""

    async def action(components: ApplicationComponents) -> int:
        for subscription in components.coordinator.list_subscriptions(status):
            typer.echo(_format_subscription(subscription))
        return 0

    _execute(config, action)


@app.command()
def history(
    subscription_id: Annotated[str, typer.Argument()],
    config: ConfigOption,
    limit: Annotated[int, typer.Option("--limit", min=1)] = 20,
) -> None:
    """Show the most recent check attempts of a subscription."""

    async def action(components: ApplicationComponents) -> int:
        for entry in components.coordinator.get_history(subscription_id, limit=limit):
            outcome = f"error: {entry.error}" if entry.error else f"{len(entry.urls)} URLs, changed={entry.has_changed}"
            typer.echo(f"{entry.checked_at.isoformat()}  {outcome}")
        return 0

    _execute(config, action)


def _status_command(subscription_id: str, config_path: Path, *, pause: bool) -> None:
    async def action(components: ApplicationComponents) -> int:
        coordinator = components.coordinator
        subscription = coordinator.pause_subscription(subscription_id) if pause else coordinator.resume_subscription(subscription_id)
        if subscription is None:
            typer.echo(f"Subscription not found: {subscription_id}", err=True)
            return 1
        typer.echo(_format_subscription(subscription))
        return 0

    _execute(config_path, action)


@app.command()
def pause(subscription_id: Annotated[str, typer.Argument()], config: ConfigOption) -> None:
    """Stop checking an active subscription."""
    _status_command(subscription_id, config, pause=True)


@app.command()
def resume(subscription_id: Annotated[str, typer.Argument()], config: ConfigOption) -> None:
    """Reactivate a paused subscription. Broken subscriptions stay broken."""
    _status_command(subscription_id, config, pause=False)


@app.command()
def delete(subscription_id: Annotated[str, typer.Argument()], config: ConfigOption) -> None:
    """Delete a subscription with its history and content items."""

    async def action(components: ApplicationComponents) -> int:
        if not components.coordinator.delete_subscription(subscription_id):
            typer.echo(f"Subscription not found: {subscription_id}", err=True)
            return 1
        typer.echo(f"Deleted {subscription_id}")
        return 0

    _execute(config, action)


@app.command()
def run(
    config: ConfigOption,
    once: Annotated[bool, typer.Option("--once", help="Check due subscriptions once and exit.")] = False,
) -> None:
    """Check due subscriptions on a fixed tick."""

    async def action(components: ApplicationComponents) -> int:
        if once:
            results = await components.coordinator.check_due()
            return max((_echo_check_result(result) for result in results), default=0)

        await components.scheduler.start()
        try:
            await components.scheduler.wait()
        finally:
            await components.scheduler.shutdown()
        return 0

    _execute(config, action)


if __name__ == "__main__":
    app()
