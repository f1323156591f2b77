from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from list_watcher.config import ConfigError
from list_watcher.observability import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from list_watcher.config import ConfigProvider

logger = get_logger(__name__)


class SubscriptionScheduler:
    """
    Calls ``check_due`` on a fixed tick until shut down. Run one scheduler per database.

    With a ``config_provider`` the tick length is re-read before every cycle.
    """

    def __init__(
        self,
        interval_seconds: int,
        coordinator: object,
        *,
        config_provider: ConfigProvider | None = None,
    ) -> None:
        if interval_seconds <= 0:
            msg = "interval_seconds must be positive"
            raise ValueError(msg)
        if not hasattr(coordinator, "check_due"):
            msg = "coordinator must define check_due"
            raise TypeError(msg)

        self._interval_seconds = interval_seconds
        self._coordinator = coordinator
        self._config_provider = config_provider
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def interval_seconds(self) -> int:
        return self._interval_seconds

    async def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run())
        logger.info("scheduler_started", interval_seconds=self._interval_seconds)

    async def shutdown(self) -> None:
        if self._task is None:
            return
        self._stop_event.set()
        await self._task
        self._task = None
        logger.info("scheduler_stopped")

    async def wait(self) -> None:
        if self._task is not None:
            await self._task

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            self._reload_interval()
            await self._maybe_await(self._coordinator.check_due())
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval_seconds)
            except TimeoutError:
                continue

    def _reload_interval(self) -> None:
        if self._config_provider is None:
            return
        try:
            interval = self._config_provider.get().watch.scheduler_interval_seconds
        except ConfigError as exc:
            logger.warning("config_reload_failed", error=str(exc))
            return
        if interval != self._interval_seconds:
            logger.info("scheduler_interval_changed", previous=self._interval_seconds, interval_seconds=interval)
            self._interval_seconds = interval

    async def _maybe_await(self, result: Awaitable[object] | object) -> None:
        if asyncio.iscoroutine(result):
            await result
