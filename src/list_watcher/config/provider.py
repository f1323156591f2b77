from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from list_watcher.config.errors import ConfigError
from list_watcher.config.loader import load_config
from list_watcher.observability import get_logger

if TYPE_CHECKING:
    from pathlib import Path

    from list_watcher.config.models import AppConfig

logger = get_logger(__name__)


class ConfigProvider(Protocol):
    def get(self) -> AppConfig: ...


class FileConfigProvider:
    """
    Serves the config at ``path`` and re-reads it whenever its mtime changes.

    A broken edit or a deleted file keeps the last config that loaded; only
    the first load raises.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._loaded_mtime: float | None = None
        self._current: AppConfig | None = None

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> AppConfig:
        mtime = self._mtime()
        if self._current is not None and mtime in (None, self._loaded_mtime):
            return self._current

        try:
            config = load_config(self._path)
        except ConfigError as exc:
            if self._current is None:
                raise
            logger.warning("config_reload_failed", path=str(self._path), error=str(exc))
            return self._current

        if self._current is not None:
            logger.info("config_reloaded", path=str(self._path))
        self._current = config
        self._loaded_mtime = mtime
        return config

    def _mtime(self) -> float | None:
        try:
            return self._path.stat().st_mtime
        except FileNotFoundError:
            return None
