from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .errors import ConfigError
from .models import AppConfig

_ENV_OVERRIDES: tuple[tuple[str, str, str], ...] = (
    ("SLACK_WEBHOOK_URL", "slack", "webhook_url"),
    ("HINTS_ENDPOINT", "hints", "endpoint"),
    ("HINTS_API_KEY", "hints", "api_key"),
)


def _apply_env_overrides(data: dict[str, Any]) -> None:
    for env_name, table, key in _ENV_OVERRIDES:
        value = os.environ.get(env_name)
        if not value:
            continue
        section = data.setdefault(table, {})
        if not isinstance(section, dict):
            msg = f"{table} must be a table"
            raise ConfigError(msg)
        section[key] = value


def _resolve_database_path(data: dict[str, Any], config_path: Path) -> None:
    database = data.get("database")
    if not isinstance(database, dict):
        return
    raw = database.get("path")
    if not isinstance(raw, str) or not raw:
        return
    path = Path(raw)
    if not path.is_absolute():
        database["path"] = str(config_path.parent / path)


def _format_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}" if location else first["msg"]


def parse_config(data: dict[str, Any]) -> AppConfig:
    try:
        return AppConfig.from_raw(data)
    except ValidationError as exc:
        raise ConfigError(_format_validation_error(exc)) from exc


def load_config(path: Path) -> AppConfig:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        msg = f"config not found: {path}"
        raise ConfigError(msg, path=path) from exc
    except tomllib.TOMLDecodeError as exc:
        msg = "toml parse error"
        raise ConfigError(msg, path=path) from exc

    _apply_env_overrides(data)
    _resolve_database_path(data, path)
    return parse_config(data)
