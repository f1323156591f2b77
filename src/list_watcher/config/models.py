from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from collections.abc import Mapping

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def is_valid_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


class SlackConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    webhook_url: str

    @field_validator("webhook_url")
    @classmethod
    def _validate_webhook_url(cls, value: str) -> str:
        if not is_valid_url(value):
            msg = "must be a valid URL"
            raise ValueError(msg)
        return value


class DatabaseConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    path: Path = Path("list-watcher.sqlite")


class FetchConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    timeout_seconds: float = Field(default=30.0, gt=0)
    browser_timeout_seconds: float = Field(default=60.0, gt=0)
    user_agent: str = _DEFAULT_USER_AGENT
    accept_language: str = "en-US,en;q=0.9"


class BrowserConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = True
    max_browsers: int = Field(default=1, ge=1)
    max_open_pages_per_browser: int = Field(default=10, ge=1)
    retire_browser_after_page_count: int = Field(default=50, ge=1)
    max_browser_lifetime_seconds: float = Field(default=1800.0, gt=0)
    wait_until: str = "networkidle"

    @field_validator("wait_until")
    @classmethod
    def _validate_wait_until(cls, value: str) -> str:
        if value not in {"load", "domcontentloaded", "networkidle", "commit"}:
            msg = "must be one of load, domcontentloaded, networkidle, commit"
            raise ValueError(msg)
        return value


class WatchConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    default_check_interval_minutes: int = Field(default=60, ge=1)
    scheduler_interval_seconds: int = Field(default=60, ge=1)
    stable_selector_refresh_probability: float = Field(default=0.1, ge=0.0, le=1.0)
    max_hierarchy_depth: int = Field(default=5, ge=0)


class HintsConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    endpoint: str | None = None
    api_key: str | None = None
    timeout_seconds: float = Field(default=20.0, gt=0)

    @field_validator("endpoint")
    @classmethod
    def _validate_endpoint(cls, value: str | None) -> str | None:
        if value is not None and not is_valid_url(value):
            msg = "must be a valid URL"
            raise ValueError(msg)
        return value


class AppConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    database: DatabaseConfig = DatabaseConfig()
    fetch: FetchConfig = FetchConfig()
    browser: BrowserConfig = BrowserConfig()
    watch: WatchConfig = WatchConfig()
    hints: HintsConfig = HintsConfig()
    slack: SlackConfig | None = None

    @classmethod
    def from_raw(cls, data: Mapping[str, object]) -> AppConfig:
        return cls.model_validate(data)
