from .errors import ConfigError
from .loader import load_config, parse_config
from .models import (
    AppConfig,
    BrowserConfig,
    DatabaseConfig,
    FetchConfig,
    HintsConfig,
    SlackConfig,
    WatchConfig,
    is_valid_url,
)
from .provider import ConfigProvider, FileConfigProvider

__all__ = [
    "AppConfig",
    "BrowserConfig",
    "ConfigError",
    "ConfigProvider",
    "DatabaseConfig",
    "FetchConfig",
    "FileConfigProvider",
    "HintsConfig",
    "SlackConfig",
    "WatchConfig",
    "is_valid_url",
    "load_config",
    "parse_config",
]
