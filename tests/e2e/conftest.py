from __future__ import annotations

import os
import re
import subprocess
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from pytest_httpserver import HTTPServer

_WATCH_LINE = re.compile(r"^Watching \S+ as (?P<id>\S+) \((?P<count>\d+) URLs\)$", re.MULTILINE)


@dataclass(frozen=True)
class CliRun:
    returncode: int
    stdout: str
    stderr: str

    def subscription_id(self) -> str:
        match = _WATCH_LINE.search(self.stdout)
        assert match is not None, self.stdout
        return match["id"]


@dataclass
class Site:
    httpserver: HTTPServer

    @property
    def page_url(self) -> str:
        return self.httpserver.url_for("/blog")

    def serve(self, html: str, *, status: int = 200) -> None:
        self.httpserver.clear_all_handlers()
        self.httpserver.expect_request("/blog").respond_with_data(html, status=status, content_type="text/html; charset=utf-8")


@pytest.fixture
def site(httpserver: HTTPServer) -> Site:
    return Site(httpserver)


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(
        f"""
[database]
path = "{(tmp_path / 'watch.sqlite').as_posix()}"

[fetch]
timeout_seconds = 5

[browser]
enabled = false

[watch]
default_check_interval_minutes = 30
""",
    )
    return path


@pytest.fixture
def cli(config_path: Path) -> Callable[..., CliRun]:
    env = {**os.environ, "LOG_LEVEL": "ERROR", "LOG_FORMAT": "json"}
    for key in ("SLACK_WEBHOOK_URL", "HINTS_ENDPOINT", "HINTS_API_KEY"):
        env.pop(key, None)

    def run(*args: str) -> CliRun:
        completed = subprocess.run(
            [sys.executable, "-m", "list_watcher.main", *args, "-c", str(config_path)],
            capture_output=True,
            text=True,
            env=env,
            check=False,
            timeout=60,
        )
        return CliRun(completed.returncode, completed.stdout, completed.stderr)

    return run
