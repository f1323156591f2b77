from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from list_watcher.storage import Database

if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


@pytest.fixture
def database(tmp_path: Path) -> Generator[Database, None, None]:
    db_path = tmp_path / "test.db"
    db = Database(db_path)
    db.initialize()
    yield db
    db.close()
