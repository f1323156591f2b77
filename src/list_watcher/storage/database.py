from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import TYPE_CHECKING

from .sql import SCHEMA_SQL

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from pathlib import Path


class Database:
    """
    Single sqlite3 connection shared by the repositories.

    ``execute`` commits after every statement; ``transaction`` groups several
    statements and rolls all of them back if any fails.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = path
        self._connection: sqlite3.Connection | None = None
        self._in_transaction = False

    def connect(self) -> sqlite3.Connection:
        if self._connection is None:
            self._connection = sqlite3.connect(self._path)
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA foreign_keys = ON")
        return self._connection

    def initialize(self) -> None:
        connection = self.connect()
        connection.executescript(SCHEMA_SQL)
        connection.commit()

    def execute(
        self,
        query: str,
        params: Sequence[object] | None = None,
    ) -> sqlite3.Cursor:
        connection = self.connect()
        cursor = connection.execute(query, params or ())
        if not self._in_transaction:
            connection.commit()
        return cursor

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        connection = self.connect()
        self._in_transaction = True
        try:
            yield connection
        except BaseException:
            connection.rollback()
            raise
        else:
            connection.commit()
        finally:
            self._in_transaction = False

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
