from __future__ import annotations

import json
import sqlite3
from dataclasses import replace
from datetime import datetime

from list_watcher.fetching.models import RenderType

from .database import Database
from .models import (
    ContentItem,
    ContentItemSource,
    ContentItemStatus,
    Subscription,
    SubscriptionHistory,
    SubscriptionStatus,
)


def _to_iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _from_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SubscriptionRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    def add(self, subscription: Subscription) -> None:
        self._db.execute(
            """
            INSERT INTO subscriptions (
                id,
                url,
                name,
                status,
                check_interval,
                initial_selector,
                render_type,
                error_message,
                last_checked_at,
                created_at,
                updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                subscription.id,
                subscription.url,
                subscription.name,
                subscription.status.value,
                subscription.check_interval,
                subscription.initial_selector,
                subscription.render_type.value,
                subscription.error_message,
                _to_iso(subscription.last_checked_at),
                subscription.created_at.isoformat(),
                subscription.updated_at.isoformat(),
            ),
        )

    def update(self, subscription: Subscription) -> bool:
        cursor = self._db.execute(
            """
            UPDATE subscriptions SET
                url = ?,
                name = ?,
                status = ?,
                check_interval = ?,
                initial_selector = ?,
                render_type = ?,
                error_message = ?,
                last_checked_at = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (
                subscription.url,
                subscription.name,
                subscription.status.value,
                subscription.check_interval,
                subscription.initial_selector,
                subscription.render_type.value,
                subscription.error_message,
                _to_iso(subscription.last_checked_at),
                subscription.updated_at.isoformat(),
                subscription.id,
            ),
        )
        return cursor.rowcount > 0

    def get(self, subscription_id: str) -> Subscription | None:
        row = self._db.execute("SELECT * FROM subscriptions WHERE id = ?", (subscription_id,)).fetchone()
        return self._row_to_subscription(row) if row else None

    def list_all(self) -> list[Subscription]:
        rows = self._db.execute("SELECT * FROM subscriptions ORDER BY created_at, id").fetchall()
        return [self._row_to_subscription(row) for row in rows]

    def list_by_status(self, status: SubscriptionStatus) -> list[Subscription]:
        rows = self._db.execute(
            "SELECT * FROM subscriptions WHERE status = ? ORDER BY created_at, id",
            (status.value,),
        ).fetchall()
        return [self._row_to_subscription(row) for row in rows]

    def delete(self, subscription_id: str) -> bool:
        with self._db.transaction():
            self._db.execute("DELETE FROM content_items WHERE subscription_id = ?", (subscription_id,))
            self._db.execute("DELETE FROM subscription_history WHERE subscription_id = ?", (subscription_id,))
            cursor = self._db.execute("DELETE FROM subscriptions WHERE id = ?", (subscription_id,))
        return cursor.rowcount > 0

    def _row_to_subscription(self, row: sqlite3.Row) -> Subscription:
        return Subscription(
            id=row["id"],
            url=row["url"],
            name=row["name"],
            status=SubscriptionStatus(row["status"]),
            check_interval=row["check_interval"],
            initial_selector=row["initial_selector"],
            render_type=RenderType(row["render_type"]),
            error_message=row["error_message"],
            last_checked_at=_from_iso(row["last_checked_at"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class SubscriptionHistoryRepository:
    """Append-only log with one row per check attempt, newest first on read."""

    _ORDER = "ORDER BY checked_at DESC, id DESC"

    def __init__(self, db: Database) -> None:
        self._db = db

    def add(self, entry: SubscriptionHistory) -> SubscriptionHistory:
        cursor = self._db.execute(
            """
            INSERT INTO subscription_history (
                subscription_id,
                checked_at,
                urls,
                stable_selectors,
                selector_hierarchy,
                has_changed,
                error
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.subscription_id,
                entry.checked_at.isoformat(),
                json.dumps(list(entry.urls)),
                json.dumps(list(entry.stable_selectors)),
                entry.selector_hierarchy,
                1 if entry.has_changed else 0,
                entry.error,
            ),
        )
        return replace(entry, id=cursor.lastrowid)

    def latest(self, subscription_id: str) -> SubscriptionHistory | None:
        row = self._db.execute(
            f"SELECT * FROM subscription_history WHERE subscription_id = ? {self._ORDER} LIMIT 1",  # noqa: S608
            (subscription_id,),
        ).fetchone()
        return self._row_to_history(row) if row else None

    def latest_successful(self, subscription_id: str) -> SubscriptionHistory | None:
        row = self._db.execute(
            f"""
            SELECT * FROM subscription_history
            WHERE subscription_id = ? AND error IS NULL
            {self._ORDER}
            LIMIT 1
            """,  # noqa: S608
            (subscription_id,),
        ).fetchone()
        return self._row_to_history(row) if row else None

    def list_by_subscription_id(self, subscription_id: str, *, limit: int | None = None) -> list[SubscriptionHistory]:
        rows = self._db.execute(
            f"SELECT * FROM subscription_history WHERE subscription_id = ? {self._ORDER} LIMIT ?",  # noqa: S608
            (subscription_id, -1 if limit is None else limit),
        ).fetchall()
        return [self._row_to_history(row) for row in rows]

    def _row_to_history(self, row: sqlite3.Row) -> SubscriptionHistory:
        return SubscriptionHistory(
            id=row["id"],
            subscription_id=row["subscription_id"],
            checked_at=datetime.fromisoformat(row["checked_at"]),
            urls=tuple(json.loads(row["urls"])),
            stable_selectors=tuple(json.loads(row["stable_selectors"])),
            selector_hierarchy=row["selector_hierarchy"],
            has_changed=bool(row["has_changed"]),
            error=row["error"],
        )


class ContentItemRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    def add(self, item: ContentItem) -> None:
        self._db.execute(
            """
            INSERT INTO content_items (
                id,
                subscription_id,
                url,
                source,
                status,
                render_type,
                created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                item.id,
                item.subscription_id,
                item.url,
                item.source.value,
                item.status.value,
                item.render_type.value,
                item.created_at.isoformat(),
            ),
        )

    def list_by_subscription_id(self, subscription_id: str) -> list[ContentItem]:
        rows = self._db.execute(
            "SELECT * FROM content_items WHERE subscription_id = ? ORDER BY created_at DESC, rowid DESC",
            (subscription_id,),
        ).fetchall()
        return [self._row_to_item(row) for row in rows]

    def _row_to_item(self, row: sqlite3.Row) -> ContentItem:
        return ContentItem(
            id=row["id"],
            url=row["url"],
            subscription_id=row["subscription_id"],
            render_type=RenderType(row["render_type"]),
            source=ContentItemSource(row["source"]),
            status=ContentItemStatus(row["status"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
