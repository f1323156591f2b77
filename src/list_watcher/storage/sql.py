SCHEMA_SQL = """
PRAGMA foreign_keys = ON;

CREATE TABLE IF NOT EXISTS subscriptions (
    id TEXT PRIMARY KEY,
    url TEXT NOT NULL,
    name TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'active',
    check_interval INTEGER NOT NULL DEFAULT 60,
    initial_selector TEXT NOT NULL,
    render_type TEXT NOT NULL DEFAULT 'unknown',
    error_message TEXT,
    last_checked_at TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_subscriptions_status
ON subscriptions(status);

CREATE TABLE IF NOT EXISTS subscription_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    subscription_id TEXT NOT NULL REFERENCES subscriptions(id) ON DELETE CASCADE,
    checked_at TEXT NOT NULL,
    urls TEXT NOT NULL DEFAULT '[]',
    stable_selectors TEXT NOT NULL DEFAULT '[]',
    selector_hierarchy TEXT NOT NULL DEFAULT '',
    has_changed INTEGER NOT NULL DEFAULT 0,
    error TEXT
);

CREATE INDEX IF NOT EXISTS idx_subscription_history_subscription_time
ON subscription_history(subscription_id, checked_at DESC, id DESC);

CREATE TABLE IF NOT EXISTS content_items (
    id TEXT PRIMARY KEY,
    subscription_id TEXT REFERENCES subscriptions(id) ON DELETE CASCADE,
    url TEXT NOT NULL,
    source TEXT NOT NULL DEFAULT 'subscription',
    status TEXT NOT NULL DEFAULT 'pending',
    render_type TEXT NOT NULL DEFAULT 'unknown',
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_content_items_subscription
ON content_items(subscription_id, created_at DESC);
"""
