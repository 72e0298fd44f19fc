"""Database schema DDL definitions and initialization utilities.

Tables:
  - user_settings: per-scope budget configuration (weekly budget, week start)
  - categories: tags and banks, scoped per user, with palette color token
  - expenses: individual expense records with stored bucket keys
  - metadata: key/value store (schema version)

Every user-owned row carries a ``scope_id``; all queries filter on it.
"""

from __future__ import annotations
import sqlite3
from typing import Sequence
from pathlib import Path

BASIC_UTC_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"

USER_SETTINGS_DDL = f"""
CREATE TABLE IF NOT EXISTS user_settings (
    scope_id TEXT PRIMARY KEY,
    weekly_budget_minor INTEGER NOT NULL CHECK (weekly_budget_minor > 0),
    week_start_day INTEGER NOT NULL CHECK (week_start_day BETWEEN 0 AND 6),
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

CATEGORIES_DDL = f"""
CREATE TABLE IF NOT EXISTS categories (
    id TEXT PRIMARY KEY,
    scope_id TEXT NOT NULL,
    name TEXT NOT NULL,
    kind TEXT NOT NULL DEFAULT 'tag' CHECK (kind IN ('tag','bank')),
    color_token TEXT NOT NULL,
    last_used_at TEXT,
    created_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    UNIQUE (scope_id, kind, name)
);
"""

EXPENSES_DDL = f"""
CREATE TABLE IF NOT EXISTS expenses (
    id TEXT PRIMARY KEY,
    scope_id TEXT NOT NULL,
    amount_minor INTEGER NOT NULL CHECK (amount_minor > 0),
    description TEXT NOT NULL,
    occurred_at TEXT NOT NULL, -- ISO date-time the expense is attributed to
    day_key TEXT NOT NULL,     -- YYYY-MM-DD
    week_key TEXT NOT NULL,    -- YYYY-Www (week start at write time)
    month_key TEXT NOT NULL,   -- YYYY-MM
    category_ids TEXT NOT NULL DEFAULT '[]', -- JSON array, ordered
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

METADATA_DDL = f"""
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

CATEGORIES_SCOPE_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_categories_scope ON categories(scope_id, kind);"
)
EXPENSES_DAY_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_expenses_scope_day ON expenses(scope_id, day_key);"
)
EXPENSES_WEEK_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_expenses_scope_week ON expenses(scope_id, week_key);"
)
EXPENSES_MONTH_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_expenses_scope_month ON expenses(scope_id, month_key);"
)

DDL_ORDER: Sequence[str] = (
    USER_SETTINGS_DDL,
    CATEGORIES_DDL,
    EXPENSES_DDL,
    METADATA_DDL,
)

INDEX_ORDER: Sequence[str] = (
    CATEGORIES_SCOPE_INDEX_DDL,
    EXPENSES_DAY_INDEX_DDL,
    EXPENSES_WEEK_INDEX_DDL,
    EXPENSES_MONTH_INDEX_DDL,
)


def init_db(path: Path) -> None:
    """Create all tables idempotently.

    Parameters
    ----------
    path: Path to SQLite database file.
    """
    conn = sqlite3.connect(path)
    try:
        cur = conn.cursor()
        for ddl in DDL_ORDER:
            cur.execute(ddl)
        for ddl in INDEX_ORDER:
            cur.execute(ddl)
        conn.commit()
    finally:
        conn.close()

