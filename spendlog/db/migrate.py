"""Database migration utilities.

The schema version is an integer ``schema_version`` stored in the metadata
table. ``apply_migrations`` creates missing tables, runs every step in
``MIGRATIONS`` above the stored version in order and records the result.
Version 1 is the initial schema, so the table is empty until the schema
first changes. A database stamped with a newer version than this build knows
is refused rather than opened.
"""

from __future__ import annotations
from pathlib import Path
import logging
import sqlite3
from typing import Callable, Dict, Optional

from . import schema as schema_def
from .schema import init_db

CURRENT_SCHEMA_VERSION = 1
SCHEMA_VERSION_KEY = "schema_version"

# target version -> step upgrading from the version below it
MIGRATIONS: Dict[int, Callable[[sqlite3.Connection], None]] = {}

logger = logging.getLogger("spendlog.db.migrate")


class SchemaVersionError(RuntimeError):
    pass


def _get_schema_version(conn: sqlite3.Connection) -> Optional[int]:
    try:
        cur = conn.cursor()
        cur.execute("SELECT value FROM metadata WHERE key=?", (SCHEMA_VERSION_KEY,))
        row = cur.fetchone()
        if row:
            return int(row[0])
    except sqlite3.OperationalError:
        # metadata table may not exist yet (first run before init_db)
        return None
    return None


def apply_migrations(db_path: Path) -> int:
    """Apply required migrations and return resulting schema version."""
    conn = sqlite3.connect(db_path)
    try:
        version = _get_schema_version(conn)
    finally:
        conn.close()
    if version is not None and version > CURRENT_SCHEMA_VERSION:
        raise SchemaVersionError(
            f"{db_path} is at schema version {version}, "
            f"this build supports up to {CURRENT_SCHEMA_VERSION}"
        )

    init_db(db_path)
    conn = sqlite3.connect(db_path)
    try:
        # a database without a stamp was just created at the current schema
        version = version or CURRENT_SCHEMA_VERSION
        for target in range(version + 1, CURRENT_SCHEMA_VERSION + 1):
            _run_step(conn, target)
            version = target
        _set_schema_version(conn, version)
        conn.commit()
        logger.debug("schema at version %s (%s)", version, db_path)
        return version
    finally:
        conn.close()


def _run_step(conn: sqlite3.Connection, target: int) -> None:
    try:
        MIGRATIONS[target](conn)
        conn.commit()
        logger.info("migrated schema to version %s", target)
    except Exception:
        conn.rollback()
        raise


def _set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    cur = conn.cursor()
    cur.execute(
        "INSERT INTO metadata (key, value) VALUES (?, ?) "
        "ON CONFLICT(key) DO UPDATE SET value=excluded.value, "
        f"updated_at=({schema_def.BASIC_UTC_NOW})",
        (SCHEMA_VERSION_KEY, str(version)),
    )
