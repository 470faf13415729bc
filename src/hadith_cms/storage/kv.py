"""SQLite-backed key-value store for device-local state."""

import json
import sqlite3
import time
from pathlib import Path
from typing import Any

from loguru import logger

SCHEMA_VERSION = 1

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


def create_schema(conn: sqlite3.Connection) -> None:
    """Create the kv and metadata tables."""
    conn.executescript(_SCHEMA_SQL)
    conn.execute(
        "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
        ("schema_version", str(SCHEMA_VERSION)),
    )
    conn.commit()


def get_schema_version(conn: sqlite3.Connection) -> int | None:
    """Return the current schema version, or None if metadata table doesn't exist."""
    try:
        row = conn.execute("SELECT value FROM metadata WHERE key = 'schema_version'").fetchone()
    except sqlite3.OperationalError:
        return None
    return int(row[0]) if row else None


def migrate_schema(conn: sqlite3.Connection) -> None:
    """Create or migrate the database schema to the latest version."""
    if get_schema_version(conn) is None:
        create_schema(conn)


class SqliteStore:
    """Whole-value store: every write replaces the full JSON document for a key.

    There is no locking beyond what SQLite gives a single statement, so two
    read-modify-write cycles racing on one key lose an update (last write wins).
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        migrate_schema(conn)

    @classmethod
    def open(cls, path: str | Path) -> "SqliteStore":
        """Open (creating if needed) the store at path. ``":memory:"`` is accepted."""
        if str(path) != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        logger.debug("Opening local store at {}", path)
        return cls(sqlite3.connect(str(path)))

    def get(self, key: str) -> Any | None:
        row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError:
            logger.warning("Discarding corrupt value stored under {!r}", key)
            return None

    def set(self, key: str, value: Any) -> None:
        now_ms = int(time.time() * 1000)
        self._conn.execute(
            "INSERT OR REPLACE INTO kv (key, value, updated_at) VALUES (?, ?, ?)",
            (key, json.dumps(value, ensure_ascii=False), now_ms),
        )
        self._conn.commit()

    def remove(self, key: str) -> None:
        self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()
