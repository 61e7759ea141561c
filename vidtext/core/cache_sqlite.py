"""
SQLite key-value cache store for vidtext.
Thread-safe via check_same_thread=False + explicit locking; async callers
reach it through worker threads.
"""

import asyncio
import json
import sqlite3
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path

from vidtext.core.constants import DEFAULT_CACHE_DB_PATH

logger = logging.getLogger(__name__)

_SCHEMA_VERSION = 1

_CREATE_TABLES = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS cache_entries (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    created_at TEXT,
    updated_at TEXT
);
"""


class SqliteCacheStore:
    """CacheStore persisting JSON values in a single SQLite table."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or DEFAULT_CACHE_DB_PATH
        self._lock = threading.Lock()
        self._ensure_dirs()
        self.conn = sqlite3.connect(
            str(self.db_path),
            check_same_thread=False,
        )
        self.conn.execute("PRAGMA journal_mode=WAL")
        self._migrate()

    def _ensure_dirs(self):
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _migrate(self):
        cur = self.conn.cursor()
        cur.executescript(_CREATE_TABLES)
        cur.execute(
            "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
            (_SCHEMA_VERSION,),
        )
        self.conn.commit()

    def close(self):
        if self.conn:
            self.conn.close()

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    # ── Blocking operations ───────────────────────────────────────────

    def get_sync(self, key: str) -> dict | None:
        with self._lock:
            row = self.conn.execute(
                "SELECT value FROM cache_entries WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable cache entry: %s", key)
            return None

    def set_sync(self, key: str, value: dict):
        now = self._now()
        with self._lock:
            self.conn.execute(
                """INSERT INTO cache_entries (key, value, created_at, updated_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET
                       value = excluded.value,
                       updated_at = excluded.updated_at""",
                (key, json.dumps(value), now, now),
            )
            self.conn.commit()

    def count(self) -> int:
        with self._lock:
            return self.conn.execute("SELECT COUNT(*) FROM cache_entries").fetchone()[0]

    # ── CacheStore ────────────────────────────────────────────────────

    async def get(self, key: str) -> dict | None:
        return await asyncio.to_thread(self.get_sync, key)

    async def set(self, key: str, value: dict) -> None:
        await asyncio.to_thread(self.set_sync, key, value)
