"""SQLite storage for list snapshots."""

import sqlite3
from datetime import datetime, timezone

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS snapshots (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    list_ts INTEGER NOT NULL DEFAULT 0,
    data BLOB NOT NULL,
    saved_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_snapshots_saved_at ON snapshots(saved_at);
"""

DEFAULT_KEEP = 5


class Database:
    """SQLite database manager for snapshots produced by FeedList.serialize."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Open database connection and initialize schema."""
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(SCHEMA_SQL)
        self._conn.commit()

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._conn

    def save_snapshot(self, data: bytes, list_ts: int = 0) -> int:
        """Store a snapshot and return its id."""
        cursor = self.conn.execute(
            "INSERT INTO snapshots (list_ts, data, saved_at) VALUES (?, ?, ?)",
            (list_ts, sqlite3.Binary(data), datetime.now(timezone.utc).isoformat()),
        )
        self.conn.commit()
        return cursor.lastrowid

    def latest_snapshot(self) -> bytes | None:
        """Return the most recently saved snapshot, if any."""
        row = self.conn.execute(
            "SELECT data FROM snapshots ORDER BY id DESC LIMIT 1"
        ).fetchone()
        return bytes(row["data"]) if row else None

    def snapshot_count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) as cnt FROM snapshots").fetchone()
        return row["cnt"] if row else 0

    def prune_snapshots(self, keep: int = DEFAULT_KEEP) -> int:
        """Delete all but the ``keep`` newest snapshots. Returns count deleted."""
        cursor = self.conn.execute(
            """DELETE FROM snapshots WHERE id NOT IN (
                   SELECT id FROM snapshots ORDER BY id DESC LIMIT ?
               )""",
            (keep,),
        )
        self.conn.commit()
        return cursor.rowcount
