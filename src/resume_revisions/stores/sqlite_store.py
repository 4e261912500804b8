"""SQLite-backed change-log store."""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path

from resume_revisions.errors import ChangeLogStoreError
from resume_revisions.models.changelog import ChangeLogEntry

DEFAULT_DB_PATH = Path.home() / ".resume-revisions" / "changelog.db"


class SQLiteChangeLogStore:
    """Change-log store with WAL mode, one row per (job, entry).

    ``remove`` flags the entry as reverted instead of deleting it, so the
    audit trail survives.
    """

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS change_log (
                    job_id TEXT NOT NULL,
                    entry_id TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    payload TEXT NOT NULL,
                    reverted INTEGER NOT NULL DEFAULT 0,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (job_id, entry_id)
                )
            """)

    # --- async ChangeLogStore interface ---

    async def write(self, job_id: str, entry: ChangeLogEntry) -> list[ChangeLogEntry]:
        return await asyncio.to_thread(self.write_sync, job_id, entry)

    async def remove(self, job_id: str, entry_id: str) -> list[ChangeLogEntry]:
        return await asyncio.to_thread(self.remove_sync, job_id, entry_id)

    async def load(self, job_id: str) -> list[ChangeLogEntry]:
        return await asyncio.to_thread(self.load_sync, job_id)

    # --- synchronous implementation ---

    def write_sync(self, job_id: str, entry: ChangeLogEntry) -> list[ChangeLogEntry]:
        """Insert or update an entry, keeping its original position."""
        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO change_log
                   (job_id, entry_id, position, payload, reverted, updated_at)
                   VALUES (?, ?,
                           (SELECT COALESCE(MAX(position), -1) + 1 FROM change_log WHERE job_id = ?),
                           ?, ?, ?)
                   ON CONFLICT(job_id, entry_id) DO UPDATE SET
                       payload = excluded.payload,
                       reverted = excluded.reverted,
                       updated_at = excluded.updated_at""",
                (
                    job_id,
                    entry.id,
                    job_id,
                    entry.model_dump_json(),
                    1 if entry.reverted else 0,
                    now,
                ),
            )
        return self.load_sync(job_id)

    def remove_sync(self, job_id: str, entry_id: str) -> list[ChangeLogEntry]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT payload FROM change_log WHERE job_id = ? AND entry_id = ?",
                (job_id, entry_id),
            ).fetchone()
        if row is None:
            raise ChangeLogStoreError(
                f"Change log entry {entry_id} not found for job {job_id}",
                code="CHANGE_LOG_ENTRY_NOT_FOUND",
            )
        entry = ChangeLogEntry.model_validate_json(row[0])
        if not entry.reverted:
            entry.reverted = True
            entry.reverted_at = datetime.now(timezone.utc)
        return self.write_sync(job_id, entry)

    def load_sync(self, job_id: str) -> list[ChangeLogEntry]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT payload FROM change_log WHERE job_id = ? ORDER BY position",
                (job_id,),
            ).fetchall()
        return [ChangeLogEntry.model_validate_json(row[0]) for row in rows]

    def list_jobs(self) -> list[dict]:
        """Return every job with its entry counts, most recently updated first."""
        with self._connect() as conn:
            rows = conn.execute(
                """SELECT job_id,
                          COUNT(*) AS total,
                          SUM(CASE WHEN reverted = 1 THEN 1 ELSE 0 END) AS reverted,
                          MAX(updated_at) AS last_updated
                   FROM change_log
                   GROUP BY job_id
                   ORDER BY last_updated DESC"""
            ).fetchall()
        return [
            {"job_id": r[0], "total": r[1], "reverted": r[2] or 0, "last_updated": r[3]}
            for r in rows
        ]

    def purge_older_than(self, days: int) -> int:
        """Delete entries not updated in ``days`` days. Returns count of deleted rows."""
        cutoff = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM change_log WHERE updated_at < ?", (cutoff,))
            return cursor.rowcount
