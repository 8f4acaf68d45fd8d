"""SQLite-based snapshot store."""

import time
from pathlib import Path

import aiosqlite
from pydantic import ValidationError

from igsnap.exceptions import PersistenceError
from igsnap.models.snapshot import ProfileSnapshot
from igsnap.storage.base import SnapshotStore, make_key


class SQLiteSnapshotStore(SnapshotStore):
    """Local document store using aiosqlite, one row per username."""

    name = "sqlite"

    def __init__(self, db_path: str = ".igsnap.db"):
        """
        Initialize SQLite store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self._db: aiosqlite.Connection | None = None

    async def _ensure_db(self) -> aiosqlite.Connection:
        """Ensure database connection and schema exist."""
        if self._db is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._db = await aiosqlite.connect(self.db_path)
            await self._db.execute("""
                CREATE TABLE IF NOT EXISTS snapshots (
                    username TEXT PRIMARY KEY,
                    snapshot_json TEXT NOT NULL,
                    status TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
            """)
            await self._db.commit()
        return self._db

    async def upsert(self, username: str, snapshot: ProfileSnapshot) -> None:
        """Store snapshot, last write wins."""
        try:
            db = await self._ensure_db()
            await db.execute(
                """
                INSERT OR REPLACE INTO snapshots (username, snapshot_json, status, updated_at)
                VALUES (?, ?, ?, ?)
                """,
                (
                    make_key(username),
                    snapshot.model_dump_json(by_alias=True),
                    snapshot.status.value,
                    time.time(),
                ),
            )
            await db.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(f"SQLite write failed: {e}") from e

    async def get(self, username: str) -> ProfileSnapshot | None:
        """Retrieve snapshot, None on a miss."""
        try:
            db = await self._ensure_db()
            async with db.execute(
                "SELECT snapshot_json FROM snapshots WHERE username = ?",
                (make_key(username),),
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise PersistenceError(f"SQLite read failed: {e}") from e

        if row is None:
            return None

        try:
            return ProfileSnapshot.model_validate_json(row[0])
        except ValidationError as e:
            raise PersistenceError(f"Stored snapshot is invalid: {e}") from e

    async def close(self) -> None:
        """Close database connection."""
        if self._db is not None:
            await self._db.close()
            self._db = None
