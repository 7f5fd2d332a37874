"""SQLite storage adapter.

Implements the core ContentStorePort using a simple SQLite database.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union

from core.errors import IdConflict, StorageUnavailable
from core.models import ContentKind, ContentRecord, ImageRecord, TextRecord

LOGGER = logging.getLogger(__name__)

# Table and content column per kind. Both names come from this mapping only,
# never from caller input, so they are safe to format into SQL.
_TABLES = {
    ContentKind.TEXT: ("texts", "body"),
    ContentKind.IMAGE: ("images", "payload"),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_db_time(value: datetime) -> str:
    # Fixed-width ISO strings compare correctly as text.
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


class SQLiteContentStore:
    """SQLite wrapper that satisfies the ContentStorePort contract.

    A single connection is opened by init_db and shared by every call; the
    store relies on callers serialising access (see core.worker).
    """

    def __init__(self, db_path: str, clock: Callable[[], datetime] = _utcnow) -> None:
        self._db_path = db_path
        self._clock = clock
        self._conn: Optional[sqlite3.Connection] = None
        self._last_inserted_at: Optional[datetime] = None

    @property
    def _db(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageUnavailable("Content store is not initialised; call init_db first")
        return self._conn

    def init_db(self) -> None:
        """Open the connection and create tables if they do not exist.

        Tables:
        - texts: text messages keyed by message id
        - images: fully downloaded image payloads keyed by message id
        """

        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            raise StorageUnavailable(f"Cannot open content store at {self._db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                # texts holds one row per posted text message.
                # Fields:
                # - id: transport message id (PRIMARY KEY, never overwritten)
                # - body: raw message text
                # - sender: display name of the author
                # - inserted_at: UTC timestamp assigned by the store
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS texts (
                        id TEXT PRIMARY KEY,
                        body TEXT NOT NULL,
                        sender TEXT NOT NULL,
                        inserted_at TIMESTAMP NOT NULL
                    )
                    """
                )
                # images mirrors texts with the binary payload instead of a body.
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS images (
                        id TEXT PRIMARY KEY,
                        payload BLOB NOT NULL,
                        sender TEXT NOT NULL,
                        inserted_at TIMESTAMP NOT NULL
                    )
                    """
                )
                conn.execute("CREATE INDEX IF NOT EXISTS idx_texts_inserted_at ON texts(inserted_at)")
                conn.execute("CREATE INDEX IF NOT EXISTS idx_images_inserted_at ON images(inserted_at)")
        except sqlite3.Error as exc:
            conn.close()
            raise StorageUnavailable(f"Cannot create schema in {self._db_path}: {exc}") from exc
        self._conn = conn
        LOGGER.info("Content store ready at %s", self._db_path)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _next_timestamp(self) -> datetime:
        now = self._clock()
        if self._last_inserted_at is not None and now < self._last_inserted_at:
            now = self._last_inserted_at
        self._last_inserted_at = now
        return now

    def put(
        self, kind: ContentKind, content_id: str, content: Union[str, bytes], sender: str
    ) -> ContentRecord:
        """Insert a new record; raise IdConflict if the id is already stored."""

        table, column = _TABLES[kind]
        inserted_at = self._next_timestamp()
        stored = sqlite3.Binary(content) if kind is ContentKind.IMAGE else content
        try:
            with self._db:
                self._db.execute(
                    f"INSERT INTO {table} (id, {column}, sender, inserted_at) VALUES (?, ?, ?, ?)",
                    (content_id, stored, sender, _to_db_time(inserted_at)),
                )
        except sqlite3.IntegrityError as exc:
            raise IdConflict(kind, content_id) from exc
        return self._build_record(kind, content_id, content, sender, inserted_at)

    def get(self, kind: ContentKind, content_id: str) -> Optional[ContentRecord]:
        """Return the record stored under id, or None."""

        table, column = _TABLES[kind]
        row = self._db.execute(
            f"SELECT id, {column} AS content, sender, inserted_at FROM {table} WHERE id = ?",
            (content_id,),
        ).fetchone()
        if row is None:
            return None
        return self._build_record(
            kind,
            row["id"],
            row["content"],
            row["sender"],
            datetime.fromisoformat(row["inserted_at"]),
        )

    def delete(self, kind: ContentKind, content_id: str) -> None:
        """Delete one record; deleting a missing id is a no-op."""

        table, _ = _TABLES[kind]
        with self._db:
            self._db.execute(f"DELETE FROM {table} WHERE id = ?", (content_id,))

    def sweep(self, kind: ContentKind, max_age: timedelta) -> int:
        """Delete every record of a kind at least max_age old and return the count."""

        table, _ = _TABLES[kind]
        cutoff = self._clock() - max_age
        with self._db:
            cur = self._db.execute(
                f"DELETE FROM {table} WHERE inserted_at <= ?",
                (_to_db_time(cutoff),),
            )
        return cur.rowcount

    def count(self, kind: ContentKind) -> int:
        table, _ = _TABLES[kind]
        row = self._db.execute(f"SELECT COUNT(*) AS total FROM {table}").fetchone()
        return int(row["total"])

    def wipe(self) -> None:
        """Remove every stored record of both kinds."""

        with self._db:
            for table, _ in _TABLES.values():
                self._db.execute(f"DELETE FROM {table}")

    @staticmethod
    def _build_record(
        kind: ContentKind,
        content_id: str,
        content: Union[str, bytes],
        sender: str,
        inserted_at: datetime,
    ) -> ContentRecord:
        if kind is ContentKind.TEXT:
            return TextRecord(id=content_id, body=content, sender=sender, inserted_at=inserted_at)
        return ImageRecord(id=content_id, payload=bytes(content), sender=sender, inserted_at=inserted_at)
