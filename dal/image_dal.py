"""Async Data Access Layer for the `images` catalog table.

Provides ImageDAL class with async CRUD operations and a live listing
compatible with `utils.database_init.AsyncDatabaseInitializer`.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, List, Optional, Sequence

from models.image_record import ImageRecord
from utils.database_init import AsyncDatabaseInitializer

LOGGER = logging.getLogger(__name__)


class ImageDAL:
    """Data access layer for image catalog records.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection` and a `changes` notifier). DAL instances are cheap;
    the shared state lives on the initializer.
    """

    _COLUMNS = ("id", "local_path", "external_ref")
    _COLUMN_LIST = ", ".join(_COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def insert(self, record: ImageRecord) -> int:
        """Insert a catalog row and return its id.

        A record without an id gets a fresh one. A record carrying an explicit
        id replaces the existing row with that id.
        """
        async with self._db.connection() as conn:
            if record.id is None:
                cur = await conn.execute(
                    "INSERT INTO images (local_path, external_ref) VALUES (?, ?)",
                    (record.local_path, record.external_ref),
                )
            else:
                cur = await conn.execute(
                    f"INSERT OR REPLACE INTO images ({self._COLUMN_LIST}) VALUES (?, ?, ?)",
                    (record.id, record.local_path, record.external_ref),
                )
            await conn.commit()
            image_id = cur.lastrowid

        LOGGER.debug("Catalogued image %s at %s", image_id, record.local_path)
        self._db.changes.notify()
        return image_id

    async def get_by_id(self, image_id: int) -> Optional[ImageRecord]:
        """Return ImageRecord for `image_id`, or None if not found."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM images WHERE id = ?",
                (image_id,),
            )
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    async def get_by_external_ref(self, external_ref: str) -> Optional[ImageRecord]:
        """Return the first (lowest id) record linked to `external_ref`, or None."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM images WHERE external_ref = ? ORDER BY id LIMIT 1",
                (external_ref,),
            )
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    async def list_all(self) -> List[ImageRecord]:
        """Return every catalog row in insertion order."""
        async with self._db.connection() as conn:
            cur = await conn.execute(f"SELECT {self._COLUMN_LIST} FROM images ORDER BY id")
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    async def watch_all(self) -> AsyncIterator[List[ImageRecord]]:
        """Yield the full listing now and again after every catalog change.

        Changes committed while the consumer is busy are coalesced: the next
        snapshot reflects the table as it is when re-read, not each
        intermediate state.
        """
        changes = self._db.changes
        while True:
            seen = changes.version
            yield await self.list_all()
            await changes.wait_for_change(seen)

    async def delete(self, record: ImageRecord) -> int:
        """Delete the row matching `record.id`. Returns the number of rows removed (0 or 1)."""
        async with self._db.connection() as conn:
            await conn.execute("DELETE FROM images WHERE id = ?", (record.id,))
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            removed = int(changed[0]) if changed and changed[0] else 0

        if removed:
            self._db.changes.notify()
        return removed

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> ImageRecord:
        """Convert a DB row tuple into an ImageRecord."""
        return ImageRecord(id=row[0], local_path=row[1], external_ref=row[2])
