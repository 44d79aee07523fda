import logging
import os
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import aiosqlite

from utils.change_notifier import ChangeNotifier
from utils.errors import StorageUnavailable

LOGGER = logging.getLogger(__name__)

DB_FILENAME = "travelupa.db"


class AsyncDatabaseInitializer:
    """
    Process-wide handle to the image catalog database.

    - The database file is located at: <DATABASE_DIR>/travelupa.db
    - DATABASE_DIR is required. A RuntimeError is raised if it is missing
      or invalid (not a directory and cannot be created).
    - Image files live under IMAGE_DIR, defaulting to <DATABASE_DIR>/images.
    - The `images` table is created on first use and kept across restarts.
    - `changes` is the notifier every live listing subscribes to; it is shared
      by all DAL instances built on this handle.
    """

    def __init__(self, image_dir: Optional[Path | str] = None) -> None:
        env_dir = os.getenv("DATABASE_DIR")

        if env_dir is None or not env_dir.strip():
            raise RuntimeError(
                "DATABASE_DIR environment variable must be set to a writable "
                "directory path where the SQLite database file will be stored."
            )

        self.db_dir = self._prepare_dir(Path(env_dir).expanduser(), "DATABASE_DIR")
        self.db_path = self.db_dir / DB_FILENAME

        image_env = image_dir or os.getenv("IMAGE_DIR")
        if image_env:
            self.image_dir = self._prepare_dir(Path(image_env).expanduser(), "IMAGE_DIR")
        else:
            self.image_dir = self._prepare_dir(self.db_dir / "images", "IMAGE_DIR")

        if self.image_dir == self.db_dir:
            raise RuntimeError(
                f"IMAGE_DIR must not be the database directory ({self.db_dir}). "
                "Point it at a dedicated folder for image files."
            )

        self.changes = ChangeNotifier()
        self._initialized = False

    @staticmethod
    def _prepare_dir(path: Path, name: str) -> Path:
        # If the path exists but is not a directory, that's a configuration error.
        if path.exists() and not path.is_dir():
            raise RuntimeError(
                f"{name}={str(path)!r} points to a file, not a directory. "
                f"Please set {name} to a directory path."
            )
        try:
            path.mkdir(parents=True, exist_ok=True)
        except Exception as exc:
            raise RuntimeError(f"Failed to create or access directory at {path}") from exc
        return path.resolve()

    async def ensure_database(self) -> None:
        """
        Ensure the SQLite catalog exists at `self.db_path`.

        Creates the `images` table and its `external_ref` index if missing.
        Existing rows are left untouched. Subsequent calls are no-ops.
        """
        if self._initialized:
            return

        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS images (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        local_path TEXT NOT NULL,
                        external_ref TEXT
                    )
                    """
                )
                await db.execute(
                    "CREATE INDEX IF NOT EXISTS idx_images_external_ref ON images(external_ref)"
                )
                await db.commit()
        except sqlite3.Error as exc:
            raise StorageUnavailable(f"Cannot initialize catalog at {self.db_path}") from exc

        LOGGER.info("Image catalog ready at %s", self.db_path)
        self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Async context manager yielding an `aiosqlite.Connection`.

        Any SQLite error raised while connecting or inside the block is
        re-raised as `StorageUnavailable`.
        """
        await self.ensure_database()
        try:
            conn = await aiosqlite.connect(self.db_path)
        except sqlite3.Error as exc:
            raise StorageUnavailable(f"Cannot open catalog at {self.db_path}") from exc
        try:
            yield conn
        except sqlite3.Error as exc:
            raise StorageUnavailable(str(exc)) from exc
        finally:
            await conn.close()
