"""Helpers to remove image files that no catalog row references."""

import asyncio
import logging
import time
from pathlib import Path
from typing import List

from dal.image_dal import ImageDAL
from services.image_ingestion import is_ingested_filename
from utils.database_init import AsyncDatabaseInitializer

LOGGER = logging.getLogger(__name__)


class DatabaseCleaner:
    """Find and delete orphaned files in the image directory.

    Orphans appear when a process stops between deleting a row and its file,
    or when an ingestion succeeds but the follow-up insert fails. Catalog rows
    are never touched, and only files named like ingested images are considered.
    """

    def __init__(self, db_initializer: AsyncDatabaseInitializer, min_age_seconds: int = 3_600) -> None:
        """
        Args:
            db_initializer: Shared database handle; its `image_dir` is scanned.
            min_age_seconds: Files modified more recently than this are skipped,
                since an ingested file has no row until its insert completes.
        """
        self._db = db_initializer
        self._dal = ImageDAL(db_initializer)
        self.min_age_seconds = min_age_seconds

    def _candidate_files(self) -> List[Path]:
        cutoff = time.time() - self.min_age_seconds
        candidates = []
        for path in sorted(Path(self._db.image_dir).iterdir()):
            if not path.is_file() or not is_ingested_filename(path.name):
                continue
            if path.stat().st_mtime > cutoff:
                continue
            candidates.append(path)
        return candidates

    async def find_orphaned_files(self) -> List[Path]:
        """Return settled ingested files under the image directory with no matching catalog row."""
        referenced = {str(Path(r.local_path).resolve()) for r in await self._dal.list_all()}
        files = await asyncio.to_thread(self._candidate_files)
        return [p for p in files if str(p.resolve()) not in referenced]

    async def remove_orphaned_files(self) -> int:
        """Delete orphaned files and return how many were removed."""
        removed = 0
        for path in await self.find_orphaned_files():
            try:
                await asyncio.to_thread(path.unlink)
            except FileNotFoundError:
                continue
            except OSError as exc:
                LOGGER.warning("Could not remove orphaned image %s: %s", path, exc)
                continue
            removed += 1
        if removed:
            LOGGER.info("Removed %d orphaned image file(s) from %s", removed, self._db.image_dir)
        return removed
