"""Gallery workflows built on the image catalog and ingestion.

This service coordinates saving a picked or captured image to disk (under
the configured image directory), recording its path in the `images` table,
removing rows together with their files, and rendering previews.

Ingestion and catalog insertion stay two separate steps: a failed ingestion
never touches the catalog, and a failed insert leaves the written file in place.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Optional

from PIL import Image

from dal.image_dal import ImageDAL
from models.image_record import ImageRecord
from services.image_ingestion import ImageIngestor
from services.thumbnail_generator import ThumbnailGenerator
from utils.database_init import AsyncDatabaseInitializer

LOGGER = logging.getLogger(__name__)


class GalleryService:
    """Add, remove, and preview catalogued images."""

    def __init__(
        self,
        db_initializer: AsyncDatabaseInitializer,
        ingestor: Optional[ImageIngestor] = None,
        thumbnails: Optional[ThumbnailGenerator] = None,
    ) -> None:
        self.dal = ImageDAL(db_initializer)
        self.ingestor = ingestor or ImageIngestor(db_initializer.image_dir)
        self.thumbnails = thumbnails or ThumbnailGenerator()

    async def add_image(self, source: Any, external_ref: Optional[str] = None) -> ImageRecord:
        """Ingest `source` and catalogue the resulting file.

        Raises:
            SourceUnreadable, WriteFailed: From ingestion; the catalog is unchanged.
            StorageUnavailable: From the insert; the ingested file stays on disk.
        """
        local_path = await self.ingestor.ingest_from_source(source)
        return await self._catalogue(local_path, external_ref)

    async def add_captured_image(self, image: Image.Image, external_ref: Optional[str] = None) -> ImageRecord:
        """Encode a captured raster to disk and catalogue it."""
        local_path = await self.ingestor.encode_captured_image(image)
        return await self._catalogue(local_path, external_ref)

    async def remove_image(self, record: ImageRecord) -> int:
        """Delete the catalog row, then try to remove its backing file.

        The two steps are not atomic. The file is only removed when this call
        deleted the row; a stale record whose row is already gone leaves its
        file alone. A missing file or a failed unlink is logged and ignored.
        """
        removed = await self.dal.delete(record)
        if not removed:
            return 0
        try:
            await asyncio.to_thread(os.remove, record.local_path)
        except FileNotFoundError:
            LOGGER.debug("Backing file already gone for image %s: %s", record.id, record.local_path)
        except OSError as exc:
            LOGGER.warning("Could not remove backing file %s for image %s: %s", record.local_path, record.id, exc)
        return removed

    async def render_preview(self, record: ImageRecord) -> Optional[bytes]:
        """Return PNG thumbnail bytes for `record`, or None if its file is unusable."""
        # thumbnail generation is blocking -> run in thread
        preview = await asyncio.to_thread(self.thumbnails.create_thumbnail_from_path, record.local_path)
        if preview is None:
            LOGGER.info("No preview for image %s; file missing or unreadable: %s", record.id, record.local_path)
        return preview

    async def _catalogue(self, local_path: str, external_ref: Optional[str]) -> ImageRecord:
        record = ImageRecord(id=None, local_path=local_path, external_ref=external_ref)
        try:
            record.id = await self.dal.insert(record)
        except Exception:
            LOGGER.exception("Failed to catalogue image saved at %s", local_path)
            raise
        return record
