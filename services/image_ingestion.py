"""Copy picked or captured images into app-private storage.

Ingestion only materializes bytes into a new, uniquely named file under the
image directory and returns its absolute path. Recording that path in the
catalog is a separate step left to the caller (see `services.gallery_service`).
"""

from __future__ import annotations

import asyncio
import inspect
import io
import logging
import os
import re
import uuid
from pathlib import Path
from typing import Any, Awaitable, Callable, Tuple

import aiofiles
from PIL import Image

from utils.errors import SourceUnreadable, WriteFailed

LOGGER = logging.getLogger(__name__)

DEFAULT_SUFFIX = ".jpg"
ALLOWED_SUFFIXES = (".jpg", ".jpeg", ".png", ".webp", ".bmp", ".gif")
CHUNK_SIZE = 64 * 1024

# Names produced by `_allocate_path`; anything else in the image directory is not ours.
INGESTED_NAME_RE = re.compile(
    r"^image_[0-9a-f]{32}(?:" + "|".join(re.escape(s) for s in ALLOWED_SUFFIXES if s != ".jpeg") + r")$"
)

ReadFn = Callable[[int], Awaitable[bytes]]


def is_ingested_filename(name: str) -> bool:
    """Return True if `name` looks like a file written by `ImageIngestor`."""
    return INGESTED_NAME_RE.match(name) is not None


class ImageIngestor:
    """Write image sources to unique files under `image_dir`.

    Args:
        image_dir: Directory receiving ingested files. Created if missing.
        chunk_size: Number of bytes copied per read from a stream source.
        background: RGB color used to flatten transparent captures before JPEG encoding.
    """

    def __init__(
        self,
        image_dir: Path | str,
        chunk_size: int = CHUNK_SIZE,
        background: Tuple[int, int, int] = (255, 255, 255),
    ) -> None:
        self.image_dir = Path(image_dir).resolve()
        self.image_dir.mkdir(parents=True, exist_ok=True)
        self.chunk_size = chunk_size
        self.background = background

    async def ingest_from_source(self, source: Any) -> str:
        """Stream `source` into a new file and return its absolute path.

        Args:
            source: A filesystem path, a binary file object, or an object with
                an async `read(size)` method such as an uploaded file.

        Raises:
            SourceUnreadable: If the source cannot be opened. No file is created.
            WriteFailed: If copying fails midway. The partial file is left on disk.
        """
        if isinstance(source, (str, os.PathLike)):
            try:
                reader = await aiofiles.open(source, "rb")
            except OSError as exc:
                raise SourceUnreadable(f"Cannot open image source {source!s}") from exc
            try:
                return await self._copy(reader.read, self._suffix_for(os.fspath(source)))
            finally:
                await reader.close()

        read = self._stream_reader(source)
        return await self._copy(read, self._suffix_for(getattr(source, "filename", None) or getattr(source, "name", None)))

    async def encode_captured_image(self, pixel_buffer: Image.Image) -> str:
        """Encode an in-memory raster as JPEG into a new file and return its path.

        Raises:
            WriteFailed: If the raster cannot be encoded or the file cannot be written.
        """
        try:
            data = await asyncio.to_thread(self._encode_jpeg, pixel_buffer)
        except (OSError, ValueError, AttributeError) as exc:
            raise WriteFailed("Could not encode captured image") from exc

        path = self._allocate_path(DEFAULT_SUFFIX)
        try:
            async with aiofiles.open(path, "wb") as out:
                await out.write(data)
        except OSError as exc:
            LOGGER.error("Failed to write captured image to %s: %s", path, exc)
            raise WriteFailed(f"Failed to write captured image to {path}", path=str(path)) from exc

        LOGGER.debug("Captured image saved to %s", path)
        return str(path)

    def _allocate_path(self, suffix: str) -> Path:
        return self.image_dir / f"image_{uuid.uuid4().hex}{suffix}"

    async def _copy(self, read: ReadFn, suffix: str) -> str:
        path = self._allocate_path(suffix)
        try:
            async with aiofiles.open(path, "wb") as out:
                while True:
                    chunk = await read(self.chunk_size)
                    if not chunk:
                        break
                    await out.write(chunk)
        except (OSError, ValueError) as exc:
            LOGGER.error("Failed to save image to %s: %s", path, exc)
            raise WriteFailed(f"Failed to save image to {path}", path=str(path)) from exc

        LOGGER.debug("Image saved to %s", path)
        return str(path)

    @staticmethod
    def _stream_reader(source: Any) -> ReadFn:
        read = getattr(source, "read", None)
        if read is None or getattr(source, "closed", False):
            raise SourceUnreadable(f"Image source {source!r} is not readable")
        readable = getattr(source, "readable", None)
        if callable(readable) and not inspect.iscoroutinefunction(readable) and not readable():
            raise SourceUnreadable(f"Image source {source!r} is not readable")

        if inspect.iscoroutinefunction(read):
            return read

        async def _read(size: int) -> bytes:
            return await asyncio.to_thread(read, size)

        return _read

    @staticmethod
    def _suffix_for(name: str | None) -> str:
        if not name:
            return DEFAULT_SUFFIX
        suffix = Path(name).suffix.lower()
        if suffix not in ALLOWED_SUFFIXES:
            return DEFAULT_SUFFIX
        return ".jpg" if suffix == ".jpeg" else suffix

    def _encode_jpeg(self, image: Image.Image) -> bytes:
        # JPEG has no alpha channel; flatten against the background color
        if image.mode in ("RGBA", "LA", "P"):
            rgba = image.convert("RGBA")
            flat = Image.new("RGB", rgba.size, self.background)
            flat.paste(rgba, mask=rgba.split()[3])
        else:
            flat = image.convert("RGB")

        out_io = io.BytesIO()
        flat.save(out_io, format="JPEG", quality=100)
        return out_io.getvalue()
