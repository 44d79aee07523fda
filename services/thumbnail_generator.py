"""Thumbnail generator service.

Provides a small OOP wrapper around Pillow to create gallery previews
from catalogued image files. The resulting thumbnail will fit within
160x160 pixels and is returned as PNG bytes.

Public class: `ThumbnailGenerator`

Example:
    tg = ThumbnailGenerator(max_size=(160, 160))
    png_bytes = tg.create_thumbnail_from_path(record.local_path)
"""
from __future__ import annotations

import io
import os
from typing import Optional, Tuple

from PIL import Image


class ThumbnailGenerator:
    """Generate thumbnails from image files on disk.

    Args:
        max_size: Maximum width and height for the thumbnail. Defaults to (160, 160).
        background: Optional background color used when converting images with alpha to RGB.
            If None, images with alpha are flattened against white.
    """

    def __init__(self, max_size: Tuple[int, int] = (160, 160), background: Tuple[int, int, int] | None = None):
        self.max_size = max_size
        self.background = background or (255, 255, 255)

    def create_thumbnail_from_path(self, path: str) -> Optional[bytes]:
        """Create a PNG thumbnail for the image stored at `path`.

        Returns:
            PNG bytes, or None when the file is missing or not a readable image.
            Catalog rows may outlive their files, so absence is not an error here.
        """
        if not os.path.isfile(path):
            return None

        try:
            with Image.open(path) as src:
                src = src.convert("RGBA")
        except OSError:
            return None

        src.thumbnail(self.max_size, Image.LANCZOS)

        # Flatten alpha against the background color
        background = Image.new("RGB", src.size, self.background)
        background.paste(src, mask=src.split()[3])

        out_io = io.BytesIO()
        background.save(out_io, format="PNG", optimize=True)
        return out_io.getvalue()
