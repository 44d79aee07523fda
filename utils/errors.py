"""Typed failures raised by the image catalog and ingestion services."""


class GalleryError(Exception):
    """Base class for catalog and ingestion failures."""


class StorageUnavailable(GalleryError):
    """The durable catalog could not be read or written."""


class SourceUnreadable(GalleryError):
    """The byte source handed to ingestion could not be opened."""


class WriteFailed(GalleryError):
    """An I/O error interrupted writing an ingested image to disk.

    A partially written file may remain at `path`; removing it is up to the caller.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path
