import io
from pathlib import Path

import pytest
from PIL import Image

from services.image_ingestion import ImageIngestor
from utils.errors import SourceUnreadable, WriteFailed


class AsyncReader:
    """Minimal stand-in for an uploaded file exposing `async read(size)`."""

    def __init__(self, data: bytes, filename: str = "upload.png") -> None:
        self._buf = io.BytesIO(data)
        self.filename = filename

    async def read(self, size: int = -1) -> bytes:
        return self._buf.read(size)


class FailingStream(io.RawIOBase):
    """Yields one chunk, then fails like a yanked storage device."""

    def __init__(self, first: bytes) -> None:
        self._first = first
        self._served = False

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        if self._served:
            raise OSError("device went away")
        self._served = True
        return self._first


class ClosedMidCopyStream(io.BytesIO):
    """Closes itself after the first chunk, as when the picker revokes access."""

    def read(self, size: int = -1) -> bytes:
        chunk = super().read(size)
        self.close()
        return chunk


@pytest.fixture
def image_dir(tmp_path):
    return tmp_path / "images"


@pytest.fixture
def ingestor(image_dir):
    return ImageIngestor(image_dir, chunk_size=7)


@pytest.mark.asyncio
async def test_ingest_from_path_copies_bytes_exactly(ingestor, image_dir, tmp_path, png_bytes):
    source = tmp_path / "picked.PNG"
    source.write_bytes(png_bytes)

    path = await ingestor.ingest_from_source(source)

    assert Path(path).is_absolute()
    assert Path(path).parent == image_dir.resolve()
    assert Path(path).suffix == ".png"
    assert Path(path).read_bytes() == png_bytes


@pytest.mark.asyncio
async def test_ingest_from_binary_stream(ingestor):
    payload = bytes(range(256)) * 3

    path = await ingestor.ingest_from_source(io.BytesIO(payload))

    assert Path(path).read_bytes() == payload
    assert path.endswith(".jpg")


@pytest.mark.asyncio
async def test_ingest_from_async_reader_uses_its_filename_suffix(ingestor, png_bytes):
    path = await ingestor.ingest_from_source(AsyncReader(png_bytes, filename="beach.webp"))

    assert path.endswith(".webp")
    assert Path(path).read_bytes() == png_bytes


@pytest.mark.asyncio
async def test_unknown_suffix_falls_back_to_jpg(ingestor, tmp_path):
    source = tmp_path / "notes.exe"
    source.write_bytes(b"abc")

    path = await ingestor.ingest_from_source(str(source))

    assert path.endswith(".jpg")


@pytest.mark.asyncio
async def test_each_ingestion_gets_a_unique_file(ingestor):
    first = await ingestor.ingest_from_source(io.BytesIO(b"same"))
    second = await ingestor.ingest_from_source(io.BytesIO(b"same"))

    assert first != second


@pytest.mark.asyncio
async def test_missing_path_is_unreadable_and_creates_nothing(ingestor, image_dir, tmp_path):
    with pytest.raises(SourceUnreadable):
        await ingestor.ingest_from_source(tmp_path / "does-not-exist.jpg")

    assert list(image_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_closed_stream_is_unreadable(ingestor, image_dir):
    stream = io.BytesIO(b"data")
    stream.close()

    with pytest.raises(SourceUnreadable):
        await ingestor.ingest_from_source(stream)

    assert list(image_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_object_without_read_is_unreadable(ingestor):
    with pytest.raises(SourceUnreadable):
        await ingestor.ingest_from_source(object())


@pytest.mark.asyncio
async def test_failure_mid_copy_raises_write_failed_and_keeps_partial_file(ingestor):
    with pytest.raises(WriteFailed) as excinfo:
        await ingestor.ingest_from_source(FailingStream(b"partial"))

    partial = Path(excinfo.value.path)
    assert partial.exists()
    assert partial.read_bytes() == b"partial"


@pytest.mark.asyncio
async def test_stream_closed_mid_copy_raises_write_failed(ingestor):
    with pytest.raises(WriteFailed) as excinfo:
        await ingestor.ingest_from_source(ClosedMidCopyStream(b"0123456789abcdef"))

    assert Path(excinfo.value.path).read_bytes() == b"0123456"


@pytest.mark.asyncio
async def test_encode_captured_image_writes_jpeg(ingestor):
    path = await ingestor.encode_captured_image(Image.new("RGB", (12, 8), (10, 120, 200)))

    assert path.endswith(".jpg")
    with Image.open(path) as saved:
        assert saved.format == "JPEG"
        assert saved.size == (12, 8)


@pytest.mark.asyncio
async def test_encode_captured_image_flattens_alpha(ingestor):
    path = await ingestor.encode_captured_image(Image.new("RGBA", (4, 4), (0, 0, 0, 0)))

    with Image.open(path) as saved:
        assert saved.mode == "RGB"
        r, g, b = saved.getpixel((1, 1))
        assert min(r, g, b) > 240


@pytest.mark.asyncio
async def test_encode_rejects_non_raster(ingestor, image_dir):
    with pytest.raises(WriteFailed):
        await ingestor.encode_captured_image("not an image")

    assert list(image_dir.iterdir()) == []
