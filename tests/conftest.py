import io

import pytest
from PIL import Image

from utils.database_init import AsyncDatabaseInitializer


def make_png_bytes(size=(32, 24), color=(200, 30, 30, 255)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def db_dir(tmp_path, monkeypatch):
    path = tmp_path / "db"
    monkeypatch.setenv("DATABASE_DIR", str(path))
    monkeypatch.delenv("IMAGE_DIR", raising=False)
    return path


@pytest.fixture
def db_initializer(db_dir):
    return AsyncDatabaseInitializer()


@pytest.fixture
def png_bytes():
    return make_png_bytes()
