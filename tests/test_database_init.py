import pytest

from utils.database_init import AsyncDatabaseInitializer


def test_missing_database_dir_is_a_configuration_error(monkeypatch):
    monkeypatch.delenv("DATABASE_DIR", raising=False)

    with pytest.raises(RuntimeError):
        AsyncDatabaseInitializer()


def test_database_dir_pointing_at_file_is_rejected(tmp_path, monkeypatch):
    target = tmp_path / "not-a-dir"
    target.write_text("x")
    monkeypatch.setenv("DATABASE_DIR", str(target))

    with pytest.raises(RuntimeError):
        AsyncDatabaseInitializer()


def test_image_dir_defaults_under_database_dir(db_dir):
    initializer = AsyncDatabaseInitializer()

    assert initializer.image_dir == (db_dir / "images").resolve()
    assert initializer.image_dir.is_dir()


def test_image_dir_equal_to_database_dir_is_rejected(db_dir, monkeypatch):
    monkeypatch.setenv("IMAGE_DIR", str(db_dir))

    with pytest.raises(RuntimeError):
        AsyncDatabaseInitializer()


def test_image_dir_can_be_overridden(db_dir, tmp_path, monkeypatch):
    monkeypatch.setenv("IMAGE_DIR", str(tmp_path / "photos"))

    initializer = AsyncDatabaseInitializer()

    assert initializer.image_dir == (tmp_path / "photos").resolve()


@pytest.mark.asyncio
async def test_ensure_database_creates_images_table(db_initializer):
    await db_initializer.ensure_database()

    async with db_initializer.connection() as conn:
        cur = await conn.execute("PRAGMA table_info(images)")
        cols = {row[1] for row in await cur.fetchall()}

    assert cols == {"id", "local_path", "external_ref"}
