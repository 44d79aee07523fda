"""Print the image catalog stored in the project's SQLite database.

Each row is printed with its backing file status, so stale rows (file
deleted out-of-band) and orphaned files are easy to spot. It reuses the
same `DATABASE_DIR` / `IMAGE_DIR` behavior as the application via
`utils.database_init.AsyncDatabaseInitializer`.

Run: set the `DATABASE_DIR` environment variable and run `python print_db.py`.
"""
import asyncio
import os

from dotenv import load_dotenv

from dal.image_dal import ImageDAL
from utils.database_cleaner import DatabaseCleaner
from utils.database_init import AsyncDatabaseInitializer


def _file_status(path: str) -> str:
    """Return a short label describing the backing file at `path`."""
    if not os.path.exists(path):
        return "missing"
    if not os.access(path, os.R_OK):
        return "unreadable"
    return f"{os.path.getsize(path)} bytes"


async def main() -> None:
    """Ensure the catalog exists and print its rows and orphaned files."""
    initializer = AsyncDatabaseInitializer()
    records = await ImageDAL(initializer).list_all()

    print(f"Catalog: {initializer.db_path} ({len(records)} image(s))")
    for record in records:
        ref = record.external_ref or "-"
        print(f"  id={record.id} ref={ref} {record.local_path} [{_file_status(record.local_path)}]")

    orphans = await DatabaseCleaner(initializer).find_orphaned_files()
    if orphans:
        print(f"Orphaned files in {initializer.image_dir}:")
        for path in orphans:
            print(f"  {path}")


if __name__ == "__main__":
    load_dotenv()
    asyncio.run(main())
