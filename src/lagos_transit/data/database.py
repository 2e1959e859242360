"""Read-only access to the ingested transit database."""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

DEFAULT_DB_PATH = Path("data/transit.db")


def get_db_path() -> Path:
    """Database path from LAGOS_TRANSIT_DB_PATH, else data/transit.db."""
    return Path(os.environ.get("LAGOS_TRANSIT_DB_PATH", DEFAULT_DB_PATH))


@asynccontextmanager
async def get_db(db_path: Path | None = None) -> AsyncIterator[aiosqlite.Connection]:
    """Open the dataset for reading.

    The connection is read-only: the dataset only changes through
    `lagos-transit ingest`, which swaps in a fresh file.

    Raises:
        FileNotFoundError: If the dataset hasn't been ingested yet.
    """
    db_path = Path(db_path) if db_path is not None else get_db_path()
    if not db_path.is_file():
        raise FileNotFoundError(
            f"No transit dataset at {db_path}. "
            "Run 'lagos-transit ingest <dataset_dir>' to create it."
        )

    uri = f"{db_path.resolve().as_uri()}?mode=ro"
    async with aiosqlite.connect(uri, uri=True) as db:
        db.row_factory = aiosqlite.Row
        yield db
