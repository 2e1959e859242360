"""Dataset loader for ingesting bus stops and routes into SQLite."""

import logging
from pathlib import Path
from typing import Any

import aiosqlite
from pydantic import TypeAdapter

from lagos_transit.models.transit import Leg, Stop

logger = logging.getLogger(__name__)

STOPS_FILENAME = "bus-stops.json"
LEGS_FILENAME = "routes.json"

SCHEMA_SQL = """
-- stops (position preserves dataset order)
CREATE TABLE stops (
    id INTEGER PRIMARY KEY,
    position INTEGER NOT NULL,
    name TEXT NOT NULL,
    lat REAL NOT NULL,
    lng REAL NOT NULL
);

-- stop_aliases
CREATE TABLE stop_aliases (
    stop_id INTEGER NOT NULL,
    position INTEGER NOT NULL,
    alias TEXT NOT NULL,
    PRIMARY KEY (stop_id, position)
);

-- legs (seq preserves dataset order)
CREATE TABLE legs (
    seq INTEGER PRIMARY KEY,
    from_stop TEXT NOT NULL,
    to_stop TEXT NOT NULL,
    fare REAL NOT NULL,
    time REAL NOT NULL,
    bus_number TEXT NOT NULL,
    bus_type TEXT NOT NULL,
    distance REAL
);
"""

INDEX_SQL = """
CREATE INDEX idx_stops_name ON stops(name);
CREATE INDEX idx_stop_aliases_alias ON stop_aliases(alias);
CREATE INDEX idx_legs_from ON legs(from_stop);
CREATE INDEX idx_legs_to ON legs(to_stop);
"""

TABLE_NAMES = ("stops", "stop_aliases", "legs")

# Chunk size for bulk inserts
CHUNK_SIZE = 5000

_stops_adapter = TypeAdapter(list[Stop])
_legs_adapter = TypeAdapter(list[Leg])


class DatasetLoader:
    """Loader for ingesting the bus stop / route dataset into SQLite."""

    def __init__(self, db_path: Path):
        """Initialize the loader.

        Args:
            db_path: Path where the SQLite database will be created.
        """
        self.db_path = Path(db_path)

    async def ingest(self, dataset_path: Path) -> dict[str, int]:
        """Ingest the dataset directory into SQLite.

        Uses atomic swap: loads into temp DB, then replaces the target DB.

        Args:
            dataset_path: Directory holding bus-stops.json and routes.json.

        Returns:
            Dictionary with row counts per table.

        Raises:
            FileNotFoundError: If the dataset directory or one of its files doesn't exist.
            ValueError: If a file fails validation or a table ends up empty.
        """
        dataset_path = Path(dataset_path)
        if not dataset_path.is_dir():
            raise FileNotFoundError(f"Dataset directory not found: {dataset_path}")

        stops = read_stops(dataset_path / STOPS_FILENAME)
        legs = read_legs(dataset_path / LEGS_FILENAME)

        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        temp_db = self.db_path.with_suffix(".tmp.db")

        try:
            # Remove temp db if it exists from a previous failed run
            temp_db.unlink(missing_ok=True)

            async with aiosqlite.connect(temp_db) as db:
                await db.execute("PRAGMA journal_mode=OFF")
                await db.execute("PRAGMA synchronous=OFF")

                await db.executescript(SCHEMA_SQL)
                row_counts = {
                    "stops": await self._load_stops(db, stops),
                    "stop_aliases": await self._load_aliases(db, stops),
                    "legs": await self._load_legs(db, legs),
                }
                logger.info("Creating indexes...")
                await db.executescript(INDEX_SQL)
                await db.commit()
                await self._verify_integrity(db)

            # atomic swap
            temp_db.replace(self.db_path)

            _warn_unknown_endpoints(stops, legs)
            logger.info(f"Dataset ingestion complete: {self.db_path}")
            return row_counts

        except Exception:
            temp_db.unlink(missing_ok=True)
            raise

    async def _insert_chunked(
        self, db: aiosqlite.Connection, sql: str, rows: list[tuple[Any, ...]]
    ) -> int:
        for start in range(0, len(rows), CHUNK_SIZE):
            await db.executemany(sql, rows[start : start + CHUNK_SIZE])
        await db.commit()
        return len(rows)

    async def _load_stops(self, db: aiosqlite.Connection, stops: list[Stop]) -> int:
        logger.info(f"Loading {len(stops):,} stops...")
        rows = [(s.id, position, s.name, s.lat, s.lng) for position, s in enumerate(stops)]
        return await self._insert_chunked(
            db, "INSERT INTO stops (id, position, name, lat, lng) VALUES (?, ?, ?, ?, ?)", rows
        )

    async def _load_aliases(self, db: aiosqlite.Connection, stops: list[Stop]) -> int:
        rows = [
            (stop.id, position, alias)
            for stop in stops
            for position, alias in enumerate(stop.aliases)
        ]
        return await self._insert_chunked(
            db, "INSERT INTO stop_aliases (stop_id, position, alias) VALUES (?, ?, ?)", rows
        )

    async def _load_legs(self, db: aiosqlite.Connection, legs: list[Leg]) -> int:
        logger.info(f"Loading {len(legs):,} legs...")
        rows = [
            (
                seq,
                leg.from_stop,
                leg.to_stop,
                leg.fare,
                leg.time,
                leg.bus_number,
                leg.bus_type.value,
                leg.distance,
            )
            for seq, leg in enumerate(legs)
        ]
        return await self._insert_chunked(
            db,
            "INSERT INTO legs (seq, from_stop, to_stop, fare, time, bus_number, bus_type, distance)"
            " VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            rows,
        )

    async def _verify_integrity(self, db: aiosqlite.Connection) -> None:
        """Verify database integrity after loading."""
        logger.info("Verifying database integrity...")

        async with db.execute("SELECT COUNT(*) FROM stops") as cursor:
            row = await cursor.fetchone()
            if row is None or row[0] == 0:
                raise ValueError("No stops loaded - check dataset")

        async with db.execute("SELECT COUNT(*) FROM legs") as cursor:
            row = await cursor.fetchone()
            if row is None or row[0] == 0:
                raise ValueError("No legs loaded - check dataset")

        logger.info("Database integrity verified")


def read_stops(path: Path) -> list[Stop]:
    """Read and validate a bus stops JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        pydantic.ValidationError: If an entry is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Stops file not found: {path}")
    return _stops_adapter.validate_json(path.read_bytes())


def read_legs(path: Path) -> list[Leg]:
    """Read and validate a routes (legs) JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        pydantic.ValidationError: If an entry is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Routes file not found: {path}")
    return _legs_adapter.validate_json(path.read_bytes())


def _warn_unknown_endpoints(stops: list[Stop], legs: list[Leg]) -> None:
    """Log legs whose endpoints aren't canonical stop names.

    Such legs are kept: the planner walks them but they can't be a route's
    origin or destination.
    """
    known = {stop.name for stop in stops}
    unknown = {
        name for leg in legs for name in (leg.from_stop, leg.to_stop) if name not in known
    }
    if unknown:
        logger.warning(
            f"{len(unknown)} leg endpoint(s) are not canonical stop names: "
            + ", ".join(sorted(unknown))
        )


async def get_table_counts(db_path: Path) -> dict[str, int]:
    """Get row counts for all tables in the database.

    Args:
        db_path: Path to the SQLite database.

    Returns:
        Dictionary mapping table names to row counts.
    """
    counts: dict[str, int] = {}
    async with aiosqlite.connect(db_path) as db:
        for table_name in TABLE_NAMES:
            async with db.execute(f"SELECT COUNT(*) FROM {table_name}") as cursor:
                row = await cursor.fetchone()
                counts[table_name] = row[0] if row else 0
    return counts
