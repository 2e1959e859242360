"""Immutable in-memory catalog of stops and legs."""

import asyncio
import logging
from collections.abc import Iterable
from pathlib import Path

import aiosqlite

from lagos_transit.data.config import DuplicateNamePolicy, get_config
from lagos_transit.data.database import get_db, get_db_path
from lagos_transit.matching.normalizers import normalize_text
from lagos_transit.models.transit import Leg, Stop

logger = logging.getLogger(__name__)


class DuplicateStopNameError(ValueError):
    """Raised when two stops share a canonical name or alias."""

    def __init__(self, name: str, first: Stop, second: Stop):
        super().__init__(
            f"Stop name {name!r} is claimed by stop {first.id} ({first.name}) "
            f"and stop {second.id} ({second.name})"
        )
        self.name = name
        self.first = first
        self.second = second


class TransitCatalog:
    """Lazy-loaded singleton holding the read-only transit dataset.

    Stops and legs keep dataset order; both orders feed the
    deterministic tie-breaks of search and planning.

    Usage:
        catalog = await TransitCatalog.get_instance()
        stop = catalog.stop_by_name("ikeja")

    A running server picks up a re-ingested database on the next call.
    """

    _instance: "TransitCatalog | None" = None
    _stamp: tuple[int, int] | None = None
    _lock: asyncio.Lock = asyncio.Lock()

    def __init__(
        self,
        stops: Iterable[Stop],
        legs: Iterable[Leg],
        duplicate_policy: DuplicateNamePolicy = DuplicateNamePolicy.WARN,
    ) -> None:
        self.stops: tuple[Stop, ...] = tuple(stops)
        self.legs: tuple[Leg, ...] = tuple(legs)
        self.stops_by_id: dict[int, Stop] = {stop.id: stop for stop in self.stops}
        self._stops_by_name: dict[str, Stop] = {}  # normalized name or alias -> stop
        self._index_names(duplicate_policy)

    def _index_names(self, policy: DuplicateNamePolicy) -> None:
        for stop in self.stops:
            for name in stop.names:
                key = normalize_text(name)
                owner = self._stops_by_name.get(key)
                if owner is None:
                    self._stops_by_name[key] = stop
                elif owner.id != stop.id:
                    if policy is DuplicateNamePolicy.REJECT:
                        raise DuplicateStopNameError(name, owner, stop)
                    logger.warning(
                        f"Stop name {name!r} is shared by stops {owner.id} and {stop.id}; "
                        f"resolving to {owner.id}"
                    )

    @classmethod
    def from_records(
        cls,
        stops: Iterable[Stop],
        legs: Iterable[Leg],
        duplicate_policy: DuplicateNamePolicy | None = None,
    ) -> "TransitCatalog":
        """Build a catalog from in-memory records (no database)."""
        if duplicate_policy is None:
            duplicate_policy = get_config().duplicate_name_policy
        return cls(stops, legs, duplicate_policy)

    @classmethod
    async def get_instance(cls, db_path: Path | None = None) -> "TransitCatalog":
        """Get the singleton catalog, loading it on first use.

        The catalog is reloaded when the database file has been replaced
        since it was loaded (for example by `lagos-transit ingest` while
        the server runs).

        Args:
            db_path: Optional database path. Uses default if not provided.

        Returns:
            The loaded TransitCatalog singleton.
        """
        db_path = Path(db_path) if db_path is not None else get_db_path()
        async with cls._lock:
            stamp = _file_stamp(db_path)
            if cls._instance is None or (stamp is not None and stamp != cls._stamp):
                if cls._instance is not None:
                    logger.info(f"Transit database {db_path} changed, reloading catalog")
                cls._instance = await cls._load(db_path)
                cls._stamp = stamp
            return cls._instance

    @classmethod
    async def _load(cls, db_path: Path | None = None) -> "TransitCatalog":
        """Load stops and legs from database and build the name index."""
        async with get_db(db_path) as db:
            logger.info("Loading TransitCatalog...")
            stops = await _load_stops(db)
            legs = await _load_legs(db)

        catalog = cls.from_records(stops, legs)
        logger.info(
            f"TransitCatalog loaded: {len(catalog.stops)} stops, {len(catalog.legs)} legs"
        )
        return catalog

    def stop_by_name(self, name: str) -> Stop | None:
        """Exact, case- and whitespace-insensitive lookup by name or alias."""
        return self._stops_by_name.get(normalize_text(name))

    def legs_from(self, stop_name: str) -> list[Leg]:
        """Legs departing a stop, in dataset order."""
        return [leg for leg in self.legs if leg.from_stop == stop_name]


async def _load_stops(db: aiosqlite.Connection) -> list[Stop]:
    aliases: dict[int, list[str]] = {}
    async with db.execute(
        "SELECT stop_id, alias FROM stop_aliases ORDER BY stop_id, position"
    ) as cursor:
        async for row in cursor:
            aliases.setdefault(row["stop_id"], []).append(row["alias"])

    stops: list[Stop] = []
    async with db.execute("SELECT id, name, lat, lng FROM stops ORDER BY position") as cursor:
        async for row in cursor:
            stops.append(
                Stop(
                    id=row["id"],
                    name=row["name"],
                    lat=float(row["lat"]),
                    lng=float(row["lng"]),
                    aliases=tuple(aliases.get(row["id"], ())),
                )
            )
    return stops


async def _load_legs(db: aiosqlite.Connection) -> list[Leg]:
    query = """
        SELECT from_stop, to_stop, fare, time, bus_number, bus_type, distance
        FROM legs
        ORDER BY seq
    """
    legs: list[Leg] = []
    async with db.execute(query) as cursor:
        async for row in cursor:
            legs.append(
                Leg(
                    from_stop=row["from_stop"],
                    to_stop=row["to_stop"],
                    fare=row["fare"],
                    time=row["time"],
                    bus_number=row["bus_number"],
                    bus_type=row["bus_type"],
                    distance=row["distance"],
                )
            )
    return legs


def _file_stamp(path: Path) -> tuple[int, int] | None:
    """Identity of the database file; changes when ingest swaps in a new one."""
    try:
        stat = path.stat()
    except FileNotFoundError:
        return None
    return stat.st_ino, stat.st_mtime_ns
