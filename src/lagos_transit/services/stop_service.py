"""Stop search service over the transit catalog."""

import math
from pathlib import Path

from lagos_transit.data.catalog import TransitCatalog
from lagos_transit.matching.normalizers import is_blank
from lagos_transit.matching.stop_matcher import rank_stops
from lagos_transit.models.responses import (
    ListStopsResponse,
    NearbyStop,
    NearbyStopsResponse,
    SearchStopsResponse,
)

# Earth's radius in meters for haversine calculation
EARTH_RADIUS_METERS = 6_371_000


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great-circle distance between two points in meters.

    Args:
        lat1, lon1: First point coordinates in degrees.
        lat2, lon2: Second point coordinates in degrees.

    Returns:
        Distance in meters.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


async def search_stops(
    query: str,
    limit: int = 5,
    catalog: TransitCatalog | None = None,
    db_path: Path | None = None,
) -> SearchStopsResponse:
    """Fuzzy search for stops by name or alias.

    An empty or whitespace-only query returns no stops.

    Args:
        query: Free-text stop name.
        limit: Maximum number of results.
        catalog: Catalog override (default: the loaded singleton).
        db_path: Optional database path override.

    Returns:
        SearchStopsResponse with stops ordered by match score.
    """
    if is_blank(query):
        return SearchStopsResponse(stops=[], query=query, count=0)

    if catalog is None:
        catalog = await TransitCatalog.get_instance(db_path)

    stops = [stop for stop, _ in rank_stops(query, catalog, limit=limit)]
    return SearchStopsResponse(stops=stops, query=query, count=len(stops))


async def list_stops(
    catalog: TransitCatalog | None = None,
    db_path: Path | None = None,
) -> ListStopsResponse:
    """Every stop in the catalog, in dataset order."""
    if catalog is None:
        catalog = await TransitCatalog.get_instance(db_path)
    return ListStopsResponse(stops=list(catalog.stops), count=len(catalog.stops))


async def find_nearby_stops(
    lat: float,
    lon: float,
    radius_meters: float = 1000,
    limit: int = 10,
    catalog: TransitCatalog | None = None,
    db_path: Path | None = None,
) -> NearbyStopsResponse:
    """Stops within a radius of a point, nearest first.

    Args:
        lat: Latitude in degrees.
        lon: Longitude in degrees.
        radius_meters: Search radius in meters.
        limit: Maximum number of results.

    Returns:
        NearbyStopsResponse with stops sorted by distance.
    """
    if catalog is None:
        catalog = await TransitCatalog.get_instance(db_path)

    nearby: list[NearbyStop] = []
    for stop in catalog.stops:
        distance = haversine_distance(lat, lon, stop.lat, stop.lng)
        if distance <= radius_meters:
            nearby.append(NearbyStop(stop=stop, distance_meters=round(distance, 1)))

    nearby.sort(key=lambda item: item.distance_meters)
    nearby = nearby[:limit]
    return NearbyStopsResponse(stops=nearby, count=len(nearby))
