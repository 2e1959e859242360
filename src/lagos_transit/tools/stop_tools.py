"""MCP tools for searching bus stops."""

from lagos_transit.app import mcp
from lagos_transit.models.responses import (
    ListStopsResponse,
    NearbyStopsResponse,
    SearchStopsResponse,
)
from lagos_transit.services.stop_service import find_nearby_stops as _find_nearby_stops
from lagos_transit.services.stop_service import list_stops as _list_stops
from lagos_transit.services.stop_service import search_stops as _search_stops


@mcp.tool()
async def search_bus_stops(query: str, limit: int = 5) -> SearchStopsResponse:
    """Search Lagos bus stops by name or alias, tolerating typos.

    Exact names score highest, then names starting with the query, then names
    containing it, then close spellings.

    Examples:
        search_bus_stops(query="Ikeja")  # Exact or prefix matches
        search_bus_stops(query="obalnde")  # Typo for "Obalende"

    Args:
        query: Free-text stop name.
        limit: Maximum number of results to return (default 5, max 50).

    Returns:
        SearchStopsResponse with the best matching stops, best first.
    """
    if limit < 1:
        limit = 1
    elif limit > 50:
        limit = 50

    return await _search_stops(query=query, limit=limit)


@mcp.tool()
async def list_bus_stops() -> ListStopsResponse:
    """List every bus stop in the network with coordinates and aliases."""
    return await _list_stops()


@mcp.tool()
async def find_nearby_stops(
    lat: float,
    lon: float,
    radius_meters: int = 1000,
    limit: int = 10,
) -> NearbyStopsResponse:
    """Find bus stops near a coordinate.

    Args:
        lat: Latitude in degrees.
        lon: Longitude in degrees.
        radius_meters: Search radius (default 1000m, max 10000m).
        limit: Maximum number of results (default 10, max 50).

    Returns:
        NearbyStopsResponse with stops sorted by distance.
    """
    if radius_meters < 1:
        radius_meters = 1
    elif radius_meters > 10000:
        radius_meters = 10000

    if limit < 1:
        limit = 1
    elif limit > 50:
        limit = 50

    return await _find_nearby_stops(lat=lat, lon=lon, radius_meters=radius_meters, limit=limit)
