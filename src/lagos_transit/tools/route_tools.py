"""MCP tools for route planning."""

from lagos_transit.app import mcp
from lagos_transit.models.responses import (
    DirectRoutesResponse,
    ListLegsResponse,
    PlanRouteResponse,
    RoutePreferences,
)
from lagos_transit.services.route_planner import get_direct_routes as _get_direct_routes
from lagos_transit.services.route_planner import list_legs as _list_legs
from lagos_transit.services.route_planner import plan_route as _plan_route


@mcp.tool()
async def plan_route(
    origin: str,
    destination: str,
    fastest: bool = False,
    cheapest: bool = False,
) -> PlanRouteResponse:
    """Plan a bus trip between two Lagos stops.

    Without preferences the route balances travel time against the number of
    buses taken. Total time includes the current traffic delay between the
    canonical names of the resolved stops (an alias such as "Marina" is
    looked up as "CMS").

    Args:
        origin: Origin stop name or alias (e.g., "Ikeja", "Obalende")
        destination: Destination stop name or alias
        fastest: Prefer the shortest travel time (takes precedence over cheapest)
        cheapest: Prefer the lowest total fare

    Returns:
        PlanRouteResponse with status "ok", "stop_not_found" or "no_route".
        Use search_bus_stops first when a stop name may be misspelled.
    """
    return await _plan_route(
        origin=origin,
        destination=destination,
        preferences=RoutePreferences(fastest=fastest, cheapest=cheapest),
    )


@mcp.tool()
async def list_bus_routes() -> ListLegsResponse:
    """List every bus leg in the network with fare, time and vehicle type."""
    return await _list_legs()


@mcp.tool()
async def get_direct_routes(from_stop: str) -> DirectRoutesResponse:
    """List the bus legs departing a stop.

    Args:
        from_stop: Stop name or alias.

    Returns:
        DirectRoutesResponse with every leg leaving the stop.
    """
    return await _get_direct_routes(from_stop=from_stop)
