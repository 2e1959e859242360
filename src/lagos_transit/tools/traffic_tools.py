from lagos_transit.app import mcp
from lagos_transit.models.responses import TrafficSample
from lagos_transit.services.traffic_service import get_traffic_data


@mcp.tool()
async def get_traffic(origin: str, destination: str) -> TrafficSample:
    """Get the current traffic level and delay between two places in Lagos.

    Uses Google Maps when configured, otherwise a time-of-day estimate
    (source="synthetic"). Places are sent to Google Maps as given, with the
    configured region (default "Lagos, Nigeria") appended unless already
    present. plan_route uses the same lookup with the canonical names of the
    resolved stops, so "Marina" is looked up as "CMS".

    Args:
        origin: Origin place or stop name.
        destination: Destination place or stop name.

    Returns:
        TrafficSample with level (Light/Medium/Heavy) and delay in minutes.
    """
    return await get_traffic_data(origin, destination)
