import httpx

from lagos_transit.data.config import TransitConfig
from lagos_transit.models.directions import DirectionsResponse


class TrafficClient:
    """Async HTTP client for driving directions with live traffic from Google Maps.

    Usage:
        async with TrafficClient(config) as client:
            response = await client.fetch_directions("Ikeja", "CMS")
    """

    def __init__(self, config: TransitConfig):
        """Initialize the client.

        Args:
            config: Configuration with API key, directions URL and timeout.
        """
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "TrafficClient":
        """Enter async context - create HTTP client."""
        self._client = httpx.AsyncClient(timeout=self._config.traffic_timeout_seconds)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context - close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _qualify(self, place: str) -> str:
        """Append the configured region so bare stop names geocode locally."""
        region = self._config.traffic_region
        if not region or region.lower() in place.lower():
            return place
        return f"{place}, {region}"

    async def fetch_directions(self, origin: str, destination: str) -> DirectionsResponse:
        """Fetch driving directions departing now, with a best-guess traffic model.

        Returns:
            DirectionsResponse (status may be non-OK; callers check first_leg).

        Raises:
            RuntimeError: If client not initialized.
            httpx.HTTPError: If the HTTP request fails.
        """
        if not self._client:
            raise RuntimeError("Client not initialized - use 'async with'")

        params = {
            "origin": self._qualify(origin),
            "destination": self._qualify(destination),
            "mode": "driving",
            "departure_time": "now",
            "traffic_model": "best_guess",
            "key": self._config.google_maps_api_key or "",
        }
        response = await self._client.get(self._config.directions_url, params=params)
        response.raise_for_status()

        # parse JSON directly into Pydantic model
        return DirectionsResponse.model_validate(response.json())
