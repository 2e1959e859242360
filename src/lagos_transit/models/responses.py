from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from lagos_transit.models.transit import Leg, Stop, VehicleCategory


class TrafficLevel(str, Enum):
    """Congestion level, ordered from lightest to heaviest."""

    LIGHT = "Light"
    MEDIUM = "Medium"
    HEAVY = "Heavy"


class TrafficSource(str, Enum):
    """Indicates whether a traffic sample came from the live provider or the estimator."""

    LIVE = "live"
    SYNTHETIC = "synthetic"


class TrafficSample(BaseModel):
    level: TrafficLevel
    delay: int = Field(ge=0, description="Extra travel time in minutes")
    last_updated: datetime
    source: TrafficSource = TrafficSource.SYNTHETIC


class SearchStopsResponse(BaseModel):
    stops: list[Stop]
    query: str = Field(description="Original query string")
    count: int = Field(description="Number of stops returned")


class ListStopsResponse(BaseModel):
    stops: list[Stop]
    count: int = Field(description="Number of stops in the catalog")


class NearbyStop(BaseModel):
    stop: Stop
    distance_meters: float = Field(description="Distance from search coordinates")


class NearbyStopsResponse(BaseModel):
    stops: list[NearbyStop]
    count: int = Field(description="Number of stops returned")


class ListLegsResponse(BaseModel):
    legs: list[Leg]
    count: int = Field(description="Number of legs in the catalog")


class DirectRoutesResponse(BaseModel):
    from_stop: str = Field(description="Stop the legs depart from")
    legs: list[Leg]
    count: int = Field(description="Number of legs returned")


class RoutePreferences(BaseModel):
    """Caller preferences for path selection.

    `fastest` takes precedence over `cheapest` when both are set.
    """

    fastest: bool = False
    cheapest: bool = False


class RouteStep(BaseModel):
    bus: str = Field(description="Bus line identifier")
    bus_type: VehicleCategory
    from_stop: str
    to_stop: str
    fare: float
    time: float = Field(description="Travel time in minutes")
    distance: float | None = Field(default=None, description="Distance in km")
    instructions: str = Field(description="Human-readable instruction for this leg")


class RouteResult(BaseModel):
    steps: list[RouteStep]
    total_time: float = Field(description="Travel time in minutes, traffic delay included")
    total_fare: float
    total_distance: float = Field(description="Distance in km (legs without distance count 0)")
    traffic: TrafficLevel


class PlanStatus(str, Enum):
    """Outcome of a route planning request."""

    OK = "ok"
    STOP_NOT_FOUND = "stop_not_found"
    NO_ROUTE = "no_route"


class StopResolutionInfo(BaseModel):
    """How an origin or destination query was resolved."""

    query: str = Field(description="Original query string")
    resolved: bool
    stop: Stop | None = None


class PlanRouteResponse(BaseModel):
    status: PlanStatus
    origin_resolution: StopResolutionInfo
    destination_resolution: StopResolutionInfo
    route: RouteResult | None = None
    success: bool = Field(description="True when a route was found")
    error: str | None = None
