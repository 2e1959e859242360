"""Route planning over the bus leg graph.

Planning runs in four steps: build an adjacency map of legs, enumerate
candidate paths breadth-first, select one under the caller's policy, then add
a traffic delay from the traffic provider.
"""

import logging
import math
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from lagos_transit.data.catalog import TransitCatalog
from lagos_transit.data.config import EnumerationMode, get_config
from lagos_transit.matching.stop_matcher import find_stop_by_name
from lagos_transit.models.responses import (
    DirectRoutesResponse,
    ListLegsResponse,
    PlanRouteResponse,
    PlanStatus,
    RoutePreferences,
    RouteResult,
    RouteStep,
    StopResolutionInfo,
    TrafficLevel,
    TrafficSample,
)
from lagos_transit.models.transit import Leg
from lagos_transit.services.traffic_service import TrafficProvider, get_traffic_provider

logger = logging.getLogger(__name__)

# Minutes added per leg when balancing travel time against transfers
TRANSFER_PENALTY_MINUTES = 5

Graph = dict[str, list[Leg]]


class SelectionPolicy(str, Enum):
    """Objective used to pick one candidate path."""

    FASTEST = "fastest"
    CHEAPEST = "cheapest"
    BALANCED = "balanced"

    @classmethod
    def from_preferences(cls, preferences: RoutePreferences | None) -> "SelectionPolicy":
        """Fastest wins over cheapest; neither means balanced."""
        if preferences is None:
            return cls.BALANCED
        if preferences.fastest:
            return cls.FASTEST
        if preferences.cheapest:
            return cls.CHEAPEST
        return cls.BALANCED


@dataclass(frozen=True)
class CandidatePath:
    """A walk from the origin to `stop` with accumulated totals."""

    origin: str
    stop: str
    distance: float = 0.0
    time: float = 0.0
    fare: float = 0.0
    steps: tuple[RouteStep, ...] = ()

    @property
    def stops_on_path(self) -> set[str]:
        return {self.origin, *(step.to_stop for step in self.steps)}

    def extend(self, leg: Leg) -> "CandidatePath":
        return CandidatePath(
            origin=self.origin,
            stop=leg.to_stop,
            distance=self.distance + (leg.distance or 0.0),
            time=self.time + leg.time,
            fare=self.fare + leg.fare,
            steps=(*self.steps, make_step(leg)),
        )


def make_step(leg: Leg) -> RouteStep:
    return RouteStep(
        bus=leg.bus_number,
        bus_type=leg.bus_type,
        from_stop=leg.from_stop,
        to_stop=leg.to_stop,
        fare=leg.fare,
        time=leg.time,
        distance=leg.distance,
        instructions=(
            f"Take {leg.bus_number} ({leg.bus_type.value}) from {leg.from_stop} to {leg.to_stop}"
        ),
    )


def path_cost(path: CandidatePath, policy: SelectionPolicy) -> float:
    """Cost of a (partial) path under a selection policy. Lower is better."""
    if policy is SelectionPolicy.FASTEST:
        return path.time
    if policy is SelectionPolicy.CHEAPEST:
        return path.fare
    return path.time + len(path.steps) * TRANSFER_PENALTY_MINUTES


def build_graph(legs: Iterable[Leg]) -> Graph:
    """Map each stop name to its outgoing legs.

    Legs keep dataset order; parallel legs between the same stops stay separate.
    """
    graph: Graph = {}
    for leg in legs:
        graph.setdefault(leg.from_stop, []).append(leg)
    return graph


def enumerate_paths(
    graph: Graph,
    origin: str,
    destination: str,
    mode: EnumerationMode = EnumerationMode.RELAXED,
    policy: SelectionPolicy = SelectionPolicy.BALANCED,
) -> list[CandidatePath]:
    """Breadth-first enumeration of paths from origin to destination.

    A branch never revisits a stop already on its own path, and a branch that
    reaches the destination is recorded without being expanded further.

    Pruning depends on `mode`:
    - PRUNED: each stop is expanded once; later arrivals at an expanded stop
      are dropped even if they are cheaper or faster.
    - RELAXED: each stop keeps the lowest `path_cost` seen under `policy`; a
      branch arriving at the same or higher cost is dropped, and a queued
      branch is skipped once a cheaper arrival at its stop replaces it.

    Returns:
        Candidate paths in discovery order (empty when the destination is
        unreachable). origin == destination yields one empty path.
    """
    start = CandidatePath(origin=origin, stop=origin)
    if origin == destination:
        return [start]

    queue: deque[CandidatePath] = deque([start])
    expanded: set[str] = set()  # PRUNED only
    best_cost: dict[str, float] = {origin: 0.0}  # RELAXED only
    candidates: list[CandidatePath] = []

    while queue:
        current = queue.popleft()

        if current.stop == destination:
            candidates.append(current)
            continue

        if mode is EnumerationMode.PRUNED:
            if current.stop in expanded:
                continue
            expanded.add(current.stop)
        elif path_cost(current, policy) != best_cost.get(current.stop):
            # Superseded by a cheaper arrival enqueued later
            continue

        on_path = current.stops_on_path
        for leg in graph.get(current.stop, []):
            if leg.to_stop in on_path:
                continue

            branch = current.extend(leg)
            if mode is EnumerationMode.RELAXED:
                cost = path_cost(branch, policy)
                # Ties keep the first-discovered label
                if cost >= best_cost.get(leg.to_stop, math.inf):
                    continue
                best_cost[leg.to_stop] = cost
            queue.append(branch)

    return candidates


def select_best(candidates: list[CandidatePath], policy: SelectionPolicy) -> CandidatePath:
    """Pick the lowest-cost candidate; ties go to the earliest discovered.

    Raises:
        ValueError: If candidates is empty.
    """
    if not candidates:
        raise ValueError("No candidate paths to select from")
    # min() returns the first of equal keys, matching a stable sort
    return min(candidates, key=lambda path: path_cost(path, policy))


def compose_result(path: CandidatePath, traffic: TrafficSample) -> RouteResult:
    return RouteResult(
        steps=list(path.steps),
        total_time=path.time + traffic.delay,
        total_fare=path.fare,
        total_distance=path.distance,
        traffic=traffic.level,
    )


def _empty_route() -> RouteResult:
    return RouteResult(
        steps=[],
        total_time=0,
        total_fare=0,
        total_distance=0,
        traffic=TrafficLevel.LIGHT,
    )


async def plan_route(
    origin: str,
    destination: str,
    preferences: RoutePreferences | None = None,
    catalog: TransitCatalog | None = None,
    traffic_provider: TrafficProvider | None = None,
    mode: EnumerationMode | None = None,
    db_path: Path | None = None,
) -> PlanRouteResponse:
    """Plan the best bus route between two stops.

    Args:
        origin: Origin stop name or alias (exact, case-insensitive)
        destination: Destination stop name or alias
        preferences: fastest / cheapest flags (default: balanced)
        catalog: Catalog override (default: the loaded singleton)
        traffic_provider: Traffic provider override (default: configured provider)
        mode: Enumeration mode override (default: from config)
        db_path: Optional database path override

    Returns:
        PlanRouteResponse whose status is OK, STOP_NOT_FOUND or NO_ROUTE
    """
    if catalog is None:
        catalog = await TransitCatalog.get_instance(db_path)
    if mode is None:
        mode = get_config().enumeration_mode

    origin_stop = find_stop_by_name(origin, catalog)
    destination_stop = find_stop_by_name(destination, catalog)
    origin_res = StopResolutionInfo(
        query=origin, resolved=origin_stop is not None, stop=origin_stop
    )
    dest_res = StopResolutionInfo(
        query=destination, resolved=destination_stop is not None, stop=destination_stop
    )

    if origin_stop is None or destination_stop is None:
        missing = [res.query for res in (origin_res, dest_res) if not res.resolved]
        return PlanRouteResponse(
            status=PlanStatus.STOP_NOT_FOUND,
            origin_resolution=origin_res,
            destination_resolution=dest_res,
            success=False,
            error="Bus stop not found: " + ", ".join(missing),
        )

    if origin_stop.id == destination_stop.id:
        return PlanRouteResponse(
            status=PlanStatus.OK,
            origin_resolution=origin_res,
            destination_resolution=dest_res,
            route=_empty_route(),
            success=True,
        )

    policy = SelectionPolicy.from_preferences(preferences)
    graph = build_graph(catalog.legs)
    candidates = enumerate_paths(graph, origin_stop.name, destination_stop.name, mode, policy)
    logger.debug(
        f"{len(candidates)} candidate path(s) from {origin_stop.name} to "
        f"{destination_stop.name} (mode={mode.value}, policy={policy.value})"
    )

    if not candidates:
        return PlanRouteResponse(
            status=PlanStatus.NO_ROUTE,
            origin_resolution=origin_res,
            destination_resolution=dest_res,
            success=False,
            error=f"No route found from {origin_stop.name} to {destination_stop.name}",
        )

    best = select_best(candidates, policy)

    if traffic_provider is None:
        traffic_provider = get_traffic_provider()
    traffic = await traffic_provider.get_traffic(origin_stop.name, destination_stop.name)

    return PlanRouteResponse(
        status=PlanStatus.OK,
        origin_resolution=origin_res,
        destination_resolution=dest_res,
        route=compose_result(best, traffic),
        success=True,
    )


async def list_legs(
    catalog: TransitCatalog | None = None,
    db_path: Path | None = None,
) -> ListLegsResponse:
    """Every leg in the network, in dataset order."""
    if catalog is None:
        catalog = await TransitCatalog.get_instance(db_path)
    return ListLegsResponse(legs=list(catalog.legs), count=len(catalog.legs))


async def get_direct_routes(
    from_stop: str,
    catalog: TransitCatalog | None = None,
    db_path: Path | None = None,
) -> DirectRoutesResponse:
    """List legs departing a stop.

    `from_stop` may be a name or alias; unknown names are matched verbatim
    against leg origins.
    """
    if catalog is None:
        catalog = await TransitCatalog.get_instance(db_path)

    stop = find_stop_by_name(from_stop, catalog)
    name = stop.name if stop else from_stop.strip()
    legs = catalog.legs_from(name)
    return DirectRoutesResponse(from_stop=name, legs=legs, count=len(legs))
