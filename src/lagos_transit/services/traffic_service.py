"""Traffic estimates for a pair of places.

Two providers share one interface: a live provider backed by Google Maps and a
synthetic estimator driven by time of day. The live provider falls back to the
estimator on any failure, so `get_traffic` never raises.
"""

import logging
import random
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from lagos_transit.data.cache import TTLCache
from lagos_transit.data.config import TransitConfig, get_config
from lagos_transit.data.traffic_client import TrafficClient
from lagos_transit.models.responses import TrafficLevel, TrafficSample, TrafficSource

logger = logging.getLogger(__name__)

# Delay thresholds (minutes) for live samples
MEDIUM_DELAY_MINUTES = 5
HEAVY_DELAY_MINUTES = 15

# Synthetic estimator bands: (first hour, last hour) inclusive
RUSH_HOURS = ((7, 10), (16, 20))
MIDDAY_HOURS = (11, 15)


class TrafficProvider(Protocol):
    async def get_traffic(self, origin: str, destination: str) -> TrafficSample: ...


def level_for_delay(delay_minutes: int) -> TrafficLevel:
    """Map a delay in minutes to a traffic level."""
    if delay_minutes < MEDIUM_DELAY_MINUTES:
        return TrafficLevel.LIGHT
    if delay_minutes < HEAVY_DELAY_MINUTES:
        return TrafficLevel.MEDIUM
    return TrafficLevel.HEAVY


class SyntheticTrafficProvider:
    """Estimate traffic from the hour of day.

    - Rush hours (07-10, 16-20): Heavy, 10-29 minutes
    - Midday (11-15): Medium, 3-12 minutes
    - Otherwise: Light, 0-4 minutes

    `clock` and `rng` are injectable for deterministic tests.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = datetime.now,
        rng: random.Random | None = None,
    ):
        self._clock = clock
        self._rng = rng or random.Random()

    async def get_traffic(self, origin: str, destination: str) -> TrafficSample:
        return self.estimate()

    def estimate(self) -> TrafficSample:
        now = self._clock()
        hour = now.hour

        if any(start <= hour <= end for start, end in RUSH_HOURS):
            level, delay = TrafficLevel.HEAVY, self._rng.randint(10, 29)
        elif MIDDAY_HOURS[0] <= hour <= MIDDAY_HOURS[1]:
            level, delay = TrafficLevel.MEDIUM, self._rng.randint(3, 12)
        else:
            level, delay = TrafficLevel.LIGHT, self._rng.randint(0, 4)

        return TrafficSample(
            level=level, delay=delay, last_updated=now, source=TrafficSource.SYNTHETIC
        )


class LiveTrafficProvider:
    """Traffic from Google Maps driving directions, cached per (origin, destination).

    Any failure (HTTP error, timeout, non-OK status, missing traffic data)
    is logged and answered by the fallback provider.
    """

    def __init__(
        self,
        config: TransitConfig,
        fallback: TrafficProvider | None = None,
        cache: TTLCache[tuple[str, str], TrafficSample] | None = None,
    ):
        self._config = config
        self._fallback = fallback or SyntheticTrafficProvider()
        self._cache = cache or TTLCache(ttl=config.traffic_cache_ttl_seconds)

    async def get_traffic(self, origin: str, destination: str) -> TrafficSample:
        key = (origin, destination)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"Traffic cache hit for {origin} -> {destination}")
            return cached

        # One fetch per pair at a time; other pairs proceed independently
        async with self._cache.lock_for(key):
            cached = self._cache.get(key)
            if cached is not None:
                return cached

            try:
                sample = await self._fetch(origin, destination)
            except Exception as e:
                logger.warning(f"Failed to fetch traffic for {origin} -> {destination}: {e}")
                sample = None

            if sample is None:
                return await self._fallback.get_traffic(origin, destination)

            self._cache.set(key, sample)
            return sample

    async def _fetch(self, origin: str, destination: str) -> TrafficSample | None:
        async with TrafficClient(self._config) as client:
            response = await client.fetch_directions(origin, destination)

        leg = response.first_leg
        if leg is None:
            logger.warning(
                f"No directions for {origin} -> {destination} (status={response.status})"
            )
            return None

        normal_seconds = leg.duration.value
        traffic_seconds = (
            leg.duration_in_traffic.value if leg.duration_in_traffic else normal_seconds
        )
        delay_minutes = max(0, round((traffic_seconds - normal_seconds) / 60))

        return TrafficSample(
            level=level_for_delay(delay_minutes),
            delay=delay_minutes,
            last_updated=datetime.now(),
            source=TrafficSource.LIVE,
        )


def create_traffic_provider(config: TransitConfig) -> TrafficProvider:
    """Pick the live provider when Google Maps is configured, else the estimator."""
    if config.live_traffic_enabled:
        return LiveTrafficProvider(config)
    logger.debug("Google Maps not configured, using synthetic traffic estimates")
    return SyntheticTrafficProvider()


# Module-level provider (lazy-initialized)
_provider: TrafficProvider | None = None


def get_traffic_provider() -> TrafficProvider:
    """Get or create the configured traffic provider singleton."""
    global _provider
    if _provider is None:
        _provider = create_traffic_provider(get_config())
    return _provider


async def get_traffic_data(origin: str, destination: str) -> TrafficSample:
    """Traffic sample for a pair of places from the configured provider."""
    return await get_traffic_provider().get_traffic(origin, destination)


def reset_service() -> None:
    """Reset the service state completely.

    Drops the provider (and its cache) and re-reads configuration on next use.
    """
    global _provider
    _provider = None
    # hasattr check handles case where function is mocked in tests
    if hasattr(get_config, "cache_clear"):
        get_config.cache_clear()
