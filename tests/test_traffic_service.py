"""Tests for the traffic service."""

import asyncio
import random
import time
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from lagos_transit.data.config import TransitConfig
from lagos_transit.models.directions import DirectionsResponse
from lagos_transit.models.responses import TrafficLevel, TrafficSample, TrafficSource
from lagos_transit.services import traffic_service
from lagos_transit.services.traffic_service import (
    LiveTrafficProvider,
    SyntheticTrafficProvider,
    create_traffic_provider,
    level_for_delay,
)


def _at(hour: int) -> SyntheticTrafficProvider:
    return SyntheticTrafficProvider(
        clock=lambda: datetime(2026, 3, 2, hour, 30), rng=random.Random(42)
    )


def _config_without_api_key() -> TransitConfig:
    """Must use the alias name to override .env file values."""
    return TransitConfig(GOOGLE_MAPS_API_KEY=None)


def _config_with_api_key(**overrides) -> TransitConfig:
    return TransitConfig(GOOGLE_MAPS_API_KEY="test_key", **overrides)


def _directions(normal: int, in_traffic: int | None) -> DirectionsResponse:
    leg = {"duration": {"value": normal}}
    if in_traffic is not None:
        leg["duration_in_traffic"] = {"value": in_traffic}
    return DirectionsResponse.model_validate({"status": "OK", "routes": [{"legs": [leg]}]})


def _patch_client(result=None, side_effect=None):
    """Patch TrafficClient so fetch_directions returns `result` or raises."""
    client = MagicMock()
    client.fetch_directions = AsyncMock(return_value=result, side_effect=side_effect)
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    return patch.object(traffic_service, "TrafficClient", return_value=client), client


class FixedFallback:
    def __init__(self):
        self.calls = 0

    async def get_traffic(self, origin: str, destination: str) -> TrafficSample:
        self.calls += 1
        return TrafficSample(
            level=TrafficLevel.LIGHT, delay=1, last_updated=datetime(2026, 3, 2, 12, 0)
        )


class TestLevelForDelay:
    @pytest.mark.parametrize(
        "delay,level",
        [
            (0, TrafficLevel.LIGHT),
            (4, TrafficLevel.LIGHT),
            (5, TrafficLevel.MEDIUM),
            (14, TrafficLevel.MEDIUM),
            (15, TrafficLevel.HEAVY),
            (60, TrafficLevel.HEAVY),
        ],
    )
    def test_thresholds(self, delay: int, level: TrafficLevel) -> None:
        assert level_for_delay(delay) is level


class TestSyntheticTraffic:
    @pytest.mark.parametrize("hour", [7, 8, 10, 16, 18, 20])
    def test_rush_hours_are_heavy(self, hour: int) -> None:
        sample = _at(hour).estimate()
        assert sample.level is TrafficLevel.HEAVY
        assert 10 <= sample.delay <= 29

    @pytest.mark.parametrize("hour", [11, 13, 15])
    def test_midday_is_medium(self, hour: int) -> None:
        sample = _at(hour).estimate()
        assert sample.level is TrafficLevel.MEDIUM
        assert 3 <= sample.delay <= 12

    @pytest.mark.parametrize("hour", [0, 5, 6, 21, 23])
    def test_off_peak_is_light(self, hour: int) -> None:
        sample = _at(hour).estimate()
        assert sample.level is TrafficLevel.LIGHT
        assert 0 <= sample.delay <= 4

    def test_sample_metadata(self) -> None:
        sample = _at(9).estimate()
        assert sample.source is TrafficSource.SYNTHETIC
        assert sample.last_updated == datetime(2026, 3, 2, 9, 30)

    def test_seeded_rng_is_deterministic(self) -> None:
        assert _at(17).estimate().delay == _at(17).estimate().delay

    async def test_get_traffic_ignores_places(self) -> None:
        provider = _at(12)
        sample = await provider.get_traffic("Ikeja", "CMS")
        assert sample.level is TrafficLevel.MEDIUM


class TestLiveTraffic:
    async def test_delay_from_duration_in_traffic(self) -> None:
        patcher, client = _patch_client(_directions(normal=1200, in_traffic=1800))
        provider = LiveTrafficProvider(_config_with_api_key(), fallback=FixedFallback())

        with patcher:
            sample = await provider.get_traffic("Ikeja", "CMS")

        assert sample.delay == 10
        assert sample.level is TrafficLevel.MEDIUM
        assert sample.source is TrafficSource.LIVE
        client.fetch_directions.assert_awaited_once_with("Ikeja", "CMS")

    async def test_faster_than_normal_is_zero_delay(self) -> None:
        patcher, _ = _patch_client(_directions(normal=1200, in_traffic=1000))
        provider = LiveTrafficProvider(_config_with_api_key(), fallback=FixedFallback())

        with patcher:
            sample = await provider.get_traffic("Ikeja", "CMS")

        assert sample.delay == 0
        assert sample.level is TrafficLevel.LIGHT

    async def test_missing_traffic_duration_is_zero_delay(self) -> None:
        patcher, _ = _patch_client(_directions(normal=1200, in_traffic=None))
        provider = LiveTrafficProvider(_config_with_api_key(), fallback=FixedFallback())

        with patcher:
            sample = await provider.get_traffic("Ikeja", "CMS")

        assert sample.delay == 0
        assert sample.source is TrafficSource.LIVE

    async def test_heavy_traffic(self) -> None:
        patcher, _ = _patch_client(_directions(normal=1200, in_traffic=2400))
        provider = LiveTrafficProvider(_config_with_api_key(), fallback=FixedFallback())

        with patcher:
            sample = await provider.get_traffic("Ikeja", "CMS")

        assert sample.delay == 20
        assert sample.level is TrafficLevel.HEAVY

    async def test_falls_back_on_http_error(self, caplog) -> None:
        patcher, _ = _patch_client(side_effect=httpx.ConnectTimeout("timed out"))
        fallback = FixedFallback()
        provider = LiveTrafficProvider(_config_with_api_key(), fallback=fallback)

        with patcher:
            sample = await provider.get_traffic("Ikeja", "CMS")

        assert fallback.calls == 1
        assert sample.delay == 1
        assert "Failed to fetch traffic" in caplog.text

    async def test_falls_back_on_non_ok_status(self) -> None:
        patcher, _ = _patch_client(
            DirectionsResponse.model_validate({"status": "ZERO_RESULTS", "routes": []})
        )
        fallback = FixedFallback()
        provider = LiveTrafficProvider(_config_with_api_key(), fallback=fallback)

        with patcher:
            sample = await provider.get_traffic("Ikeja", "Atlantis")

        assert fallback.calls == 1
        assert sample.source is TrafficSource.SYNTHETIC

    async def test_caches_by_place_pair(self) -> None:
        patcher, client = _patch_client(_directions(normal=600, in_traffic=900))
        provider = LiveTrafficProvider(_config_with_api_key(), fallback=FixedFallback())

        with patcher:
            first = await provider.get_traffic("Ikeja", "CMS")
            second = await provider.get_traffic("Ikeja", "CMS")
            await provider.get_traffic("CMS", "Ikeja")

        assert first == second
        assert client.fetch_directions.await_count == 2

    async def test_fallback_results_not_cached(self) -> None:
        patcher, client = _patch_client(side_effect=httpx.ConnectError("down"))
        fallback = FixedFallback()
        provider = LiveTrafficProvider(_config_with_api_key(), fallback=fallback)

        with patcher:
            await provider.get_traffic("Ikeja", "CMS")
            await provider.get_traffic("Ikeja", "CMS")

        assert fallback.calls == 2
        assert client.fetch_directions.await_count == 2


class TestLiveTrafficConcurrency:
    async def test_distinct_pairs_fetch_in_parallel(self) -> None:
        """A slow failing API must not make unrelated pairs queue up."""
        fallback = FixedFallback()
        provider = LiveTrafficProvider(_config_with_api_key(), fallback=fallback)

        async def slow_failure(origin: str, destination: str):
            await asyncio.sleep(0.3)
            raise httpx.ReadTimeout("timed out")

        pairs = [("Ikeja", "CMS"), ("Yaba", "CMS"), ("Oshodi", "Ajah"), ("Lekki", "Obalende")]
        with patch.object(provider, "_fetch", side_effect=slow_failure):
            started = time.monotonic()
            samples = await asyncio.gather(*(provider.get_traffic(o, d) for o, d in pairs))
            elapsed = time.monotonic() - started

        assert len(samples) == 4
        assert fallback.calls == 4
        # Serialized fetches would take 4 x 0.3s
        assert elapsed < 0.9

    async def test_same_pair_fetched_once(self) -> None:
        provider = LiveTrafficProvider(_config_with_api_key(), fallback=FixedFallback())
        calls = 0

        async def slow_success(origin: str, destination: str) -> TrafficSample:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.05)
            return TrafficSample(
                level=TrafficLevel.MEDIUM,
                delay=7,
                last_updated=datetime(2026, 3, 2, 12, 0),
                source=TrafficSource.LIVE,
            )

        with patch.object(provider, "_fetch", side_effect=slow_success):
            samples = await asyncio.gather(
                *(provider.get_traffic("Ikeja", "CMS") for _ in range(3))
            )

        assert calls == 1
        assert {sample.delay for sample in samples} == {7}


class TestProviderSelection:
    def test_synthetic_without_api_key(self) -> None:
        provider = create_traffic_provider(_config_without_api_key())
        assert isinstance(provider, SyntheticTrafficProvider)

    def test_live_with_api_key(self) -> None:
        provider = create_traffic_provider(_config_with_api_key())
        assert isinstance(provider, LiveTrafficProvider)

    def test_free_services_forces_synthetic(self) -> None:
        provider = create_traffic_provider(_config_with_api_key(USE_FREE_SERVICES=True))
        assert isinstance(provider, SyntheticTrafficProvider)

    def test_singleton_and_reset(self, monkeypatch) -> None:
        monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)
        monkeypatch.setenv("USE_FREE_SERVICES", "true")

        first = traffic_service.get_traffic_provider()
        assert traffic_service.get_traffic_provider() is first
        assert isinstance(first, SyntheticTrafficProvider)

        traffic_service.reset_service()
        assert traffic_service.get_traffic_provider() is not first

    async def test_get_traffic_data_uses_configured_provider(self) -> None:
        provider = AsyncMock()
        provider.get_traffic.return_value = TrafficSample(
            level=TrafficLevel.HEAVY, delay=18, last_updated=datetime(2026, 3, 2, 8, 0)
        )
        traffic_service._provider = provider

        sample = await traffic_service.get_traffic_data("Yaba", "CMS")

        assert sample.delay == 18
        provider.get_traffic.assert_awaited_once_with("Yaba", "CMS")
