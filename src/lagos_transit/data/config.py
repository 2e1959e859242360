from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnumerationMode(str, Enum):
    """How the route planner prunes branches while enumerating paths.

    - PRUNED: a stop is expanded at most once per request (first arrival wins)
    - RELAXED: a stop is re-expanded whenever a branch reaches it at a cost
      strictly better than the best seen so far under the active selection policy
    """

    PRUNED = "pruned"
    RELAXED = "relaxed"


class DuplicateNamePolicy(str, Enum):
    """What to do when two stops claim the same name or alias."""

    WARN = "warn"
    REJECT = "reject"


class TransitConfig(BaseSettings):
    """Configuration for traffic lookups and route planning.

    Automatically loads from environment variables and .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    # Google Maps (live traffic)
    google_maps_api_key: str | None = Field(default=None, alias="GOOGLE_MAPS_API_KEY")
    use_free_services: bool = Field(default=False, alias="USE_FREE_SERVICES")
    directions_url: str = "https://maps.googleapis.com/maps/api/directions/json"
    traffic_timeout_seconds: float = Field(default=5.0, alias="TRAFFIC_TIMEOUT")
    traffic_cache_ttl_seconds: int = Field(default=120, alias="TRAFFIC_CACHE_TTL")
    traffic_region: str = Field(default="Lagos, Nigeria", alias="TRAFFIC_REGION")

    # Route planning
    enumeration_mode: EnumerationMode = Field(
        default=EnumerationMode.RELAXED, alias="ROUTE_ENUMERATION_MODE"
    )
    duplicate_name_policy: DuplicateNamePolicy = Field(
        default=DuplicateNamePolicy.WARN, alias="DUPLICATE_NAME_POLICY"
    )

    @property
    def live_traffic_enabled(self) -> bool:
        """True when a Google Maps key is set and free services are not forced."""
        return bool(self.google_maps_api_key) and not self.use_free_services


@lru_cache
def get_config() -> TransitConfig:
    """Get transit configuration (cached singleton).

    Returns:
        TransitConfig with values from .env file or environment variables.
    """
    return TransitConfig()
