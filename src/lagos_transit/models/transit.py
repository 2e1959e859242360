"""Pydantic models for the static transit dataset."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class VehicleCategory(str, Enum):
    """Kind of vehicle serving a leg."""

    BRT = "BRT"  # Bus rapid transit
    DANFO = "Danfo"  # Informal minibus
    MOLUE = "Molue"  # Legacy bus
    KEKE = "Keke"  # Three-wheeler


class Stop(BaseModel):
    """A named bus stop, optionally known by aliases."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    lat: float
    lng: float
    aliases: tuple[str, ...] = ()

    @property
    def names(self) -> tuple[str, ...]:
        """Canonical name followed by every alias."""
        return (self.name, *self.aliases)


class Leg(BaseModel):
    """A directed bus connection between two stops.

    Field aliases follow the dataset JSON (`from`, `busNumber`, ...).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_stop: str = Field(alias="from")
    to_stop: str = Field(alias="to")
    fare: float = Field(ge=0, description="Fare in naira")
    time: float = Field(ge=0, description="Travel time in minutes")
    bus_number: str = Field(alias="busNumber")
    bus_type: VehicleCategory = Field(alias="busType")
    distance: float | None = Field(default=None, ge=0, description="Distance in km")
