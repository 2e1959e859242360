"""Pydantic models for the subset of the Google Directions API response we read."""

from pydantic import BaseModel, ConfigDict


class _DirectionsModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Duration(_DirectionsModel):
    value: int  # seconds
    text: str | None = None


class DirectionsLeg(_DirectionsModel):
    duration: Duration
    duration_in_traffic: Duration | None = None


class DirectionsRoute(_DirectionsModel):
    legs: list[DirectionsLeg] = []


class DirectionsResponse(_DirectionsModel):
    status: str
    routes: list[DirectionsRoute] = []
    error_message: str | None = None

    @property
    def first_leg(self) -> DirectionsLeg | None:
        """First leg of the first route, when the API returned one."""
        if self.status != "OK" or not self.routes or not self.routes[0].legs:
            return None
        return self.routes[0].legs[0]
