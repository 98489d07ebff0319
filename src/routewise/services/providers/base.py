"""Contracts for the external routing, weather and places providers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol, Sequence

from ...models.domain import Candidate, Coordinate, Corridor, RouteLeg, WeatherInsights

if TYPE_CHECKING:
    from ..optimizer.cancellation import CancellationToken


class RoutingProvider(Protocol):
    def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        mode: str,
        detour_tolerance: Optional[float] = None,
        exclude: Sequence[str] = (),
        timeout: Optional[float] = None,
        token: Optional[CancellationToken] = None,
    ) -> RouteLeg:
        ...


class WeatherProvider(Protocol):
    def insights(self, lat: float, lng: float, radius_m: float, timeout: Optional[float] = None) -> WeatherInsights:
        ...


class PlacesProvider(Protocol):
    def search_near(
        self,
        corridor: Corridor,
        category: str,
        min_rating: float,
        timeout: Optional[float] = None,
    ) -> list[Candidate]:
        ...
