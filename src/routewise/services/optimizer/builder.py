"""Builds the efficiency, scenic and foodie packages for one trip.

The build runs in two phases on a thread pool:

1. the direct route and the corridor weather, concurrently. Both are
   mandatory; a failure of either fails the whole build.
2. the scenic and foodie packages, concurrently. Both depend on the direct
   route duration and the shared weather. A failure in either degrades that
   package to ``disabled`` instead of failing the build.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, TypeVar

from ...config import settings
from ...errors import BuildFailed, OperationCancelled, ProviderError
from ...models.domain import (
    Candidate,
    Coordinate,
    Corridor,
    EfficiencyPackage,
    FoodiePackage,
    OptimizationRequest,
    PackageSet,
    RouteLeg,
    ScenicPackage,
    WeatherInsights,
)
from ..geospatial import corridor_radius_m, distance_to_path_km, midpoint
from ..providers.base import PlacesProvider, RoutingProvider, WeatherProvider
from ..providers.osrm_client import exclude_classes
from .cancellation import CancellationToken, wait_for
from .classifier import LocationClassifier
from .policy import FAVORABLE_THRESHOLD

logger = logging.getLogger(__name__)

T = TypeVar("T")

FOODIE_ROUTE_ATTEMPTS = 3
FOODIE_ALTERNATIVES = 2
LOW_BUDGET_MAX_PRICE_LEVEL = 2


class PackageUnavailable(Exception):
    """An optional package cannot be produced; carries the user-facing reason."""


@dataclass(slots=True, frozen=True)
class BuildOutcome:
    packages: PackageSet
    weather_insights: WeatherInsights


def scenic_score(stop_count: int, duration_increase_pct: float, visibility: float) -> int:
    """Score in [0, 100] from scenic stops, detour length and visibility."""
    raw = 40 + 12 * min(stop_count, 4) + min(40 * max(duration_increase_pct, 0.0), 12)
    return int(round(max(0.0, min(100.0, raw * (0.5 + 0.5 * visibility)))))


def disabled_scenic(reason: str) -> ScenicPackage:
    return ScenicPackage(
        route=None,
        duration=0.0,
        distance=0.0,
        scenic_score=0,
        duration_increase_pct=0.0,
        disabled=True,
        reason=reason,
        fallback_mode="efficiency",
    )


def disabled_foodie(reason: str) -> FoodiePackage:
    return FoodiePackage(
        selected_restaurant=None,
        duration=0.0,
        distance=0.0,
        disabled=True,
        reason=reason,
        fallback_mode="efficiency",
    )


class PackageBuilder:
    def __init__(
        self,
        routing: RoutingProvider,
        weather: WeatherProvider,
        places: PlacesProvider,
        classifier: LocationClassifier | None = None,
        *,
        max_workers: int | None = None,
        routing_timeout: float | None = None,
        weather_timeout: float | None = None,
        places_timeout: float | None = None,
        scenic_detour_tolerance: float | None = None,
        scenic_max_stops: int | None = None,
        foodie_max_detour_km: float | None = None,
        foodie_max_detour_pct: float | None = None,
        restaurant_min_rating: float | None = None,
        hazards_min_radius_m: float | None = None,
    ) -> None:
        self.routing = routing
        self.weather = weather
        self.places = places
        self.classifier = classifier if classifier is not None else LocationClassifier()
        self.max_workers = max_workers or settings.max_parallel_requests
        self.routing_timeout = routing_timeout or settings.routing_timeout_seconds
        self.weather_timeout = weather_timeout or settings.weather_timeout_seconds
        self.places_timeout = places_timeout or settings.places_timeout_seconds
        self.scenic_detour_tolerance = scenic_detour_tolerance or settings.scenic_detour_tolerance
        self.scenic_max_stops = scenic_max_stops if scenic_max_stops is not None else settings.scenic_max_stops
        self.foodie_max_detour_km = (
            foodie_max_detour_km if foodie_max_detour_km is not None else settings.foodie_max_detour_km
        )
        self.foodie_max_detour_pct = (
            foodie_max_detour_pct if foodie_max_detour_pct is not None else settings.foodie_max_detour_pct
        )
        self.restaurant_min_rating = (
            restaurant_min_rating if restaurant_min_rating is not None else settings.restaurant_min_rating
        )
        self.hazards_min_radius_m = hazards_min_radius_m or settings.hazards_min_radius_m

    def build(self, request: OptimizationRequest, token: CancellationToken | None = None) -> BuildOutcome:
        token = token if token is not None else CancellationToken()
        exclude = exclude_classes(dict(request.prefs or {}))
        center = midpoint(request.origin, request.destination)
        radius = corridor_radius_m(request.origin, request.destination, minimum_m=self.hazards_min_radius_m)

        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="package-build")
        try:
            efficiency_future = executor.submit(
                self._route, request.origin, request.destination, "efficiency", None, exclude, token
            )
            weather_future = executor.submit(self._weather, center, radius, token)

            efficiency_leg = self._require(efficiency_future, token, "Efficiency route")
            insights = self._require(weather_future, token, "Weather insights")

            efficiency = EfficiencyPackage(
                route=efficiency_leg,
                duration=efficiency_leg.duration,
                distance=efficiency_leg.distance,
            )
            path = efficiency_leg.geometry or (request.origin.as_tuple(), request.destination.as_tuple())
            corridor = Corridor(center=center, radius_m=radius, path=tuple(path))

            scenic_future = executor.submit(self._build_scenic, request, efficiency, insights, corridor, exclude, token)
            foodie_future = executor.submit(self._build_foodie, request, efficiency, insights, corridor, exclude, token)
            scenic = self._settle(scenic_future, token, disabled_scenic, "scenic")
            foodie = self._settle(foodie_future, token, disabled_foodie, "foodie")
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return BuildOutcome(
            packages=PackageSet(efficiency=efficiency, scenic=scenic, foodie=foodie),
            weather_insights=insights,
        )

    def _require(self, future: "Future[T]", token: CancellationToken, label: str) -> T:
        try:
            return wait_for(future, token)
        except OperationCancelled:
            raise
        except ProviderError as exc:
            raise BuildFailed(f"{label} unavailable: {exc}") from exc
        except Exception as exc:
            logger.exception(f"{label} failed unexpectedly")
            raise BuildFailed(f"{label} unavailable: {exc}") from exc

    def _settle(
        self,
        future: "Future[T]",
        token: CancellationToken,
        placeholder: Callable[[str], T],
        mode: str,
    ) -> T:
        try:
            return wait_for(future, token)
        except OperationCancelled:
            raise
        except PackageUnavailable as exc:
            logger.info(f"{mode} package unavailable: {exc}")
            return placeholder(str(exc))
        except ProviderError as exc:
            logger.warning(f"{mode} package build failed ({exc.code}): {exc}")
        except Exception:
            logger.exception(f"{mode} package build failed unexpectedly")
        return placeholder(f"{mode.capitalize()} package could not be built right now")

    # Provider calls

    def _route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        mode: str,
        detour_tolerance: Optional[float],
        exclude: Sequence[str],
        token: CancellationToken,
    ) -> RouteLeg:
        return self.routing.route(
            origin,
            destination,
            mode,
            detour_tolerance=detour_tolerance,
            exclude=exclude,
            timeout=token.timeout(self.routing_timeout),
            token=token,
        )

    def _weather(self, center: Coordinate, radius_m: float, token: CancellationToken) -> WeatherInsights:
        return self.weather.insights(center.lat, center.lng, radius_m, timeout=token.timeout(self.weather_timeout))

    # Scenic

    def _build_scenic(
        self,
        request: OptimizationRequest,
        efficiency: EfficiencyPackage,
        insights: WeatherInsights,
        corridor: Corridor,
        exclude: Sequence[str],
        token: CancellationToken,
    ) -> ScenicPackage:
        leg = self._route(
            request.origin, request.destination, "scenic", self.scenic_detour_tolerance, exclude, token
        )
        increase = (leg.duration - efficiency.duration) / efficiency.duration if efficiency.duration > 0 else 0.0
        scenic_path = leg.geometry or corridor.path
        stops = self._scenic_stops(Corridor(center=corridor.center, radius_m=corridor.radius_m, path=scenic_path), token)
        return ScenicPackage(
            route=leg,
            duration=leg.duration,
            distance=leg.distance,
            scenic_score=scenic_score(len(stops), increase, insights.scores.visibility),
            duration_increase_pct=increase,
            stops=tuple(stops),
        )

    def _scenic_stops(self, corridor: Corridor, token: CancellationToken) -> list[Candidate]:
        if self.scenic_max_stops == 0:
            return []
        try:
            candidates = self.places.search_near(
                corridor, "scenic", 0.0, timeout=token.timeout(self.places_timeout)
            )
        except ProviderError as exc:
            logger.info(f"Scenic stop search failed, scoring without stops: {exc}")
            return []

        stops: list[Candidate] = []
        for candidate in candidates:
            if candidate.location is None:
                continue
            if distance_to_path_km(candidate.location, corridor.path) > self.foodie_max_detour_km:
                continue
            classification = self.classifier.classify(candidate.place_id, candidate.name, candidate.types, token=token)
            if classification.is_outdoor:
                stops.append(candidate)
            if len(stops) >= self.scenic_max_stops:
                break
        return stops

    # Foodie

    def _build_foodie(
        self,
        request: OptimizationRequest,
        efficiency: EfficiencyPackage,
        insights: WeatherInsights,
        corridor: Corridor,
        exclude: Sequence[str],
        token: CancellationToken,
    ) -> FoodiePackage:
        candidates = self.places.search_near(
            corridor, "restaurant", self.restaurant_min_rating, timeout=token.timeout(self.places_timeout)
        )
        if request.pref("budgetLevel") == "low":
            candidates = [
                item for item in candidates
                if item.price_level is None or item.price_level <= LOW_BUDGET_MAX_PRICE_LEVEL
            ]

        nearby: list[tuple[Candidate, float]] = []
        for candidate in candidates:
            if candidate.location is None:
                continue
            detour_km = distance_to_path_km(candidate.location, corridor.path)
            if detour_km <= self.foodie_max_detour_km:
                nearby.append((candidate, detour_km))

        outdoor_filtered = False
        if insights.scores.overall < FAVORABLE_THRESHOLD:
            indoor: list[tuple[Candidate, float]] = []
            for candidate, detour_km in nearby:
                classification = self.classifier.classify(
                    candidate.place_id, candidate.name, candidate.types, token=token
                )
                if classification.is_outdoor:
                    outdoor_filtered = True
                    continue
                indoor.append((candidate, detour_km))
            nearby = indoor

        if not nearby:
            raise PackageUnavailable("No highly rated restaurant found near the route")

        ranked = [candidate for candidate, _ in sorted(nearby, key=lambda item: (-item[0].rating, item[1]))]
        budget = efficiency.duration * (1 + self.foodie_max_detour_pct)

        for candidate in ranked[:FOODIE_ROUTE_ATTEMPTS]:
            try:
                to_leg = self._route(request.origin, candidate.location, "foodie", None, exclude, token)
                from_leg = self._route(candidate.location, request.destination, "foodie", None, exclude, token)
            except ProviderError as exc:
                logger.debug(f"Skipping restaurant '{candidate.name}': {exc}")
                continue
            total = to_leg.duration + from_leg.duration
            if total > budget:
                logger.debug(f"Restaurant '{candidate.name}' exceeds detour budget ({total:.0f}s > {budget:.0f}s)")
                continue
            alternatives = [item for item in ranked if item.place_id != candidate.place_id][:FOODIE_ALTERNATIVES]
            return FoodiePackage(
                selected_restaurant=candidate,
                duration=total,
                distance=to_leg.distance + from_leg.distance,
                alternatives=tuple(alternatives),
                route_to_restaurant=to_leg,
                route_from_restaurant=from_leg,
                outdoor_filtered=outdoor_filtered,
            )

        raise PackageUnavailable("No restaurant within the acceptable detour")


