"""Domain models for optimization requests, mode packages and weather insights."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Mapping, Optional, Union

Mode = Literal["efficiency", "scenic", "foodie"]
MODES: tuple[Mode, ...] = ("efficiency", "scenic", "foodie")

PreferenceSet = Mapping[str, Any]


@dataclass(slots=True, frozen=True)
class Coordinate:
    """A WGS84 point in degrees."""

    lat: float
    lng: float

    def is_valid(self) -> bool:
        return (
            isinstance(self.lat, (int, float))
            and isinstance(self.lng, (int, float))
            and math.isfinite(self.lat)
            and math.isfinite(self.lng)
            and -90.0 <= self.lat <= 90.0
            and -180.0 <= self.lng <= 180.0
        )

    def as_tuple(self) -> tuple[float, float]:
        return (self.lat, self.lng)


@dataclass(slots=True, frozen=True)
class OptimizationRequest:
    origin: Coordinate
    destination: Coordinate
    prefs: PreferenceSet = field(default_factory=dict)

    def pref(self, name: str, default: Any = None) -> Any:
        value = self.prefs.get(name) if self.prefs else None
        return default if value is None else value


@dataclass(slots=True, frozen=True)
class RouteLeg:
    """A routed path returned by the routing provider."""

    geometry: tuple[tuple[float, float], ...]
    duration: float
    distance: float


@dataclass(slots=True, frozen=True)
class Corridor:
    """Search area around a trip: a circle covering the route."""

    center: Coordinate
    radius_m: float
    path: tuple[tuple[float, float], ...] = ()


@dataclass(slots=True, frozen=True)
class Candidate:
    """A point of interest returned by the places provider."""

    place_id: str
    name: str
    location: Optional[Coordinate]
    types: tuple[str, ...] = ()
    rating: float = 0.0
    price_level: Optional[int] = None
    is_open: Optional[bool] = None


@dataclass(slots=True, frozen=True)
class EfficiencyPackage:
    route: RouteLeg
    duration: float
    distance: float
    disabled: bool = False
    reason: Optional[str] = None
    fallback_mode: Optional[Mode] = None
    mode: Mode = "efficiency"


@dataclass(slots=True, frozen=True)
class ScenicPackage:
    route: Optional[RouteLeg]
    duration: float
    distance: float
    scenic_score: int
    duration_increase_pct: float
    stops: tuple[Candidate, ...] = ()
    disabled: bool = False
    reason: Optional[str] = None
    fallback_mode: Optional[Mode] = None
    mode: Mode = "scenic"


@dataclass(slots=True, frozen=True)
class FoodiePackage:
    selected_restaurant: Optional[Candidate]
    duration: float
    distance: float
    alternatives: tuple[Candidate, ...] = ()
    route_to_restaurant: Optional[RouteLeg] = None
    route_from_restaurant: Optional[RouteLeg] = None
    outdoor_filtered: bool = False
    disabled: bool = False
    reason: Optional[str] = None
    fallback_mode: Optional[Mode] = None
    mode: Mode = "foodie"


ModePackage = Union[EfficiencyPackage, ScenicPackage, FoodiePackage]


@dataclass(slots=True, frozen=True)
class PackageSet:
    efficiency: EfficiencyPackage
    scenic: ScenicPackage
    foodie: FoodiePackage

    def get(self, mode: Mode) -> ModePackage:
        if mode not in MODES:
            raise KeyError(mode)
        return getattr(self, mode)

    def items(self) -> list[tuple[Mode, ModePackage]]:
        return [(mode, self.get(mode)) for mode in MODES]


@dataclass(slots=True, frozen=True)
class WeatherScores:
    overall: float
    precipitation: float
    visibility: float
    temperature: float
    wind: float


@dataclass(slots=True, frozen=True)
class CurrentConditions:
    temperature: float
    precipitation: float
    precipitation_probability: float
    visibility: float
    wind_speed: float
    condition: str


@dataclass(slots=True, frozen=True)
class Alert:
    type: str
    severity: str
    title: str
    description: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None


@dataclass(slots=True, frozen=True)
class WeatherInsights:
    current: CurrentConditions
    scores: WeatherScores
    alerts: tuple[Alert, ...] = ()


@dataclass(slots=True, frozen=True)
class DisabledMode:
    mode: Mode
    reason: str
    icon: str


@dataclass(slots=True, frozen=True)
class OptimizationResult:
    packages: PackageSet
    recommended: Mode
    recommendation_reason: str
    disabled_modes: tuple[DisabledMode, ...]
    weather_insights: WeatherInsights
    generated_at: datetime
    request_id: str
    processing_time_ms: float
    advice: Literal["proceed", "delay", "cancel"]


@dataclass(slots=True, frozen=True)
class CacheEntry:
    key: str
    result: OptimizationResult
    stored_at: float


@dataclass(slots=True, frozen=True)
class LocationClassification:
    is_outdoor: bool
    confidence: float
    types: tuple[str, ...] = ()
