"""Planner request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ModeName = Literal["efficiency", "scenic", "foodie"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LatLngModel(CamelModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class UserOptimizationPrefs(CamelModel):
    """Known preference options; unknown keys are kept and hashed as-is."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    prefer_scenic: Optional[bool] = None
    prefer_culinary: Optional[bool] = None
    time_constrained: Optional[bool] = None
    avoid_highways: Optional[bool] = None
    avoid_tolls: Optional[bool] = None
    avoid_ferries: Optional[bool] = None
    budget_level: Optional[Literal["low", "medium", "high"]] = None
    dietary: Optional[List[str]] = None


class OptimizeRequest(CamelModel):
    origin: LatLngModel
    destination: LatLngModel
    user_prefs: Optional[UserOptimizationPrefs] = None


class ClassifyLocationRequest(CamelModel):
    place_id: str = Field(..., min_length=1)
    name: str = ""
    types: List[str] = Field(default_factory=list)


class SelectModeRequest(CamelModel):
    mode: ModeName


class RouteModel(CamelModel):
    polyline: List[List[float]] = Field(default_factory=list, description="[lat, lng] pairs")
    duration: float
    distance: float


class StopModel(CamelModel):
    place_id: str
    name: str
    location: Optional[LatLngModel] = None
    rating: float
    types: List[str] = Field(default_factory=list)
    price_level: Optional[int] = None


class ModePackageModel(CamelModel):
    mode: ModeName
    disabled: bool
    reason: Optional[str] = None
    fallback_mode: Optional[ModeName] = None
    duration: float
    distance: float
    route: Optional[RouteModel] = None
    scenic_score: Optional[int] = None
    duration_increase_pct: Optional[float] = None
    duration_increase: Optional[str] = None
    stops: Optional[List[StopModel]] = None
    selected_restaurant: Optional[StopModel] = None
    alternatives: Optional[List[StopModel]] = None
    route_to_restaurant: Optional[RouteModel] = None
    route_from_restaurant: Optional[RouteModel] = None
    outdoor_filtered: Optional[bool] = None


class PackagesModel(CamelModel):
    efficiency: ModePackageModel
    scenic: ModePackageModel
    foodie: ModePackageModel


class WeatherScoresModel(CamelModel):
    overall: float
    precipitation: float
    visibility: float
    temperature: float
    wind: float


class CurrentConditionsModel(CamelModel):
    temperature: float
    precipitation: float
    precipitation_probability: float
    visibility: float
    wind_speed: float
    condition: str


class AlertModel(CamelModel):
    type: str
    severity: str
    title: str
    description: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None


class WeatherInsightsModel(CamelModel):
    current: CurrentConditionsModel
    scores: WeatherScoresModel
    alerts: List[AlertModel]


class DisabledModeModel(CamelModel):
    mode: ModeName
    reason: str
    icon: str


class ResultMetadataModel(CamelModel):
    request_id: str
    generated_at: datetime
    processing_time: float = Field(..., description="Milliseconds spent building the result.")


class OptimizationResponse(CamelModel):
    ok: bool = True
    recommended: ModeName
    recommendation_reason: str
    advice: Literal["proceed", "delay", "cancel"]
    packages: PackagesModel
    weather_insights: WeatherInsightsModel
    disabled_modes: List[DisabledModeModel]
    metadata: ResultMetadataModel


class LocationClassificationModel(CamelModel):
    is_outdoor: bool
    confidence: float
    types: List[str]


class ModeSelectionResponse(CamelModel):
    mode: ModeName
    selected: bool
    package: Optional[ModePackageModel] = None


class AvailableModesResponse(CamelModel):
    available: List[ModeName]
    disabled: List[DisabledModeModel]
    selected: ModeName


class FastestModel(CamelModel):
    mode: ModeName
    duration: float
    duration_text: str


class MostScenicModel(CamelModel):
    mode: ModeName
    scenic_score: int
    duration_increase_pct: float
    duration_increase: str


class BestFoodModel(CamelModel):
    mode: ModeName
    rating: float
    name: str


class ModeComparisonResponse(CamelModel):
    fastest: FastestModel
    most_scenic: MostScenicModel
    best_food: BestFoodModel
    weather_recommended: ModeName
    weather_score: float
