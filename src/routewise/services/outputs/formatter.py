"""Serializers from optimizer results to API schemas."""

from __future__ import annotations

from typing import Optional

from ...models.domain import (
    Candidate,
    DisabledMode,
    EfficiencyPackage,
    FoodiePackage,
    LocationClassification,
    ModePackage,
    OptimizationResult,
    RouteLeg,
    ScenicPackage,
    WeatherInsights,
)
from ...schemas.planner import (
    AlertModel,
    BestFoodModel,
    CurrentConditionsModel,
    DisabledModeModel,
    FastestModel,
    LatLngModel,
    LocationClassificationModel,
    ModeComparisonResponse,
    ModePackageModel,
    MostScenicModel,
    OptimizationResponse,
    PackagesModel,
    ResultMetadataModel,
    RouteModel,
    StopModel,
    WeatherInsightsModel,
    WeatherScoresModel,
)
from ..optimizer.comparator import ModeComparison, format_duration, format_percent_increase


def route_to_model(route: Optional[RouteLeg]) -> Optional[RouteModel]:
    if route is None:
        return None
    return RouteModel(
        polyline=[[lat, lng] for lat, lng in route.geometry],
        duration=route.duration,
        distance=route.distance,
    )


def candidate_to_model(candidate: Optional[Candidate]) -> Optional[StopModel]:
    if candidate is None:
        return None
    location = candidate.location
    return StopModel(
        place_id=candidate.place_id,
        name=candidate.name,
        location=LatLngModel(lat=location.lat, lng=location.lng) if location else None,
        rating=candidate.rating,
        types=list(candidate.types),
        price_level=candidate.price_level,
    )


def package_to_model(package: ModePackage) -> ModePackageModel:
    model = ModePackageModel(
        mode=package.mode,
        disabled=package.disabled,
        reason=package.reason,
        fallback_mode=package.fallback_mode,
        duration=package.duration,
        distance=package.distance,
    )
    if isinstance(package, EfficiencyPackage):
        model.route = route_to_model(package.route)
    elif isinstance(package, ScenicPackage):
        model.route = route_to_model(package.route)
        model.scenic_score = package.scenic_score
        model.duration_increase_pct = package.duration_increase_pct
        model.duration_increase = format_percent_increase(package.duration_increase_pct)
        model.stops = [candidate_to_model(stop) for stop in package.stops]
    elif isinstance(package, FoodiePackage):
        model.selected_restaurant = candidate_to_model(package.selected_restaurant)
        model.alternatives = [candidate_to_model(item) for item in package.alternatives]
        model.route_to_restaurant = route_to_model(package.route_to_restaurant)
        model.route_from_restaurant = route_to_model(package.route_from_restaurant)
        model.outdoor_filtered = package.outdoor_filtered
    return model


def weather_to_model(insights: WeatherInsights) -> WeatherInsightsModel:
    current = insights.current
    scores = insights.scores
    return WeatherInsightsModel(
        current=CurrentConditionsModel(
            temperature=current.temperature,
            precipitation=current.precipitation,
            precipitation_probability=current.precipitation_probability,
            visibility=current.visibility,
            wind_speed=current.wind_speed,
            condition=current.condition,
        ),
        scores=WeatherScoresModel(
            overall=scores.overall,
            precipitation=scores.precipitation,
            visibility=scores.visibility,
            temperature=scores.temperature,
            wind=scores.wind,
        ),
        alerts=[
            AlertModel(
                type=alert.type,
                severity=alert.severity,
                title=alert.title,
                description=alert.description,
                lat=alert.lat,
                lng=alert.lng,
            )
            for alert in insights.alerts
        ],
    )


def disabled_mode_to_model(item: DisabledMode) -> DisabledModeModel:
    return DisabledModeModel(mode=item.mode, reason=item.reason, icon=item.icon)


def result_to_response(result: OptimizationResult) -> OptimizationResponse:
    packages = result.packages
    return OptimizationResponse(
        recommended=result.recommended,
        recommendation_reason=result.recommendation_reason,
        advice=result.advice,
        packages=PackagesModel(
            efficiency=package_to_model(packages.efficiency),
            scenic=package_to_model(packages.scenic),
            foodie=package_to_model(packages.foodie),
        ),
        weather_insights=weather_to_model(result.weather_insights),
        disabled_modes=[disabled_mode_to_model(item) for item in result.disabled_modes],
        metadata=ResultMetadataModel(
            request_id=result.request_id,
            generated_at=result.generated_at,
            processing_time=round(result.processing_time_ms, 1),
        ),
    )


def classification_to_model(classification: LocationClassification) -> LocationClassificationModel:
    return LocationClassificationModel(
        is_outdoor=classification.is_outdoor,
        confidence=classification.confidence,
        types=list(classification.types),
    )


def comparison_to_response(comparison: ModeComparison) -> ModeComparisonResponse:
    return ModeComparisonResponse(
        fastest=FastestModel(
            mode=comparison.fastest.mode,
            duration=comparison.fastest.duration,
            duration_text=format_duration(comparison.fastest.duration),
        ),
        most_scenic=MostScenicModel(
            mode=comparison.most_scenic.mode,
            scenic_score=comparison.most_scenic.scenic_score,
            duration_increase_pct=comparison.most_scenic.duration_increase_pct,
            duration_increase=comparison.most_scenic.duration_increase,
        ),
        best_food=BestFoodModel(
            mode=comparison.best_food.mode,
            rating=comparison.best_food.rating,
            name=comparison.best_food.name,
        ),
        weather_recommended=comparison.weather_recommended,
        weather_score=comparison.weather_score,
    )
