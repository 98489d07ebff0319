"""Display-oriented comparison of the packages in a completed result."""

from __future__ import annotations

from dataclasses import dataclass

from ...models.domain import Mode, OptimizationResult


@dataclass(slots=True, frozen=True)
class FastestSummary:
    mode: Mode
    duration: float


@dataclass(slots=True, frozen=True)
class ScenicSummary:
    mode: Mode
    scenic_score: int
    duration_increase_pct: float
    duration_increase: str


@dataclass(slots=True, frozen=True)
class FoodSummary:
    mode: Mode
    rating: float
    name: str


@dataclass(slots=True, frozen=True)
class ModeComparison:
    fastest: FastestSummary
    most_scenic: ScenicSummary
    best_food: FoodSummary
    weather_recommended: Mode
    weather_score: float


def format_percent_increase(fraction: float) -> str:
    return f"{'+' if fraction >= 0 else '-'}{abs(round(fraction * 100))}%"


def compare(result: OptimizationResult) -> ModeComparison:
    efficiency = result.packages.efficiency
    scenic = result.packages.scenic
    foodie = result.packages.foodie
    restaurant = foodie.selected_restaurant

    return ModeComparison(
        fastest=FastestSummary(mode="efficiency", duration=efficiency.duration),
        most_scenic=ScenicSummary(
            mode="scenic",
            scenic_score=scenic.scenic_score,
            duration_increase_pct=scenic.duration_increase_pct,
            duration_increase=format_percent_increase(scenic.duration_increase_pct),
        ),
        best_food=FoodSummary(
            mode="foodie",
            rating=restaurant.rating if restaurant else 0.0,
            name=restaurant.name if restaurant else "",
        ),
        weather_recommended=result.recommended,
        weather_score=result.weather_insights.scores.overall,
    )


def format_duration(seconds: float) -> str:
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes} min"


def format_distance(meters: float) -> str:
    if meters >= 1000:
        return f"{meters / 1000:.1f} km"
    return f"{round(meters)} m"
