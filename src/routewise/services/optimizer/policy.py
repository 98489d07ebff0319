"""Weather-driven disable/recommend policy for mode packages.

The overall weather score is classified into a tier on every build:

    favorable  overall >= 0.6          nothing disabled, scenic recommended
    marginal   0.4 <= overall < 0.6    scenic disabled, efficiency recommended
    adverse    overall < 0.4           scenic disabled, efficiency recommended

The thresholds are the product-wide proceed/delay/cancel constants. Foodie is
never disabled by weather and efficiency is never disabled at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Literal

from ...errors import BuildFailed
from ...models.domain import DisabledMode, Mode, PackageSet, WeatherInsights, WeatherScores

logger = logging.getLogger(__name__)

FAVORABLE_THRESHOLD = 0.6  # proceed
MARGINAL_THRESHOLD = 0.4  # delay
CANCEL_THRESHOLD = 0.2  # cancel

WEAK_SCORE = 0.5

Tier = Literal["favorable", "marginal", "adverse"]
Advice = Literal["proceed", "delay", "cancel"]

MODE_ICONS: dict[Mode, str] = {
    "efficiency": "zap",
    "scenic": "mountain",
    "foodie": "utensils",
}

WEAKNESS_LABELS = (
    ("visibility", "poor visibility"),
    ("precipitation", "high precipitation"),
    ("wind", "strong wind"),
    ("temperature", "uncomfortable temperatures"),
)


def weather_tier(overall: float) -> Tier:
    if overall >= FAVORABLE_THRESHOLD:
        return "favorable"
    if overall >= MARGINAL_THRESHOLD:
        return "marginal"
    return "adverse"


def travel_advice(overall: float) -> Advice:
    if overall >= FAVORABLE_THRESHOLD:
        return "proceed"
    if overall >= CANCEL_THRESHOLD:
        return "delay"
    return "cancel"


def scenic_disable_reason(scores: WeatherScores, tier: Tier) -> str:
    weaknesses = [label for name, label in WEAKNESS_LABELS if getattr(scores, name) < WEAK_SCORE]
    if weaknesses:
        return f"{'/'.join(weaknesses)} reduces scenic value"
    return f"{tier} weather reduces scenic value"


@dataclass(slots=True, frozen=True)
class PolicyDecision:
    packages: PackageSet
    recommended: Mode
    recommendation_reason: str
    disabled_modes: tuple[DisabledMode, ...]
    tier: Tier
    advice: Advice


class WeatherPolicyEngine:
    def apply(self, packages: PackageSet, insights: WeatherInsights) -> PolicyDecision:
        if packages.efficiency.disabled:
            raise BuildFailed("Efficiency package must always be available.")

        overall = insights.scores.overall
        tier = weather_tier(overall)

        scenic = packages.scenic
        if tier != "favorable" and not scenic.disabled:
            scenic = replace(
                scenic,
                disabled=True,
                reason=scenic_disable_reason(insights.scores, tier),
                fallback_mode="efficiency",
            )
        updated = PackageSet(efficiency=packages.efficiency, scenic=scenic, foodie=packages.foodie)

        disabled_modes = tuple(
            DisabledMode(mode=mode, reason=package.reason or f"{mode} package unavailable", icon=MODE_ICONS[mode])
            for mode, package in updated.items()
            if package.disabled
        )

        if tier == "favorable" and not scenic.disabled:
            recommended: Mode = "scenic"
            reason = f"Favorable weather (score {overall:.2f}) makes the scenic route worthwhile"
        elif tier == "favorable":
            recommended = "efficiency"
            reason = "Scenic route unavailable; the fastest route is recommended"
        else:
            recommended = "efficiency"
            reason = f"{tier.capitalize()} weather (score {overall:.2f}); the fastest route is recommended"

        logger.info(
            f"Weather policy: tier={tier} overall={overall:.2f} recommended={recommended} "
            f"disabled={[item.mode for item in disabled_modes]}"
        )
        return PolicyDecision(
            packages=updated,
            recommended=recommended,
            recommendation_reason=reason,
            disabled_modes=disabled_modes,
            tier=tier,
            advice=travel_advice(overall),
        )
