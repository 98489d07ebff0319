"""Weather and hazard insights for a trip corridor.

Current conditions come from the Open-Meteo forecast API (no key required).
Each condition is mapped to a [0, 1] comfort score, higher is better, and the
scores are combined with fixed weights into ``overall``. Optional hazard feeds
contribute alerts, filtered to the corridor radius by great-circle distance.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ...config import settings
from ...errors import ProviderError, ProviderTimeout
from ...models.domain import Alert, CurrentConditions, WeatherInsights, WeatherScores
from ..geospatial import haversine_m

logger = logging.getLogger(__name__)

# Composite weights; fixed for every request.
SCORE_WEIGHTS = {
    "precipitation": 0.4,
    "visibility": 0.3,
    "temperature": 0.2,
    "wind": 0.1,
}

# Temperature comfort range (Celsius)
TEMPERATURE_IDEAL = (15.0, 25.0)
TEMPERATURE_ACCEPTABLE = (5.0, 35.0)

# (lower bound in km, score)
VISIBILITY_STEPS = ((10.0, 1.0), (5.0, 0.8), (2.0, 0.5), (1.0, 0.3))
# (upper bound in km/h, score)
WIND_STEPS = ((20.0, 1.0), (40.0, 0.7), (60.0, 0.4), (80.0, 0.2))
# (upper bound in mm/h, score)
PRECIPITATION_STEPS = ((0.5, 1.0), (2.5, 0.7), (7.5, 0.4), (15.0, 0.2))

# WMO weather interpretation codes
WEATHER_CODES = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Foggy",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    71: "Slight snow",
    73: "Moderate snow",
    75: "Heavy snow",
    80: "Slight showers",
    81: "Moderate showers",
    82: "Violent showers",
    95: "Thunderstorm",
    96: "Thunderstorm with hail",
    99: "Thunderstorm with heavy hail",
}


def temperature_score(celsius: float) -> float:
    ideal_min, ideal_max = TEMPERATURE_IDEAL
    acceptable_min, acceptable_max = TEMPERATURE_ACCEPTABLE
    if ideal_min <= celsius <= ideal_max:
        return 1.0
    if acceptable_min <= celsius < ideal_min:
        return 0.5 + 0.5 * (celsius - acceptable_min) / (ideal_min - acceptable_min)
    if ideal_max < celsius <= acceptable_max:
        return 0.5 + 0.5 * (acceptable_max - celsius) / (acceptable_max - ideal_max)
    excess = acceptable_min - celsius if celsius < acceptable_min else celsius - acceptable_max
    return max(0.0, 0.5 - 0.05 * excess)


def visibility_score(km: float) -> float:
    for lower, score in VISIBILITY_STEPS:
        if km >= lower:
            return score
    return 0.1


def wind_score(kmh: float) -> float:
    for upper, score in WIND_STEPS:
        if kmh <= upper:
            return score
    return 0.0


def precipitation_score(mm_per_hour: float, probability_pct: float = 0.0) -> float:
    intensity = 0.0
    for upper, score in PRECIPITATION_STEPS:
        if mm_per_hour <= upper:
            intensity = score
            break
    likelihood = 1.0 - max(0.0, min(probability_pct, 100.0)) / 200.0
    return min(intensity, likelihood)


def overall_score(precipitation: float, visibility: float, temperature: float, wind: float) -> float:
    return (
        SCORE_WEIGHTS["precipitation"] * precipitation
        + SCORE_WEIGHTS["visibility"] * visibility
        + SCORE_WEIGHTS["temperature"] * temperature
        + SCORE_WEIGHTS["wind"] * wind
    )


def score_conditions(current: CurrentConditions) -> WeatherScores:
    precipitation = precipitation_score(current.precipitation, current.precipitation_probability)
    visibility = visibility_score(current.visibility)
    temperature = temperature_score(current.temperature)
    wind = wind_score(current.wind_speed)
    return WeatherScores(
        overall=overall_score(precipitation, visibility, temperature, wind),
        precipitation=precipitation,
        visibility=visibility,
        temperature=temperature,
        wind=wind,
    )


def condition_alerts(current: CurrentConditions) -> list[Alert]:
    """Alerts implied by the current conditions themselves."""
    alerts: list[Alert] = []
    if current.precipitation > PRECIPITATION_STEPS[-1][0]:
        alerts.append(Alert(type="weather", severity="danger", title="Heavy precipitation",
                            description=f"{current.precipitation:.1f} mm/h expected"))
    if current.wind_speed > WIND_STEPS[-1][0]:
        alerts.append(Alert(type="weather", severity="danger", title="Dangerous wind",
                            description=f"Wind {current.wind_speed:.0f} km/h"))
    if current.visibility < VISIBILITY_STEPS[-1][0]:
        alerts.append(Alert(type="weather", severity="warning", title="Poor visibility",
                            description=f"Visibility {current.visibility:.1f} km"))
    return alerts


def filter_hazards(hazards: list[dict], lat: float, lng: float, radius_m: float) -> list[Alert]:
    """Keep hazards inside ``radius_m``; hazards without a location are kept."""
    alerts: list[Alert] = []
    for hazard in hazards:
        if not isinstance(hazard, dict):
            continue
        h_lat = hazard.get("lat")
        h_lng = hazard.get("lon", hazard.get("lng"))
        located = isinstance(h_lat, (int, float)) and isinstance(h_lng, (int, float))
        if located and haversine_m(lat, lng, h_lat, h_lng) > radius_m:
            continue
        alerts.append(
            Alert(
                type=str(hazard.get("type") or "hazard"),
                severity=str(hazard.get("severity") or "info"),
                title=str(hazard.get("title") or ""),
                description=str(hazard.get("description") or ""),
                lat=float(h_lat) if located else None,
                lng=float(h_lng) if located else None,
            )
        )
    return alerts


class OpenMeteoWeatherProvider:
    def __init__(
        self,
        forecast_url: str | None = None,
        weather_hazards_url: str | None = None,
        traffic_hazards_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.forecast_url = forecast_url or settings.open_meteo_url
        self.weather_hazards_url = weather_hazards_url if weather_hazards_url is not None else settings.hazards_weather_url
        self.traffic_hazards_url = traffic_hazards_url if traffic_hazards_url is not None else settings.hazards_traffic_url
        self.timeout = timeout if timeout is not None else settings.weather_timeout_seconds
        self._transport = transport

    def _get_client(self, timeout: float) -> httpx.Client:
        return httpx.Client(timeout=httpx.Timeout(timeout), transport=self._transport)

    def current_conditions(self, lat: float, lng: float, timeout: Optional[float] = None) -> CurrentConditions:
        params = {
            "latitude": lat,
            "longitude": lng,
            "current": "temperature_2m,precipitation,weather_code,wind_speed_10m",
            "hourly": "visibility,precipitation_probability",
            "forecast_hours": 1,
            "wind_speed_unit": "kmh",
        }
        try:
            with self._get_client(timeout or self.timeout) as client:
                response = client.get(self.forecast_url, params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as exc:
            raise ProviderTimeout(f"Weather request timed out: {exc}", provider="open-meteo") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderError(f"Weather request failed: {exc}", provider="open-meteo") from exc
        return _parse_conditions(data)

    def _fetch_hazard_feed(self, client: httpx.Client, url: str, params: dict) -> list[dict]:
        try:
            response = client.get(url, params=params)
            response.raise_for_status()
            hazards = response.json().get("hazards") or []
            return hazards if isinstance(hazards, list) else []
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            logger.warning(f"Hazard feed {url} failed: {exc}")
            return []

    def hazards(self, lat: float, lng: float, radius_m: float, timeout: Optional[float] = None) -> list[Alert]:
        feeds = [
            (self.weather_hazards_url, {"lat": lat, "lon": lng}),
            (self.traffic_hazards_url, {"lat": lat, "lon": lng, "radius": radius_m}),
        ]
        raw: list[dict] = []
        with self._get_client(timeout or self.timeout) as client:
            for url, params in feeds:
                if url:
                    raw.extend(self._fetch_hazard_feed(client, url, params))
        return filter_hazards(raw, lat, lng, radius_m)

    def insights(self, lat: float, lng: float, radius_m: float, timeout: Optional[float] = None) -> WeatherInsights:
        current = self.current_conditions(lat, lng, timeout=timeout)
        alerts = condition_alerts(current) + self.hazards(lat, lng, radius_m, timeout=timeout)
        return WeatherInsights(current=current, scores=score_conditions(current), alerts=tuple(alerts))


def _first_hourly(data: dict, name: str, default: float) -> float:
    values = (data.get("hourly") or {}).get(name) or []
    value = values[0] if values else None
    return float(value) if isinstance(value, (int, float)) else default


def _parse_conditions(data: Any) -> CurrentConditions:
    if not isinstance(data, dict) or not isinstance(data.get("current"), dict):
        raise ProviderError("Weather response missing 'current' block.", provider="open-meteo")
    current = data["current"]
    try:
        code = int(current.get("weather_code", -1))
        return CurrentConditions(
            temperature=float(current["temperature_2m"]),
            precipitation=float(current.get("precipitation") or 0.0),
            precipitation_probability=_first_hourly(data, "precipitation_probability", 0.0),
            visibility=_first_hourly(data, "visibility", 10000.0) / 1000.0,
            wind_speed=float(current.get("wind_speed_10m") or 0.0),
            condition=WEATHER_CODES.get(code, "Unknown"),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ProviderError(f"Malformed weather response: {exc}", provider="open-meteo") from exc


def check_health(forecast_url: str | None = None, transport: httpx.BaseTransport | None = None) -> bool:
    """Check Open-Meteo with a one-field current conditions request."""
    url = forecast_url or settings.open_meteo_url
    if not url:
        return False
    try:
        with httpx.Client(timeout=5.0, transport=transport) as client:
            response = client.get(url, params={"latitude": 32.0853, "longitude": 34.7818, "current": "temperature_2m"})
        response.raise_for_status()
        data = response.json()
        return isinstance(data, dict) and isinstance(data.get("current"), dict)
    except (httpx.HTTPError, ValueError):
        return False
