"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ROUTEWISE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "RouteWise Smart Route Optimizer API"
    api_prefix: str = "/api"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Routing provider
    osrm_base_url: Optional[str] = Field(
        default="https://router.project-osrm.org",
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "car", "bike", "foot"] = Field(
        default="driving",
        description="OSRM profile to use when computing routes.",
    )
    osrm_max_retries: int = Field(default=2, ge=0)
    osrm_backoff_seconds: float = Field(default=0.5, ge=0.0)

    # Weather / hazard provider
    open_meteo_url: str = Field(
        default="https://api.open-meteo.com/v1/forecast",
        description="Open-Meteo forecast endpoint used for current conditions.",
    )
    hazards_weather_url: Optional[str] = Field(
        default=None,
        description="Optional weather hazard feed returning {'hazards': [...]}.",
    )
    hazards_traffic_url: Optional[str] = Field(
        default=None,
        description="Optional traffic hazard feed returning {'hazards': [...]}.",
    )
    hazards_min_radius_m: float = Field(default=10000.0, gt=0.0)

    # Places provider
    google_maps_api_key: Optional[str] = Field(default=None, description="Google Places API key.")
    places_search_url: str = Field(default="https://places.googleapis.com/v1/places:searchText")
    restaurant_min_rating: float = Field(default=4.0, ge=0.0, le=5.0)

    # Remote location classifier
    classifier_url: Optional[str] = Field(
        default=None,
        description="Endpoint accepting POST {placeId, name, types}; local heuristics are used when unset.",
    )

    # Per-provider timeouts (seconds)
    routing_timeout_seconds: float = Field(default=15.0, gt=0.0)
    weather_timeout_seconds: float = Field(default=8.0, gt=0.0)
    places_timeout_seconds: float = Field(default=12.0, gt=0.0)
    classifier_timeout_seconds: float = Field(default=8.0, gt=0.0)
    build_deadline_seconds: float = Field(default=45.0, gt=0.0)
    max_parallel_requests: int = Field(default=4, ge=1)

    # Result cache
    cache_ttl_seconds: float = Field(default=300.0, gt=0.0)
    cache_max_entries: int = Field(default=500, ge=1)

    # Package building
    scenic_detour_tolerance: float = Field(
        default=1.5,
        ge=1.0,
        description="Maximum scenic duration as a multiple of the efficiency duration.",
    )
    scenic_max_stops: int = Field(default=4, ge=0)
    foodie_max_detour_km: float = Field(
        default=2.0,
        ge=0.0,
        description="Maximum distance between a restaurant and the direct route.",
    )
    foodie_max_detour_pct: float = Field(
        default=0.5,
        ge=0.0,
        description="Maximum extra duration of the foodie route relative to the efficiency route.",
    )

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("osrm_base_url", "classifier_url", "hazards_weather_url", "hazards_traffic_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: Any) -> Any:
        if isinstance(value, str):
            stripped = value.strip().rstrip("/")
            return stripped or None
        return value


settings = Settings()
