"""Health endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, status

from ...config import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Liveness check; touches no provider."""
    return {"status": "ok"}


def _provider_checks() -> dict:
    """Lazy import so a broken provider module cannot stop the app from starting."""
    from ...services.providers import osrm_client, weather

    return {"osrm": osrm_client.check_health, "weather": weather.check_health}


def _run_check(name: str) -> dict:
    try:
        return {"service": name, "healthy": _provider_checks()[name]()}
    except Exception as exc:
        logger.warning(f"{name} health check failed: {exc}")
        return {"service": name, "healthy": False, "error": str(exc)}


@router.get("/health/osrm", status_code=status.HTTP_200_OK)
def health_osrm() -> dict:
    return _run_check("osrm")


@router.get("/health/providers", status_code=status.HTTP_200_OK)
def health_providers() -> dict:
    """Report routing and weather reachability and whether place search is configured."""
    routing = _run_check("osrm")
    forecast = _run_check("weather")
    return {
        "healthy": routing["healthy"] and forecast["healthy"],
        "providers": [routing, forecast],
        "placesConfigured": bool(settings.google_maps_api_key),
    }
