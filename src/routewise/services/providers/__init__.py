"""External routing, weather and places providers."""

from .osrm_client import OSRMClient
from .places import GooglePlacesProvider
from .weather import OpenMeteoWeatherProvider

__all__ = ["OSRMClient", "GooglePlacesProvider", "OpenMeteoWeatherProvider"]
