#!/usr/bin/env python3
"""Script to verify connectivity to the routing and weather providers."""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from routewise.config import settings
from routewise.errors import ProviderError
from routewise.models.domain import Coordinate
from routewise.services.providers.osrm_client import OSRMClient, check_health
from routewise.services.providers.weather import OpenMeteoWeatherProvider

# Tel Aviv -> Jerusalem
ORIGIN = Coordinate(lat=32.0853, lng=34.7818)
DESTINATION = Coordinate(lat=31.7683, lng=35.2137)


def main():
    print("=" * 60)
    print("Provider Connection Test")
    print("=" * 60)
    print()

    print("1. Checking OSRM configuration...")
    if not settings.osrm_base_url:
        print("   [ERROR] OSRM base URL is not configured")
        print("   Please set ROUTEWISE_OSRM_BASE_URL in your .env file")
        return 1
    print(f"   [OK] OSRM Base URL: {settings.osrm_base_url}")
    print(f"   [OK] OSRM Profile: {settings.osrm_profile}")
    print()

    print("2. Testing OSRM health check...")
    if not check_health():
        print("   [ERROR] OSRM service is not responding")
        return 1
    print("   [OK] OSRM service is healthy and accessible!")
    print()

    print("3. Testing OSRM route request...")
    try:
        leg = OSRMClient().route(ORIGIN, DESTINATION)
    except ProviderError as e:
        print(f"   [ERROR] Error during route request ({e.code}): {e}")
        return 1
    print(f"   [OK] Route: {leg.distance / 1000:.1f} km, {leg.duration / 60:.0f} min, {len(leg.geometry)} points")
    print()

    print("4. Testing weather provider...")
    try:
        insights = OpenMeteoWeatherProvider().insights(ORIGIN.lat, ORIGIN.lng, settings.hazards_min_radius_m)
    except ProviderError as e:
        print(f"   [ERROR] Error during weather request ({e.code}): {e}")
        return 1
    print(f"   [OK] Conditions: {insights.current.condition}, {insights.current.temperature:.1f}C")
    print(f"   [OK] Overall weather score: {insights.scores.overall:.2f}")
    print(f"   [OK] Alerts: {len(insights.alerts)}")
    print()

    print("5. Checking places configuration...")
    if settings.google_maps_api_key:
        print("   [OK] Places API key configured")
    else:
        print("   [WARN] ROUTEWISE_GOOGLE_MAPS_API_KEY not set; scenic stops and foodie packages will be disabled")
    print()

    print("=" * 60)
    print("[SUCCESS] Providers are connected and working!")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
