"""Google Places text search restricted to a trip corridor."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ...config import settings
from ...errors import ProviderError, ProviderTimeout
from ...models.domain import Candidate, Coordinate, Corridor

logger = logging.getLogger(__name__)

# Field mask for search results (cost-optimized)
SEARCH_FIELDS = ",".join(
    [
        "places.id",
        "places.displayName",
        "places.location",
        "places.types",
        "places.rating",
        "places.priceLevel",
        "places.currentOpeningHours",
    ]
)

# Places API (New) reports price levels as enum names.
PRICE_LEVELS = {
    "PRICE_LEVEL_FREE": 0,
    "PRICE_LEVEL_INEXPENSIVE": 1,
    "PRICE_LEVEL_MODERATE": 2,
    "PRICE_LEVEL_EXPENSIVE": 3,
    "PRICE_LEVEL_VERY_EXPENSIVE": 4,
}

# Google caps location bias circles at 50 km.
MAX_BIAS_RADIUS_M = 50000.0

CATEGORY_QUERIES = {
    "restaurant": ("top rated restaurants", "restaurant"),
    "scenic": ("scenic viewpoints and parks", None),
}


class GooglePlacesProvider:
    def __init__(
        self,
        api_key: str | None = None,
        search_url: str | None = None,
        timeout: float | None = None,
        max_results: int = 10,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.google_maps_api_key
        self.search_url = search_url or settings.places_search_url
        self.timeout = timeout if timeout is not None else settings.places_timeout_seconds
        self.max_results = max_results
        self._transport = transport

    def search_near(
        self,
        corridor: Corridor,
        category: str,
        min_rating: float,
        timeout: Optional[float] = None,
    ) -> list[Candidate]:
        if not self.api_key:
            raise ProviderError("Google Maps API not configured.", provider="places")

        query, included_type = CATEGORY_QUERIES.get(category, (category, None))
        body: dict[str, Any] = {
            "textQuery": query,
            "languageCode": "en",
            "maxResultCount": self.max_results,
            "locationBias": {
                "circle": {
                    "center": {"latitude": corridor.center.lat, "longitude": corridor.center.lng},
                    "radius": min(corridor.radius_m, MAX_BIAS_RADIUS_M),
                }
            },
        }
        if min_rating:
            body["minRating"] = min_rating
        if included_type:
            body["includedType"] = included_type

        headers = {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": SEARCH_FIELDS,
        }
        try:
            with httpx.Client(timeout=httpx.Timeout(timeout or self.timeout), transport=self._transport) as client:
                response = client.post(self.search_url, json=body, headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as exc:
            raise ProviderTimeout(f"Places search timed out: {exc}", provider="places") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderError(f"Places search failed: {exc}", provider="places") from exc

        places = data.get("places") if isinstance(data, dict) else None
        try:
            candidates = [_to_candidate(place) for place in places or [] if isinstance(place, dict)]
        except (AttributeError, TypeError, ValueError) as exc:
            raise ProviderError(f"Places search returned a malformed place: {exc}", provider="places") from exc
        result = [item for item in candidates if item.rating >= min_rating]
        logger.debug(f"Places search '{query}' returned {len(result)} candidates")
        return result


def _to_candidate(place: dict) -> Candidate:
    location = place.get("location") or {}
    coordinate = None
    if "latitude" in location and "longitude" in location:
        coordinate = Coordinate(lat=float(location["latitude"]), lng=float(location["longitude"]))
    price = place.get("priceLevel")
    if isinstance(price, str):
        price = PRICE_LEVELS.get(price)
    return Candidate(
        place_id=str(place.get("id") or ""),
        name=(place.get("displayName") or {}).get("text", ""),
        location=coordinate,
        types=tuple(place.get("types") or ()),
        rating=float(place.get("rating") or 0.0),
        price_level=price if isinstance(price, int) else None,
        is_open=(place.get("currentOpeningHours") or {}).get("openNow"),
    )
