import json

import httpx
import pytest

from routewise.errors import ProviderError, ProviderTimeout
from routewise.models.domain import Coordinate, Corridor
from routewise.services.providers.places import GooglePlacesProvider

SEARCH_URL = "http://places.test/v1/places:searchText"
CORRIDOR = Corridor(center=Coordinate(lat=31.9268, lng=34.99775), radius_m=80000.0)

PLACES = {
    "places": [
        {
            "id": "abc",
            "displayName": {"text": "Falafel HaKosem"},
            "location": {"latitude": 32.0712, "longitude": 34.7726},
            "types": ["restaurant", "food"],
            "rating": 4.7,
            "priceLevel": "PRICE_LEVEL_INEXPENSIVE",
            "currentOpeningHours": {"openNow": True},
        },
        {
            "id": "def",
            "displayName": {"text": "Tourist Trap"},
            "location": {"latitude": 31.77, "longitude": 35.21},
            "rating": 3.1,
        },
        {"id": "ghi", "displayName": {"text": "No Location Diner"}, "rating": 4.4},
    ]
}


def _provider(handler, api_key="test-key") -> GooglePlacesProvider:
    return GooglePlacesProvider(
        api_key=api_key, search_url=SEARCH_URL, timeout=1.0, transport=httpx.MockTransport(handler)
    )


def test_search_near_maps_candidates():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.read())
        return httpx.Response(200, json=PLACES)

    candidates = _provider(handler).search_near(CORRIDOR, "restaurant", 4.0)

    assert [item.place_id for item in candidates] == ["abc", "ghi"]
    falafel = candidates[0]
    assert falafel.name == "Falafel HaKosem"
    assert falafel.location == Coordinate(lat=32.0712, lng=34.7726)
    assert falafel.price_level == 1
    assert falafel.is_open is True
    assert candidates[1].location is None

    assert seen["headers"]["X-Goog-Api-Key"] == "test-key"
    assert "places.rating" in seen["headers"]["X-Goog-FieldMask"]
    assert seen["body"]["includedType"] == "restaurant"
    assert seen["body"]["minRating"] == 4.0
    assert seen["body"]["locationBias"]["circle"]["radius"] == 50000.0


def test_scenic_search_has_no_type_restriction():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.read())
        return httpx.Response(200, json={})

    assert _provider(handler).search_near(CORRIDOR, "scenic", 0.0) == []
    assert "includedType" not in seen["body"]
    assert "minRating" not in seen["body"]


def test_missing_api_key_raises():
    with pytest.raises(ProviderError):
        _provider(lambda request: httpx.Response(200, json=PLACES), api_key="").search_near(CORRIDOR, "restaurant", 4.0)


def test_http_error_raises_provider_error():
    with pytest.raises(ProviderError):
        _provider(lambda request: httpx.Response(403)).search_near(CORRIDOR, "restaurant", 4.0)


def test_timeout_raises_provider_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(ProviderTimeout):
        _provider(handler).search_near(CORRIDOR, "restaurant", 4.0)


@pytest.mark.parametrize(
    "place",
    [
        {"id": "x", "displayName": {"text": "Mystery Diner"}, "rating": "n/a"},
        {"id": "y", "displayName": "Plain String Name", "rating": 4.5},
        {"id": "z", "displayName": {"text": "Lost Cafe"}, "location": {"latitude": "north", "longitude": 34.7}},
    ],
)
def test_malformed_place_raises_provider_error(place):
    provider = _provider(lambda request: httpx.Response(200, json={"places": [place]}))

    with pytest.raises(ProviderError, match="malformed place"):
        provider.search_near(CORRIDOR, "restaurant", 4.0)
