import httpx
import pytest

from conftest import JERUSALEM, TEL_AVIV, make_insights
from routewise.errors import BuildFailed, OperationCancelled, ProviderError, ProviderTimeout, RouteUnavailable
from routewise.models.domain import OptimizationRequest
from routewise.services.optimizer.builder import PackageBuilder, scenic_score
from routewise.services.optimizer.cancellation import CancellationToken
from routewise.services.providers.osrm_client import OSRMClient
from routewise.services.providers.places import GooglePlacesProvider


def _request(**prefs) -> OptimizationRequest:
    return OptimizationRequest(origin=TEL_AVIV, destination=JERUSALEM, prefs=prefs)


def test_scenic_score_formula():
    # 1 stop, 1/6 longer, perfect visibility
    assert scenic_score(1, 600 / 3600, 1.0) == 59
    # stops and detour bonus are capped
    assert scenic_score(10, 5.0, 1.0) == 100
    # visibility halves the score at worst
    assert scenic_score(0, 0.0, 0.0) == 20
    assert scenic_score(0, -0.2, 1.0) == 40


def test_build_produces_all_three_packages(builder, routing, weather):
    outcome = builder.build(_request())
    packages = outcome.packages

    assert outcome.weather_insights is weather.result
    assert packages.efficiency.duration == 3600.0
    assert not packages.efficiency.disabled

    scenic = packages.scenic
    assert not scenic.disabled
    assert scenic.duration == 4200.0
    assert scenic.duration_increase_pct == pytest.approx(600 / 3600)
    assert [stop.place_id for stop in scenic.stops] == ["s-park"]
    assert scenic.scenic_score == 59

    foodie = packages.foodie
    assert not foodie.disabled
    assert foodie.selected_restaurant.place_id == "r-garden"
    assert [item.place_id for item in foodie.alternatives] == ["r-falafel", "r-hummus"]
    assert foodie.duration == 4000.0
    assert foodie.route_to_restaurant is not None
    assert foodie.route_from_restaurant is not None
    assert foodie.outdoor_filtered is False

    scenic_calls = [call for call in routing.calls if call["mode"] == "scenic"]
    assert scenic_calls[0]["detour_tolerance"] == pytest.approx(1.5)
    assert weather.calls == 1


def test_efficiency_failure_fails_build(builder, routing):
    routing.failures["efficiency"] = RouteUnavailable("No route found (NoRoute).", provider="osrm")

    with pytest.raises(BuildFailed):
        builder.build(_request())


def test_weather_failure_fails_build(builder, weather):
    weather.error = ProviderTimeout("Weather request timed out", provider="open-meteo")

    with pytest.raises(BuildFailed):
        builder.build(_request())


def test_scenic_route_failure_disables_only_scenic(builder, routing):
    routing.failures["scenic"] = ProviderError("OSRM returned HTTP 503", provider="osrm")

    packages = builder.build(_request()).packages

    assert packages.scenic.disabled
    assert packages.scenic.fallback_mode == "efficiency"
    assert packages.scenic.reason == "Scenic package could not be built right now"
    assert packages.scenic.scenic_score == 0
    assert not packages.foodie.disabled


def test_scenic_stop_search_failure_keeps_scenic_without_stops(builder, places):
    places.errors["scenic"] = ProviderError("Places search failed", provider="places")

    scenic = builder.build(_request()).packages.scenic

    assert not scenic.disabled
    assert scenic.stops == ()
    assert scenic.scenic_score == 47


def test_restaurant_search_failure_disables_foodie(builder, places):
    places.errors["restaurant"] = ProviderError("Google Maps API not configured.", provider="places")

    packages = builder.build(_request()).packages

    assert packages.foodie.disabled
    assert packages.foodie.fallback_mode == "efficiency"
    assert packages.foodie.selected_restaurant is None
    assert not packages.scenic.disabled


def test_no_restaurant_near_route_disables_foodie(builder, places):
    places.results["restaurant"] = [item for item in places.results["restaurant"] if item.place_id == "r-eilat"]

    foodie = builder.build(_request()).packages.foodie

    assert foodie.disabled
    assert foodie.reason == "No highly rated restaurant found near the route"


def test_restaurant_beyond_detour_budget_disables_foodie(builder, routing):
    routing.durations["foodie"] = 3000.0  # 6000s > 1.5 x 3600s

    foodie = builder.build(_request()).packages.foodie

    assert foodie.disabled
    assert foodie.reason == "No restaurant within the acceptable detour"
    assert len([call for call in routing.calls if call["mode"] == "foodie"]) == 6


def test_adverse_weather_filters_outdoor_restaurants(builder, weather):
    weather.result = make_insights(0.35)

    foodie = builder.build(_request()).packages.foodie

    assert foodie.selected_restaurant.place_id == "r-falafel"
    assert [item.place_id for item in foodie.alternatives] == ["r-hummus", "r-steak"]
    assert foodie.outdoor_filtered is True


def test_low_budget_skips_expensive_restaurants(builder):
    foodie = builder.build(_request(budgetLevel="low")).packages.foodie

    assert foodie.selected_restaurant.place_id == "r-garden"
    assert [item.place_id for item in foodie.alternatives] == ["r-falafel"]


def test_avoid_preferences_become_exclude_classes(builder, routing):
    builder.build(_request(avoidTolls=True, avoidFerries=False))

    assert routing.calls
    assert all(call["exclude"] == ("toll",) for call in routing.calls)


def test_cancelled_token_aborts_build(builder, weather):
    token = CancellationToken()
    token.cancel()

    with pytest.raises(OperationCancelled):
        builder.build(_request(), token)


# Encoded polyline cut off in the middle of a coordinate.
TRUNCATED_POLYLINE = "_p~iF~ps|U_"
TRIP_PATH = "/route/v1/driving/34.7818,32.0853;35.2137,31.7683"


def _osrm(handler) -> OSRMClient:
    return OSRMClient(
        base_url="http://osrm.test",
        profile="driving",
        timeout=1.0,
        max_retries=0,
        backoff_seconds=0.0,
        transport=httpx.MockTransport(handler),
    )


def test_malformed_scenic_geometry_disables_only_scenic(weather, places, classifier):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["alternatives"] == "3":
            route = {"duration": 4200.0, "distance": 84000.0, "geometry": TRUNCATED_POLYLINE}
        elif request.url.path == TRIP_PATH:
            route = {"duration": 3600.0, "distance": 65000.0, "geometry": ""}
        else:
            route = {"duration": 2000.0, "distance": 40000.0, "geometry": ""}
        return httpx.Response(200, json={"code": "Ok", "routes": [route]})

    builder = PackageBuilder(_osrm(handler), weather, places, classifier, max_workers=4)
    packages = builder.build(_request()).packages

    assert packages.efficiency.duration == 3600.0
    assert packages.scenic.disabled
    assert packages.scenic.reason == "Scenic package could not be built right now"
    assert not packages.foodie.disabled
    assert packages.foodie.selected_restaurant.place_id == "r-garden"


def test_malformed_place_rating_disables_only_foodie(routing, weather, classifier):
    def handler(request: httpx.Request) -> httpx.Response:
        place = {"id": "x", "displayName": {"text": "Mystery Diner"}, "rating": "n/a"}
        return httpx.Response(200, json={"places": [place]})

    search = GooglePlacesProvider(
        api_key="test-key", search_url="http://places.test", timeout=1.0, transport=httpx.MockTransport(handler)
    )
    packages = PackageBuilder(routing, weather, search, classifier, max_workers=4).build(_request()).packages

    assert packages.foodie.disabled
    assert packages.foodie.reason == "Foodie package could not be built right now"
    assert not packages.scenic.disabled
    assert packages.scenic.stops == ()


def test_unexpected_foodie_error_disables_only_foodie(builder, places):
    places.errors["restaurant"] = KeyError("priceLevel")

    packages = builder.build(_request()).packages

    assert packages.foodie.disabled
    assert not packages.scenic.disabled
    assert packages.efficiency.duration == 3600.0


def test_unexpected_weather_error_fails_build(builder, weather):
    weather.error = RuntimeError("boom")

    with pytest.raises(BuildFailed, match="Weather insights unavailable"):
        builder.build(_request())


def test_token_reaches_routing_provider(builder, routing):
    seen = []
    original = routing.route

    def route(*args, token=None, **kwargs):
        seen.append(token)
        return original(*args, token=token, **kwargs)

    routing.route = route
    token = CancellationToken()
    builder.build(_request(), token)

    assert seen and all(item is token for item in seen)
