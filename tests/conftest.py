import threading

import pytest

from routewise.models.domain import (
    Candidate,
    Coordinate,
    CurrentConditions,
    RouteLeg,
    WeatherInsights,
    WeatherScores,
)
from routewise.services.optimizer.builder import PackageBuilder
from routewise.services.optimizer.classifier import HeuristicClassifier, LocationClassifier

TEL_AVIV = Coordinate(lat=32.0853, lng=34.7818)
JERUSALEM = Coordinate(lat=31.7683, lng=35.2137)

# Points on (or within a few hundred metres of) the straight Tel Aviv -> Jerusalem line.
ON_ROUTE = Coordinate(lat=31.9268, lng=34.99775)
NEAR_ROUTE = Coordinate(lat=31.9300, lng=35.0000)
PARK_SPOT = Coordinate(lat=31.9500, lng=34.9600)
EILAT = Coordinate(lat=29.5577, lng=34.9519)


def make_insights(
    overall: float,
    *,
    precipitation: float = 1.0,
    visibility: float = 1.0,
    temperature: float = 1.0,
    wind: float = 1.0,
    alerts=(),
) -> WeatherInsights:
    return WeatherInsights(
        current=CurrentConditions(
            temperature=21.0,
            precipitation=0.0,
            precipitation_probability=0.0,
            visibility=20.0,
            wind_speed=10.0,
            condition="Clear sky",
        ),
        scores=WeatherScores(
            overall=overall,
            precipitation=precipitation,
            visibility=visibility,
            temperature=temperature,
            wind=wind,
        ),
        alerts=tuple(alerts),
    )


RESTAURANTS = [
    Candidate("r-garden", "Rooftop Garden Grill", NEAR_ROUTE, ("park", "food"), 4.8, 2),
    Candidate("r-falafel", "Falafel HaKosem", ON_ROUTE, ("restaurant",), 4.7, 1),
    Candidate("r-hummus", "Abu Hassan", NEAR_ROUTE, ("restaurant",), 4.6, 3),
    Candidate("r-steak", "Ha'Shipudia Steakhouse", ON_ROUTE, ("restaurant",), 4.5, 4),
    Candidate("r-eilat", "Eilat Fish Market", EILAT, ("restaurant",), 4.9, 2),
]

SCENIC_PLACES = [
    Candidate("s-park", "Ayalon Park", PARK_SPOT, ("park",), 4.5),
    Candidate("s-museum", "Latrun Armored Corps Museum", ON_ROUTE, ("museum",), 4.6),
]


class DummyRouting:
    def __init__(self, efficiency: float = 3600.0, scenic: float = 4200.0, foodie_leg: float = 2000.0):
        self.durations = {"efficiency": efficiency, "scenic": scenic, "foodie": foodie_leg}
        self.failures: dict = {}
        self.calls: list = []
        self.gate: threading.Event | None = None
        self.started = threading.Event()
        self._lock = threading.Lock()

    def route(self, origin, destination, mode="efficiency", detour_tolerance=None, exclude=(), timeout=None, token=None):
        with self._lock:
            self.calls.append({"mode": mode, "exclude": tuple(exclude), "detour_tolerance": detour_tolerance})
        self.started.set()
        if self.gate is not None:
            self.gate.wait(5)
        if mode in self.failures:
            raise self.failures[mode]
        duration = self.durations[mode]
        return RouteLeg(
            geometry=(origin.as_tuple(), destination.as_tuple()),
            duration=duration,
            distance=duration * 20.0,
        )


class DummyWeather:
    def __init__(self, insights: WeatherInsights):
        self.result = insights
        self.error: Exception | None = None
        self.calls = 0
        self._lock = threading.Lock()

    def insights(self, lat, lng, radius_m, timeout=None):
        with self._lock:
            self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


class DummyPlaces:
    def __init__(self, results: dict):
        self.results = dict(results)
        self.errors: dict = {}
        self.calls: list = []
        self._lock = threading.Lock()

    def search_near(self, corridor, category, min_rating, timeout=None):
        with self._lock:
            self.calls.append(category)
        if category in self.errors:
            raise self.errors[category]
        return [item for item in self.results.get(category, []) if item.rating >= min_rating]


@pytest.fixture
def routing() -> DummyRouting:
    return DummyRouting()


@pytest.fixture
def weather() -> DummyWeather:
    return DummyWeather(make_insights(0.75))


@pytest.fixture
def places() -> DummyPlaces:
    return DummyPlaces({"restaurant": list(RESTAURANTS), "scenic": list(SCENIC_PLACES)})


@pytest.fixture
def classifier() -> LocationClassifier:
    return LocationClassifier([HeuristicClassifier()])


@pytest.fixture
def builder(routing, weather, places, classifier) -> PackageBuilder:
    return PackageBuilder(routing, weather, places, classifier, max_workers=4)
