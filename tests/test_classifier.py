import httpx
import pytest

from routewise.errors import OperationCancelled
from routewise.services.optimizer.classifier import (
    Classifier,
    HeuristicClassifier,
    LocationClassifier,
    RemoteClassifier,
)

CLASSIFIER_URL = "http://classifier.test/classify"


def _remote(handler) -> RemoteClassifier:
    return RemoteClassifier(url=CLASSIFIER_URL, timeout=1.0, transport=httpx.MockTransport(handler))


def test_museum_type_is_indoor_with_high_confidence():
    result = HeuristicClassifier().classify("p1", "National Museum", ["museum"])
    assert result.is_outdoor is False
    assert result.confidence == pytest.approx(0.9)
    assert result.types == ("museum",)


def test_outdoor_type_wins_over_name():
    result = HeuristicClassifier().classify("p2", "Mall Road", ["park"])
    assert result.is_outdoor is True
    assert result.confidence == pytest.approx(0.9)


def test_outdoor_keyword_in_name():
    result = HeuristicClassifier().classify("p3", "Hidden Trail Lookout", [])
    assert result.is_outdoor is True
    assert result.confidence == pytest.approx(0.7)


def test_indoor_keyword_in_name():
    result = HeuristicClassifier().classify("p4", "Modern Art Gallery", ["point_of_interest"])
    assert result.is_outdoor is False
    assert result.confidence == pytest.approx(0.7)


def test_unknown_place_defaults_to_indoor():
    result = HeuristicClassifier().classify("p5", "Building 7", [])
    assert result.is_outdoor is False
    assert result.confidence == pytest.approx(0.5)


def test_remote_result_is_used():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = request.read()
        return httpx.Response(200, json={"isOutdoor": True, "confidence": 0.95, "types": ["rooftop"]})

    classifier = LocationClassifier([_remote(handler)])
    result = classifier.classify("p6", "Sky Bar", ["bar"])

    assert result.is_outdoor is True
    assert result.confidence == pytest.approx(0.95)
    assert result.types == ("rooftop",)
    assert b'"placeId":"p6"' in seen["body"].replace(b" ", b"")


def test_unreachable_remote_falls_back_to_heuristics():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = LocationClassifier([_remote(handler)]).classify("p7", "National Museum", ["museum"])

    assert result.is_outdoor is False
    assert result.confidence == pytest.approx(0.9)


def test_server_error_falls_back_to_heuristics():
    result = LocationClassifier([_remote(lambda request: httpx.Response(500))]).classify(
        "p8", "Hidden Trail Lookout", []
    )
    assert result.is_outdoor is True
    assert result.confidence == pytest.approx(0.7)


def test_malformed_remote_payload_falls_back():
    handler = lambda request: httpx.Response(200, json={"isOutdoor": "yes", "confidence": 3})
    assert _remote(handler).classify("p9", "x", []) is None


def test_remote_without_url_passes():
    assert RemoteClassifier(url="").classify("p10", "x", []) is None


def test_chain_continues_after_a_failing_classifier():
    class Broken(Classifier):
        def classify(self, place_id, name, types, token=None):
            raise RuntimeError("boom")

    result = LocationClassifier([Broken()]).classify("p11", "Beach Club", [])

    assert result.is_outdoor is True


def test_chain_stops_at_first_answer():
    class Fixed(Classifier):
        calls = 0

        def classify(self, place_id, name, types, token=None):
            Fixed.calls += 1
            return None

    first, second = Fixed(), Fixed()
    result = LocationClassifier([first, HeuristicClassifier(), second]).classify("p12", "Zoo", ["zoo"])

    assert result.is_outdoor is True
    assert Fixed.calls == 1


def test_cancellation_skips_remaining_tiers():
    class Cancelled(Classifier):
        def classify(self, place_id, name, types, token=None):
            raise OperationCancelled("cancelled")

    result = LocationClassifier([Cancelled()]).classify("p13", "City Park", ["park"])

    assert result.is_outdoor is True
    assert result.confidence == pytest.approx(0.9)
