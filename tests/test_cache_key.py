import math

import pytest

from routewise.errors import ValidationError
from routewise.models.domain import Coordinate
from routewise.services.optimizer.cache_key import canonical_prefs, derive_key

TEL_AVIV = Coordinate(lat=32.0853, lng=34.7818)
JERUSALEM = Coordinate(lat=31.7683, lng=35.2137)


def test_key_layout():
    assert derive_key(TEL_AVIV, JERUSALEM) == "32.0853,34.7818|31.7683,35.2137|{}"


def test_nearby_points_share_a_key():
    jittered = Coordinate(lat=32.08534, lng=34.78176)
    assert derive_key(jittered, JERUSALEM) == derive_key(TEL_AVIV, JERUSALEM)


def test_fourth_decimal_changes_the_key():
    moved = Coordinate(lat=32.0854, lng=34.7818)
    assert derive_key(moved, JERUSALEM) != derive_key(TEL_AVIV, JERUSALEM)


def test_direction_matters():
    assert derive_key(TEL_AVIV, JERUSALEM) != derive_key(JERUSALEM, TEL_AVIV)


def test_negative_zero_normalised():
    key = derive_key(Coordinate(lat=-0.00001, lng=-0.0), Coordinate(lat=0.0, lng=0.0))
    assert key.startswith("0.0000,0.0000|0.0000,0.0000|")


def test_preference_order_is_irrelevant():
    first = derive_key(TEL_AVIV, JERUSALEM, {"avoidTolls": True, "budgetLevel": "low"})
    second = derive_key(TEL_AVIV, JERUSALEM, {"budgetLevel": "low", "avoidTolls": True})
    assert first == second


def test_unset_preferences_are_ignored():
    assert canonical_prefs({"avoidTolls": None}) == canonical_prefs({}) == "{}"
    assert canonical_prefs(None) == "{}"


def test_nested_preferences_are_canonical():
    assert canonical_prefs({"dietary": ["vegan"], "extra": {"b": 1, "a": 2}}) == (
        '{"dietary":["vegan"],"extra":{"a":2,"b":1}}'
    )


def test_different_preferences_produce_different_keys():
    assert derive_key(TEL_AVIV, JERUSALEM, {"avoidTolls": True}) != derive_key(TEL_AVIV, JERUSALEM, {})


@pytest.mark.parametrize(
    "coordinate",
    [
        Coordinate(lat=91.0, lng=0.0),
        Coordinate(lat=0.0, lng=-180.5),
        Coordinate(lat=math.nan, lng=0.0),
        Coordinate(lat=0.0, lng=math.inf),
    ],
)
def test_invalid_coordinates_are_rejected(coordinate):
    with pytest.raises(ValidationError):
        derive_key(coordinate, JERUSALEM)
