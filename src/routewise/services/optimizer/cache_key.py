"""Deterministic cache key derivation for optimization requests."""

from __future__ import annotations

import json
from typing import Any

from ...errors import ValidationError
from ...models.domain import Coordinate, PreferenceSet

KEY_PRECISION = 4  # decimal places, roughly 11 m


def validate_coordinate(coordinate: Coordinate, label: str = "coordinate") -> None:
    if not isinstance(coordinate, Coordinate) or not coordinate.is_valid():
        raise ValidationError(
            f"Invalid {label}: latitude must be within [-90, 90] and longitude within [-180, 180]."
        )


def _format_degrees(value: float) -> str:
    # round() can yield -0.0, which would format differently from 0.0
    return f"{round(value, KEY_PRECISION) + 0.0:.{KEY_PRECISION}f}"


def _canonical(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _canonical(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [_canonical(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted((_canonical(item) for item in value), key=repr)
    return value


def canonical_prefs(prefs: PreferenceSet | None) -> str:
    """Serialize preferences so construction order never changes the output."""
    normalized = _canonical(dict(prefs or {}))
    return json.dumps(normalized, sort_keys=True, separators=(",", ":"), default=str)


def derive_key(origin: Coordinate, destination: Coordinate, prefs: PreferenceSet | None = None) -> str:
    validate_coordinate(origin, "origin")
    validate_coordinate(destination, "destination")
    return "|".join(
        [
            f"{_format_degrees(origin.lat)},{_format_degrees(origin.lng)}",
            f"{_format_degrees(destination.lat)},{_format_degrees(destination.lng)}",
            canonical_prefs(prefs),
        ]
    )
