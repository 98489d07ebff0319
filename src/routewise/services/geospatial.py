"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

from shapely.geometry import LineString, Point
from shapely.ops import nearest_points

from ..models.domain import Coordinate

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    return haversine_km(lat1, lon1, lat2, lon2) * 1000.0


def midpoint(origin: Coordinate, destination: Coordinate) -> Coordinate:
    """Planar midpoint; adequate for the corridor lengths a single trip spans."""
    return Coordinate(lat=(origin.lat + destination.lat) / 2, lng=(origin.lng + destination.lng) / 2)


def corridor_radius_m(origin: Coordinate, destination: Coordinate, minimum_m: float = 0.0) -> float:
    """Radius around the midpoint that covers both endpoints."""
    half = haversine_m(origin.lat, origin.lng, destination.lat, destination.lng) / 2
    return max(half, minimum_m)


def distance_to_path_km(point: Coordinate, path: Sequence[tuple[float, float]]) -> float:
    """Distance from ``point`` to the closest location on a (lat, lon) polyline."""

    if not path:
        raise ValueError("path must contain at least one coordinate.")
    if len(path) == 1:
        lat, lon = path[0]
        return haversine_km(point.lat, point.lng, lat, lon)

    line = LineString([(lon, lat) for lat, lon in path])
    nearest, _ = nearest_points(line, Point(point.lng, point.lat))
    return haversine_km(point.lat, point.lng, nearest.y, nearest.x)
