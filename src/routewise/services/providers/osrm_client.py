"""HTTP client for interacting with OSRM services."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Optional, Sequence

import httpx

from ...config import settings
from ...errors import ProviderError, ProviderTimeout, RouteUnavailable
from ...models.domain import Coordinate, RouteLeg

if TYPE_CHECKING:
    from ..optimizer.cancellation import CancellationToken

logger = logging.getLogger(__name__)

# Preference names mapped to OSRM exclude classes.
AVOID_CLASSES = {
    "avoidTolls": "toll",
    "avoidFerries": "ferry",
    "avoidHighways": "motorway",
}

# OSRM answers these codes when the request is valid but no path exists.
NO_ROUTE_CODES = {"NoRoute", "NoSegment"}


def exclude_classes(prefs: dict | None) -> tuple[str, ...]:
    """Translate avoid* preferences into OSRM exclude classes."""
    if not prefs:
        return ()
    return tuple(osrm_class for name, osrm_class in AVOID_CLASSES.items() if prefs.get(name))


class OSRMClient:
    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.osrm_base_url
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout if timeout is not None else settings.routing_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.osrm_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.osrm_backoff_seconds
        self._transport = transport

    def _get_client(self, timeout: float) -> httpx.Client:
        """Create a per-call HTTP client; calls run on worker threads."""
        return httpx.Client(
            timeout=httpx.Timeout(timeout, connect=min(timeout, 10.0)),
            transport=self._transport,
        )

    def _request(self, url: str, params: dict, timeout: float, token: Optional[CancellationToken] = None) -> dict:
        client = self._get_client(timeout)
        try:
            attempt = 0
            while True:
                attempt_timeout = timeout
                if token is not None:
                    attempt_timeout = token.timeout(timeout)
                try:
                    response = client.get(
                        url,
                        params=params,
                        timeout=httpx.Timeout(attempt_timeout, connect=min(attempt_timeout, 10.0)),
                    )
                    if response.status_code == 400:
                        # OSRM reports NoRoute/InvalidQuery with 400 and a JSON body
                        data = response.json()
                    else:
                        response.raise_for_status()
                        data = response.json()
                    if not isinstance(data, dict):
                        raise ValueError("OSRM response is not a JSON object.")
                    return data
                except httpx.HTTPStatusError as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ProviderError(
                            f"OSRM returned HTTP {e.response.status_code}", provider="osrm"
                        ) from e
                    self._backoff(self.backoff_seconds * attempt, token)
                except httpx.TimeoutException as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"OSRM route request timed out after {self.max_retries} retries: {e}")
                        raise ProviderTimeout(f"OSRM request timed out after {timeout:.1f}s", provider="osrm") from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM route timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    self._backoff(wait_time, token)
                except (httpx.NetworkError, OSError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise ProviderError(
                            f"Failed to connect to OSRM service at {self.base_url}: {e}", provider="osrm"
                        ) from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"OSRM network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                    self._backoff(wait_time, token)
                except ValueError as e:
                    raise ProviderError(f"OSRM returned a malformed response: {e}", provider="osrm") from e
                except httpx.HTTPError as e:
                    raise ProviderError(f"OSRM request failed: {e}", provider="osrm") from e
        finally:
            client.close()

    @staticmethod
    def _backoff(seconds: float, token: Optional[CancellationToken]) -> None:
        if token is None:
            time.sleep(seconds)
        else:
            token.sleep(seconds)

    def _fetch_routes(
        self,
        origin: Coordinate,
        destination: Coordinate,
        alternatives: bool,
        exclude: Sequence[str],
        timeout: float,
        token: Optional[CancellationToken] = None,
    ) -> list[dict]:
        # OSRM route endpoint expects coordinates as "lon,lat;lon,lat"
        coordinate_str = f"{origin.lng},{origin.lat};{destination.lng},{destination.lat}"
        params = {
            "overview": "full",
            "geometries": "polyline",
            "steps": "false",
            "alternatives": "3" if alternatives else "false",
        }
        if exclude:
            params["exclude"] = ",".join(exclude)
        url = f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"

        data = self._request(url, params, timeout, token)
        code = data.get("code")
        if code in NO_ROUTE_CODES:
            raise RouteUnavailable(data.get("message") or f"No route found ({code}).", provider="osrm")
        if code != "Ok":
            raise ProviderError(
                f"OSRM route request failed: {data.get('message', 'Unknown OSRM route error')}", provider="osrm"
            )
        routes = data.get("routes") or []
        if not isinstance(routes, list) or not all(isinstance(item, dict) for item in routes):
            raise ProviderError("OSRM returned malformed routes.", provider="osrm")
        if not routes:
            raise RouteUnavailable("OSRM returned no routes.", provider="osrm")
        return routes

    def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        mode: str = "efficiency",
        detour_tolerance: Optional[float] = None,
        exclude: Sequence[str] = (),
        timeout: Optional[float] = None,
        token: Optional[CancellationToken] = None,
    ) -> RouteLeg:
        """Route between two points.

        With ``detour_tolerance`` the alternatives are requested and the longest
        one whose duration stays within ``tolerance x fastest`` is returned, so
        the result favours a different path over the fastest one.

        When ``exclude`` classes make the request fail, it is retried once
        without them. A ``token`` stops retries and backoff as soon as the
        optimization is cancelled.
        """
        call_timeout = timeout if timeout is not None else self.timeout
        alternatives = detour_tolerance is not None
        try:
            routes = self._fetch_routes(origin, destination, alternatives, exclude, call_timeout, token)
        except ProviderTimeout:
            raise
        except ProviderError as exc:
            if not exclude:
                raise
            logger.info(f"OSRM {mode} route with exclude={list(exclude)} failed ({exc}); retrying without exclude")
            routes = self._fetch_routes(origin, destination, alternatives, (), call_timeout, token)

        try:
            return _to_leg(routes, detour_tolerance if alternatives else None)
        except (IndexError, TypeError, ValueError) as exc:
            raise ProviderError(f"OSRM returned a malformed {mode} route: {exc}", provider="osrm") from exc


def _to_leg(routes: list[dict], detour_tolerance: Optional[float]) -> RouteLeg:
    chosen = routes[0]
    if detour_tolerance is not None and len(routes) > 1:
        fastest = min(float(item.get("duration") or 0.0) for item in routes)
        budget = fastest * detour_tolerance
        within_budget = [item for item in routes if float(item.get("duration") or 0.0) <= budget]
        if within_budget:
            chosen = max(within_budget, key=lambda item: float(item.get("duration") or 0.0))

    return RouteLeg(
        geometry=tuple(decode_polyline(chosen.get("geometry") or "")),
        duration=float(chosen.get("duration") or 0.0),
        distance=float(chosen.get("distance") or 0.0),
    )


def decode_polyline(polyline: str) -> list[tuple[float, float]]:
    """Decode Google polyline string to list of (lat, lon) coordinates.

    OSRM uses Google's polyline encoding format for route geometry.
    """
    coordinates = []
    index = 0
    lat = 0
    lon = 0

    while index < len(polyline):
        shift = 0
        result = 0
        while True:
            b = ord(polyline[index]) - 63
            index += 1
            result |= (b & 0x1f) << shift
            shift += 5
            if b < 0x20:
                break
        dlat = ~(result >> 1) if (result & 1) else (result >> 1)
        lat += dlat

        shift = 0
        result = 0
        while True:
            b = ord(polyline[index]) - 63
            index += 1
            result |= (b & 0x1f) << shift
            shift += 5
            if b < 0x20:
                break
        dlon = ~(result >> 1) if (result & 1) else (result >> 1)
        lon += dlon

        coordinates.append((lat / 1e5, lon / 1e5))

    return coordinates


def check_health(base_url: str | None = None, transport: httpx.BaseTransport | None = None) -> bool:
    """Check OSRM service health with a minimal route request."""
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        # Two points in central Tel Aviv
        test_coords = "34.7818,32.0853;34.7741,32.0809"
        url = f"{base}/route/v1/{settings.osrm_profile}/{test_coords}"
        with httpx.Client(timeout=5.0, transport=transport) as client:
            response = client.get(url, params={"overview": "false"})
        response.raise_for_status()
        return response.json().get("code") == "Ok"
    except (httpx.HTTPError, ValueError):
        return False
