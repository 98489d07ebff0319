"""Top-level optimization entry points.

``OptimizationOrchestrator`` runs one optimization: cache lookup, package
build, weather policy, cache store. Concurrent misses for the same cache key
share one in-flight build.

``SmartRouteOptimizer`` is the per-application context that the HTTP layer
owns. It wraps the orchestrator and keeps the last result and the selected
mode for the mode-selection and comparison calls.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from concurrent.futures import Future
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from ...config import settings
from ...errors import OperationCancelled, OptimizerError, ValidationError
from ...models.domain import (
    MODES,
    Coordinate,
    DisabledMode,
    LocationClassification,
    Mode,
    ModePackage,
    OptimizationRequest,
    OptimizationResult,
    PreferenceSet,
    WeatherInsights,
)
from .builder import PackageBuilder
from .cache import ResultCache
from .cache_key import derive_key
from .cancellation import CancellationToken, wait_for
from .classifier import LocationClassifier
from .comparator import ModeComparison, compare
from .policy import WeatherPolicyEngine

logger = logging.getLogger(__name__)

DEFAULT_WEATHER_SCORE = 0.7


class OptimizationOrchestrator:
    def __init__(
        self,
        builder: PackageBuilder,
        policy: WeatherPolicyEngine | None = None,
        cache: ResultCache | None = None,
        build_deadline_seconds: float | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.builder = builder
        self.policy = policy if policy is not None else WeatherPolicyEngine()
        self.cache = cache if cache is not None else ResultCache()
        self.build_deadline_seconds = build_deadline_seconds or settings.build_deadline_seconds
        self._clock = clock
        self._pending: dict[str, Future] = {}
        self._pending_lock = threading.Lock()

    def optimize(self, request: OptimizationRequest, token: CancellationToken | None = None) -> OptimizationResult:
        key = derive_key(request.origin, request.destination, request.prefs)
        token = token if token is not None else CancellationToken(self.build_deadline_seconds)

        cached = self.cache.get(key)
        if cached is not None:
            logger.info(f"Optimization cache hit for {key}")
            return cached

        with self._pending_lock:
            cached = self.cache.get(key)
            if cached is not None:
                return cached
            future = self._pending.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._pending[key] = future

        if not owner:
            logger.info(f"Joining in-flight build for {key}")
            try:
                return wait_for(future, token, cancel_on_abort=False)
            except OperationCancelled:
                if token.cancelled:
                    raise
                # The owning caller gave up; build again for this caller.
                return self.optimize(request, token)

        try:
            result = self._build_result(key, request, token)
        except Exception as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._pending_lock:
                self._pending.pop(key, None)

    def _build_result(self, key: str, request: OptimizationRequest, token: CancellationToken) -> OptimizationResult:
        started = self._clock()
        logger.info(f"Optimization cache miss for {key}; building packages")
        outcome = self.builder.build(request, token)
        decision = self.policy.apply(outcome.packages, outcome.weather_insights)

        result = OptimizationResult(
            packages=decision.packages,
            recommended=decision.recommended,
            recommendation_reason=decision.recommendation_reason,
            disabled_modes=decision.disabled_modes,
            weather_insights=outcome.weather_insights,
            generated_at=datetime.now(timezone.utc),
            request_id=uuid.uuid4().hex,
            processing_time_ms=(self._clock() - started) * 1000.0,
            advice=decision.advice,
        )
        self.cache.put(key, result)
        logger.info(
            f"Generated packages in {result.processing_time_ms:.0f}ms: recommended={result.recommended}, "
            f"weather={result.weather_insights.scores.overall:.2f}"
        )
        return result


def _validate_mode(mode: str) -> Mode:
    if mode not in MODES:
        raise ValidationError(f"Unknown mode '{mode}'. Expected one of {', '.join(MODES)}.")
    return mode  # type: ignore[return-value]


class SmartRouteOptimizer:
    """Caller-facing optimizer context with lifecycle ``new -> operate -> close``."""

    def __init__(self, orchestrator: OptimizationOrchestrator, classifier: LocationClassifier | None = None) -> None:
        self.orchestrator = orchestrator
        self.classifier = classifier or orchestrator.builder.classifier
        self._lock = threading.RLock()
        self._last_result: Optional[OptimizationResult] = None
        self._selected_mode: Mode = "efficiency"
        self._closed = False

    @classmethod
    def from_settings(cls) -> "SmartRouteOptimizer":
        from ..providers.osrm_client import OSRMClient
        from ..providers.places import GooglePlacesProvider
        from ..providers.weather import OpenMeteoWeatherProvider

        classifier = LocationClassifier()
        builder = PackageBuilder(
            routing=OSRMClient(),
            weather=OpenMeteoWeatherProvider(),
            places=GooglePlacesProvider(),
            classifier=classifier,
        )
        return cls(OptimizationOrchestrator(builder), classifier=classifier)

    def __enter__(self) -> "SmartRouteOptimizer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.clear_cache()
        self._closed = True

    @property
    def cache(self) -> ResultCache:
        return self.orchestrator.cache

    def generate_packages(
        self,
        origin: Coordinate,
        destination: Coordinate,
        user_prefs: PreferenceSet | None = None,
        token: CancellationToken | None = None,
    ) -> OptimizationResult:
        if self._closed:
            raise RuntimeError("SmartRouteOptimizer has been closed.")
        request = OptimizationRequest(origin=origin, destination=destination, prefs=dict(user_prefs or {}))
        try:
            result = self.orchestrator.optimize(request, token)
        except OptimizerError as exc:
            logger.warning(f"Package generation failed: {exc}")
            raise
        with self._lock:
            self._last_result = result
            self._selected_mode = result.recommended
        return result

    def select_mode(self, mode: str) -> Optional[ModePackage]:
        mode = _validate_mode(mode)
        with self._lock:
            if self._last_result is None:
                return None
            package = self._last_result.packages.get(mode)
            if package.disabled:
                logger.info(f"Disabled mode '{mode}' selected: {package.reason}")
                return None
            self._selected_mode = mode
        logger.info(f"Mode selected: {mode}")
        return package

    def get_selected_mode(self) -> Mode:
        return self._selected_mode

    def get_selected_package(self) -> Optional[ModePackage]:
        with self._lock:
            if self._last_result is None:
                return None
            return self._last_result.packages.get(self._selected_mode)

    def get_package(self, mode: str) -> Optional[ModePackage]:
        mode = _validate_mode(mode)
        result = self._last_result
        return result.packages.get(mode) if result else None

    def get_recommended_package(self) -> Optional[ModePackage]:
        result = self._last_result
        return result.packages.get(result.recommended) if result else None

    def get_available_modes(self) -> list[Mode]:
        result = self._last_result
        if result is None:
            return []
        return [mode for mode, package in result.packages.items() if not package.disabled]

    def get_disabled_modes(self) -> Sequence[DisabledMode]:
        result = self._last_result
        return result.disabled_modes if result else ()

    def get_weather_insights(self) -> Optional[WeatherInsights]:
        result = self._last_result
        return result.weather_insights if result else None

    def get_weather_score(self) -> float:
        result = self._last_result
        return result.weather_insights.scores.overall if result else DEFAULT_WEATHER_SCORE

    def has_weather_alerts(self) -> bool:
        result = self._last_result
        return bool(result and result.weather_insights.alerts)

    def classify_location(self, place_id: str, name: str, types: Sequence[str]) -> LocationClassification:
        return self.classifier.classify(place_id, name, types)

    def compare_modes(self) -> Optional[ModeComparison]:
        result = self._last_result
        return compare(result) if result else None

    def get_last_result(self) -> Optional[OptimizationResult]:
        return self._last_result

    def clear_cache(self) -> None:
        self.orchestrator.cache.clear()
        with self._lock:
            self._last_result = None
