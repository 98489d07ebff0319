"""Route package optimization engine exports."""

from ...errors import (
    BuildFailed,
    OperationCancelled,
    OptimizerError,
    ProviderError,
    ProviderTimeout,
    RouteUnavailable,
    ValidationError,
)
from .builder import BuildOutcome, PackageBuilder
from .cache import ResultCache
from .cache_key import derive_key
from .cancellation import CancellationToken
from .classifier import HeuristicClassifier, LocationClassifier, RemoteClassifier
from .comparator import ModeComparison, compare, format_distance, format_duration
from .orchestrator import OptimizationOrchestrator, SmartRouteOptimizer
from .policy import WeatherPolicyEngine

__all__ = [
    "BuildOutcome",
    "PackageBuilder",
    "ResultCache",
    "derive_key",
    "CancellationToken",
    "HeuristicClassifier",
    "LocationClassifier",
    "RemoteClassifier",
    "ModeComparison",
    "compare",
    "format_distance",
    "format_duration",
    "BuildFailed",
    "OperationCancelled",
    "OptimizerError",
    "ProviderError",
    "ProviderTimeout",
    "RouteUnavailable",
    "ValidationError",
    "OptimizationOrchestrator",
    "SmartRouteOptimizer",
    "WeatherPolicyEngine",
]
