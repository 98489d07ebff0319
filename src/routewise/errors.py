"""Exceptions raised by the optimization engine and its providers."""

from __future__ import annotations


class OptimizerError(Exception):
    """Base class for optimization failures."""


class ValidationError(OptimizerError, ValueError):
    """Request input is malformed; raised before any provider call."""


class ProviderError(OptimizerError):
    """An external provider call failed."""

    code = "PROVIDER_ERROR"

    def __init__(self, message: str, *, provider: str | None = None, code: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider
        if code is not None:
            self.code = code


class ProviderTimeout(ProviderError):
    code = "PROVIDER_TIMEOUT"


class RouteUnavailable(ProviderError):
    code = "ROUTE_UNAVAILABLE"


class BuildFailed(OptimizerError):
    """A mandatory part of the package build failed; nothing is cached."""


class OperationCancelled(OptimizerError):
    """The caller abandoned the optimization or its deadline passed."""


class CacheMiss(LookupError):
    """Internal signal from ResultCache.lookup."""
