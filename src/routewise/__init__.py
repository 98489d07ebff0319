"""RouteWise multi-package route optimization service."""
