"""Error taxonomy

Each error carries the HTTP status it maps to at the service boundary.
"Searched but found nothing" is not an error: see StitchResult.failure().
"""

from __future__ import annotations

from typing import Optional


class TrainSurfError(Exception):
    """Base class for every error surfaced by the core"""

    http_status = 500


class ConfigError(TrainSurfError):
    """Missing or invalid runtime configuration"""


class ValidationError(TrainSurfError, ValueError):
    """Malformed or missing request field. Raised before any external call."""

    http_status = 400


class AuthError(TrainSurfError):
    """Missing or invalid caller credential"""

    http_status = 401


class RateLimitError(TrainSurfError):
    """Caller exceeded its request window"""

    http_status = 429

    def __init__(self, message: str, retry_after: float = 0.0) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class RouteError(TrainSurfError):
    """Route data unusable for this request"""

    http_status = 400

    def __init__(
        self,
        message: str,
        total_stations: int = 0,
        debug_info: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message)
        self.total_stations = total_stations
        self.debug_info = list(debug_info or [])


class RouteFetchError(RouteError):
    """Neither route source produced a station list"""

    def __init__(self, primary_error: str, fallback_error: str) -> None:
        super().__init__(
            f"Could not fetch train route: {primary_error}",
            debug_info=[
                f"Failed to fetch route: {primary_error}",
                f"Fallback also failed: {fallback_error}",
            ],
        )
        self.primary_error = primary_error
        self.fallback_error = fallback_error


class RouteSliceError(RouteError):
    """Source/destination missing from the route, or out of order"""


class UpstreamProbeError(TrainSurfError):
    """A single upstream call failed at the transport level"""

    http_status = 502

    def __init__(self, message: str, rate_limited: bool = False) -> None:
        super().__init__(message)
        self.rate_limited = rate_limited
