"""
Exception hierarchy for the marketing dashboard API.

Every error raised on purpose by the pipeline derives from ``DashboardError`` and
carries the HTTP status and user-facing message it should be rendered with. The
FastAPI application registers a single handler for the base class (see
``marketing_dashboard.main``), which turns it into ``{"error": message}``.

Hierarchy:
    DashboardError
    ├── AuthError                  401, missing or malformed token
    │   └── ExpiredTokenError      401, upstream rejected the token
    ├── InvalidWindowError         400, malformed date or start date after end date
    ├── RemoteApiError             500, non-2xx from the GA4 Data API
    │   └── UpstreamTimeoutError   500, no response within the timeout
    ├── PipelineError              500, mandatory KPI / CTA fetch failed
    └── ConfigurationError         500, settings missing or invalid
"""

from typing import Optional


NOT_AUTHENTICATED_MESSAGE = "Not authenticated - please sign in"
MISSING_TOKEN_MESSAGE = "No access token - please reconnect with Google"
INVALID_TOKEN_MESSAGE = "Invalid access token format"
EXPIRED_TOKEN_MESSAGE = (
    "Access token expired or invalid. Please sign in again with Google."
)


class DashboardError(Exception):
    """Base exception for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class AuthError(DashboardError):
    """The request carries no usable bearer token."""

    status_code = 401

    def __init__(self, message: str = INVALID_TOKEN_MESSAGE):
        super().__init__(message)


class ExpiredTokenError(AuthError):
    """GA4 answered 401 or reported an authentication problem."""

    def __init__(self, message: str = EXPIRED_TOKEN_MESSAGE, upstream_message: str = ""):
        self.upstream_message = upstream_message
        super().__init__(message)


class InvalidWindowError(DashboardError):
    """The requested reporting window is not a valid date range."""

    status_code = 400


class RemoteApiError(DashboardError):
    """
    Non-success response from the GA4 Data API.

    Attributes:
        status: HTTP status returned upstream (0 when no response was received).
        message: Remote error text, raw body, or a generic status line.
    """

    status_code = 500

    def __init__(self, status: int, message: str):
        self.status = status
        super().__init__(message)


class UpstreamTimeoutError(RemoteApiError):
    """The GA4 Data API did not answer in time or the connection failed."""


class PipelineError(DashboardError):
    """A mandatory report (KPIs or CTA totals) could not be produced."""

    status_code = 500


class ConfigurationError(DashboardError):
    """Required settings (such as the GA4 property) are missing or invalid."""

    status_code = 500
