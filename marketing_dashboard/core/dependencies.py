"""
FastAPI dependency injection module for the marketing dashboard API.

Provides reusable dependencies for configuration, the caller's session, the
per-request HTTP client and the aggregation pipeline. Endpoints declare what they
need through the ``*Dep`` aliases, and tests replace any link of the chain with
``app.dependency_overrides``.

Session interface:
    Authentication itself is handled by the dashboard's auth layer, which proxies
    requests here with the session's Google access token in the
    ``Authorization: Bearer <token>`` header and the signed-in user's email in
    ``X-User-Email``. A request without an ``Authorization`` header has no
    session.

Usage Examples:
    @router.get("/ga4")
    async def get_ga4(aggregator: AggregatorDep, token: AccessTokenDep):
        ...

    # In tests
    app.dependency_overrides[get_settings_dependency] = lambda: test_settings
"""

import logging
from dataclasses import dataclass
from typing import Annotated, AsyncGenerator, Optional

import httpx
from fastapi import Depends, Header
from pydantic import ValidationError

from marketing_dashboard.core.config import Settings, get_settings
from marketing_dashboard.core.exceptions import (
    MISSING_TOKEN_MESSAGE,
    NOT_AUTHENTICATED_MESSAGE,
    AuthError,
    ConfigurationError,
)
from marketing_dashboard.services.aggregator import Aggregator
from marketing_dashboard.services.report_client import ReportClient, validate_token

logger = logging.getLogger(__name__)


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Raises:
        ConfigurationError: If the settings cannot be loaded, typically because
            GA4_PROPERTY_ID is not set.

    Note:
        Thin wrapper around get_settings() so tests can override it:

        app.dependency_overrides[get_settings_dependency] = lambda: mock_settings
    """
    try:
        return get_settings()
    except ValidationError as e:
        fields = [str(error["loc"][0]).upper() for error in e.errors() if error.get("loc")]
        logger.error(f"Invalid settings: {', '.join(fields) or e}")
        if not fields or "GA4_PROPERTY_ID" in fields:
            raise ConfigurationError("GA4 property is not configured") from e
        raise ConfigurationError(f"Invalid configuration: {', '.join(fields)}") from e


SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]


# =============================================================================
# Session Dependencies
# =============================================================================

@dataclass(frozen=True)
class UserSession:
    """Session forwarded by the auth layer."""
    access_token: str
    email: Optional[str] = None


async def get_current_session(
    authorization: Annotated[Optional[str], Header()] = None,
    x_user_email: Annotated[Optional[str], Header()] = None,
) -> Optional[UserSession]:
    """
    Read the forwarded session from request headers.

    Returns:
        None when no ``Authorization`` header is present. Otherwise a session
        whose ``access_token`` is empty if the header carries no bearer token.
    """
    if authorization is None:
        return None
    scheme, _, credentials = authorization.strip().partition(" ")
    token = credentials.strip() if scheme.lower() == "bearer" else ""
    return UserSession(access_token=token, email=x_user_email)


SessionDep = Annotated[Optional[UserSession], Depends(get_current_session)]


async def require_access_token(session: SessionDep) -> str:
    """
    Return the session's access token, or fail with a 401.

    Raises:
        AuthError: No session, no token in the session, or a malformed token.
    """
    if session is None:
        raise AuthError(NOT_AUTHENTICATED_MESSAGE)
    if not session.access_token:
        raise AuthError(MISSING_TOKEN_MESSAGE)
    return validate_token(session.access_token)


AccessTokenDep = Annotated[str, Depends(require_access_token)]


# =============================================================================
# Pipeline Dependencies
# =============================================================================

async def get_http_client(settings: SettingsDep) -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    Yield an HTTP client scoped to the current request.

    The client is closed when the request completes, abandoning any upstream
    call still in flight.
    """
    async with httpx.AsyncClient(timeout=settings.ga4_request_timeout_seconds) as client:
        yield client


HttpClientDep = Annotated[httpx.AsyncClient, Depends(get_http_client)]


def get_aggregator(settings: SettingsDep, http_client: HttpClientDep) -> Aggregator:
    """Build the aggregation pipeline for one request."""
    return Aggregator(settings, ReportClient(http_client, settings))


AggregatorDep = Annotated[Aggregator, Depends(get_aggregator)]
