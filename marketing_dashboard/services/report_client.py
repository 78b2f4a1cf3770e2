"""
GA4 Data API report client.

Issues a single ``runReport`` call per request with ``httpx`` and turns every
failure mode into one of the typed errors of ``marketing_dashboard.core.exceptions``:

- malformed token            -> AuthError (no network call is made)
- 401 / authentication error -> ExpiredTokenError
- any other non-2xx          -> RemoteApiError(status, remote message)
- timeout / transport error  -> UpstreamTimeoutError

No retries are attempted; deciding whether to fall back is left to the caller.

Usage:
    async with httpx.AsyncClient() as http_client:
        client = ReportClient(http_client, settings)
        result = await client.run_report(token, query)
"""

import json
import logging
from typing import Any, Optional

import httpx

from marketing_dashboard.core.config import Settings
from marketing_dashboard.core.exceptions import (
    AuthError,
    ExpiredTokenError,
    RemoteApiError,
    UpstreamTimeoutError,
)
from marketing_dashboard.models.report import ReportQuery, ReportResult

logger = logging.getLogger(__name__)

# Shortest string accepted as an OAuth access token
MIN_TOKEN_LENGTH: int = 20


def validate_token(token: Any) -> str:
    """
    Check that ``token`` looks like a bearer token.

    Raises:
        AuthError: If the token is missing, not a string, or too short.
    """
    if not token or not isinstance(token, str) or len(token) < MIN_TOKEN_LENGTH:
        raise AuthError()
    return token


def extract_error_message(response: httpx.Response) -> str:
    """
    Pick the most useful error text out of a failed response.

    Preference order: ``error.message`` from a JSON body, the raw body, and a
    generic ``GA4 API error: <status> <reason>`` line.
    """
    body = response.text
    try:
        data = json.loads(body)
    except ValueError:
        data = None

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    elif body and data is None:
        return body

    return f"GA4 API error: {response.status_code} {response.reason_phrase}".rstrip()


class ReportClient:
    """
    Thin wrapper around ``POST {api_base}/{property}:runReport``.

    Args:
        http_client: Client owned by the caller; it is not closed here.
        settings: Supplies the property, API base URL and per-call timeout.
    """

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings):
        self.http_client = http_client
        self.property_path = settings.property_path
        self.url = f"{settings.ga4_api_base.rstrip('/')}/{self.property_path}:runReport"
        self.timeout = settings.ga4_request_timeout_seconds

    async def run_report(self, token: Optional[str], query: ReportQuery) -> ReportResult:
        """
        Run one report.

        Args:
            token: OAuth access token with the analytics.readonly scope.
            query: Report definition.

        Returns:
            ReportResult: Parsed rows; empty when nothing matched.

        Raises:
            AuthError: Token is missing or malformed.
            ExpiredTokenError: Upstream rejected the token.
            RemoteApiError: Upstream answered with another non-success status.
            UpstreamTimeoutError: No answer within the timeout, or the connection failed.
        """
        access_token = validate_token(token)

        try:
            response = await self.http_client.post(
                self.url,
                json=query.to_body(),
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            logger.warning(f"GA4 runReport timed out after {self.timeout}s for {self.property_path}")
            raise UpstreamTimeoutError(0, f"GA4 API timed out after {self.timeout:g}s") from e
        except httpx.HTTPError as e:
            logger.warning(f"GA4 runReport transport error for {self.property_path}: {e}")
            raise UpstreamTimeoutError(0, f"GA4 API unreachable: {e}") from e

        if not response.is_success:
            message = extract_error_message(response)
            logger.error(
                f"GA4 API error: status={response.status_code} property={self.property_path} "
                f"token_length={len(access_token)} message={message}"
            )
            if response.status_code == 401 or "authentication" in message:
                raise ExpiredTokenError(upstream_message=message)
            raise RemoteApiError(response.status_code, message)

        try:
            payload = response.json()
        except ValueError:
            logger.warning(f"GA4 runReport returned a non-JSON body for {self.property_path}")
            payload = None
        return ReportResult.from_json(payload)
