"""
Pytest configuration and shared fixtures for the marketing dashboard tests.

Provides:
- Test settings that do not depend on the process environment
- A fake GA4 Data API built on ``httpx.MockTransport`` that routes each
  ``runReport`` body to a canned response by its first dimension / event filter
- Helpers producing GA4-shaped JSON rows
- A FastAPI ``TestClient`` wired to the fake API through dependency overrides

Dependencies:
- pytest
- pytest-asyncio
- httpx
"""

import json
from datetime import date
from typing import Any, Callable, Dict, Generator, List, Optional, Sequence

import httpx
import pytest
from fastapi.testclient import TestClient

from marketing_dashboard.core.config import Settings
from marketing_dashboard.core.dependencies import get_http_client, get_settings_dependency
from marketing_dashboard.main import app
from marketing_dashboard.models.report import DateWindow
from marketing_dashboard.services.aggregator import Aggregator
from marketing_dashboard.services.report_client import ReportClient


VALID_TOKEN = "ya29.a0AfH6SMBexampleaccesstoken"
PROPERTY_ID = "456789123"


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        'markers',
        'integration: marks tests exercising the full HTTP stack'
    )


# ============================================================
# GA4 RESPONSE HELPERS
# ============================================================

def ga4_rows(rows: Sequence[Sequence[Any]], dimensions: int = 1) -> Dict[str, Any]:
    """
    Build a GA4 ``runReport`` response body.

    Args:
        rows: Each row lists its dimension values first, then metric values.
        dimensions: How many leading values of each row are dimensions.

    Example:
        >>> ga4_rows([("mobile", 120, 0.41)])["rows"][0]["metricValues"]
        [{'value': '120'}, {'value': '0.41'}]
    """
    return {
        "rows": [
            {
                "dimensionValues": [{"value": str(v)} for v in row[:dimensions]],
                "metricValues": [{"value": str(v)} for v in row[dimensions:]],
            }
            for row in rows
        ]
    }


def ga4_range_rows(current: Sequence[Any], previous: Optional[Sequence[Any]] = None) -> Dict[str, Any]:
    """Build a two-date-range totals response tagged with ``date_range_N``."""
    rows = [("date_range_0", *current)]
    if previous is not None:
        rows.append(("date_range_1", *previous))
    return ga4_rows(rows)


def route_key(body: Dict[str, Any]) -> str:
    """
    Name the report a request body asks for.

    Reports with dimensions are keyed by their first dimension; totals reports
    by ``kpis`` or ``cta_totals``.
    """
    dimensions = body.get("dimensions") or []
    if dimensions:
        return dimensions[0]["name"]
    if "dimensionFilter" in body:
        return "cta_totals"
    return "kpis"


class FakeGA4:
    """
    Canned GA4 Data API.

    ``responses`` maps a route key to one of:
    - a dict: returned as a 200 JSON body
    - an ``httpx.Response``: returned as is
    - an exception instance: raised from the transport
    Unknown keys answer with an empty report.
    """

    def __init__(self, responses: Optional[Dict[str, Any]] = None):
        self.responses: Dict[str, Any] = dict(responses or {})
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = json.loads(request.content)
        response = self.responses.get(route_key(body), {})
        if isinstance(response, Exception):
            raise response
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)

    def bodies(self) -> List[Dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def settings() -> Settings:
    """Settings independent of the environment."""
    return Settings(
        ga4_property_id=f"properties/{PROPERTY_ID}",
        ga4_api_base="https://analyticsdata.test/v1beta",
        ga4_request_timeout_seconds=10.0,
        default_window_days=7,
    )


@pytest.fixture
def window() -> DateWindow:
    """A one-week window."""
    return DateWindow(start=date(2026, 1, 7), end=date(2026, 1, 13))


@pytest.fixture
def live_responses() -> Dict[str, Any]:
    """Realistic responses for every report of the dashboard."""
    return {
        "kpis": ga4_range_rows((2847, 0.42, 154.0, 2100), (2533, 0.45, 142.3, 1900)),
        "cta_totals": ga4_range_rows((200,), (160,)),
        "sessionSourceMedium": ga4_rows([
            ("google / organic", 1234, 987, 890),
            ("facebook / paid", 567, 456, 670),
        ]),
        "deviceCategory": ga4_rows([
            ("mobile", 1594, 0.45),
            ("desktop", 1064, 0.38),
            ("tablet", 189, 0.41),
        ]),
        "date": ga4_rows([
            ("20260107", 378, 420),
            ("20260108", 412, 480),
        ]),
        "customEvent:cta_location": ga4_rows([
            ("hero", 120),
            ("sticky_bottom", 50),
            ("(not set)", 30),
        ]),
        "customEvent:percent": ga4_rows([
            ("25", 2400),
            ("50", 1900),
            ("(not set)", 10),
        ]),
        "customEvent:seconds": ga4_rows([
            ("10", 5),
            ("45", 3),
            ("700", 1),
        ]),
        "customEvent:section_name": ga4_rows([
            ("hero", 2000),
            ("how-it_works", 1000),
        ]),
    }


@pytest.fixture
def fake_ga4(live_responses: Dict[str, Any]) -> FakeGA4:
    return FakeGA4(live_responses)


@pytest.fixture
def make_aggregator(settings: Settings) -> Callable[[FakeGA4], Aggregator]:
    """
    Factory building an aggregator whose HTTP client talks to a FakeGA4.

    Clients are not closed explicitly; MockTransport holds no connections.
    """
    def _make(fake: FakeGA4) -> Aggregator:
        http_client = httpx.AsyncClient(transport=fake.transport())
        return Aggregator(settings, ReportClient(http_client, settings))
    return _make


@pytest.fixture
def api_client(settings: Settings, fake_ga4: FakeGA4) -> Generator[TestClient, None, None]:
    """TestClient whose GA4 calls are answered by ``fake_ga4``."""
    async def _http_client():
        async with httpx.AsyncClient(transport=fake_ga4.transport()) as client:
            yield client

    app.dependency_overrides[get_settings_dependency] = lambda: settings
    app.dependency_overrides[get_http_client] = _http_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
