"""
Tests for the report-aggregation pipeline.

Test Categories:
- TestResolveWindow: default and explicit windows
- TestLivePayload: every facet answered by GA4
- TestFacetFallback: per-facet recovery and debug bookkeeping
- TestMandatoryFailures: KPI / CTA totals errors abort the request
- TestAggregatorBehaviour: idempotence, request fan-out, custom policy tables
"""

from datetime import date

import httpx
import pytest

from marketing_dashboard.core.exceptions import (
    ExpiredTokenError,
    InvalidWindowError,
    PipelineError,
)
from marketing_dashboard.models.enums import DataSource, Facet
from marketing_dashboard.services.aggregator import Aggregator, resolve_window
from marketing_dashboard.services.report_client import ReportClient
from marketing_dashboard.tests.conftest import VALID_TOKEN, FakeGA4, ga4_rows


def _error_response(status: int, message: str) -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": status, "message": message}})


# ============================================================
# WINDOW RESOLUTION
# ============================================================

class TestResolveWindow:

    def test_defaults_to_last_week(self) -> None:
        window = resolve_window(None, None, today=date(2026, 10, 18))
        assert window.start == date(2026, 10, 11)
        assert window.end == date(2026, 10, 18)

    def test_start_defaults_relative_to_end(self) -> None:
        window = resolve_window(None, date(2026, 1, 13), default_days=30)
        assert window.start == date(2025, 12, 14)

    def test_explicit_window(self) -> None:
        window = resolve_window(date(2026, 1, 1), date(2026, 1, 31))
        assert (window.start, window.end) == (date(2026, 1, 1), date(2026, 1, 31))

    def test_start_after_end(self) -> None:
        with pytest.raises(InvalidWindowError):
            resolve_window(date(2026, 2, 1), date(2026, 1, 31))

    def test_start_after_default_end(self) -> None:
        with pytest.raises(InvalidWindowError):
            resolve_window(date(2026, 10, 20), None, today=date(2026, 10, 18))


# ============================================================
# LIVE PAYLOAD
# ============================================================

@pytest.mark.asyncio
class TestLivePayload:

    async def test_kpis(self, make_aggregator, fake_ga4, window) -> None:
        payload = await make_aggregator(fake_ga4).aggregate(VALID_TOKEN, window)

        assert payload.kpis.model_dump() == {
            "sessions": 2847,
            "sessionsChange": 12.4,
            "ctaClicks": 200,
            "ctaClicksChange": 25.0,
            "avgTimeOnPage": "2:34",
            "avgTimeChange": 8.2,
            "bounceRate": 42,
            "bounceRateChange": -6.7,
        }

    async def test_every_facet_is_live(self, make_aggregator, fake_ga4, window) -> None:
        payload = await make_aggregator(fake_ga4).aggregate(VALID_TOKEN, window)

        assert payload.debug.perFacetDataSource == {facet.value: DataSource.LIVE for facet in Facet}
        assert [s.source for s in payload.sources] == ["google / organic", "facebook / paid"]
        assert [d.device for d in payload.devices] == ["mobile", "desktop", "tablet"]
        assert [p.date for p in payload.dailyData] == ["07/01", "08/01"]
        assert [p.position for p in payload.ctaPositions] == ["Hero", "Sticky Bottom", "Other (untagged)"]
        assert [b.depth for b in payload.scrollDepth] == ["25%", "50%"]
        assert [b.percentage for b in payload.timeOnPage] == ["56%", "33%", "0%", "0%", "11%"]
        assert [s.section for s in payload.sectionViews] == ["Hero", "How It Works"]

    async def test_cta_analysis_uses_final_positions(self, make_aggregator, fake_ga4, window) -> None:
        payload = await make_aggregator(fake_ga4).aggregate(VALID_TOKEN, window)

        assert [i.title for i in payload.ctaAnalysis] == [
            "Hero = 60% of clicks",
            "Sticky CTA needs optimization",
            "Hero: 120 clicks",
        ]

    async def test_debug_windows(self, make_aggregator, fake_ga4, window) -> None:
        payload = await make_aggregator(fake_ga4).aggregate(VALID_TOKEN, window)

        assert payload.debug.resolvedWindow.start == date(2026, 1, 7)
        assert payload.debug.resolvedWindow.end == date(2026, 1, 13)
        assert payload.debug.comparisonWindow.start == date(2025, 12, 31)
        assert payload.debug.comparisonWindow.end == date(2026, 1, 6)


# ============================================================
# FACET FALLBACK
# ============================================================

@pytest.mark.asyncio
class TestFacetFallback:

    async def test_failed_cta_positions_use_estimates(
        self, make_aggregator, live_responses, window
    ) -> None:
        live_responses["customEvent:cta_location"] = _error_response(400, "Field customEvent:cta_location is not a valid dimension.")
        payload = await make_aggregator(FakeGA4(live_responses)).aggregate(VALID_TOKEN, window)

        assert payload.debug.perFacetDataSource["ctaPositions"] == DataSource.FALLBACK
        assert payload.ctaPositions[0].model_dump() == {
            "position": "Hero", "clicks": 90, "percentage": "45%", "conversionRate": "8.2%"
        }
        assert payload.debug.perFacetDataSource["scrollDepth"] == DataSource.LIVE

    async def test_zero_cta_rows_use_estimates(self, make_aggregator, live_responses, window) -> None:
        live_responses["customEvent:cta_location"] = {"rowCount": 0}
        payload = await make_aggregator(FakeGA4(live_responses)).aggregate(VALID_TOKEN, window)

        assert payload.debug.perFacetDataSource["ctaPositions"] == DataSource.FALLBACK
        assert [p.position for p in payload.ctaPositions] == ["Hero", "Sticky CTA", "Nav"]
        assert payload.ctaAnalysis[0].title == "Hero = 45% of clicks"

    async def test_sentinel_only_scroll_rows_use_estimates(
        self, make_aggregator, live_responses, window
    ) -> None:
        live_responses["customEvent:percent"] = ga4_rows([("(not set)", 40)])
        payload = await make_aggregator(FakeGA4(live_responses)).aggregate(VALID_TOKEN, window)

        assert payload.debug.perFacetDataSource["scrollDepth"] == DataSource.FALLBACK
        assert [b.users for b in payload.scrollDepth] == [2448, 1993, 1224, 683]

    async def test_failed_traffic_facet_is_empty(self, make_aggregator, live_responses, window) -> None:
        live_responses["sessionSourceMedium"] = httpx.ReadTimeout("timed out")
        payload = await make_aggregator(FakeGA4(live_responses)).aggregate(VALID_TOKEN, window)

        assert payload.sources == []
        assert payload.debug.perFacetDataSource["sources"] == DataSource.FALLBACK
        assert payload.debug.perFacetDataSource["devices"] == DataSource.LIVE

    async def test_every_optional_facet_failing(self, make_aggregator, live_responses, window) -> None:
        responses = {
            "kpis": live_responses["kpis"],
            "cta_totals": live_responses["cta_totals"],
        }
        for key in live_responses:
            responses.setdefault(key, _error_response(500, "Internal error encountered."))
        payload = await make_aggregator(FakeGA4(responses)).aggregate(VALID_TOKEN, window)

        assert set(payload.debug.perFacetDataSource.values()) == {DataSource.FALLBACK}
        assert payload.ctaPositions
        assert payload.scrollDepth
        assert len(payload.timeOnPage) == 5
        assert len(payload.sectionViews) == 6
        assert payload.kpis.sessions == 2847

    async def test_expired_token_on_optional_facet_falls_back(
        self, make_aggregator, live_responses, window
    ) -> None:
        live_responses["customEvent:section_name"] = _error_response(401, "Request had invalid credentials.")
        payload = await make_aggregator(FakeGA4(live_responses)).aggregate(VALID_TOKEN, window)

        assert payload.debug.perFacetDataSource["sectionViews"] == DataSource.FALLBACK


# ============================================================
# MANDATORY FAILURES
# ============================================================

@pytest.mark.asyncio
class TestMandatoryFailures:

    async def test_kpi_error_aborts(self, make_aggregator, live_responses, window) -> None:
        live_responses["kpis"] = _error_response(500, "Internal error encountered.")

        with pytest.raises(PipelineError) as exc_info:
            await make_aggregator(FakeGA4(live_responses)).aggregate(VALID_TOKEN, window)
        assert exc_info.value.message == "Internal error encountered."
        assert exc_info.value.status_code == 500

    async def test_cta_totals_timeout_aborts(self, make_aggregator, live_responses, window) -> None:
        live_responses["cta_totals"] = httpx.ReadTimeout("timed out")

        with pytest.raises(PipelineError) as exc_info:
            await make_aggregator(FakeGA4(live_responses)).aggregate(VALID_TOKEN, window)
        assert exc_info.value.message == "GA4 API timed out after 10s"

    async def test_expired_token_propagates(self, make_aggregator, live_responses, window) -> None:
        live_responses["kpis"] = _error_response(401, "Request had invalid credentials.")

        with pytest.raises(ExpiredTokenError):
            await make_aggregator(FakeGA4(live_responses)).aggregate(VALID_TOKEN, window)

    async def test_no_optional_facet_is_queried(self, make_aggregator, live_responses, window) -> None:
        live_responses["cta_totals"] = _error_response(503, "The service is currently unavailable.")
        fake = FakeGA4(live_responses)

        with pytest.raises(PipelineError):
            await make_aggregator(fake).aggregate(VALID_TOKEN, window)
        assert len(fake.requests) == 2


# ============================================================
# AGGREGATOR BEHAVIOUR
# ============================================================

@pytest.mark.asyncio
class TestAggregatorBehaviour:

    async def test_idempotent(self, make_aggregator, fake_ga4, window) -> None:
        aggregator = make_aggregator(fake_ga4)

        first = await aggregator.aggregate(VALID_TOKEN, window)
        second = await aggregator.aggregate(VALID_TOKEN, window)

        assert first.model_dump() == second.model_dump()

    async def test_one_request_per_report(self, make_aggregator, fake_ga4, window) -> None:
        await make_aggregator(fake_ga4).aggregate(VALID_TOKEN, window)

        assert len(fake_ga4.requests) == 9
        kpi_body = next(body for body in fake_ga4.bodies() if "dimensions" not in body and "dimensionFilter" not in body)
        assert kpi_body["dateRanges"][1] == {"startDate": "2025-12-31", "endDate": "2026-01-06"}

    async def test_empty_policy_table(self, settings, fake_ga4, window) -> None:
        http_client = httpx.AsyncClient(transport=fake_ga4.transport())
        aggregator = Aggregator(settings, ReportClient(http_client, settings), policies=[])

        payload = await aggregator.aggregate(VALID_TOKEN, window)

        assert payload.debug.perFacetDataSource == {}
        assert payload.ctaPositions == []
        assert payload.ctaAnalysis[0].title == "No data"
        assert len(fake_ga4.requests) == 2
