"""
GA4 report-aggregation pipeline.

Builds the complete dashboard payload for one date window:

1. Resolve the comparison window (same length, immediately before).
2. Fetch KPI totals and CTA totals for both windows. These are mandatory:
   auth errors propagate unchanged, anything else becomes a PipelineError.
3. Evaluate every entry of ``FACET_POLICIES`` concurrently. A facet whose query
   raises or whose result is unusable gets its fallback records instead, and the
   path taken is recorded in ``debug.perFacetDataSource``.
4. Run the CTA insight generator over the finalized CTA positions.

The aggregator holds no state between calls; one instance is built per request.
"""

import asyncio
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel

from marketing_dashboard.core.config import Settings
from marketing_dashboard.core.exceptions import AuthError, PipelineError
from marketing_dashboard.models.enums import DataSource, Facet
from marketing_dashboard.models.report import DateWindow
from marketing_dashboard.models.schemas import AggregatedPayload, DebugInfo, WindowInfo
from marketing_dashboard.services.cta_insights import generate_cta_analysis
from marketing_dashboard.services.facets import (
    FACET_POLICIES,
    CtaTotals,
    FacetContext,
    FacetPolicy,
    KpiTotals,
    build_kpis,
    fetch_cta_totals,
    fetch_kpi_totals,
)
from marketing_dashboard.services.report_client import ReportClient

logger = logging.getLogger(__name__)


def resolve_window(
    start: Optional[date],
    end: Optional[date],
    default_days: int = 7,
    today: Optional[date] = None,
) -> DateWindow:
    """
    Build the reporting window from optional query parameters.

    Args:
        start: Requested first day; defaults to ``end - default_days``.
        end: Requested last day; defaults to today.
        default_days: Days between start and end when start is omitted.
        today: Reference date, for tests.

    Raises:
        InvalidWindowError: If the resolved start is after the resolved end.
    """
    resolved_end = end or today or date.today()
    resolved_start = start or resolved_end - timedelta(days=default_days)
    return DateWindow(start=resolved_start, end=resolved_end)


class Aggregator:
    """
    Orchestrates all facet fetchers for one request.

    Args:
        settings: Injected configuration.
        client: Report client bound to the request's HTTP client.
        policies: Optional facet policy table, defaults to ``FACET_POLICIES``.
    """

    def __init__(
        self,
        settings: Settings,
        client: ReportClient,
        policies: Optional[List[FacetPolicy]] = None,
    ):
        self.settings = settings
        self.client = client
        self.policies = policies if policies is not None else FACET_POLICIES

    async def aggregate(self, token: str, window: DateWindow) -> AggregatedPayload:
        """
        Produce the dashboard payload for ``window``.

        Raises:
            AuthError: Token missing, malformed or rejected upstream.
            PipelineError: KPI or CTA totals could not be fetched.
        """
        comparison = window.comparison()
        logger.info(
            f"Aggregating GA4 dashboard for {window.start}..{window.end} "
            f"(comparison {comparison.start}..{comparison.end})"
        )

        kpi_totals, cta_totals = await self._fetch_mandatory(token, window, comparison)

        ctx = FacetContext(
            window=window,
            sessions=kpi_totals.sessions,
            cta_clicks=cta_totals.clicks,
        )
        resolved = await asyncio.gather(
            *(self._resolve_facet(policy, token, ctx) for policy in self.policies)
        )

        records: Dict[str, List[BaseModel]] = {}
        sources: Dict[str, DataSource] = {}
        for policy, (facet_records, data_source) in zip(self.policies, resolved):
            records[policy.facet.value] = facet_records
            sources[policy.facet.value] = data_source

        cta_positions = records.get(Facet.CTA_POSITIONS.value, [])

        return AggregatedPayload(
            kpis=build_kpis(kpi_totals, cta_totals),
            sources=records.get(Facet.SOURCES.value, []),
            devices=records.get(Facet.DEVICES.value, []),
            dailyData=records.get(Facet.DAILY_DATA.value, []),
            ctaPositions=cta_positions,
            ctaAnalysis=generate_cta_analysis(cta_positions),
            scrollDepth=records.get(Facet.SCROLL_DEPTH.value, []),
            timeOnPage=records.get(Facet.TIME_ON_PAGE.value, []),
            sectionViews=records.get(Facet.SECTION_VIEWS.value, []),
            debug=DebugInfo(
                perFacetDataSource=sources,
                resolvedWindow=WindowInfo(start=window.start, end=window.end),
                comparisonWindow=WindowInfo(start=comparison.start, end=comparison.end),
            ),
        )

    async def _fetch_mandatory(
        self, token: str, window: DateWindow, comparison: DateWindow
    ) -> Tuple[KpiTotals, CtaTotals]:
        # Both calls are awaited to completion so neither is left running on failure
        kpi_totals, cta_totals = await asyncio.gather(
            fetch_kpi_totals(self.client, token, window, comparison),
            fetch_cta_totals(self.client, token, window, comparison),
            return_exceptions=True,
        )
        errors = [r for r in (kpi_totals, cta_totals) if isinstance(r, BaseException)]
        if not errors:
            return kpi_totals, cta_totals

        for error in errors:
            if isinstance(error, AuthError) or not isinstance(error, Exception):
                raise error

        error = errors[0]
        logger.error(f"Mandatory GA4 report failed: {error}", exc_info=error)
        message = getattr(error, "message", None) or str(error) or "Failed to fetch GA4 data"
        raise PipelineError(message) from error

    async def _resolve_facet(
        self, policy: FacetPolicy, token: str, ctx: FacetContext
    ) -> Tuple[List[BaseModel], DataSource]:
        """Evaluate one policy: live records, or its fallback."""
        try:
            result = await self.client.run_report(token, policy.build_query(ctx.window))
            live = policy.transform(result, ctx)
        except Exception as e:
            logger.warning(f"GA4 facet {policy.facet.value} failed, using fallback: {e}")
            return list(policy.fallback(ctx)), DataSource.FALLBACK

        if live is None:
            logger.info(f"GA4 facet {policy.facet.value} returned no usable rows, using fallback")
            return list(policy.fallback(ctx)), DataSource.FALLBACK
        return list(live), DataSource.LIVE
