"""
FastAPI router for the GA4 dashboard endpoints.

Endpoints:
- GET /api/ga4: Live dashboard payload for a date window
- GET /api/ga4/demo: Static demo payload for dashboards without a session

Errors are raised as ``DashboardError`` subclasses and rendered as
``{"error": message}`` by the handlers registered in ``marketing_dashboard.main``:

- 400: startDate after endDate
- 401: no session, no token, malformed token, or token rejected by GA4
- 500: KPI or CTA totals could not be fetched
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Query

from marketing_dashboard.core.dependencies import AccessTokenDep, AggregatorDep, SessionDep
from marketing_dashboard.models import AggregatedPayload, ErrorResponse
from marketing_dashboard.services.aggregator import resolve_window
from marketing_dashboard.services.demo_data import demo_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ga4", tags=["ga4"])


@router.get(
    "",
    response_model=AggregatedPayload,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def get_ga4_dashboard(
    token: AccessTokenDep,
    session: SessionDep,
    aggregator: AggregatorDep,
    start_date: Optional[date] = Query(None, alias="startDate", description="First day, YYYY-MM-DD"),
    end_date: Optional[date] = Query(None, alias="endDate", description="Last day, YYYY-MM-DD"),
) -> AggregatedPayload:
    """
    Aggregate the GA4 dashboard for the requested window.

    Both dates are optional; the default window is the last
    ``default_window_days`` days ending today. Facets that cannot be fetched
    are replaced by estimates and flagged in ``debug.perFacetDataSource``.

    Returns:
        AggregatedPayload: KPIs, facets, CTA analysis and debug metadata.
    """
    window = resolve_window(
        start_date,
        end_date,
        default_days=aggregator.settings.default_window_days,
    )
    logger.info(
        f"GA4 dashboard requested by {session.email if session else 'unknown'} "
        f"for {window.start}..{window.end}"
    )
    return await aggregator.aggregate(token, window)


@router.get("/demo", response_model=AggregatedPayload)
async def get_ga4_demo() -> AggregatedPayload:
    """
    Return the static demo dataset.

    Used by the dashboard when the visitor is not signed in.
    """
    return demo_payload()
