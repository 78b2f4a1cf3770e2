"""
Facet fetchers for the GA4 dashboard payload.

A facet is one named slice of the payload (traffic sources, devices, scroll
depth, ...). Two of them are mandatory and feed everything else:

- KPI totals: sessions, bounce rate and average duration for both windows
- CTA totals: ``cta_click`` events for both windows

The remaining seven are described declaratively by a ``FacetPolicy``: how to
build the query, how to turn the result into records, and what to substitute when
the live data is unusable. ``FACET_POLICIES`` is the fallback policy table the
aggregator evaluates uniformly; no facet carries its own try/except.

Fallback estimates reuse fixed ratios observed on the landing page, applied to
the already-known session and CTA-click totals.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from marketing_dashboard.models.enums import Facet
from marketing_dashboard.models.report import NOT_SET, DateWindow, ReportQuery, ReportResult
from marketing_dashboard.models.schemas import (
    CtaPosition,
    DailyPoint,
    DeviceBreakdown,
    KPISet,
    ScrollDepthBucket,
    SectionView,
    TimeOnPageBucket,
    TrafficSource,
)
from marketing_dashboard.services.metrics import (
    first_metric,
    format_duration,
    format_percent,
    percent_change,
    percent_of_total,
    round_half_up,
    title_case,
)
from marketing_dashboard.services.report_client import ReportClient


# =============================================================================
# Constants
# =============================================================================

CTA_CLICK_EVENT = "cta_click"
SCROLL_DEPTH_EVENT = "scroll_depth"
TIME_ON_PAGE_EVENT = "time_on_page"
SECTION_VIEW_EVENT = "section_view"

# Label shown for CTA clicks without a cta_location parameter
UNTAGGED_POSITION = "Other (untagged)"

# Share of events assumed to be CTA clicks when no per-row breakdown exists
CTA_EVENT_SHARE: float = 0.1

TOP_ROWS_LIMIT: int = 10

# (position, share of CTA clicks, display conversion rate)
CTA_POSITION_FALLBACK: List[Tuple[str, float, str]] = [
    ("Hero", 0.45, "8.2%"),
    ("Sticky CTA", 0.28, "7.1%"),
    ("Nav", 0.19, "5.4%"),
]

# (depth, share of sessions)
SCROLL_DEPTH_FALLBACK: List[Tuple[str, float]] = [
    ("25%", 0.86),
    ("50%", 0.70),
    ("75%", 0.43),
    ("100%", 0.24),
]

# (label, upper bound in seconds, exclusive); the last bucket is unbounded
TIME_ON_PAGE_BUCKETS: List[Tuple[str, Optional[int]]] = [
    ("0-30s", 30),
    ("30s-1m", 60),
    ("1-2m", 120),
    ("2-5m", 300),
    ("5m+", None),
]

TIME_ON_PAGE_FALLBACK: Dict[str, float] = {
    "0-30s": 0.20,
    "30s-1m": 0.29,
    "1-2m": 0.33,
    "2-5m": 0.14,
    "5m+": 0.04,
}

SECTION_VIEW_FALLBACK: List[Tuple[str, float]] = [
    ("Hero", 1.0),
    ("Benefits", 0.81),
    ("How It Works", 0.59),
    ("Testimonials", 0.40),
    ("Pricing", 0.31),
    ("FAQ", 0.22),
]


def _estimate(total: int, share: float) -> int:
    return int(round_half_up(total * share))


# =============================================================================
# Mandatory facets: KPIs and CTA totals
# =============================================================================


@dataclass(frozen=True)
class KpiTotals:
    """Property-level totals for the selected and comparison windows."""
    sessions: int
    sessions_prev: int
    bounce_rate: float
    bounce_rate_prev: float
    avg_duration: float
    avg_duration_prev: float


@dataclass(frozen=True)
class CtaTotals:
    clicks: int
    clicks_prev: int


def kpi_query(window: DateWindow, comparison: DateWindow) -> ReportQuery:
    return ReportQuery(
        date_ranges=[window, comparison],
        metrics=["sessions", "bounceRate", "averageSessionDuration", "activeUsers"],
    )


def cta_totals_query(window: DateWindow, comparison: DateWindow) -> ReportQuery:
    return ReportQuery(
        date_ranges=[window, comparison],
        metrics=["eventCount"],
        event_name=CTA_CLICK_EVENT,
    )


def window_total(result: ReportResult, range_index: int, metric_index: int) -> float:
    """
    Read one window's total from a totals report.

    A report over both windows tags its rows with ``date_range_N``. A report that
    came back untagged covered only the selected window: its first row is that
    window and the comparison window reads as 0.
    """
    if not result.is_range_tagged:
        return first_metric(result, metric_index) if range_index == 0 else 0.0
    return result.range_metric(range_index, metric_index)


def parse_kpi_totals(result: ReportResult) -> KpiTotals:
    """
    Read KPI totals from a two-range report.

    bounceRate arrives as a ratio and is converted to percent here.
    """
    return KpiTotals(
        sessions=int(window_total(result, 0, 0)),
        sessions_prev=int(window_total(result, 1, 0)),
        bounce_rate=window_total(result, 0, 1) * 100,
        bounce_rate_prev=window_total(result, 1, 1) * 100,
        avg_duration=window_total(result, 0, 2),
        avg_duration_prev=window_total(result, 1, 2),
    )


def parse_cta_totals(result: ReportResult) -> CtaTotals:
    return CtaTotals(
        clicks=int(window_total(result, 0, 0)),
        clicks_prev=int(window_total(result, 1, 0)),
    )


async def fetch_kpi_totals(
    client: ReportClient, token: str, window: DateWindow, comparison: DateWindow
) -> KpiTotals:
    result = await client.run_report(token, kpi_query(window, comparison))
    return parse_kpi_totals(result)


async def fetch_cta_totals(
    client: ReportClient, token: str, window: DateWindow, comparison: DateWindow
) -> CtaTotals:
    result = await client.run_report(token, cta_totals_query(window, comparison))
    return parse_cta_totals(result)


def build_kpis(kpi: KpiTotals, cta: CtaTotals) -> KPISet:
    """
    Combine both mandatory reports into the KPI cards.

    Changes are computed on unrounded values; only the displayed bounce rate is
    rounded to an integer.
    """
    return KPISet(
        sessions=kpi.sessions,
        sessionsChange=percent_change(kpi.sessions, kpi.sessions_prev),
        ctaClicks=cta.clicks,
        ctaClicksChange=percent_change(cta.clicks, cta.clicks_prev),
        avgTimeOnPage=format_duration(kpi.avg_duration),
        avgTimeChange=percent_change(kpi.avg_duration, kpi.avg_duration_prev),
        bounceRate=int(round_half_up(kpi.bounce_rate)),
        bounceRateChange=percent_change(kpi.bounce_rate, kpi.bounce_rate_prev),
    )


# =============================================================================
# Fallback policy table
# =============================================================================


@dataclass(frozen=True)
class FacetContext:
    """Totals known once the mandatory facets resolved."""
    window: DateWindow
    sessions: int
    cta_clicks: int


# Returns None when the live result holds no usable data
Transform = Callable[[ReportResult, FacetContext], Optional[Sequence[BaseModel]]]


@dataclass(frozen=True)
class FacetPolicy:
    """
    Declarative description of one optional facet.

    Attributes:
        facet: Payload key.
        build_query: Report for the selected window.
        transform: Maps the live result to records, or None when it is unusable.
        fallback: Records substituted when the query raised or ``transform``
            returned None.
    """
    facet: Facet
    build_query: Callable[[DateWindow], ReportQuery]
    transform: Transform
    fallback: Callable[[FacetContext], List[BaseModel]]


def _no_fallback(ctx: FacetContext) -> List[BaseModel]:
    return []


# -----------------------------------------------------------------------------
# Traffic sources
# -----------------------------------------------------------------------------


def sources_query(window: DateWindow) -> ReportQuery:
    return ReportQuery(
        date_ranges=[window],
        dimensions=["sessionSourceMedium"],
        metrics=["sessions", "activeUsers", "eventCount"],
        order_by_metric="sessions",
        limit=TOP_ROWS_LIMIT,
    )


def transform_sources(result: ReportResult, ctx: FacetContext) -> List[TrafficSource]:
    """
    Map ``source / medium`` rows.

    CTA clicks are estimated from the source's event count, and the conversion
    rate is those clicks over the source's own sessions.
    """
    sources = []
    for row in result.rows:
        sessions = row.int_metric(0)
        cta_clicks = _estimate(row.int_metric(2), CTA_EVENT_SHARE)
        sources.append(
            TrafficSource(
                source=row.dimension(0),
                sessions=sessions,
                users=row.int_metric(1),
                ctaClicks=cta_clicks,
                conversionRate=format_percent(percent_of_total(cta_clicks, sessions, 1), 1),
            )
        )
    return sources


# -----------------------------------------------------------------------------
# Devices
# -----------------------------------------------------------------------------


def devices_query(window: DateWindow) -> ReportQuery:
    return ReportQuery(
        date_ranges=[window],
        dimensions=["deviceCategory"],
        metrics=["sessions", "bounceRate"],
        order_by_metric="sessions",
    )


def transform_devices(result: ReportResult, ctx: FacetContext) -> List[DeviceBreakdown]:
    total = sum(row.int_metric(0) for row in result.rows)
    return [
        DeviceBreakdown(
            device=row.dimension(0),
            sessions=row.int_metric(0),
            percentage=format_percent(percent_of_total(row.int_metric(0), total)),
            bounceRate=format_percent(row.metric(1) * 100),
        )
        for row in result.rows
    ]


# -----------------------------------------------------------------------------
# Daily trend
# -----------------------------------------------------------------------------


def daily_query(window: DateWindow) -> ReportQuery:
    return ReportQuery(
        date_ranges=[window],
        dimensions=["date"],
        metrics=["sessions", "eventCount"],
        order_by_dimension="date",
    )


def transform_daily(result: ReportResult, ctx: FacetContext) -> List[DailyPoint]:
    points = []
    for row in result.rows:
        day = row.dimension(0)  # YYYYMMDD
        points.append(
            DailyPoint(
                date=f"{day[6:8]}/{day[4:6]}",
                sessions=row.int_metric(0),
                ctaClicks=_estimate(row.int_metric(1), CTA_EVENT_SHARE),
            )
        )
    return points


# -----------------------------------------------------------------------------
# CTA positions
# -----------------------------------------------------------------------------


def cta_positions_query(window: DateWindow) -> ReportQuery:
    return ReportQuery(
        date_ranges=[window],
        dimensions=["customEvent:cta_location"],
        metrics=["eventCount"],
        event_name=CTA_CLICK_EVENT,
        order_by_metric="eventCount",
        limit=TOP_ROWS_LIMIT,
    )


def format_position(value: str) -> str:
    if not value or value == NOT_SET:
        return UNTAGGED_POSITION
    return title_case(value)


def transform_cta_positions(
    result: ReportResult, ctx: FacetContext
) -> Optional[List[CtaPosition]]:
    """
    Map clicks per ``cta_location``.

    Untagged clicks stay in the list under their own label. The conversion rate
    divides by the sessions of the whole property, not per position.
    """
    total = sum(row.int_metric(0) for row in result.rows)
    if total <= 0 or not result.valid_rows():
        return None

    positions = []
    for row in result.rows:
        clicks = row.int_metric(0)
        positions.append(
            CtaPosition(
                position=format_position(row.dimension(0)),
                clicks=clicks,
                percentage=format_percent(percent_of_total(clicks, total)),
                conversionRate=format_percent(percent_of_total(clicks, ctx.sessions, 1), 1),
            )
        )
    return positions


def fallback_cta_positions(ctx: FacetContext) -> List[CtaPosition]:
    return [
        CtaPosition(
            position=position,
            clicks=_estimate(ctx.cta_clicks, share),
            percentage=format_percent(share * 100),
            conversionRate=conversion_rate,
        )
        for position, share, conversion_rate in CTA_POSITION_FALLBACK
    ]


# -----------------------------------------------------------------------------
# Scroll depth
# -----------------------------------------------------------------------------


def scroll_depth_query(window: DateWindow) -> ReportQuery:
    return ReportQuery(
        date_ranges=[window],
        dimensions=["customEvent:percent"],
        metrics=["eventCount"],
        event_name=SCROLL_DEPTH_EVENT,
        order_by_dimension="customEvent:percent",
    )


def transform_scroll_depth(
    result: ReportResult, ctx: FacetContext
) -> Optional[List[ScrollDepthBucket]]:
    rows = result.valid_rows()
    if sum(row.int_metric(0) for row in rows) <= 0:
        return None

    buckets = []
    for row in rows:
        depth = row.dimension(0)
        users = row.int_metric(0)
        buckets.append(
            ScrollDepthBucket(
                depth=depth if "%" in depth else f"{depth}%",
                users=users,
                percentage=format_percent(percent_of_total(users, ctx.sessions)),
            )
        )
    return buckets


def fallback_scroll_depth(ctx: FacetContext) -> List[ScrollDepthBucket]:
    return [
        ScrollDepthBucket(
            depth=depth,
            users=_estimate(ctx.sessions, share),
            percentage=format_percent(share * 100),
        )
        for depth, share in SCROLL_DEPTH_FALLBACK
    ]


# -----------------------------------------------------------------------------
# Time on page
# -----------------------------------------------------------------------------


def time_on_page_query(window: DateWindow) -> ReportQuery:
    return ReportQuery(
        date_ranges=[window],
        dimensions=["customEvent:seconds"],
        metrics=["eventCount"],
        event_name=TIME_ON_PAGE_EVENT,
    )


def parse_seconds(value: str) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def bucket_for(seconds: int) -> str:
    for label, upper in TIME_ON_PAGE_BUCKETS:
        if upper is None or seconds < upper:
            return label
    return TIME_ON_PAGE_BUCKETS[-1][0]


def bucket_time_on_page(result: ReportResult) -> Dict[str, int]:
    """
    Sum event counts into the fixed time buckets.

    Rows with the sentinel value are skipped entirely rather than counted as
    zero seconds.

    Example:
        rows (10s: 5), (45s: 3), (700s: 1)
        -> {"0-30s": 5, "30s-1m": 3, "1-2m": 0, "2-5m": 0, "5m+": 1}
    """
    counts = {label: 0 for label, _ in TIME_ON_PAGE_BUCKETS}
    for row in result.valid_rows():
        counts[bucket_for(parse_seconds(row.dimension(0)))] += row.int_metric(0)
    return counts


def transform_time_on_page(
    result: ReportResult, ctx: FacetContext
) -> Optional[List[TimeOnPageBucket]]:
    counts = bucket_time_on_page(result)
    total = sum(counts.values())
    if total <= 0:
        return None
    return [
        TimeOnPageBucket(
            range=label,
            users=count,
            percentage=format_percent(percent_of_total(count, total)),
        )
        for label, count in counts.items()
    ]


def fallback_time_on_page(ctx: FacetContext) -> List[TimeOnPageBucket]:
    return [
        TimeOnPageBucket(
            range=label,
            users=_estimate(ctx.sessions, share),
            percentage=format_percent(share * 100),
        )
        for label, share in TIME_ON_PAGE_FALLBACK.items()
    ]


# -----------------------------------------------------------------------------
# Section views
# -----------------------------------------------------------------------------


def section_views_query(window: DateWindow) -> ReportQuery:
    return ReportQuery(
        date_ranges=[window],
        dimensions=["customEvent:section_name"],
        metrics=["eventCount"],
        event_name=SECTION_VIEW_EVENT,
        order_by_metric="eventCount",
        limit=TOP_ROWS_LIMIT,
    )


def transform_section_views(
    result: ReportResult, ctx: FacetContext
) -> Optional[List[SectionView]]:
    """Views per section, as a share of the most viewed section."""
    rows = result.valid_rows()
    if not rows:
        return None

    max_views = max(row.int_metric(0) for row in rows)
    return [
        SectionView(
            section=title_case(row.dimension(0)),
            views=row.int_metric(0),
            percentage=format_percent(percent_of_total(row.int_metric(0), max_views)),
        )
        for row in rows
    ]


def fallback_section_views(ctx: FacetContext) -> List[SectionView]:
    return [
        SectionView(
            section=section,
            views=_estimate(ctx.sessions, share),
            percentage=format_percent(share * 100),
        )
        for section, share in SECTION_VIEW_FALLBACK
    ]


# =============================================================================
# Policy table
# =============================================================================

FACET_POLICIES: List[FacetPolicy] = [
    FacetPolicy(Facet.SOURCES, sources_query, transform_sources, _no_fallback),
    FacetPolicy(Facet.DEVICES, devices_query, transform_devices, _no_fallback),
    FacetPolicy(Facet.DAILY_DATA, daily_query, transform_daily, _no_fallback),
    FacetPolicy(
        Facet.CTA_POSITIONS, cta_positions_query, transform_cta_positions, fallback_cta_positions
    ),
    FacetPolicy(
        Facet.SCROLL_DEPTH, scroll_depth_query, transform_scroll_depth, fallback_scroll_depth
    ),
    FacetPolicy(
        Facet.TIME_ON_PAGE, time_on_page_query, transform_time_on_page, fallback_time_on_page
    ),
    FacetPolicy(
        Facet.SECTION_VIEWS, section_views_query, transform_section_views, fallback_section_views
    ),
]
