"""
Static demo dataset.

Last tier of the fallback ladder: served when the caller has no session, so the
dashboard can still render a complete, schema-valid page. The numbers are fixed
and do not depend on the requested window.
"""

from datetime import date, timedelta
from typing import Optional

from marketing_dashboard.models.enums import DataSource, Facet
from marketing_dashboard.models.schemas import (
    AggregatedPayload,
    CtaPosition,
    DailyPoint,
    DebugInfo,
    DeviceBreakdown,
    KPISet,
    ScrollDepthBucket,
    SectionView,
    TimeOnPageBucket,
    TrafficSource,
    WindowInfo,
)
from marketing_dashboard.services.cta_insights import generate_cta_analysis


DEMO_KPIS = KPISet(
    sessions=2847,
    sessionsChange=12.4,
    ctaClicks=347,
    ctaClicksChange=24.6,
    avgTimeOnPage="2:34",
    avgTimeChange=8.2,
    bounceRate=42,
    bounceRateChange=-5.3,
)

DEMO_SOURCES = [
    TrafficSource(source="google / organic", sessions=1234, users=987, ctaClicks=89, conversionRate="7.2%"),
    TrafficSource(source="facebook / paid", sessions=567, users=456, ctaClicks=67, conversionRate="11.8%"),
    TrafficSource(source="direct / (none)", sessions=423, users=345, ctaClicks=45, conversionRate="10.6%"),
    TrafficSource(source="linkedin / social", sessions=234, users=189, ctaClicks=23, conversionRate="9.8%"),
    TrafficSource(source="google / cpc", sessions=189, users=156, ctaClicks=18, conversionRate="9.5%"),
]

DEMO_CTA_POSITIONS = [
    CtaPosition(position="Hero", clicks=156, percentage="45%", conversionRate="8.2%"),
    CtaPosition(position="Sticky Bottom", clicks=98, percentage="28%", conversionRate="7.1%"),
    CtaPosition(position="Section CTA", clicks=67, percentage="19%", conversionRate="5.4%"),
    CtaPosition(position="Nav", clicks=26, percentage="8%", conversionRate="3.2%"),
]

DEMO_DEVICES = [
    DeviceBreakdown(device="Mobile", sessions=1594, percentage="56%", bounceRate="45%"),
    DeviceBreakdown(device="Desktop", sessions=1064, percentage="37%", bounceRate="38%"),
    DeviceBreakdown(device="Tablet", sessions=189, percentage="7%", bounceRate="41%"),
]

DEMO_DAILY_SESSIONS = [(378, 42), (412, 48), (389, 51), (456, 58), (423, 52), (398, 47), (391, 49)]

DEMO_SCROLL_DEPTH = [
    ScrollDepthBucket(depth="25%", users=2456, percentage="86%"),
    ScrollDepthBucket(depth="50%", users=1987, percentage="70%"),
    ScrollDepthBucket(depth="75%", users=1234, percentage="43%"),
    ScrollDepthBucket(depth="100%", users=678, percentage="24%"),
]

DEMO_TIME_ON_PAGE = [
    TimeOnPageBucket(range="0-30s", users=567, percentage="20%"),
    TimeOnPageBucket(range="30s-1m", users=823, percentage="29%"),
    TimeOnPageBucket(range="1-2m", users=945, percentage="33%"),
    TimeOnPageBucket(range="2-5m", users=398, percentage="14%"),
    TimeOnPageBucket(range="5m+", users=114, percentage="4%"),
]

DEMO_SECTION_VIEWS = [
    SectionView(section="Hero", views=2456, percentage="100%"),
    SectionView(section="Benefits", views=1987, percentage="81%"),
    SectionView(section="How It Works", views=1456, percentage="59%"),
    SectionView(section="Testimonials", views=987, percentage="40%"),
    SectionView(section="Pricing", views=756, percentage="31%"),
    SectionView(section="FAQ", views=534, percentage="22%"),
]


def demo_payload(today: Optional[date] = None) -> AggregatedPayload:
    """
    Build the demo payload.

    The daily trend is labelled with the seven days ending ``today`` so the chart
    axis looks current; every facet is reported as ``fallback``.
    """
    end = today or date.today()
    start = end - timedelta(days=len(DEMO_DAILY_SESSIONS) - 1)
    comparison_end = start - timedelta(days=1)
    comparison_start = comparison_end - (end - start)

    daily = [
        DailyPoint(
            date=(start + timedelta(days=offset)).strftime("%d/%m"),
            sessions=sessions,
            ctaClicks=cta_clicks,
        )
        for offset, (sessions, cta_clicks) in enumerate(DEMO_DAILY_SESSIONS)
    ]

    return AggregatedPayload(
        kpis=DEMO_KPIS,
        sources=DEMO_SOURCES,
        devices=DEMO_DEVICES,
        dailyData=daily,
        ctaPositions=DEMO_CTA_POSITIONS,
        ctaAnalysis=generate_cta_analysis(DEMO_CTA_POSITIONS),
        scrollDepth=DEMO_SCROLL_DEPTH,
        timeOnPage=DEMO_TIME_ON_PAGE,
        sectionViews=DEMO_SECTION_VIEWS,
        debug=DebugInfo(
            perFacetDataSource={facet.value: DataSource.FALLBACK for facet in Facet},
            resolvedWindow=WindowInfo(start=start, end=end),
            comparisonWindow=WindowInfo(start=comparison_start, end=comparison_end),
        ),
    )
