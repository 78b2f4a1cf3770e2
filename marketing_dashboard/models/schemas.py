"""
Pydantic response models for the marketing dashboard API.

Field names are camelCase because they are the contract consumed by the
dashboard's table and chart widgets. Ratios are delivered pre-formatted
(``"45%"``, ``"8.2%"``) so the UI renders them verbatim.

All models use Pydantic v2 syntax.
"""

from datetime import date as DateType
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field

from marketing_dashboard.models.enums import DataSource, InsightSeverity


# =============================================================================
# KPIs
# =============================================================================


class KPISet(BaseModel):
    """
    Headline numbers for the selected window.

    Every ``*Change`` field is the percentage change against the comparison
    window, one decimal.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "sessions": 2847,
                "sessionsChange": 12.4,
                "ctaClicks": 347,
                "ctaClicksChange": 24.6,
                "avgTimeOnPage": "2:34",
                "avgTimeChange": 8.2,
                "bounceRate": 42,
                "bounceRateChange": -5.3,
            }
        }
    )

    sessions: int = Field(..., ge=0, description="Sessions in the window")
    sessionsChange: float = Field(..., description="Sessions change vs comparison window (%)")
    ctaClicks: int = Field(..., ge=0, description="cta_click events in the window")
    ctaClicksChange: float = Field(..., description="CTA clicks change vs comparison window (%)")
    avgTimeOnPage: str = Field(..., description="Average session duration as m:ss")
    avgTimeChange: float = Field(..., description="Average duration change vs comparison window (%)")
    bounceRate: int = Field(..., description="Bounce rate, integer percent")
    bounceRateChange: float = Field(..., description="Bounce rate change vs comparison window (%)")


# =============================================================================
# Facet records
# =============================================================================


class TrafficSource(BaseModel):
    """One ``source / medium`` row of the traffic sources table."""
    source: str
    sessions: int
    users: int
    ctaClicks: int = Field(..., description="Estimated as 10% of the source's events")
    conversionRate: str = Field(..., description="ctaClicks / sessions, one decimal")


class DeviceBreakdown(BaseModel):
    device: str
    sessions: int
    percentage: str = Field(..., description="Share of sessions across all devices")
    bounceRate: str


class DailyPoint(BaseModel):
    date: str = Field(..., description="Day as DD/MM")
    sessions: int
    ctaClicks: int


class CtaPosition(BaseModel):
    """Clicks for one ``cta_location`` value."""
    position: str
    clicks: int
    percentage: str = Field(..., description="Share of all CTA clicks")
    conversionRate: str = Field(..., description="clicks / total sessions, one decimal")


class ScrollDepthBucket(BaseModel):
    depth: str
    users: int
    percentage: str = Field(..., description="Share of total sessions")


class TimeOnPageBucket(BaseModel):
    range: str
    users: int
    percentage: str


class SectionView(BaseModel):
    section: str
    views: int
    percentage: str = Field(..., description="Views relative to the most viewed section")


class CtaInsight(BaseModel):
    severity: InsightSeverity
    title: str
    description: str


# =============================================================================
# Aggregated payload
# =============================================================================


class WindowInfo(BaseModel):
    start: DateType
    end: DateType


class DebugInfo(BaseModel):
    """Which facets are live and which windows were queried."""
    perFacetDataSource: Dict[str, DataSource]
    resolvedWindow: WindowInfo
    comparisonWindow: WindowInfo


class AggregatedPayload(BaseModel):
    """Complete response of ``GET /api/ga4``."""
    kpis: KPISet
    sources: List[TrafficSource]
    devices: List[DeviceBreakdown]
    dailyData: List[DailyPoint]
    ctaPositions: List[CtaPosition]
    ctaAnalysis: List[CtaInsight]
    scrollDepth: List[ScrollDepthBucket]
    timeOnPage: List[TimeOnPageBucket]
    sectionViews: List[SectionView]
    debug: DebugInfo


class ErrorResponse(BaseModel):
    error: str
