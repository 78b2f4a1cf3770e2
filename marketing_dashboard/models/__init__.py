"""
Data models for the marketing dashboard API.

Re-exports the report request/result types, enums and response schemas so other
modules can import from ``marketing_dashboard.models`` directly.
"""

from marketing_dashboard.models.enums import DataSource, Facet, InsightSeverity
from marketing_dashboard.models.report import (
    NOT_SET,
    DateWindow,
    ReportQuery,
    ReportResult,
    ReportRow,
)
from marketing_dashboard.models.schemas import (
    AggregatedPayload,
    CtaInsight,
    CtaPosition,
    DailyPoint,
    DebugInfo,
    DeviceBreakdown,
    ErrorResponse,
    KPISet,
    ScrollDepthBucket,
    SectionView,
    TimeOnPageBucket,
    TrafficSource,
    WindowInfo,
)

__all__ = [
    # Enums
    'DataSource',
    'Facet',
    'InsightSeverity',
    # Report types
    'NOT_SET',
    'DateWindow',
    'ReportQuery',
    'ReportResult',
    'ReportRow',
    # Response schemas
    'AggregatedPayload',
    'CtaInsight',
    'CtaPosition',
    'DailyPoint',
    'DebugInfo',
    'DeviceBreakdown',
    'ErrorResponse',
    'KPISet',
    'ScrollDepthBucket',
    'SectionView',
    'TimeOnPageBucket',
    'TrafficSource',
    'WindowInfo',
]
