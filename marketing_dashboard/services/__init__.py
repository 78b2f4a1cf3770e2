"""
Service layer for the marketing dashboard API.

Modules:
    - report_client: GA4 Data API ``runReport`` calls and error mapping
    - metrics: Metric extractors and derived-metric calculators
    - facets: Facet queries, transforms and the fallback policy table
    - aggregator: Concurrent orchestration of all facets into one payload
    - cta_insights: Qualitative insights over the CTA-positions facet
    - demo_data: Static demo payload for unauthenticated dashboards
"""

from marketing_dashboard.services.aggregator import Aggregator, resolve_window
from marketing_dashboard.services.cta_insights import generate_cta_analysis
from marketing_dashboard.services.demo_data import demo_payload
from marketing_dashboard.services.report_client import ReportClient

__all__ = [
    'Aggregator',
    'ReportClient',
    'demo_payload',
    'generate_cta_analysis',
    'resolve_window',
]
