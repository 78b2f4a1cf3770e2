"""
Enumeration definitions for the marketing dashboard API.

All enums inherit from both ``str`` and ``Enum`` so they serialize as plain strings
in Pydantic response models.
"""

from enum import Enum


class DataSource(str, Enum):
    """
    Where the records of a facet came from.

    - live: Built from the GA4 response for the requested window
    - fallback: Estimated from known totals because the live query failed or
      returned nothing usable
    """
    LIVE = "live"
    FALLBACK = "fallback"


class Facet(str, Enum):
    """
    Facets with their own report and fallback policy.

    Values are the payload keys the dashboard reads, and the keys of
    ``debug.perFacetDataSource``.
    """
    SOURCES = "sources"
    DEVICES = "devices"
    DAILY_DATA = "dailyData"
    CTA_POSITIONS = "ctaPositions"
    SCROLL_DEPTH = "scrollDepth"
    TIME_ON_PAGE = "timeOnPage"
    SECTION_VIEWS = "sectionViews"


class InsightSeverity(str, Enum):
    """
    Tone of a CTA insight card.

    The dashboard maps these to colors: success=green, info=blue,
    warning=yellow, critical=red.
    """
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"
