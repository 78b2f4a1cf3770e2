"""
Metric extractors and derived-metric calculators.

Pure functions shared by the facet fetchers and the insight generator. The
extractors are the single-row accessors; the totals facets read untagged
single-window reports through them. Rounding is half-up (``2.5 -> 3``,
``-2.5 -> -2``) so displayed numbers match what the dashboard has always shown,
rather than Python's round-half-even.
"""

import math
import re
from typing import List

from marketing_dashboard.models.report import ReportResult


# =============================================================================
# Extractors
# =============================================================================


def first_metric(result: ReportResult, index: int) -> float:
    """
    Return metric ``index`` of the first row, or 0 when absent.

    Example:
        >>> first_metric(ReportResult(), 0)
        0.0
    """
    row = result.row(0)
    return row.metric(index) if row is not None else 0.0


def first_dimension(result: ReportResult, index: int) -> str:
    """Return dimension ``index`` of the first row, or ``""`` when absent."""
    row = result.row(0)
    return row.dimension(index) if row is not None else ""


# =============================================================================
# Rounding
# =============================================================================


def round_half_up(value: float, decimals: int = 0) -> float:
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


# =============================================================================
# Calculators
# =============================================================================


def percent_change(current: float, previous: float) -> float:
    """
    Percentage change of ``current`` against ``previous``, one decimal.

    Args:
        current: Value for the selected window.
        previous: Value for the comparison window.

    Returns:
        0 when both are 0, 100 when only ``previous`` is 0, otherwise
        ``(current - previous) / previous * 100`` rounded to one decimal.

    Example:
        >>> percent_change(120, 100)
        20.0
        >>> percent_change(5, 0)
        100.0
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round_half_up((current - previous) / previous * 100, 1)


def format_duration(total_seconds: float) -> str:
    """
    Format seconds as ``m:ss``.

    Example:
        >>> format_duration(154)
        '2:34'
        >>> format_duration(7)
        '0:07'
    """
    minutes = math.floor(total_seconds / 60)
    seconds = math.floor(total_seconds % 60)
    return f"{minutes}:{seconds:02d}"


def title_case(token: str) -> str:
    """
    Turn a snake_case or kebab-case token into a display label.

    Only the first letter of each segment changes; the rest is kept as is.

    Example:
        >>> title_case("sticky_bottom")
        'Sticky Bottom'
        >>> title_case("section-cta")
        'Section Cta'
    """
    segments: List[str] = re.split(r"[-_]", token)
    return " ".join(segment[:1].upper() + segment[1:] for segment in segments)


def percent_of_total(value: float, total: float, decimals: int = 0) -> float:
    """
    Share of ``value`` in ``total`` as a percentage.

    Args:
        value: Part.
        total: Whole. A zero total yields 0 instead of dividing.
        decimals: 0 for shares, 1 for conversion rates.
    """
    if total == 0:
        return 0.0
    return round_half_up(value / total * 100, decimals)


def format_percent(value: float, decimals: int = 0) -> str:
    """
    Render a percentage for display.

    Example:
        >>> format_percent(45.0)
        '45%'
        >>> format_percent(8.24, 1)
        '8.2%'
    """
    if decimals == 0:
        return f"{int(round_half_up(value))}%"
    return f"{value:.{decimals}f}%"


def parse_percent(text: str) -> float:
    """
    Read back a formatted percentage; unparseable text reads as 0.

    Example:
        >>> parse_percent("8.2%")
        8.2
    """
    try:
        return float(text.strip().rstrip("%"))
    except (AttributeError, ValueError):
        return 0.0
