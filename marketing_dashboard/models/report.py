"""
Report request and result types for the GA4 Data API.

The upstream API speaks loosely-typed JSON: rows may be missing, a row may carry
fewer values than the query declared, and every metric arrives as decimal text.
``ReportResult`` parses that JSON once and exposes total accessors that return
defaults instead of raising, so facet code never has to guard against missing
fields.

``ReportQuery`` is the inverse: a typed description of one ``runReport`` call
that renders the REST body the API expects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from marketing_dashboard.core.exceptions import InvalidWindowError


# Upstream marker for a dimension value that was never recorded
NOT_SET = "(not set)"


# =============================================================================
# Date windows
# =============================================================================


@dataclass(frozen=True)
class DateWindow:
    """
    Inclusive calendar date range used to query the analytics backend.

    Raises:
        InvalidWindowError: If ``start`` is after ``end``.
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidWindowError(
                f"startDate {self.start.isoformat()} is after endDate {self.end.isoformat()}"
            )

    @property
    def days(self) -> int:
        """Number of days between start and end (0 for a single-day window)."""
        return (self.end - self.start).days

    def comparison(self) -> "DateWindow":
        """
        Return the window of equal length immediately preceding this one.

        Example:
            >>> DateWindow(date(2026, 1, 8), date(2026, 1, 14)).comparison()
            DateWindow(start=datetime.date(2026, 1, 1), end=datetime.date(2026, 1, 7))
        """
        prev_end = self.start - timedelta(days=1)
        prev_start = prev_end - timedelta(days=self.days)
        return DateWindow(start=prev_start, end=prev_end)

    def to_range(self) -> Dict[str, str]:
        """Render as a GA4 ``DateRange`` object."""
        return {"startDate": self.start.isoformat(), "endDate": self.end.isoformat()}


# =============================================================================
# Query
# =============================================================================


@dataclass
class ReportQuery:
    """
    One ``runReport`` request.

    Attributes:
        date_ranges: One or two windows. With two windows upstream tags every row
            with a ``dateRange`` dimension (``date_range_0``, ``date_range_1``).
        dimensions: Dimension names, in the order values come back in each row.
        metrics: Metric names, in the order values come back in each row.
        event_name: Optional equality filter on ``eventName``.
        order_by_metric: Metric to sort by, descending.
        order_by_dimension: Dimension to sort by, ascending.
        limit: Maximum number of rows.
    """

    date_ranges: List[DateWindow]
    metrics: List[str]
    dimensions: List[str] = field(default_factory=list)
    event_name: Optional[str] = None
    order_by_metric: Optional[str] = None
    order_by_dimension: Optional[str] = None
    limit: Optional[int] = None

    def to_body(self) -> Dict[str, Any]:
        """Render the JSON body posted to ``{property}:runReport``."""
        body: Dict[str, Any] = {
            "dateRanges": [window.to_range() for window in self.date_ranges],
        }
        if self.dimensions:
            body["dimensions"] = [{"name": name} for name in self.dimensions]
        body["metrics"] = [{"name": name} for name in self.metrics]

        if self.event_name is not None:
            body["dimensionFilter"] = {
                "filter": {
                    "fieldName": "eventName",
                    "stringFilter": {"value": self.event_name},
                }
            }

        order_bys = []
        if self.order_by_metric is not None:
            order_bys.append({"metric": {"metricName": self.order_by_metric}, "desc": True})
        if self.order_by_dimension is not None:
            order_bys.append(
                {"dimension": {"dimensionName": self.order_by_dimension}, "desc": False}
            )
        if order_bys:
            body["orderBys"] = order_bys

        if self.limit is not None:
            body["limit"] = self.limit
        return body


# =============================================================================
# Result
# =============================================================================


def _to_float(value: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _to_int(value: str) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def _values(raw: Any) -> List[str]:
    if not isinstance(raw, list):
        return []
    values = []
    for item in raw:
        if isinstance(item, dict):
            values.append(str(item.get("value", "")))
        else:
            values.append("")
    return values


@dataclass
class ReportRow:
    """One result row: dimension and metric values aligned with the query."""

    dimension_values: List[str] = field(default_factory=list)
    metric_values: List[str] = field(default_factory=list)

    def dimension(self, index: int, default: str = "") -> str:
        if 0 <= index < len(self.dimension_values):
            return self.dimension_values[index]
        return default

    def metric(self, index: int) -> float:
        if 0 <= index < len(self.metric_values):
            return _to_float(self.metric_values[index])
        return 0.0

    def int_metric(self, index: int) -> int:
        if 0 <= index < len(self.metric_values):
            return _to_int(self.metric_values[index])
        return 0

    @property
    def is_not_set(self) -> bool:
        """True when the first dimension is empty or the upstream sentinel."""
        value = self.dimension(0)
        return not value or value == NOT_SET


@dataclass
class ReportResult:
    """
    Parsed ``runReport`` response.

    An empty ``rows`` list means no data matched the query; it is not an error.
    """

    rows: List[ReportRow] = field(default_factory=list)

    @classmethod
    def from_json(cls, payload: Any) -> "ReportResult":
        """
        Build a result from the decoded response body.

        Anything that is not shaped like a report (missing ``rows``, rows that are
        not objects, values without a ``value`` key) is read as absent data.
        """
        if not isinstance(payload, dict):
            return cls()
        raw_rows = payload.get("rows")
        if not isinstance(raw_rows, list):
            return cls()
        rows = [
            ReportRow(
                dimension_values=_values(raw.get("dimensionValues")),
                metric_values=_values(raw.get("metricValues")),
            )
            for raw in raw_rows
            if isinstance(raw, dict)
        ]
        return cls(rows=rows)

    def row(self, index: int) -> Optional[ReportRow]:
        if 0 <= index < len(self.rows):
            return self.rows[index]
        return None

    @property
    def is_range_tagged(self) -> bool:
        """True when rows carry a ``date_range_N`` dimension value."""
        return any(
            value.startswith("date_range_")
            for row in self.rows
            for value in row.dimension_values
        )

    def range_row(self, range_index: int) -> Optional[ReportRow]:
        """
        Return the row holding totals for the given date range.

        Rows tagged with ``date_range_N`` are matched by tag, since upstream omits
        a range that has no data. Untagged results fall back to row position.
        """
        if not self.is_range_tagged:
            return self.row(range_index)
        tag = f"date_range_{range_index}"
        for row in self.rows:
            if tag in row.dimension_values:
                return row
        return None

    def range_metric(self, range_index: int, metric_index: int) -> float:
        row = self.range_row(range_index)
        return row.metric(metric_index) if row is not None else 0.0

    def valid_rows(self) -> List[ReportRow]:
        """Rows whose first dimension is a real value rather than the sentinel."""
        return [row for row in self.rows if not row.is_not_set]
