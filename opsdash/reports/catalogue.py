"""The fixed set of analytics reports exposed by the dashboard."""

from __future__ import annotations

from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any, Mapping

DEFAULT_START_DATE = "7daysAgo"
DEFAULT_END_DATE = "today"


class UnknownReportError(ValueError):
    """Raised when a caller asks for a report outside the catalogue."""

    def __init__(self, name: str | None) -> None:
        super().__init__(f"Unknown report. Use: {' | '.join(REPORT_NAMES)}")
        self.name = name


@dataclass(frozen=True)
class DateRange:
    """Start and end expressions in the upstream date grammar."""

    start: str = DEFAULT_START_DATE
    end: str = DEFAULT_END_DATE

    @classmethod
    def from_params(cls, start: str | None = None, end: str | None = None) -> "DateRange":
        return cls(start=start or DEFAULT_START_DATE, end=end or DEFAULT_END_DATE)


@dataclass(frozen=True)
class ReportSpec:
    """Dimensions and metrics requested for one named report."""

    name: str
    dimensions: tuple[str, ...]
    metrics: tuple[str, ...]
    date_range: DateRange = DateRange()

    @property
    def fields(self) -> tuple[str, ...]:
        return self.dimensions + self.metrics

    def with_date_range(self, date_range: DateRange) -> "ReportSpec":
        return replace(self, date_range=date_range)

    def request_body(self) -> dict[str, Any]:
        return {
            "dimensions": [{"name": name} for name in self.dimensions],
            "metrics": [{"name": name} for name in self.metrics],
            "dateRanges": [
                {"startDate": self.date_range.start, "endDate": self.date_range.end}
            ],
        }


CATALOGUE: Mapping[str, ReportSpec] = MappingProxyType(
    {
        "overview": ReportSpec(
            name="overview",
            dimensions=("date",),
            metrics=(
                "sessions",
                "activeUsers",
                "newUsers",
                "bounceRate",
                "averageSessionDuration",
            ),
        ),
        "top-pages": ReportSpec(
            name="top-pages",
            dimensions=("pagePath", "pageTitle"),
            metrics=("screenPageViews", "averageSessionDuration", "bounceRate"),
        ),
        "traffic-sources": ReportSpec(
            name="traffic-sources",
            dimensions=("sessionDefaultChannelGroup", "sessionSource", "sessionMedium"),
            metrics=("sessions", "activeUsers", "conversions"),
        ),
        "conversions": ReportSpec(
            name="conversions",
            dimensions=("eventName", "date"),
            metrics=("eventCount", "conversions", "totalRevenue"),
        ),
    }
)
REPORT_NAMES = tuple(CATALOGUE)


def resolve_report(
    name: str | None,
    *,
    start: str | None = None,
    end: str | None = None,
) -> ReportSpec:
    """Look up ``name`` and attach the requested (or default) date range."""

    spec = CATALOGUE.get(name or "")
    if spec is None:
        raise UnknownReportError(name)
    return spec.with_date_range(DateRange.from_params(start, end))


__all__ = [
    "CATALOGUE",
    "DEFAULT_END_DATE",
    "DEFAULT_START_DATE",
    "DateRange",
    "REPORT_NAMES",
    "ReportSpec",
    "UnknownReportError",
    "resolve_report",
]
