"""Report catalogue, execution and normalization."""

from .catalogue import (
    CATALOGUE,
    REPORT_NAMES,
    DateRange,
    ReportSpec,
    UnknownReportError,
    resolve_report,
)
from .executor import ReportExecutor
from .normalize import ReportResult, ReportRow, build_result, normalize_rows, sum_metric

__all__ = [
    "CATALOGUE",
    "DateRange",
    "REPORT_NAMES",
    "ReportExecutor",
    "ReportResult",
    "ReportRow",
    "ReportSpec",
    "UnknownReportError",
    "build_result",
    "normalize_rows",
    "resolve_report",
    "sum_metric",
]
