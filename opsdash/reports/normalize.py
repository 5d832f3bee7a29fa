"""Flatten upstream report rows into name-keyed records.

Everything here is free of I/O so the reshaping can be exercised directly
against literal payloads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from .catalogue import ReportSpec

ReportRow = dict[str, str]


@dataclass(frozen=True)
class ReportResult:
    """Normalized outcome of one report query."""

    dimensions: tuple[str, ...]
    metrics: tuple[str, ...]
    rows: list[ReportRow]
    row_count: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "dimensions": list(self.dimensions),
            "metrics": list(self.metrics),
            "rows": [dict(row) for row in self.rows],
            "rowCount": self.row_count,
        }


def _cell(values: Any, index: int) -> str:
    if not isinstance(values, Sequence) or isinstance(values, (str, bytes)):
        return ""
    if index >= len(values):
        return ""
    entry = values[index]
    if not isinstance(entry, Mapping):
        return ""
    value = entry.get("value")
    return "" if value is None else str(value)


def normalize_rows(spec: ReportSpec, raw_rows: Iterable[Any] | None) -> list[ReportRow]:
    """Zip field names with positional values, filling gaps with ``""``."""

    normalized: list[ReportRow] = []
    for raw in raw_rows or ():
        source = raw if isinstance(raw, Mapping) else {}
        record: ReportRow = {}
        dimension_values = source.get("dimensionValues")
        for index, name in enumerate(spec.dimensions):
            record[name] = _cell(dimension_values, index)
        metric_values = source.get("metricValues")
        for index, name in enumerate(spec.metrics):
            record[name] = _cell(metric_values, index)
        normalized.append(record)
    return normalized


def _reported_count(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return None


def build_result(spec: ReportSpec, payload: Mapping[str, Any]) -> ReportResult:
    """Normalize a ``runReport`` response body.

    The upstream ``rowCount`` is kept as reported even when it exceeds the
    number of rows actually returned.
    """

    rows = normalize_rows(spec, payload.get("rows"))
    row_count = _reported_count(payload.get("rowCount"))
    return ReportResult(
        dimensions=spec.dimensions,
        metrics=spec.metrics,
        rows=rows,
        row_count=len(rows) if row_count is None else row_count,
    )


def _to_int(value: str | None) -> int:
    if not value:
        return 0
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return int(float(value))
    except (ValueError, OverflowError):
        return 0


def sum_metric(rows: Iterable[Mapping[str, str]], metric: str) -> int:
    """Integer total of ``metric`` across rows; blanks and junk count as zero."""

    return sum(_to_int(row.get(metric)) for row in rows)


__all__ = ["ReportResult", "ReportRow", "build_result", "normalize_rows", "sum_metric"]
