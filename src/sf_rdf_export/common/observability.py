"""导出指标（Prometheus）。"""
from __future__ import annotations

from prometheus_client import Counter, Histogram

_UNIT_TOTAL = Counter(
    "sf_rdf_export_units_total",
    "Executed export units",
    ["strategy", "status"],
)
_UNIT_DURATION = Histogram(
    "sf_rdf_export_unit_duration_seconds",
    "Export unit duration in seconds",
    ["strategy"],
)
_BYTES_TOTAL = Counter(
    "sf_rdf_export_bytes_total",
    "Bytes written to output sinks",
    ["strategy"],
)


def observe_unit(strategy: str, status: str, duration_seconds: float) -> None:
    """记录一次导出单元执行结果。"""

    _UNIT_TOTAL.labels(strategy=strategy, status=status).inc()
    _UNIT_DURATION.labels(strategy=strategy).observe(duration_seconds)


def observe_bytes(strategy: str, count: int) -> None:
    if count > 0:
        _BYTES_TOTAL.labels(strategy=strategy).inc(count)
