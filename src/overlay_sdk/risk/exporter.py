"""
Prometheus metrics exporter for valuation scans.

Exports low-cardinality metrics only. Position ids, markets and prices
never become labels.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from prometheus_client import Counter, Gauge
from prometheus_client.registry import CollectorRegistry

if TYPE_CHECKING:
    from overlay_sdk.risk.report import RiskReport


class RiskMetricsExporter:
    """
    Prometheus metrics for the liquidation scan loop.

    - overlay_risk_positions_valued / _rejected: counters across scans
    - overlay_risk_liquidatable_positions / _underwater_positions: gauges
      reflecting the most recent scan

    Usage:
        registry = CollectorRegistry()
        exporter = RiskMetricsExporter(registry=registry)
        exporter.update(report)
        # generate_latest(registry) -> bytes for /metrics endpoint
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """
        Initialize metrics exporter.

        Args:
            registry: Prometheus CollectorRegistry. A private one is created if None.
        """
        self._registry = registry or CollectorRegistry()

        self._positions_valued = Counter(
            "overlay_risk_positions_valued",
            "Total positions valued across scans",
            registry=self._registry,
        )
        self._positions_rejected = Counter(
            "overlay_risk_positions_rejected",
            "Total positions the valuation engine rejected",
            registry=self._registry,
        )
        self._scans = Counter(
            "overlay_risk_scans",
            "Total valuation scans exported",
            registry=self._registry,
        )
        self._liquidatable = Gauge(
            "overlay_risk_liquidatable_positions",
            "Liquidatable positions in the last scan",
            registry=self._registry,
        )
        self._underwater = Gauge(
            "overlay_risk_underwater_positions",
            "Underwater positions in the last scan",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Get the Prometheus CollectorRegistry."""
        return self._registry

    def update(self, report: RiskReport) -> None:
        """Record one scan."""
        self._scans.inc()
        self._positions_valued.inc(len(report.valuations))
        self._positions_rejected.inc(len(report.rejected))
        self._liquidatable.set(sum(1 for v in report.valuations if v["is_liquidatable"]))
        self._underwater.set(sum(1 for v in report.valuations if v["is_underwater"]))
