"""Risk reporting around the valuation engine.

Consumer side of the engine for liquidation bots and dashboards:
- Wire contracts for pool snapshots, position records and valuations
- Batch valuation with explicit rejections and deterministic SHA256
- YAML-loadable risk configuration
- Prometheus exporter for scan results
"""

from overlay_sdk.risk.config import RiskConfig, load_risk_config
from overlay_sdk.risk.contracts import (
    PoolSnapshot,
    PositionRecord,
    PositionValuation,
    RejectedPosition,
)
from overlay_sdk.risk.exporter import RiskMetricsExporter
from overlay_sdk.risk.report import (
    RiskReport,
    build_report,
    dump_report_json,
    liquidatable_ids,
    scan_positions,
    value_position,
)

__all__ = [
    "PoolSnapshot",
    "PositionRecord",
    "PositionValuation",
    "RejectedPosition",
    "RiskConfig",
    "RiskMetricsExporter",
    "RiskReport",
    "build_report",
    "dump_report_json",
    "liquidatable_ids",
    "load_risk_config",
    "scan_positions",
    "value_position",
]
