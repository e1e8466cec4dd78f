"""Tests for risk report building.

Verifies:
- value_position packs every engine output
- scan_positions keeps going past rejected positions
- SHA256 is deterministic and sensitive to inputs
- metrics exporter reflects the last scan
"""

from __future__ import annotations

import logging
from decimal import Decimal

import orjson
import pytest
from prometheus_client import CollectorRegistry

from overlay_sdk.position import MAX_LEVERAGE_SENTINEL, Position, PositionSide
from overlay_sdk.risk import (
    PoolSnapshot,
    PositionRecord,
    RiskConfig,
    RiskMetricsExporter,
    dump_report_json,
    liquidatable_ids,
    scan_positions,
    value_position,
)

CONFIG = RiskConfig(margin_maintenance="0.1")
POOL = PoolSnapshot(total_oi="200", total_oi_shares="200", price_exit="100")


def _record(position_id: str, is_long: bool = True, **overrides: object) -> PositionRecord:
    fields: dict[str, object] = {
        "position_id": position_id,
        "is_long": is_long,
        "leverage": "2",
        "cost": "50",
        "debt": "50",
        "oi_shares": "100",
        "price_entry": "100",
    }
    fields.update(overrides)
    return PositionRecord.model_validate(fields)


def _book() -> list[PositionRecord]:
    return [
        _record("long-healthy"),
        _record("short-healthy", is_long=False),
        _record("long-deep", price_entry="250"),
        _record("bad-cost", cost="0"),
    ]


class TestValuePosition:
    """Single-position valuation."""

    def test_long_at_entry(self) -> None:
        # oi = 100 * 200 / 200 = 100, no price move
        v = value_position(_record("7"), POOL, CONFIG)
        assert v.position_id == "7"
        assert v.side == PositionSide.LONG
        assert v.oi == Decimal("100")
        assert v.value == Decimal("50")
        assert v.notional == Decimal("100")
        assert v.open_leverage == Decimal("2")
        assert v.open_margin == Decimal("0.5")
        assert v.maintenance_margin == Decimal("10")
        assert v.is_underwater is False
        assert v.is_liquidatable is False
        assert v.liquidation_price == Decimal("60")

    def test_short_at_entry(self) -> None:
        v = value_position(_record("8", is_long=False), POOL, CONFIG)
        assert v.side == PositionSide.SHORT
        assert v.value == Decimal("50")
        assert v.liquidation_price == Decimal("140")

    def test_plain_position_with_explicit_id(self) -> None:
        pos = _record("x").to_position()
        assert isinstance(pos, Position)
        v = value_position(pos, POOL, CONFIG, position_id="abc")
        assert v.position_id == "abc"
        assert v.value == Decimal("50")

    def test_zero_oi_has_no_liquidation_price(self) -> None:
        pool = PoolSnapshot(total_oi="0", total_oi_shares="200", price_exit="100")
        v = value_position(_record("9"), pool, CONFIG)
        assert v.oi == 0
        assert v.value == 0
        assert v.open_leverage == MAX_LEVERAGE_SENTINEL
        assert v.is_liquidatable is True
        assert v.liquidation_price is None


class TestScanPositions:
    """Batch valuation."""

    def test_rejected_positions_reported(self) -> None:
        report = scan_positions(_book(), POOL, CONFIG)
        assert [v["position_id"] for v in report.valuations] == [
            "long-healthy",
            "short-healthy",
            "long-deep",
        ]
        assert len(report.rejected) == 1
        assert report.rejected[0]["position_id"] == "bad-cost"
        assert "cost" in report.rejected[0]["reason"]

    def test_liquidatable_ids(self) -> None:
        """Entry at 250 with exit at 100: oi * 0.4 = 40 < debt, fully eroded."""
        report = scan_positions(_book(), POOL, CONFIG)
        assert liquidatable_ids(report) == ["long-deep"]
        deep = report.valuations[2]
        assert deep["is_underwater"] is True
        assert Decimal(deep["value"]) == 0

    def test_zero_share_supply_rejects_all(self) -> None:
        pool = PoolSnapshot(total_oi="200", total_oi_shares="0", price_exit="100")
        report = scan_positions(_book()[:2], pool, CONFIG)
        assert report.valuations == []
        assert [r["reason"] for r in report.rejected] == [
            "cannot value position: pool has zero share supply"
        ] * 2

    def test_empty_book(self) -> None:
        report = scan_positions([], POOL, CONFIG)
        assert report.valuations == []
        assert report.rejected == []
        assert len(report.sha256) == 64

    def test_logs_summary(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="overlay_sdk.risk.report"):
            scan_positions(_book(), POOL, CONFIG)
        summary = [r for r in caplog.records if r.getMessage() == "Valuation scan complete"]
        assert len(summary) == 1
        assert summary[0].valued == 3  # type: ignore[attr-defined]
        assert summary[0].rejected == 1  # type: ignore[attr-defined]
        assert summary[0].liquidatable == 1  # type: ignore[attr-defined]
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert [r.position_id for r in warnings] == ["bad-cost"]  # type: ignore[attr-defined]


class TestReportDeterminism:
    """Identical inputs give identical digests."""

    def test_sha256_stable(self) -> None:
        a = scan_positions(_book(), POOL, CONFIG)
        b = scan_positions(_book(), POOL, CONFIG)
        assert a.sha256 == b.sha256
        assert dump_report_json(a) == dump_report_json(b)

    def test_sha256_changes_with_price(self) -> None:
        moved = PoolSnapshot(total_oi="200", total_oi_shares="200", price_exit="101")
        assert scan_positions(_book(), POOL, CONFIG).sha256 != (
            scan_positions(_book(), moved, CONFIG).sha256
        )

    def test_sha256_matches_dump(self) -> None:
        report = scan_positions(_book(), POOL, CONFIG)
        data = orjson.loads(dump_report_json(report))
        digest = data.pop("sha256")
        assert digest == report.sha256
        assert report.compute_sha256(data) == digest


class TestRiskMetricsExporter:
    """Prometheus metrics for scans."""

    def test_update(self) -> None:
        registry = CollectorRegistry()
        exporter = RiskMetricsExporter(registry=registry)
        report = scan_positions(_book(), POOL, CONFIG)

        exporter.update(report)
        exporter.update(report)

        assert registry.get_sample_value("overlay_risk_scans_total") == 2
        assert registry.get_sample_value("overlay_risk_positions_valued_total") == 6
        assert registry.get_sample_value("overlay_risk_positions_rejected_total") == 2
        assert registry.get_sample_value("overlay_risk_liquidatable_positions") == 1
        assert registry.get_sample_value("overlay_risk_underwater_positions") == 1

    def test_private_registry_by_default(self) -> None:
        """Two exporters never collide on metric names."""
        a = RiskMetricsExporter()
        b = RiskMetricsExporter()
        assert a.registry is not b.registry
