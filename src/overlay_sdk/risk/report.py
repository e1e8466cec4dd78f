"""Risk report builder.

Values a batch of positions against one PoolSnapshot and packs the
results into a RiskReport with a deterministic SHA256 computed over the
canonical JSON dump.
"""

from __future__ import annotations

import hashlib
import logging
from typing import TYPE_CHECKING, Any

import orjson
from pydantic import BaseModel, ConfigDict, Field

from overlay_sdk.position import Position, ValuationError, valuation
from overlay_sdk.risk.contracts import (
    PositionRecord,
    PositionValuation,
    RejectedPosition,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from overlay_sdk.risk.config import RiskConfig
    from overlay_sdk.risk.contracts import PoolSnapshot

logger = logging.getLogger(__name__)


class RiskReport(BaseModel):
    """Valuation pass container.

    Contains the inputs, every per-position result and a SHA256 of the
    canonical dump so identical inputs give identical digests.
    """

    model_config = ConfigDict(extra="forbid")

    pool: dict[str, Any] = Field(description="PoolSnapshot as dict")
    config: dict[str, Any] = Field(description="RiskConfig as dict")
    valuations: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Valued positions (PositionValuation as dict)",
    )
    rejected: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Positions the engine refused to value (RejectedPosition as dict)",
    )
    sha256: str = Field(description="SHA256 of canonical JSON dump (computed)")

    @classmethod
    def compute_sha256(cls, data: dict[str, Any]) -> str:
        """Compute SHA256 of canonical JSON dump.

        Args:
            data: Dict to hash (without sha256 field).

        Returns:
            64-character hex SHA256 digest.
        """
        canonical = orjson.dumps(data, option=orjson.OPT_SORT_KEYS)
        return hashlib.sha256(canonical).hexdigest()


def value_position(
    position: Position | PositionRecord,
    pool: PoolSnapshot,
    config: RiskConfig,
    *,
    position_id: str | None = None,
) -> PositionValuation:
    """Run every engine operation for one position.

    Args:
        position: Position or its wire record.
        pool: Pool aggregates and exit price.
        config: Margin maintenance and decimal settings.
        position_id: Identifier for the report (defaults to the record's id).

    Returns:
        PositionValuation.

    Raises:
        ValuationError: If the record is invalid or a divisor is zero.
    """
    if isinstance(position, PositionRecord):
        pid = position_id if position_id is not None else position.position_id
        pos = position.to_position()
    else:
        pid = position_id if position_id is not None else ""
        pos = position

    cfg = config.valuation
    m = config.margin_maintenance
    args = (pool.total_oi, pool.total_oi_shares)

    oi = valuation.oi(pos, *args, config=cfg)
    liq_price = (
        valuation.liquidation_price(pos, *args, m, config=cfg) if oi != 0 else None
    )

    return PositionValuation(
        position_id=pid,
        side=pos.side,
        oi=oi,
        value=valuation.value(pos, *args, pool.price_exit, config=cfg),
        notional=valuation.notional(pos, *args, pool.price_exit, config=cfg),
        open_leverage=valuation.open_leverage(pos, *args, pool.price_exit, config=cfg),
        open_margin=valuation.open_margin(pos, *args, pool.price_exit, config=cfg),
        maintenance_margin=pos.initial_oi * m,
        is_underwater=valuation.is_underwater(pos, *args, pool.price_exit, config=cfg),
        is_liquidatable=valuation.is_liquidatable(pos, *args, pool.price_exit, m, config=cfg),
        liquidation_price=liq_price,
    )


def scan_positions(
    records: Iterable[PositionRecord],
    pool: PoolSnapshot,
    config: RiskConfig,
) -> RiskReport:
    """Value a batch of positions.

    A record the engine rejects is kept in report.rejected with its
    reason; the rest of the batch is still valued.

    Args:
        records: Position records to value.
        pool: Pool aggregates and exit price shared by the batch.
        config: Risk parameters.

    Returns:
        RiskReport with computed SHA256.
    """
    valuations: list[PositionValuation] = []
    rejected: list[RejectedPosition] = []

    for record in records:
        try:
            valuations.append(value_position(record, pool, config))
        except ValuationError as e:
            logger.warning(
                "Position rejected",
                extra={"position_id": record.position_id, "reason": str(e)},
            )
            rejected.append(RejectedPosition(position_id=record.position_id, reason=str(e)))

    report = build_report(pool, config, valuations, rejected)

    logger.info(
        "Valuation scan complete",
        extra={
            "valued": len(valuations),
            "rejected": len(rejected),
            "liquidatable": sum(1 for v in valuations if v.is_liquidatable),
            "underwater": sum(1 for v in valuations if v.is_underwater),
            "sha256": report.sha256,
        },
    )
    return report


def build_report(
    pool: PoolSnapshot,
    config: RiskConfig,
    valuations: list[PositionValuation],
    rejected: list[RejectedPosition],
) -> RiskReport:
    """Build a RiskReport with deterministic SHA256."""
    data = {
        "pool": pool.model_dump(mode="json"),
        "config": config.model_dump(mode="json"),
        "valuations": [v.model_dump(mode="json") for v in valuations],
        "rejected": [r.model_dump(mode="json") for r in rejected],
    }
    return RiskReport(**data, sha256=RiskReport.compute_sha256(data))


def liquidatable_ids(report: RiskReport) -> list[str]:
    """Ids of positions flagged liquidatable, sorted."""
    return sorted(v["position_id"] for v in report.valuations if v["is_liquidatable"])


def dump_report_json(report: RiskReport) -> bytes:
    """Dump report to canonical JSON bytes (sorted keys, indented)."""
    return orjson.dumps(
        report.model_dump(mode="json"),
        option=orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2,
    )
