#!/usr/bin/env python3
"""Value a batch of positions against one pool snapshot.

Usage:
    python scripts/run_valuation.py --positions positions.jsonl --pool pool.json \
        --margin-maintenance 0.06

    python scripts/run_valuation.py --positions positions.jsonl --pool pool.json \
        --config risk.yaml --out reports/

Outputs:
    risk_report.json - Every valuation plus rejected positions
    sha256.txt - SHA256 digest of the report
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import orjson

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(description="Value positions against a pool snapshot")
    parser.add_argument(
        "--positions",
        type=Path,
        required=True,
        help="Path to PositionRecord JSONL file",
    )
    parser.add_argument(
        "--pool",
        type=Path,
        required=True,
        help="Path to PoolSnapshot JSON file",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to RiskConfig YAML file",
    )
    source.add_argument(
        "--margin-maintenance",
        type=str,
        default=None,
        help="Maintenance margin fraction (e.g. 0.06)",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Output directory (default: current directory)",
    )
    parser.add_argument(
        "--log-format",
        choices=("json", "text"),
        default="text",
        help="Log output format (default: text)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run valuation."""
    args = build_parser().parse_args(argv)

    from overlay_sdk.logging_config import setup_logging

    setup_logging(json_format=args.log_format == "json")

    for path in (args.positions, args.pool, args.config):
        if path is not None and not path.exists():
            print(f"ERROR: File not found: {path}")
            return 1

    from pydantic import ValidationError

    from overlay_sdk.risk import (
        PoolSnapshot,
        PositionRecord,
        RiskConfig,
        dump_report_json,
        liquidatable_ids,
        load_risk_config,
        scan_positions,
    )

    config = (
        load_risk_config(args.config)
        if args.config is not None
        else RiskConfig(margin_maintenance=args.margin_maintenance)
    )
    try:
        pool = PoolSnapshot.model_validate(orjson.loads(args.pool.read_bytes()))
    except (orjson.JSONDecodeError, ValidationError) as e:
        print(f"ERROR: Invalid pool snapshot in {args.pool}: {e}")
        return 1

    records = []
    with open(args.positions, "rb") as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                records.append(PositionRecord.model_validate(orjson.loads(line)))
            except (orjson.JSONDecodeError, ValidationError) as e:
                print(f"ERROR: Invalid position at {args.positions}:{lineno}: {e}")
                return 1
    logger.info("Loaded positions", extra={"count": len(records)})

    report = scan_positions(records, pool, config)

    out_dir = args.out or Path(".")
    out_dir.mkdir(parents=True, exist_ok=True)

    report_path = out_dir / "risk_report.json"
    with open(report_path, "wb") as f:
        f.write(dump_report_json(report))

    sha256_path = out_dir / "sha256.txt"
    with open(sha256_path, "w") as f:
        f.write(f"{report.sha256}\n")

    print("\n=== VALUATION RESULTS ===")
    print(f"  SHA256: {report.sha256}")
    print(f"  Valued: {len(report.valuations)}")
    print(f"  Rejected: {len(report.rejected)}")
    print(f"  Liquidatable: {', '.join(liquidatable_ids(report)) or '-'}")
    print(f"  Report written to {report_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
