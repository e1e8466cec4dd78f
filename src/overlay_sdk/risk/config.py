"""Risk scan configuration.

RiskConfig is frozen and may be loaded from a YAML file:

    margin_maintenance: "0.06"
    valuation:
      precision: 50
      rounding: ROUND_HALF_EVEN
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Annotated, Any

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field, field_validator

from overlay_sdk.position.config import ValuationConfig, parse_decimal

if TYPE_CHECKING:
    from pathlib import Path


class RiskConfig(BaseModel):
    """Protocol risk parameters for a valuation scan (frozen)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    margin_maintenance: Annotated[
        Decimal,
        Field(description="Maintenance margin as fraction of initial OI (0 < m < 1)"),
    ] = Field()
    valuation: ValuationConfig = Field(
        default_factory=ValuationConfig,
        description="Decimal settings for the valuation engine",
    )

    @field_validator("margin_maintenance", mode="before")
    @classmethod
    def parse_margin_maintenance(cls, v: object) -> Decimal:
        """Parse and bound margin_maintenance."""
        value = parse_decimal(v)
        if not value.is_finite() or not (0 < value < 1):
            raise ValueError(f"margin_maintenance must be in (0, 1), got {value}")
        return value


def load_risk_config(path: Path) -> RiskConfig:
    """Load RiskConfig from a YAML file.

    Raises:
        ValueError: If the file does not contain a mapping.
        pydantic.ValidationError: If the mapping is not a valid RiskConfig.
    """
    with open(path) as f:
        data: Any = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Risk config must be a mapping: {path}")
    return RiskConfig.model_validate(data)
