"""Valuation configuration.

ValuationConfig is frozen (immutable) and carries the decimal precision
used by every valuation call. It is passed explicitly; the engine never
reads or mutates the caller's ambient decimal context.
"""

from __future__ import annotations

import decimal
from decimal import Context, Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Number.MAX_SAFE_INTEGER, reported as open leverage once value is fully eroded
MAX_LEVERAGE_SENTINEL = Decimal(2**53 - 1)

ROUNDING_MODES = frozenset(
    {
        decimal.ROUND_CEILING,
        decimal.ROUND_DOWN,
        decimal.ROUND_FLOOR,
        decimal.ROUND_HALF_DOWN,
        decimal.ROUND_HALF_EVEN,
        decimal.ROUND_HALF_UP,
        decimal.ROUND_UP,
        decimal.ROUND_05UP,
    }
)


def parse_decimal(v: object) -> Decimal:
    """Parse value to Decimal safely.

    Accepts:
    - Decimal (passthrough)
    - str (parsed to Decimal)
    - int (converted via string to avoid precision loss)
    - float (NOT recommended, but converted via string)

    bool is rejected even though it is an int subclass.
    """
    if isinstance(v, bool):
        raise ValueError("Cannot convert bool to Decimal")
    if isinstance(v, Decimal):
        return v
    if isinstance(v, str):
        try:
            return Decimal(v.strip())
        except decimal.InvalidOperation as e:
            raise ValueError(f"Cannot parse {v!r} as Decimal") from e
    if isinstance(v, int):
        return Decimal(str(v))
    if isinstance(v, float):
        # Convert via string to preserve representation
        return Decimal(str(v))
    raise ValueError(f"Cannot convert {type(v).__name__} to Decimal")


class ValuationConfig(BaseModel):
    """Decimal arithmetic settings for the valuation engine (frozen)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    precision: int = Field(
        default=50,
        ge=1,
        description="Significant digits for every valuation computation",
    )
    rounding: str = Field(
        default=decimal.ROUND_HALF_EVEN,
        description="decimal rounding mode (e.g. ROUND_HALF_EVEN)",
    )
    max_leverage: Annotated[
        Decimal,
        Field(description="Open leverage reported when position value is zero"),
    ] = Field(default=MAX_LEVERAGE_SENTINEL)

    @field_validator("rounding")
    @classmethod
    def validate_rounding(cls, v: str) -> str:
        """Ensure rounding is one of the decimal module constants."""
        if v not in ROUNDING_MODES:
            raise ValueError(f"Unknown rounding mode: {v}")
        return v

    @field_validator("max_leverage", mode="before")
    @classmethod
    def parse_max_leverage(cls, v: object) -> Decimal:
        """Parse and bound the leverage sentinel."""
        value = parse_decimal(v)
        if not value.is_finite() or value <= 0:
            raise ValueError("max_leverage must be a positive finite number")
        return value

    def context(self) -> Context:
        """Build a fresh decimal Context for one valuation call."""
        return Context(
            prec=self.precision,
            rounding=self.rounding,
            traps=[decimal.DivisionByZero, decimal.InvalidOperation, decimal.Overflow],
        )


DEFAULT_CONFIG = ValuationConfig()
