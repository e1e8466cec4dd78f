"""Risk reporting contracts.

Wire models around the valuation engine:
- PoolSnapshot: pool aggregates and exit price read by the caller
- PositionRecord: serialized position, converts to a validated Position
- PositionValuation: every engine output for one position
- RejectedPosition: a position the engine refused to value

All contracts forbid extra fields and carry Decimals (serialized as strings).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from overlay_sdk.position import Position, PositionSide, parse_decimal


class _FrozenContract(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
    )


class PoolSnapshot(_FrozenContract):
    """Market reads supplied fresh for one valuation pass."""

    total_oi: Annotated[Decimal, Field(description="Pool-wide open interest")] = Field()
    total_oi_shares: Annotated[Decimal, Field(description="Pool-wide OI share supply")] = Field()
    price_exit: Annotated[Decimal, Field(description="Latest exit price quote")] = Field()

    @field_validator("total_oi", "total_oi_shares", "price_exit", mode="before")
    @classmethod
    def parse_decimal_fields(cls, v: object) -> Decimal:
        """Parse Decimal fields."""
        return parse_decimal(v)

    @field_validator("total_oi")
    @classmethod
    def validate_total_oi(cls, v: Decimal) -> Decimal:
        """Pool open interest cannot be negative."""
        if v < 0:
            raise ValueError(f"total_oi must be >= 0, got {v}")
        return v

    @field_validator("total_oi_shares")
    @classmethod
    def validate_total_oi_shares(cls, v: Decimal) -> Decimal:
        """Share supply cannot be negative.

        Zero is accepted: the engine raises DivisionByZeroError and each
        position is reported as rejected.
        """
        if v < 0:
            raise ValueError(f"total_oi_shares must be >= 0, got {v}")
        return v


class PositionRecord(_FrozenContract):
    """Serialized position as read from the collateral manager."""

    position_id: str = Field(description="Position identifier")
    is_long: bool = Field(description="True for long, False for short")
    leverage: Annotated[Decimal, Field(description="Leverage at entry")] = Field()
    cost: Annotated[Decimal, Field(description="Collateral contributed")] = Field()
    debt: Annotated[Decimal, Field(description="Borrowed amount")] = Field()
    oi_shares: Annotated[Decimal, Field(description="Claim on pooled OI")] = Field()
    price_entry: Annotated[Decimal, Field(description="Entry price")] = Field()

    @field_validator("position_id", mode="before")
    @classmethod
    def validate_position_id(cls, v: object) -> str:
        """Accept integer ids (ERC1155 token ids) as strings."""
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("position_id is required and cannot be empty")
        return str(v)

    @field_validator("leverage", "cost", "debt", "oi_shares", "price_entry", mode="before")
    @classmethod
    def parse_decimal_fields(cls, v: object) -> Decimal:
        """Parse Decimal fields."""
        return parse_decimal(v)

    def to_position(self) -> Position:
        """Build the engine's Position.

        Raises:
            InvalidPositionError: If any field violates a Position invariant.
        """
        return Position(
            is_long=self.is_long,
            leverage=self.leverage,
            cost=self.cost,
            debt=self.debt,
            oi_shares=self.oi_shares,
            price_entry=self.price_entry,
        )


class PositionValuation(_FrozenContract):
    """Engine outputs for one position against one PoolSnapshot."""

    position_id: str = Field(description="Position identifier")
    side: PositionSide = Field(description="LONG or SHORT")
    oi: Annotated[Decimal, Field(description="Share of pooled open interest")] = Field()
    value: Annotated[Decimal, Field(description="Current value (>= 0)")] = Field()
    notional: Annotated[Decimal, Field(description="value + debt")] = Field()
    open_leverage: Annotated[
        Decimal,
        Field(description="notional / value, max_leverage sentinel when value is zero"),
    ] = Field()
    open_margin: Annotated[Decimal, Field(description="value / notional")] = Field()
    maintenance_margin: Annotated[
        Decimal,
        Field(description="initial_oi * margin_maintenance"),
    ] = Field()
    is_underwater: bool = Field(description="Payoff no longer covers debt")
    is_liquidatable: bool = Field(description="value < maintenance_margin")
    liquidation_price: Decimal | None = Field(
        default=None,
        description="Exit price at the maintenance boundary (None when oi is zero)",
    )


class RejectedPosition(_FrozenContract):
    """A position that could not be valued, with the reason."""

    position_id: str = Field(description="Position identifier")
    reason: str = Field(description="Error message from the engine")
