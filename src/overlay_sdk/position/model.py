"""Position value record.

A Position is created once from on-chain state when the position is
opened and is never mutated afterwards. All economic quantities are
derived on demand by overlay_sdk.position.valuation from the record plus
pool aggregates supplied by the caller.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from overlay_sdk.position import valuation
from overlay_sdk.position.config import parse_decimal
from overlay_sdk.position.errors import InvalidPositionError
from overlay_sdk.position.types import PositionSide

if TYPE_CHECKING:
    from overlay_sdk.position.config import ValuationConfig

# field -> whether zero is allowed
_DECIMAL_FIELDS: tuple[tuple[str, bool], ...] = (
    ("leverage", False),
    ("cost", False),
    ("debt", True),
    ("oi_shares", False),
    ("price_entry", False),
)


@dataclass(frozen=True)
class Position:
    """Immutable snapshot of a leveraged position.

    Attributes:
        is_long: Side of the trade.
        leverage: Nominal leverage chosen at entry (> 0).
        cost: Collateral contributed by the trader (> 0).
        debt: Borrowed amount funding the open interest (>= 0).
        oi_shares: Claim on the pooled open interest (> 0).
        price_entry: Price of the underlying at entry (> 0).
    """

    is_long: bool
    leverage: Decimal
    cost: Decimal
    debt: Decimal
    oi_shares: Decimal
    price_entry: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.is_long, bool):
            raise InvalidPositionError(
                "is_long", f"expected bool, got {type(self.is_long).__name__}"
            )

        for name, allow_zero in _DECIMAL_FIELDS:
            raw = getattr(self, name)
            try:
                value = parse_decimal(raw)
            except ValueError as e:
                raise InvalidPositionError(name, str(e)) from e
            if not value.is_finite():
                raise InvalidPositionError(name, f"must be finite, got {value}")
            if value < 0 or (value == 0 and not allow_zero):
                bound = ">= 0" if allow_zero else "> 0"
                raise InvalidPositionError(name, f"must be {bound}, got {value}")
            object.__setattr__(self, name, value)

    @property
    def side(self) -> PositionSide:
        return PositionSide.LONG if self.is_long else PositionSide.SHORT

    @property
    def initial_oi(self) -> Decimal:
        """Open interest the position was opened with (cost + debt)."""
        return valuation.initial_oi(self)

    def replace(self, **changes: Any) -> Position:
        """Return a new validated Position with the given fields changed."""
        return dataclasses.replace(self, **changes)

    def oi(
        self,
        total_oi: Decimal,
        total_oi_shares: Decimal,
        *,
        config: ValuationConfig | None = None,
    ) -> Decimal:
        return valuation.oi(self, total_oi, total_oi_shares, config=config)

    def value(
        self,
        total_oi: Decimal,
        total_oi_shares: Decimal,
        price_exit: Decimal,
        *,
        config: ValuationConfig | None = None,
    ) -> Decimal:
        return valuation.value(self, total_oi, total_oi_shares, price_exit, config=config)

    def is_underwater(
        self,
        total_oi: Decimal,
        total_oi_shares: Decimal,
        price_exit: Decimal,
        *,
        config: ValuationConfig | None = None,
    ) -> bool:
        return valuation.is_underwater(self, total_oi, total_oi_shares, price_exit, config=config)

    def notional(
        self,
        total_oi: Decimal,
        total_oi_shares: Decimal,
        price_exit: Decimal,
        *,
        config: ValuationConfig | None = None,
    ) -> Decimal:
        return valuation.notional(self, total_oi, total_oi_shares, price_exit, config=config)

    def open_leverage(
        self,
        total_oi: Decimal,
        total_oi_shares: Decimal,
        price_exit: Decimal,
        *,
        config: ValuationConfig | None = None,
    ) -> Decimal:
        return valuation.open_leverage(self, total_oi, total_oi_shares, price_exit, config=config)

    def open_margin(
        self,
        total_oi: Decimal,
        total_oi_shares: Decimal,
        price_exit: Decimal,
        *,
        config: ValuationConfig | None = None,
    ) -> Decimal:
        return valuation.open_margin(self, total_oi, total_oi_shares, price_exit, config=config)

    def is_liquidatable(
        self,
        total_oi: Decimal,
        total_oi_shares: Decimal,
        price_exit: Decimal,
        margin_maintenance: Decimal,
        *,
        config: ValuationConfig | None = None,
    ) -> bool:
        return valuation.is_liquidatable(
            self, total_oi, total_oi_shares, price_exit, margin_maintenance, config=config
        )

    def liquidation_price(
        self,
        total_oi: Decimal,
        total_oi_shares: Decimal,
        margin_maintenance: Decimal,
        *,
        config: ValuationConfig | None = None,
    ) -> Decimal:
        return valuation.liquidation_price(
            self, total_oi, total_oi_shares, margin_maintenance, config=config
        )
