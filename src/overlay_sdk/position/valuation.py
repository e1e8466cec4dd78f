"""Position valuation engine.

Pure functions deriving economic state from a Position plus pool
aggregates supplied fresh by the caller:

    oi -> value -> notional -> open_leverage / open_margin
       -> is_underwater / is_liquidatable -> liquidation_price

Payoff per side, with price_frame = price_exit / price_entry:
- long:  value = raw - min(raw, debt),               raw = oi * price_frame
- short: value = raw - min(raw, debt + oi * frame),  raw = oi * 2

Both payoffs are floored at zero. liquidation_price is the inverse of
is_liquidatable holding oi fixed at the pool snapshot of the call.

Every public function evaluates inside decimal.localcontext() built from
the ValuationConfig, so results depend only on the explicit arguments.
"""

from __future__ import annotations

from decimal import Decimal, localcontext
from typing import TYPE_CHECKING

from overlay_sdk.position.config import DEFAULT_CONFIG, ValuationConfig, parse_decimal
from overlay_sdk.position.errors import DivisionByZeroError

if TYPE_CHECKING:
    from overlay_sdk.position.model import Position

ZERO = Decimal("0")
TWO = Decimal("2")


def _resolve(config: ValuationConfig | None) -> ValuationConfig:
    return config if config is not None else DEFAULT_CONFIG


def _oi(position: Position, total_oi: Decimal, total_oi_shares: Decimal) -> Decimal:
    if total_oi_shares == 0:
        raise DivisionByZeroError("cannot value position: pool has zero share supply")
    return position.oi_shares * total_oi / total_oi_shares


def _price_frame(position: Position, price_exit: Decimal) -> Decimal:
    if position.price_entry == 0:
        raise DivisionByZeroError("cannot value position: entry price is zero")
    return price_exit / position.price_entry


def _payoff(position: Position, oi: Decimal, price_frame: Decimal) -> tuple[Decimal, Decimal]:
    """Return (raw, cap) for the side; value is raw - min(raw, cap)."""
    if position.is_long:
        return oi * price_frame, position.debt
    # oi * 2, not oi / 2: liquidation_price's (2 - oi_frame) inverts this form
    return oi * TWO, position.debt + oi * price_frame


def _value(
    position: Position,
    total_oi: Decimal,
    total_oi_shares: Decimal,
    price_exit: Decimal,
) -> Decimal:
    oi = _oi(position, total_oi, total_oi_shares)
    raw, cap = _payoff(position, oi, _price_frame(position, price_exit))
    return raw - min(raw, cap)


def initial_oi(position: Position) -> Decimal:
    """Open interest at entry, before dilution of the shared pool."""
    return position.cost + position.debt


def oi(
    position: Position,
    total_oi: Decimal,
    total_oi_shares: Decimal,
    *,
    config: ValuationConfig | None = None,
) -> Decimal:
    """Pro-rata share of pooled open interest.

    Args:
        position: Position to value.
        total_oi: Pool-wide open interest.
        total_oi_shares: Pool-wide share supply.
        config: Decimal settings (default DEFAULT_CONFIG).

    Returns:
        oi_shares * total_oi / total_oi_shares.

    Raises:
        DivisionByZeroError: If total_oi_shares is zero.
    """
    with localcontext(_resolve(config).context()):
        return _oi(position, parse_decimal(total_oi), parse_decimal(total_oi_shares))


def value(
    position: Position,
    total_oi: Decimal,
    total_oi_shares: Decimal,
    price_exit: Decimal,
    *,
    config: ValuationConfig | None = None,
) -> Decimal:
    """Current collateral-equivalent value of the position, never negative.

    Raises:
        DivisionByZeroError: If total_oi_shares or price_entry is zero.
    """
    with localcontext(_resolve(config).context()):
        return _value(
            position,
            parse_decimal(total_oi),
            parse_decimal(total_oi_shares),
            parse_decimal(price_exit),
        )


def is_underwater(
    position: Position,
    total_oi: Decimal,
    total_oi_shares: Decimal,
    price_exit: Decimal,
    *,
    config: ValuationConfig | None = None,
) -> bool:
    """Whether the payoff no longer covers its cap.

    Long: oi * price_frame <= debt.
    Short: oi * 2 <= debt + oi * price_frame.

    True exactly when value(...) is zero.
    """
    with localcontext(_resolve(config).context()):
        oi_ = _oi(position, parse_decimal(total_oi), parse_decimal(total_oi_shares))
        raw, cap = _payoff(position, oi_, _price_frame(position, parse_decimal(price_exit)))
        return raw <= cap


def notional(
    position: Position,
    total_oi: Decimal,
    total_oi_shares: Decimal,
    price_exit: Decimal,
    *,
    config: ValuationConfig | None = None,
) -> Decimal:
    """Total exposure: value + debt."""
    with localcontext(_resolve(config).context()):
        v = _value(
            position,
            parse_decimal(total_oi),
            parse_decimal(total_oi_shares),
            parse_decimal(price_exit),
        )
        return v + position.debt


def open_leverage(
    position: Position,
    total_oi: Decimal,
    total_oi_shares: Decimal,
    price_exit: Decimal,
    *,
    config: ValuationConfig | None = None,
) -> Decimal:
    """Effective leverage: notional / value.

    Returns config.max_leverage when value is zero. The sentinel means
    "no residual margin" and must not be used in further arithmetic.
    """
    cfg = _resolve(config)
    with localcontext(cfg.context()):
        v = _value(
            position,
            parse_decimal(total_oi),
            parse_decimal(total_oi_shares),
            parse_decimal(price_exit),
        )
        if v == 0:
            return cfg.max_leverage
        return (v + position.debt) / v


def open_margin(
    position: Position,
    total_oi: Decimal,
    total_oi_shares: Decimal,
    price_exit: Decimal,
    *,
    config: ValuationConfig | None = None,
) -> Decimal:
    """Margin ratio: value / notional, or zero when notional is zero."""
    with localcontext(_resolve(config).context()):
        v = _value(
            position,
            parse_decimal(total_oi),
            parse_decimal(total_oi_shares),
            parse_decimal(price_exit),
        )
        n = v + position.debt
        if n == 0:
            return ZERO
        return v / n


def is_liquidatable(
    position: Position,
    total_oi: Decimal,
    total_oi_shares: Decimal,
    price_exit: Decimal,
    margin_maintenance: Decimal,
    *,
    config: ValuationConfig | None = None,
) -> bool:
    """Whether value has fallen below initial_oi * margin_maintenance."""
    with localcontext(_resolve(config).context()):
        v = _value(
            position,
            parse_decimal(total_oi),
            parse_decimal(total_oi_shares),
            parse_decimal(price_exit),
        )
        return v < initial_oi(position) * parse_decimal(margin_maintenance)


def liquidation_price(
    position: Position,
    total_oi: Decimal,
    total_oi_shares: Decimal,
    margin_maintenance: Decimal,
    *,
    config: ValuationConfig | None = None,
) -> Decimal:
    """Exit price at which value reaches initial_oi * margin_maintenance.

    oi_frame = (initial_oi * margin_maintenance + debt) / oi
    - long:  price_entry * oi_frame
    - short: price_entry * (2 - oi_frame)

    A short result may be negative when the position cannot be
    liquidated by any positive price move.

    Raises:
        DivisionByZeroError: If total_oi_shares or the resulting oi is zero.
    """
    with localcontext(_resolve(config).context()):
        oi_ = _oi(position, parse_decimal(total_oi), parse_decimal(total_oi_shares))
        if oi_ == 0:
            raise DivisionByZeroError(
                "cannot compute liquidation price: position has zero open interest"
            )
        maintenance = initial_oi(position) * parse_decimal(margin_maintenance)
        oi_frame = (maintenance + position.debt) / oi_
        if position.is_long:
            return position.price_entry * oi_frame
        return position.price_entry * (TWO - oi_frame)
