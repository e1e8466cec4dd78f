"""Tests for ValuationConfig and explicit decimal precision."""

from __future__ import annotations

import decimal
from decimal import Decimal, getcontext, localcontext

import pytest
from pydantic import ValidationError

from overlay_sdk.position import (
    DEFAULT_CONFIG,
    MAX_LEVERAGE_SENTINEL,
    Position,
    ValuationConfig,
    parse_decimal,
    valuation,
)


def _position() -> Position:
    return Position(
        is_long=True,
        leverage=Decimal("3"),
        cost=Decimal("100"),
        debt=Decimal("200"),
        oi_shares=Decimal("300"),
        price_entry=Decimal("3"),
    )


class TestValuationConfig:
    """Configuration validation."""

    def test_defaults(self) -> None:
        config = ValuationConfig()
        assert config.precision == 50
        assert config.rounding == decimal.ROUND_HALF_EVEN
        assert config.max_leverage == MAX_LEVERAGE_SENTINEL

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            DEFAULT_CONFIG.precision = 10  # type: ignore[misc]

    def test_extra_fields_forbidden(self) -> None:
        with pytest.raises(ValidationError):
            ValuationConfig(precision=20, scale=4)  # type: ignore[call-arg]

    def test_invalid_precision(self) -> None:
        with pytest.raises(ValidationError, match="precision"):
            ValuationConfig(precision=0)

    def test_invalid_rounding(self) -> None:
        with pytest.raises(ValidationError, match="rounding"):
            ValuationConfig(rounding="ROUND_SIDEWAYS")

    @pytest.mark.parametrize("bad", [0, "-1", "NaN"])
    def test_invalid_max_leverage(self, bad: object) -> None:
        with pytest.raises(ValidationError, match="max_leverage"):
            ValuationConfig(max_leverage=bad)

    def test_context_traps_division_by_zero(self) -> None:
        ctx = ValuationConfig(precision=12).context()
        assert ctx.prec == 12
        with pytest.raises(decimal.DivisionByZero):
            ctx.divide(Decimal(1), Decimal(0))

    def test_context_is_fresh_each_call(self) -> None:
        assert DEFAULT_CONFIG.context() is not DEFAULT_CONFIG.context()


class TestExplicitPrecision:
    """The engine uses only the precision it is given."""

    def test_precision_applied(self) -> None:
        # price_frame = 2.2 / 3 is inexact, so the margin depends on precision
        pos = _position()
        coarse = valuation.open_margin(
            pos, Decimal("300"), Decimal("300"), Decimal("2.2"), config=ValuationConfig(precision=4)
        )
        assert coarse == Decimal("0.09091")

    def test_caller_context_ignored(self) -> None:
        pos = _position()
        args = (Decimal("300"), Decimal("300"), Decimal("2.2"))
        expected = valuation.open_margin(pos, *args)
        with localcontext() as ctx:
            ctx.prec = 3
            assert valuation.open_margin(pos, *args) == expected

    def test_caller_context_untouched(self) -> None:
        before = getcontext().prec
        valuation.value(_position(), Decimal("300"), Decimal("300"), Decimal("2.2"))
        assert getcontext().prec == before

    def test_custom_sentinel(self) -> None:
        config = ValuationConfig(max_leverage="1e18")
        lev = valuation.open_leverage(
            _position(), Decimal("300"), Decimal("300"), Decimal("1"), config=config
        )
        assert lev == Decimal("1e18")


class TestParseDecimal:
    """Input coercion shared by the engine and contracts."""

    def test_passthrough(self) -> None:
        d = Decimal("1.25")
        assert parse_decimal(d) is d

    def test_str_int_float(self) -> None:
        assert parse_decimal(" 1.5 ") == Decimal("1.5")
        assert parse_decimal(7) == Decimal("7")
        assert parse_decimal(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("bad", [True, None, [1], "abc"])
    def test_rejected(self, bad: object) -> None:
        with pytest.raises(ValueError):
            parse_decimal(bad)
