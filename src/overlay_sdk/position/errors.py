"""Exceptions raised by the position valuation engine."""

from __future__ import annotations


class ValuationError(Exception):
    """Base exception for position valuation failures."""


class DivisionByZeroError(ValuationError, ZeroDivisionError):
    """Raised when a valuation divisor is zero.

    Divisors are total_oi_shares, price_entry and the position's oi.
    These are precondition violations: validate pool and market state
    before calling the engine.
    """


class InvalidPositionError(ValuationError, ValueError):
    """Raised when a Position field violates its invariant at construction."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"invalid position {field}: {message}")
        self.field = field
