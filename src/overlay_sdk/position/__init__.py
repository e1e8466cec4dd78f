"""Position valuation and risk engine.

Pure, stateless arithmetic over an immutable Position plus pool
aggregates supplied by the caller:
- Position value record validated at construction
- value / notional / open leverage / open margin
- underwater and liquidation checks, liquidation price
- explicit decimal precision via ValuationConfig
"""

from overlay_sdk.position import valuation
from overlay_sdk.position.config import (
    DEFAULT_CONFIG,
    MAX_LEVERAGE_SENTINEL,
    ValuationConfig,
    parse_decimal,
)
from overlay_sdk.position.errors import (
    DivisionByZeroError,
    InvalidPositionError,
    ValuationError,
)
from overlay_sdk.position.model import Position
from overlay_sdk.position.types import PositionSide

__all__ = [
    "DEFAULT_CONFIG",
    "MAX_LEVERAGE_SENTINEL",
    "DivisionByZeroError",
    "InvalidPositionError",
    "Position",
    "PositionSide",
    "ValuationConfig",
    "ValuationError",
    "parse_decimal",
    "valuation",
]
