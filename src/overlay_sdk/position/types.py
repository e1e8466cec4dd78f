"""Position enums."""

from enum import Enum


class PositionSide(str, Enum):
    """Side of a leveraged position."""

    LONG = "LONG"
    SHORT = "SHORT"
