"""Overlay protocol client SDK: position valuation and risk engine."""

__version__ = "0.1.0"
