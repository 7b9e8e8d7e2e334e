"""Strategies: base interface consumed by the backtesters."""

from tradelab.strategies.base import Strategy

__all__ = ["Strategy"]
