"""Utilities: timeframe conversion."""

from tradelab.utils.timeframes import timeframe_delta, timeframe_minutes

__all__ = ["timeframe_delta", "timeframe_minutes"]
