"""Multi-timeframe signal filters and their combination rules."""

from tradelab.filters.adx import AdxSignalFilter
from tradelab.filters.base import FilterMode, FilterResult, SignalFilter
from tradelab.filters.evaluator import SignalFilterEvaluator
from tradelab.filters.rsi import RsiSignalFilter
from tradelab.filters.trend import TrendAlignmentFilter

__all__ = [
    "AdxSignalFilter",
    "FilterMode",
    "FilterResult",
    "SignalFilter",
    "SignalFilterEvaluator",
    "RsiSignalFilter",
    "TrendAlignmentFilter",
]
