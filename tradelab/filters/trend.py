"""Trend alignment filter: the auxiliary timeframe should lean the same way as the signal."""

from __future__ import annotations

from tradelab.core.types import SignalType, StrategyState, TradeSignal
from tradelab.filters.base import EXIT_PASS, FilterMode, FilterResult, SignalFilter, is_exit


def _bias_votes(state: StrategyState) -> tuple:
    """(bullish, bearish) vote counts from the filter state."""
    bullish = bearish = 0
    if state.last_signal == SignalType.BUY:
        bullish += 1
    elif state.last_signal == SignalType.SELL:
        bearish += 1
    if state.is_oversold:
        bullish += 1
    if state.is_overbought:
        bearish += 1
    ema_trend = state.custom_values.get("EmaTrend")
    if ema_trend is not None:
        if ema_trend > 0:
            bullish += 1
        elif ema_trend < 0:
            bearish += 1
    return bullish, bearish


def _filter_direction(state: StrategyState) -> str:
    if state.is_overbought:
        return "bearish (overbought)"
    if state.is_oversold:
        return "bullish (oversold)"
    if state.last_signal == SignalType.BUY:
        return "bullish"
    if state.last_signal == SignalType.SELL:
        return "bearish"
    return "neutral"


class TrendAlignmentFilter(SignalFilter):
    name = "Trend Alignment Filter"

    def __init__(self, mode: FilterMode = FilterMode.CONFIRM, require_strict_alignment: bool = True):
        super().__init__(mode)
        self.require_strict_alignment = require_strict_alignment

    def evaluate(self, signal: TradeSignal, state: StrategyState) -> FilterResult:
        if is_exit(signal):
            return EXIT_PASS
        if not state.is_trending:
            return FilterResult(self.mode == FilterMode.VETO, "Filter shows no clear trend", 0.5)

        aligned = self.is_aligned(signal.type, state)
        direction = "bullish" if signal.type == SignalType.BUY else "bearish"
        label = "aligned" if aligned else "misaligned"
        reason = f"Trend {label}: Primary {direction}, Filter {_filter_direction(state)}"
        if aligned:
            return FilterResult(True, reason, 1.2)
        if self.require_strict_alignment:
            return FilterResult(False, reason, 0.2)
        return FilterResult(True, reason + " (allowed with reduced confidence)", 0.5)

    @staticmethod
    def is_aligned(signal_type: SignalType, state: StrategyState) -> bool:
        bullish, bearish = _bias_votes(state)
        # a trending state counts once more towards whichever side it already leans
        if state.is_trending:
            if signal_type == SignalType.SELL:
                if state.is_overbought or state.last_signal == SignalType.SELL:
                    bearish += 1
                elif state.is_oversold or state.last_signal == SignalType.BUY:
                    bullish += 1
            else:
                if state.is_oversold or state.last_signal == SignalType.BUY:
                    bullish += 1
                elif state.is_overbought or state.last_signal == SignalType.SELL:
                    bearish += 1
        if signal_type == SignalType.BUY:
            return bullish > bearish
        if signal_type == SignalType.SELL:
            return bearish > bullish
        return True
