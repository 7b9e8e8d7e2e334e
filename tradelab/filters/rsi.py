"""RSI filter: avoid buying overbought / selling oversold."""

from __future__ import annotations

from tradelab.core.types import SignalType, StrategyState, TradeSignal
from tradelab.filters.base import EXIT_PASS, FilterMode, FilterResult, SignalFilter, is_exit


class RsiSignalFilter(SignalFilter):
    name = "RSI Filter"

    def __init__(
        self,
        overbought: float = 70.0,
        oversold: float = 30.0,
        mode: FilterMode = FilterMode.VETO,
    ):
        super().__init__(mode)
        self.overbought = overbought
        self.oversold = oversold

    def evaluate(self, signal: TradeSignal, state: StrategyState) -> FilterResult:
        if state.indicator_value is None:
            return FilterResult(
                approved=self.mode == FilterMode.VETO,
                reason="No RSI value available",
                confidence_adjustment=0.5 if self.mode == FilterMode.SCORE else None,
            )
        rsi = state.indicator_value
        if signal.type == SignalType.BUY:
            return self._evaluate_buy(rsi)
        if signal.type == SignalType.SELL:
            return self._evaluate_sell(rsi)
        if is_exit(signal):
            return EXIT_PASS
        return FilterResult(True, "Unknown signal type", 1.0)

    def _evaluate_buy(self, rsi: float) -> FilterResult:
        if rsi >= self.overbought:
            return FilterResult(False, f"RSI overbought ({rsi:.1f} >= {self.overbought:g})", 0.2)
        if rsi <= self.oversold:
            return FilterResult(
                True, f"RSI oversold ({rsi:.1f} <= {self.oversold:g}) - strong buy confirmation", 1.2,
            )
        # 0 at overbought, 1 at oversold
        ratio = (self.overbought - rsi) / (self.overbought - self.oversold)
        return FilterResult(True, f"RSI neutral ({rsi:.1f})", 0.5 + ratio * 0.5)

    def _evaluate_sell(self, rsi: float) -> FilterResult:
        if rsi <= self.oversold:
            return FilterResult(False, f"RSI oversold ({rsi:.1f} <= {self.oversold:g})", 0.2)
        if rsi >= self.overbought:
            return FilterResult(
                True, f"RSI overbought ({rsi:.1f} >= {self.overbought:g}) - strong sell confirmation", 1.2,
            )
        ratio = (rsi - self.oversold) / (self.overbought - self.oversold)
        return FilterResult(True, f"RSI neutral ({rsi:.1f})", 0.5 + ratio * 0.5)
