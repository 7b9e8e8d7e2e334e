"""ADX filter: require a minimum trend strength, reward strong trends."""

from __future__ import annotations

from tradelab.core.types import StrategyState, TradeSignal
from tradelab.filters.base import EXIT_PASS, FilterMode, FilterResult, SignalFilter, is_exit


class AdxSignalFilter(SignalFilter):
    name = "ADX Trend Strength Filter"

    def __init__(
        self,
        min_trend_strength: float = 20.0,
        strong_trend_threshold: float = 30.0,
        mode: FilterMode = FilterMode.SCORE,
    ):
        super().__init__(mode)
        self.min_trend_strength = min_trend_strength
        self.strong_trend_threshold = strong_trend_threshold

    def evaluate(self, signal: TradeSignal, state: StrategyState) -> FilterResult:
        if state.indicator_value is None:
            return FilterResult(
                approved=self.mode == FilterMode.VETO,
                reason="No ADX value available",
                confidence_adjustment=0.5 if self.mode == FilterMode.SCORE else None,
            )
        if is_exit(signal):
            return EXIT_PASS

        adx = state.indicator_value
        if adx < self.min_trend_strength:
            return FilterResult(
                False,
                f"Trend too weak (ADX {adx:.1f} < {self.min_trend_strength:g})",
                self.confidence(adx),
            )
        if adx >= self.strong_trend_threshold:
            return FilterResult(
                True, f"Strong trend confirmed (ADX {adx:.1f} >= {self.strong_trend_threshold:g})", 1.2,
            )
        return FilterResult(True, f"Moderate trend (ADX {adx:.1f})", self.confidence(adx))

    def confidence(self, adx: float) -> float:
        """0.2-0.5 below the minimum, 0.5-1.0 between thresholds, 1.0-1.2 above (capped 20 points up)."""
        if adx < self.min_trend_strength:
            return 0.2 + adx / self.min_trend_strength * 0.3
        if adx >= self.strong_trend_threshold:
            excess = min(adx - self.strong_trend_threshold, 20.0)
            return 1.0 + excess / 20.0 * 0.2
        span = self.strong_trend_threshold - self.min_trend_strength
        return 0.5 + (adx - self.min_trend_strength) / span * 0.5
