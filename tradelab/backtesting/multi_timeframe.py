"""
Multi-timeframe backtest: a primary strategy trades, auxiliary strategies on other
timeframes filter its signals. Auxiliary series never advance past the primary bar's close.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from tradelab.backtesting.engine import BacktestResult, CandleInput, SimulationRun, to_candles
from tradelab.core.config import BacktestSettings, RiskSettings
from tradelab.core.exceptions import InsufficientDataError
from tradelab.core.types import Candle
from tradelab.filters.base import SignalFilter
from tradelab.filters.evaluator import SignalFilterEvaluator
from tradelab.strategies.base import Strategy

logger = logging.getLogger("tradelab.backtest.mtf")


@dataclass
class FilterDefinition:
    """A filter bound to the strategy and candle series that feed it."""
    filter: SignalFilter
    strategy: Strategy
    candles: Sequence[Candle]


@dataclass
class MultiTimeframeBacktestResult:
    result: BacktestResult
    total_signals: int
    approved_signals: int
    blocked_signals: int

    @property
    def approval_rate(self) -> float:
        """Percent of primary signals that passed the filters."""
        if self.total_signals == 0:
            return 0.0
        return self.approved_signals / self.total_signals * 100


class MultiTimeframeBacktester:

    def __init__(
        self,
        risk_settings: Optional[RiskSettings] = None,
        settings: Optional[BacktestSettings] = None,
        scale_by_confidence: bool = False,
        take_profit_first: bool = False,
    ):
        self.risk_settings = risk_settings or RiskSettings()
        self.settings = settings or BacktestSettings()
        self.scale_by_confidence = scale_by_confidence
        self.take_profit_first = take_profit_first

    def run(
        self,
        symbol: str,
        primary_candles: CandleInput,
        primary_strategy: Strategy,
        filters: Sequence[FilterDefinition] = (),
        timeframe: Optional[str] = None,
    ) -> MultiTimeframeBacktestResult:
        candles = to_candles(primary_candles, timeframe)
        if not candles:
            raise InsufficientDataError("Primary candles are required for multi-timeframe backtest")

        primary_strategy.reset()
        for definition in filters:
            definition.strategy.reset()

        run = SimulationRun(symbol, self.settings, self.risk_settings)
        cursors = [0] * len(filters)
        total = approved = blocked = 0

        for candle in candles:
            self._advance_filters(candle, filters, cursors, symbol)
            run.mark_to_market(candle)
            if run.check_forced_exit(candle, self.take_profit_first):
                continue

            signal = primary_strategy.analyze(candle, run.position.quantity, symbol)
            run.sync_stop(primary_strategy)
            if signal is None:
                continue

            total += 1
            decision = SignalFilterEvaluator.evaluate(
                signal, [(d.filter, d.strategy.get_current_state()) for d in filters],
            )
            if not decision.approved:
                blocked += 1
                logger.debug("Signal blocked at %s: %s", candle.open_time, decision.reason)
                continue

            approved += 1
            adjusted = SignalFilterEvaluator.apply_confidence_adjustment(signal, decision.confidence_adjustment)
            scale = 1.0
            if self.scale_by_confidence and decision.confidence_adjustment is not None:
                scale = decision.confidence_adjustment
            run.process_signal(adjusted, candle, primary_strategy, quantity_scale=scale)

        result = run.finish(candles, f"{primary_strategy.name} (Multi-Timeframe)")
        logger.debug(
            "MTF backtest %s: %d signals, %d approved, %d blocked",
            symbol, total, approved, blocked,
        )
        return MultiTimeframeBacktestResult(result, total, approved, blocked)

    @staticmethod
    def _advance_filters(
        candle: Candle,
        filters: Sequence[FilterDefinition],
        cursors: List[int],
        symbol: str,
    ) -> None:
        for i, definition in enumerate(filters):
            series = definition.candles
            idx = cursors[i]
            while idx < len(series) and series[idx].close_time <= candle.close_time:
                definition.strategy.analyze(series[idx], 0, symbol)
                idx += 1
            cursors[i] = idx
