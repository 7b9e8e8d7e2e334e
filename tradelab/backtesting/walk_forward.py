"""
Walk-forward analysis: roll an in-sample / out-of-sample window pair across the
history and compare out-of-sample performance with in-sample performance.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from tradelab.backtesting.engine import BacktestEngine, BacktestResult, CandleInput, to_candles
from tradelab.core.config import BacktestSettings, RiskSettings, WalkForwardSettings
from tradelab.strategies.base import Strategy

logger = logging.getLogger("tradelab.walk_forward")


@dataclass(frozen=True)
class WalkForwardWindow:
    """Bar index ranges (end exclusive) of one in-sample / out-of-sample pair."""
    in_sample_start: int
    in_sample_end: int
    out_of_sample_start: int
    out_of_sample_end: int


def split_windows(
    n_bars: int,
    in_sample_ratio: float = 0.7,
    out_of_sample_ratio: float = 0.2,
    step_ratio: float = 0.1,
) -> List[WalkForwardWindow]:
    """
    Rolling windows sized as fractions of n_bars. A window is emitted while the
    whole out-of-sample slice still fits. The step is at least one bar.
    """
    window = int(n_bars * in_sample_ratio)
    oos = int(n_bars * out_of_sample_ratio)
    step = max(1, int(n_bars * step_ratio))
    if window < 1 or oos < 1:
        return []
    windows = []
    start = 0
    while start + window + oos <= n_bars:
        windows.append(WalkForwardWindow(
            in_sample_start=start,
            in_sample_end=start + window,
            out_of_sample_start=start + window,
            out_of_sample_end=start + window + oos,
        ))
        start += step
    return windows


@dataclass
class WalkForwardPeriod:
    in_sample_start: datetime
    in_sample_end: datetime
    out_of_sample_start: datetime
    out_of_sample_end: datetime
    in_sample_result: BacktestResult
    out_of_sample_result: BacktestResult

    @property
    def wfe(self) -> float:
        """Out-of-sample over in-sample annualized return, in percent."""
        is_return = self.in_sample_result.metrics.annualized_return
        if is_return == 0:
            return 0.0
        return self.out_of_sample_result.metrics.annualized_return / is_return * 100


@dataclass
class WalkForwardResult:
    walk_forward_efficiency: float = 0.0
    average_oos_return: float = 0.0
    average_oos_sharpe: float = 0.0
    average_oos_max_drawdown: float = 0.0
    oos_consistency: float = 0.0
    periods: List[WalkForwardPeriod] = field(default_factory=list)
    is_robust: bool = False


class WalkForwardAnalyzer:
    """Each slice is run with a fresh strategy from the factory."""

    def __init__(self, settings: Optional[WalkForwardSettings] = None):
        self.settings = settings or WalkForwardSettings()

    def analyze(
        self,
        candles: CandleInput,
        symbol: str,
        strategy_factory: Callable[[], Strategy],
        risk_settings: Optional[RiskSettings] = None,
        backtest_settings: Optional[BacktestSettings] = None,
    ) -> WalkForwardResult:
        candles = to_candles(candles)
        s = self.settings
        windows = split_windows(len(candles), s.in_sample_ratio, s.out_of_sample_ratio, s.step_ratio)
        if not windows:
            logger.warning("Walk-forward: %d candles are too few for a single window", len(candles))
            return WalkForwardResult()

        periods = []
        for w in windows:
            is_candles = candles[w.in_sample_start:w.in_sample_end]
            oos_candles = candles[w.out_of_sample_start:w.out_of_sample_end]
            is_result = BacktestEngine(strategy_factory(), risk_settings, backtest_settings).run(is_candles, symbol)
            oos_result = BacktestEngine(strategy_factory(), risk_settings, backtest_settings).run(oos_candles, symbol)
            periods.append(WalkForwardPeriod(
                in_sample_start=is_candles[0].open_time,
                in_sample_end=is_candles[-1].close_time,
                out_of_sample_start=oos_candles[0].open_time,
                out_of_sample_end=oos_candles[-1].close_time,
                in_sample_result=is_result,
                out_of_sample_result=oos_result,
            ))

        result = self._summarize(periods)
        logger.info(
            "Walk-forward %s: %d periods, WFE %.1f%%, consistency %.1f%%, robust=%s",
            symbol, len(periods), result.walk_forward_efficiency, result.oos_consistency, result.is_robust,
        )
        return result

    def _summarize(self, periods: List[WalkForwardPeriod]) -> WalkForwardResult:
        n = len(periods)
        avg_is = sum(p.in_sample_result.metrics.annualized_return for p in periods) / n
        avg_oos = sum(p.out_of_sample_result.metrics.annualized_return for p in periods) / n
        wfe = avg_oos / avg_is * 100 if avg_is != 0 else 0.0
        profitable = sum(1 for p in periods if p.out_of_sample_result.metrics.total_return > 0)
        consistency = profitable / n * 100
        avg_sharpe = sum(p.out_of_sample_result.metrics.sharpe_ratio for p in periods) / n
        avg_dd = sum(p.out_of_sample_result.metrics.max_drawdown_percent for p in periods) / n

        s = self.settings
        robust = (
            wfe >= s.min_wfe_threshold
            and consistency >= s.min_consistency_threshold
            and avg_sharpe >= s.min_sharpe_threshold
        )
        return WalkForwardResult(
            walk_forward_efficiency=wfe,
            average_oos_return=avg_oos,
            average_oos_sharpe=avg_sharpe,
            average_oos_max_drawdown=avg_dd,
            oos_consistency=consistency,
            periods=periods,
            is_robust=robust,
        )
