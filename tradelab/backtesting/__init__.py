"""Backtesting: bar-by-bar simulation, multi-timeframe filtering, walk-forward analysis."""

from tradelab.backtesting.engine import BacktestEngine, BacktestResult, SimulationRun, to_candles
from tradelab.backtesting.exits import ExitCheckResult, check_exit, check_stop_loss, check_take_profit
from tradelab.backtesting.multi_timeframe import (
    FilterDefinition,
    MultiTimeframeBacktester,
    MultiTimeframeBacktestResult,
)
from tradelab.backtesting.position import PositionState
from tradelab.backtesting.walk_forward import (
    WalkForwardAnalyzer,
    WalkForwardPeriod,
    WalkForwardResult,
    WalkForwardWindow,
    split_windows,
)

__all__ = [
    "BacktestEngine",
    "BacktestResult",
    "SimulationRun",
    "to_candles",
    "ExitCheckResult",
    "check_exit",
    "check_stop_loss",
    "check_take_profit",
    "FilterDefinition",
    "MultiTimeframeBacktester",
    "MultiTimeframeBacktestResult",
    "PositionState",
    "WalkForwardAnalyzer",
    "WalkForwardPeriod",
    "WalkForwardResult",
    "WalkForwardWindow",
    "split_windows",
]
