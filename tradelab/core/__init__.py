"""Core: types, settings, config loading, logging, exceptions."""

from tradelab.core.config import (
    BacktestSettings,
    Config,
    GeneticOptimizerSettings,
    MonteCarloSettings,
    RiskSettings,
    WalkForwardSettings,
    load_config,
)
from tradelab.core.exceptions import InsufficientDataError, NoValidSolutionError, TradelabError
from tradelab.core.logger import setup_logging
from tradelab.core.types import (
    Candle,
    SignalType,
    StrategyState,
    Trade,
    TradeDirection,
    TradeSignal,
    candles_from_frame,
)

__all__ = [
    "BacktestSettings",
    "Config",
    "GeneticOptimizerSettings",
    "MonteCarloSettings",
    "RiskSettings",
    "WalkForwardSettings",
    "load_config",
    "InsufficientDataError",
    "NoValidSolutionError",
    "TradelabError",
    "setup_logging",
    "Candle",
    "SignalType",
    "StrategyState",
    "Trade",
    "TradeDirection",
    "TradeSignal",
    "candles_from_frame",
]
