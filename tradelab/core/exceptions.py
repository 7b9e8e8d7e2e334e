"""Exceptions raised by the backtesting and optimization core."""


class TradelabError(Exception):
    """Base class for tradelab errors."""


class InsufficientDataError(TradelabError, ValueError):
    """Not enough candles for a backtest or optimization run."""


class NoValidSolutionError(TradelabError, RuntimeError):
    """Optimizer finished without a single successful fitness evaluation."""
