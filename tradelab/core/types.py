"""
Core data types: candles, signals, trades and auxiliary strategy state.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional

import pandas as pd

from tradelab.utils.timeframes import timeframe_minutes


class SignalType(str, Enum):
    NONE = "NONE"
    BUY = "BUY"
    SELL = "SELL"
    EXIT = "EXIT"
    PARTIAL_EXIT = "PARTIAL_EXIT"


class TradeDirection(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


@dataclass(frozen=True)
class Candle:
    """OHLCV bar with open and close timestamps."""
    open_time: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float
    close_time: datetime


@dataclass(frozen=True)
class TradeSignal:
    """
    Strategy output for one bar.
    partial_exit_percent accepts a fraction (0.5) or percentage units (50).
    """
    symbol: str
    type: SignalType
    price: float
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    reason: str = ""
    partial_exit_percent: Optional[float] = None
    partial_exit_quantity: Optional[float] = None
    move_stop_to_breakeven: bool = False

    def __post_init__(self) -> None:
        if self.price <= 0:
            raise ValueError(f"Signal price must be positive, got {self.price}")
        if self.partial_exit_quantity is not None and self.partial_exit_quantity <= 0:
            raise ValueError(
                f"Partial exit quantity must be positive, got {self.partial_exit_quantity}"
            )


@dataclass(frozen=True)
class Trade:
    """Closed (or closing) trade. pnl is gross; fees are tracked separately."""
    symbol: str
    entry_time: datetime
    exit_time: Optional[datetime]
    entry_price: float
    exit_price: Optional[float]
    quantity: float
    direction: TradeDirection
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    exit_reason: Optional[str] = None
    fees: float = 0.0

    def __post_init__(self) -> None:
        if self.entry_price <= 0:
            raise ValueError(f"Trade entry price must be positive, got {self.entry_price}")
        if self.quantity <= 0:
            raise ValueError(f"Trade quantity must be positive, got {self.quantity}")

    @property
    def pnl(self) -> Optional[float]:
        if self.exit_price is None:
            return None
        if self.direction == TradeDirection.LONG:
            return (self.exit_price - self.entry_price) * self.quantity
        return (self.entry_price - self.exit_price) * self.quantity

    @property
    def pnl_percent(self) -> Optional[float]:
        if self.exit_price is None:
            return None
        if self.direction == TradeDirection.LONG:
            return (self.exit_price - self.entry_price) / self.entry_price * 100
        return (self.entry_price - self.exit_price) / self.entry_price * 100

    @property
    def net_pnl(self) -> Optional[float]:
        gross = self.pnl
        return None if gross is None else gross - self.fees

    @property
    def holding_period(self) -> Optional[timedelta]:
        if self.exit_time is None:
            return None
        return self.exit_time - self.entry_time


@dataclass
class StrategyState:
    """Snapshot of an auxiliary strategy used by signal filters."""
    last_signal: Optional[SignalType] = None
    indicator_value: Optional[float] = None
    is_overbought: bool = False
    is_oversold: bool = False
    is_trending: bool = False
    custom_values: Dict[str, float] = field(default_factory=dict)

    @property
    def is_ready(self) -> bool:
        """False until the strategy has produced anything a filter can read."""
        return (
            self.indicator_value is not None
            or self.last_signal is not None
            or self.is_overbought
            or self.is_oversold
            or self.is_trending
            or bool(self.custom_values)
        )


def candles_from_frame(df: pd.DataFrame, timeframe: Optional[str] = None) -> List[Candle]:
    """
    Build candles from an OHLCV DataFrame (columns: time or open_time, open, high, low, close,
    volume and optionally close_time). Without close_time the timeframe sets the bar length.
    """
    time_col = "open_time" if "open_time" in df.columns else "time"
    open_times = pd.to_datetime(df[time_col])
    if "close_time" in df.columns:
        close_times = pd.to_datetime(df["close_time"])
    elif timeframe is not None:
        close_times = open_times + pd.Timedelta(minutes=timeframe_minutes(timeframe))
    else:
        raise ValueError("DataFrame has no close_time column and no timeframe was given")

    candles = []
    for row, opened, closed in zip(df.itertuples(index=False), open_times, close_times):
        candles.append(Candle(
            open_time=opened.to_pydatetime(),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
            close_time=closed.to_pydatetime(),
        ))
    return candles
