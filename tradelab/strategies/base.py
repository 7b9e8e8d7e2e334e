"""Abstract strategy: the boundary the backtesters drive bar by bar."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional

from tradelab.core.types import Candle, StrategyState, TradeSignal


class Strategy(ABC):
    """
    Opaque signal source. The engine calls analyze once per closed bar in order,
    passing the signed open position (positive long, negative short, 0 flat).
    """

    name: str = "Strategy"

    @abstractmethod
    def analyze(self, candle: Candle, current_position: float, symbol: Optional[str] = None) -> Optional[TradeSignal]:
        """Consume one bar and return a signal or None."""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Drop all indicator state before a new run."""
        pass

    @property
    def current_atr(self) -> Optional[float]:
        """Latest ATR, used as a floor for the sizing stop distance."""
        return None

    @property
    def current_stop_loss(self) -> Optional[float]:
        """Trailing stop the engine copies onto the open position."""
        return None

    def get_current_state(self) -> StrategyState:
        """State read by multi-timeframe filters."""
        return StrategyState()
