"""
Risk manager: drawdown-aware position sizing and portfolio heat.
Position size = risk amount / stop distance (lose the risk amount if the stop is hit).
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional

from tradelab.core.config import RiskSettings
from tradelab.core.types import TradeDirection

logger = logging.getLogger("tradelab.risk")


@dataclass(frozen=True)
class PositionSizeResult:
    quantity: float
    risk_amount: float
    stop_distance: float


@dataclass
class OpenPosition:
    """Risk ledger entry for one open position."""
    symbol: str
    direction: TradeDirection
    quantity: float
    risk_amount: float
    entry_price: float
    stop_loss: float
    current_price: float


class RiskManager:
    """
    Tracks peak/current equity and the risk committed to open positions.
    One instance per backtest run; not shared between threads.
    """

    def __init__(self, settings: RiskSettings, initial_capital: float):
        self.settings = settings
        self._peak_equity = initial_capital
        self._current_equity = initial_capital
        self._open_positions: List[OpenPosition] = []

    @property
    def current_equity(self) -> float:
        return self._current_equity

    @property
    def peak_equity(self) -> float:
        return self._peak_equity

    @property
    def open_positions(self) -> List[OpenPosition]:
        return list(self._open_positions)

    @property
    def current_drawdown(self) -> float:
        """Drawdown from peak equity in percent."""
        if self._peak_equity <= 0:
            return 0.0
        return (self._peak_equity - self._current_equity) / self._peak_equity * 100

    @property
    def portfolio_heat(self) -> float:
        """Risk committed to open positions as percent of current equity."""
        if self._current_equity <= 0:
            return 0.0
        return sum(p.risk_amount for p in self._open_positions) / self._current_equity * 100

    def update_equity(self, equity: float) -> None:
        self._current_equity = equity
        if equity > self._peak_equity:
            self._peak_equity = equity

    def drawdown_adjusted_risk(self) -> float:
        """Risk per trade in percent, cut back in steps as drawdown deepens."""
        base = self.settings.risk_per_trade_percent
        dd = self.current_drawdown
        if dd >= 20:
            return base * 0.25
        if dd >= 15:
            return base * 0.50
        if dd >= 10:
            return base * 0.75
        if dd >= 5:
            return base * 0.90
        return base

    def calculate_position_size(
        self,
        entry_price: float,
        stop_loss_price: float,
        atr: Optional[float] = None,
    ) -> PositionSizeResult:
        """
        Size a position so that hitting the stop loses the drawdown-adjusted risk amount.
        An ATR widens the stop distance to at least atr * atr_stop_multiplier.
        """
        stop_distance = abs(entry_price - stop_loss_price)
        if atr is not None:
            stop_distance = max(stop_distance, atr * self.settings.atr_stop_multiplier)

        risk_percent = self.drawdown_adjusted_risk()
        risk_amount = self._current_equity * risk_percent / 100

        heat = self.portfolio_heat
        if heat + risk_percent > self.settings.max_portfolio_heat_percent:
            available = max(0.0, self.settings.max_portfolio_heat_percent - heat)
            risk_amount = self._current_equity * available / 100

        quantity = risk_amount / stop_distance if stop_distance > 0 else 0.0
        return PositionSizeResult(quantity=quantity, risk_amount=risk_amount, stop_distance=stop_distance)

    def can_open_position(self) -> bool:
        """Minimum equity, drawdown circuit breaker and heat limit."""
        if self._current_equity < self.settings.minimum_equity_usd:
            logger.debug("Entry blocked: equity %.2f < %.2f", self._current_equity, self.settings.minimum_equity_usd)
            return False
        if self.current_drawdown >= self.settings.max_drawdown_percent:
            logger.debug("Entry blocked: drawdown %.2f%% >= %.2f%%", self.current_drawdown, self.settings.max_drawdown_percent)
            return False
        if self.portfolio_heat >= self.settings.max_portfolio_heat_percent:
            logger.debug("Entry blocked: portfolio heat %.2f%%", self.portfolio_heat)
            return False
        return True

    def add_position(
        self,
        symbol: str,
        direction: TradeDirection,
        quantity: float,
        risk_amount: float,
        entry_price: float,
        stop_loss: float,
        current_price: Optional[float] = None,
    ) -> None:
        self._open_positions.append(OpenPosition(
            symbol=symbol,
            direction=direction,
            quantity=quantity,
            risk_amount=risk_amount,
            entry_price=entry_price,
            stop_loss=stop_loss,
            current_price=entry_price if current_price is None else current_price,
        ))

    def update_position_after_partial_exit(
        self,
        symbol: str,
        remaining_quantity: float,
        stop_loss: float,
        breakeven_moved: bool,
        current_price: float,
    ) -> None:
        """Shrink the ledger entry; a stop at breakeven leaves no risk on the remainder."""
        for pos in self._open_positions:
            if pos.symbol != symbol:
                continue
            pos.quantity = remaining_quantity
            pos.stop_loss = pos.entry_price if breakeven_moved else stop_loss
            pos.risk_amount = abs(pos.entry_price - pos.stop_loss) * remaining_quantity
            pos.current_price = current_price

    def remove_position(self, symbol: str) -> None:
        self._open_positions = [p for p in self._open_positions if p.symbol != symbol]

    def clear_positions(self) -> None:
        self._open_positions.clear()
