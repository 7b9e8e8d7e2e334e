"""
Position lifecycle during a single backtest run.
"""

from __future__ import annotations
from datetime import datetime, timedelta
from typing import Optional

from tradelab.core.types import TradeDirection


class PositionState:
    """
    Signed quantity (positive long, negative short) plus entry details and MAE/MFE.
    Flat iff quantity == 0; entry_price is None exactly when flat.
    """

    def __init__(self) -> None:
        self.quantity: float = 0.0
        self.entry_price: Optional[float] = None
        self.stop_loss: Optional[float] = None
        self.take_profit: Optional[float] = None
        self.entry_time: Optional[datetime] = None
        self.direction: Optional[TradeDirection] = None
        self.position_value: Optional[float] = None
        self.risk_amount: Optional[float] = None
        self.worst_pnl: float = 0.0
        self.best_pnl: float = 0.0
        self.bars_in_trade: int = 0

    @property
    def has_position(self) -> bool:
        return self.quantity != 0

    @property
    def is_long(self) -> bool:
        return self.quantity > 0

    @property
    def is_short(self) -> bool:
        return self.quantity < 0

    @property
    def absolute_quantity(self) -> float:
        return abs(self.quantity)

    def open(
        self,
        quantity: float,
        entry_price: float,
        direction: TradeDirection,
        entry_time: datetime,
        stop_loss: Optional[float],
        take_profit: Optional[float],
        risk_amount: float,
    ) -> None:
        self.quantity = quantity if direction == TradeDirection.LONG else -quantity
        self.entry_price = entry_price
        self.direction = direction
        self.entry_time = entry_time
        self.stop_loss = stop_loss
        self.take_profit = take_profit
        self.risk_amount = risk_amount
        self.position_value = entry_price * quantity
        self.worst_pnl = 0.0
        self.best_pnl = 0.0
        self.bars_in_trade = 0

    def close(self) -> None:
        self.quantity = 0.0
        self.entry_price = None
        self.stop_loss = None
        self.take_profit = None
        self.entry_time = None
        self.direction = None
        self.position_value = None
        self.risk_amount = None
        self.worst_pnl = 0.0
        self.best_pnl = 0.0
        self.bars_in_trade = 0

    def update_stop_loss(self, new_stop: Optional[float]) -> None:
        """Trailing stop sync; ignored when flat or when no value is given."""
        if new_stop is not None and self.has_position:
            self.stop_loss = new_stop

    def partial_close(self, exit_quantity: float, new_stop: Optional[float] = None) -> None:
        remaining = self.absolute_quantity - exit_quantity
        if remaining <= 0:
            self.close()
            return
        self.quantity = remaining if self.is_long else -remaining
        if new_stop is not None:
            self.stop_loss = new_stop

    def update_excursions(self, unrealized_pnl: float) -> None:
        if unrealized_pnl < self.worst_pnl:
            self.worst_pnl = unrealized_pnl
        if unrealized_pnl > self.best_pnl:
            self.best_pnl = unrealized_pnl
        self.bars_in_trade += 1

    def unrealized_pnl(self, price: float) -> float:
        """Mark-to-market P&L at price, before fees."""
        if self.entry_price is None or not self.has_position:
            return 0.0
        return self.exit_pnl(price, self.absolute_quantity)

    def exit_pnl(self, exit_price: float, quantity: float) -> float:
        if self.entry_price is None:
            return 0.0
        if self.direction == TradeDirection.LONG:
            return (exit_price - self.entry_price) * quantity
        return (self.entry_price - exit_price) * quantity

    def duration(self, now: datetime) -> timedelta:
        return now - self.entry_time if self.entry_time is not None else timedelta(0)
