"""
Backtest engine: bar-by-bar simulation on closed candles with slippage and fees.
Stops are checked before targets; fees are charged on entry and exit notional at close.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence, Union

import pandas as pd

from tradelab.analytics.metrics import PerformanceMetrics, average_interval, calculate_metrics
from tradelab.backtesting.exits import check_exit
from tradelab.backtesting.position import PositionState
from tradelab.core.config import BacktestSettings, RiskSettings
from tradelab.core.exceptions import InsufficientDataError
from tradelab.core.types import Candle, SignalType, Trade, TradeDirection, TradeSignal, candles_from_frame
from tradelab.risk.manager import RiskManager
from tradelab.strategies.base import Strategy

logger = logging.getLogger("tradelab.backtest")

END_OF_BACKTEST = "End of Backtest"
SIGNAL_REVERSAL = "Signal Reversal"

CandleInput = Union[Sequence[Candle], pd.DataFrame]


@dataclass
class BacktestResult:
    """Backtest output: trades, equity curve and metrics."""
    strategy_name: str
    start_date: datetime
    end_date: datetime
    initial_capital: float
    final_capital: float
    trades: List[Trade] = field(default_factory=list)
    equity_curve: List[float] = field(default_factory=list)
    metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics.empty)

    @property
    def total_fees(self) -> float:
        return sum(t.fees for t in self.trades)


def to_candles(data: CandleInput, timeframe: Optional[str] = None) -> List[Candle]:
    """Accept a candle sequence or an OHLCV DataFrame."""
    if isinstance(data, pd.DataFrame):
        return candles_from_frame(data, timeframe)
    return list(data)


class SimulationRun:
    """
    Capital, position and trade list of one run, plus the signal transition table.
    Created fresh per run so runs never share mutable state.
    """

    def __init__(self, symbol: str, settings: BacktestSettings, risk_settings: RiskSettings):
        self.symbol = symbol
        self.settings = settings
        self.capital = settings.initial_capital
        self.position = PositionState()
        self.risk_manager = RiskManager(risk_settings, settings.initial_capital)
        self.trades: List[Trade] = []
        self.equity_curve: List[float] = [settings.initial_capital]

    def apply_slippage(self, price: float, direction: TradeDirection, is_entry: bool) -> float:
        """Adverse fill: buys pay more, sells receive less."""
        amount = price * self.settings.slippage_percent / 100
        is_buy = (direction == TradeDirection.LONG) == is_entry
        return price + amount if is_buy else price - amount

    def fee(self, price: float, quantity: float) -> float:
        return price * quantity * self.settings.commission_percent / 100

    def mark_to_market(self, candle: Candle) -> None:
        unrealized = self.position.unrealized_pnl(candle.close)
        if self.position.has_position:
            self.position.update_excursions(unrealized)
        equity = self.capital + unrealized
        self.equity_curve.append(equity)
        self.risk_manager.update_equity(equity)

    def check_forced_exit(self, candle: Candle, take_profit_first: bool = False) -> bool:
        """Close on an intrabar stop/target touch. Returns True if the position was closed."""
        pos = self.position
        if not pos.has_position:
            return False
        direction = pos.direction
        result = check_exit(
            candle,
            pos.stop_loss,
            pos.take_profit,
            direction,
            lambda price: self.apply_slippage(price, direction, is_entry=False),
            take_profit_first=take_profit_first,
        )
        if not result.should_exit:
            return False
        self.exit_position(result.exit_price, candle.open_time, result.reason)
        return True

    def sync_stop(self, strategy: Strategy) -> None:
        if self.position.has_position:
            self.position.update_stop_loss(strategy.current_stop_loss)

    def process_signal(
        self,
        signal: TradeSignal,
        candle: Candle,
        strategy: Strategy,
        quantity_scale: float = 1.0,
    ) -> None:
        pos = self.position
        if signal.type == SignalType.BUY and pos.quantity <= 0:
            self._close_if(TradeDirection.SHORT, candle)
            self.open_position(signal, candle, TradeDirection.LONG, strategy, quantity_scale)
        elif signal.type == SignalType.SELL and pos.quantity >= 0:
            self._close_if(TradeDirection.LONG, candle)
            self.open_position(signal, candle, TradeDirection.SHORT, strategy, quantity_scale)
        elif signal.type == SignalType.EXIT and pos.has_position:
            price = self.apply_slippage(candle.close, pos.direction, is_entry=False)
            self.exit_position(price, candle.open_time, signal.reason)
        elif signal.type == SignalType.PARTIAL_EXIT and pos.has_position:
            self.partial_exit(signal, candle)

    def _close_if(self, direction: TradeDirection, candle: Candle) -> None:
        if self.position.has_position and self.position.direction == direction:
            price = self.apply_slippage(candle.close, direction, is_entry=False)
            self.exit_position(price, candle.open_time, SIGNAL_REVERSAL)

    def open_position(
        self,
        signal: TradeSignal,
        candle: Candle,
        direction: TradeDirection,
        strategy: Strategy,
        quantity_scale: float = 1.0,
    ) -> None:
        if signal.stop_loss is None or not self.risk_manager.can_open_position():
            return
        entry_price = self.apply_slippage(candle.close, direction, is_entry=True)
        sizing = self.risk_manager.calculate_position_size(entry_price, signal.stop_loss, strategy.current_atr)
        quantity = sizing.quantity * quantity_scale
        if quantity <= 0:
            return
        self.position.open(
            quantity,
            entry_price,
            direction,
            candle.open_time,
            signal.stop_loss,
            signal.take_profit,
            sizing.risk_amount,
        )
        self.risk_manager.add_position(
            self.symbol, direction, quantity, sizing.risk_amount, entry_price, signal.stop_loss,
        )
        logger.debug("Open %s %s qty=%.6f @ %.4f stop=%s", direction.value, self.symbol, quantity, entry_price, signal.stop_loss)

    def exit_position(self, exit_price: float, exit_time: datetime, reason: str) -> None:
        pos = self.position
        quantity = pos.absolute_quantity
        self._record_exit(exit_price, exit_time, quantity, reason)
        pos.close()
        self.risk_manager.clear_positions()

    def partial_exit(self, signal: TradeSignal, candle: Candle) -> None:
        pos = self.position
        fraction = signal.partial_exit_percent or 0.0
        if fraction > 1:
            fraction /= 100
        quantity = signal.partial_exit_quantity
        if quantity is None:
            quantity = pos.absolute_quantity * fraction
        if quantity <= 0:
            return
        quantity = min(quantity, pos.absolute_quantity)
        exit_price = self.apply_slippage(candle.close, pos.direction, is_entry=False)
        self._record_exit(exit_price, candle.open_time, quantity, signal.reason)

        new_stop = pos.entry_price if signal.move_stop_to_breakeven else signal.stop_loss
        pos.partial_close(quantity, new_stop)
        if not pos.has_position:
            self.risk_manager.clear_positions()
            return
        self.risk_manager.update_position_after_partial_exit(
            self.symbol,
            pos.absolute_quantity,
            pos.stop_loss if pos.stop_loss is not None else pos.entry_price,
            signal.move_stop_to_breakeven,
            exit_price,
        )

    def _record_exit(self, exit_price: float, exit_time: datetime, quantity: float, reason: str) -> None:
        pos = self.position
        gross = pos.exit_pnl(exit_price, quantity)
        fees = self.fee(pos.entry_price, quantity) + self.fee(exit_price, quantity)
        self.capital += gross - fees
        self.trades.append(Trade(
            symbol=self.symbol,
            entry_time=pos.entry_time,
            exit_time=exit_time,
            entry_price=pos.entry_price,
            exit_price=exit_price,
            quantity=quantity,
            direction=pos.direction,
            stop_loss=pos.stop_loss,
            take_profit=pos.take_profit,
            exit_reason=reason,
            fees=fees,
        ))
        logger.debug("Exit %s qty=%.6f @ %.4f (%s) pnl=%.2f", self.symbol, quantity, exit_price, reason, gross - fees)

    def finish(self, candles: Sequence[Candle], strategy_name: str) -> BacktestResult:
        """Close any open position at the last close and build the result."""
        last = candles[-1]
        if self.position.has_position:
            price = self.apply_slippage(last.close, self.position.direction, is_entry=False)
            self.exit_position(price, last.close_time, END_OF_BACKTEST)
        self.equity_curve.append(self.capital)

        start, end = candles[0].open_time, last.close_time
        metrics = calculate_metrics(
            self.trades,
            self.equity_curve,
            self.settings.initial_capital,
            start,
            end,
            average_interval(candles),
        )
        return BacktestResult(
            strategy_name=strategy_name,
            start_date=start,
            end_date=end,
            initial_capital=self.settings.initial_capital,
            final_capital=self.capital,
            trades=self.trades,
            equity_curve=self.equity_curve,
            metrics=metrics,
        )


class BacktestEngine:
    """
    Runs one strategy over a single candle series.
    Each run builds its own position and risk state; an engine may be reused sequentially.
    """

    def __init__(
        self,
        strategy: Strategy,
        risk_settings: Optional[RiskSettings] = None,
        settings: Optional[BacktestSettings] = None,
        take_profit_first: bool = False,
    ):
        self.strategy = strategy
        self.risk_settings = risk_settings or RiskSettings()
        self.settings = settings or BacktestSettings()
        self.take_profit_first = take_profit_first

    def run(self, candles: CandleInput, symbol: str = "BTCUSDT", timeframe: Optional[str] = None) -> BacktestResult:
        """
        Simulate bar by bar: mark to market, forced stop/target exit, then the
        strategy signal. A bar with a forced exit does not consult the strategy.
        """
        candles = to_candles(candles, timeframe)
        if not candles:
            raise InsufficientDataError("Backtest requires at least one candle")

        strategy = self.strategy
        strategy.reset()
        run = SimulationRun(symbol, self.settings, self.risk_settings)

        for candle in candles:
            run.mark_to_market(candle)
            if run.check_forced_exit(candle, self.take_profit_first):
                continue
            signal = strategy.analyze(candle, run.position.quantity, symbol)
            run.sync_stop(strategy)
            if signal is not None:
                run.process_signal(signal, candle, strategy)

        result = run.finish(candles, strategy.name)
        logger.debug(
            "Backtest %s %s: %d trades, final capital %.2f",
            strategy.name, symbol, len(result.trades), result.final_capital,
        )
        return result
