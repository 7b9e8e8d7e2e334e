"""
Intrabar stop-loss / take-profit detection. Pure functions, no state.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional

from tradelab.core.types import Candle, TradeDirection

STOP_LOSS = "Stop Loss"
TAKE_PROFIT = "Take Profit"

PriceAdjuster = Callable[[float], float]


@dataclass(frozen=True)
class ExitCheckResult:
    should_exit: bool
    exit_price: float = 0.0
    reason: str = ""


NO_EXIT = ExitCheckResult(False)


def check_stop_loss(
    candle: Candle,
    stop_loss: float,
    direction: TradeDirection,
    apply_slippage: PriceAdjuster,
) -> ExitCheckResult:
    hit = candle.low <= stop_loss if direction == TradeDirection.LONG else candle.high >= stop_loss
    if hit:
        return ExitCheckResult(True, apply_slippage(stop_loss), STOP_LOSS)
    return NO_EXIT


def check_take_profit(
    candle: Candle,
    take_profit: float,
    direction: TradeDirection,
    apply_slippage: PriceAdjuster,
) -> ExitCheckResult:
    hit = candle.high >= take_profit if direction == TradeDirection.LONG else candle.low <= take_profit
    if hit:
        return ExitCheckResult(True, apply_slippage(take_profit), TAKE_PROFIT)
    return NO_EXIT


def check_exit(
    candle: Candle,
    stop_loss: Optional[float],
    take_profit: Optional[float],
    direction: TradeDirection,
    apply_slippage: PriceAdjuster,
    take_profit_first: bool = False,
) -> ExitCheckResult:
    """
    Both levels on one bar: intrabar order is unknown, so the stop wins
    unless take_profit_first is set.
    """
    checks = [(stop_loss, check_stop_loss), (take_profit, check_take_profit)]
    if take_profit_first:
        checks.reverse()
    for level, check in checks:
        if level is None:
            continue
        result = check(candle, level, direction, apply_slippage)
        if result.should_exit:
            return result
    return NO_EXIT
