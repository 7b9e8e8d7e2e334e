"""Unit tests for backtesting.exits."""

from tradelab.backtesting.exits import STOP_LOSS, TAKE_PROFIT, check_exit, check_stop_loss, check_take_profit
from tradelab.core.types import TradeDirection

from helpers import make_candle


def no_slippage(price):
    return price


def test_long_stop_hit_on_low():
    bar = make_candle(0, 100, 101, 94, 96)
    result = check_stop_loss(bar, 95, TradeDirection.LONG, no_slippage)
    assert result.should_exit
    assert result.exit_price == 95
    assert result.reason == STOP_LOSS


def test_long_stop_not_hit():
    bar = make_candle(0, 100, 101, 96, 97)
    assert not check_stop_loss(bar, 95, TradeDirection.LONG, no_slippage).should_exit


def test_short_take_profit_hit_on_low():
    bar = make_candle(0, 100, 101, 89, 92)
    result = check_take_profit(bar, 90, TradeDirection.SHORT, no_slippage)
    assert result.should_exit
    assert result.reason == TAKE_PROFIT


def test_slippage_function_applied_to_level():
    bar = make_candle(0, 100, 101, 94, 96)
    result = check_stop_loss(bar, 95, TradeDirection.LONG, lambda p: p - 1)
    assert result.exit_price == 94


def test_check_exit_prefers_stop():
    bar = make_candle(0, 100, 130, 80, 100)
    assert check_exit(bar, 90, 120, TradeDirection.LONG, no_slippage).reason == STOP_LOSS
    assert check_exit(bar, 90, 120, TradeDirection.LONG, no_slippage, take_profit_first=True).reason == TAKE_PROFIT


def test_check_exit_without_levels():
    bar = make_candle(0, 100, 130, 80, 100)
    assert not check_exit(bar, None, None, TradeDirection.LONG, no_slippage).should_exit
