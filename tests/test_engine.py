"""Unit tests for backtesting.engine."""

from datetime import timedelta

import pandas as pd
import pytest

from tradelab.analytics.metrics import ANNUALIZED_RETURN_CAP
from tradelab.backtesting.engine import END_OF_BACKTEST, SIGNAL_REVERSAL, BacktestEngine
from tradelab.backtesting.exits import STOP_LOSS, TAKE_PROFIT
from tradelab.core.config import BacktestSettings
from tradelab.core.exceptions import InsufficientDataError
from tradelab.core.types import SignalType, TradeDirection, TradeSignal

from helpers import ScriptedStrategy, buy, exit_signal, flat_candles, make_candles, sell

NO_COSTS = BacktestSettings(initial_capital=10000.0, commission_percent=0.0, slippage_percent=0.0)


def run(strategy, candles, settings=NO_COSTS, **kwargs):
    return BacktestEngine(strategy, settings=settings, **kwargs).run(candles, "BTCUSDT")


def test_three_candle_stop_out():
    candles = make_candles([(100, 105, 95, 102), (102, 108, 100, 107), (107, 107, 90, 95)])
    strategy = ScriptedStrategy({0: buy(102, stop=95)})
    result = run(strategy, candles)

    assert len(result.trades) == 1
    trade = result.trades[0]
    quantity = 150 / 7  # 1.5% of 10000 over a 7 point stop
    assert trade.entry_price == 102
    assert trade.exit_price == 95
    assert trade.exit_reason == STOP_LOSS
    assert trade.quantity == pytest.approx(quantity)
    assert trade.pnl == pytest.approx((95 - 102) * quantity)
    assert trade.exit_time == candles[2].open_time
    assert result.final_capital == pytest.approx(9850.0)
    assert result.equity_curve == pytest.approx([10000, 10000, 10000 + 5 * quantity, 9850, 9850])
    # the stop-out bar never reaches the strategy
    assert len(strategy.calls) == 2


def test_empty_candles_raise():
    with pytest.raises(InsufficientDataError):
        run(ScriptedStrategy(), [])


def test_stop_wins_when_bar_touches_both_levels():
    candles = make_candles([(100, 100, 100, 100), (100, 125, 85, 100)])
    strategy = ScriptedStrategy({0: buy(100, stop=90, target=120)})
    result = run(strategy, candles)
    assert result.trades[0].exit_reason == STOP_LOSS
    assert result.trades[0].exit_price == 90


def test_take_profit_first_option():
    candles = make_candles([(100, 100, 100, 100), (100, 125, 85, 100)])
    strategy = ScriptedStrategy({0: buy(100, stop=90, target=120)})
    result = run(strategy, candles, take_profit_first=True)
    assert result.trades[0].exit_reason == TAKE_PROFIT
    assert result.trades[0].exit_price == 120


def test_short_stop_uses_bar_high():
    candles = make_candles([(100, 100, 100, 100), (100, 111, 99, 105)])
    strategy = ScriptedStrategy({0: sell(100, stop=110)})
    result = run(strategy, candles)
    trade = result.trades[0]
    assert trade.direction == TradeDirection.SHORT
    assert trade.exit_reason == STOP_LOSS
    assert trade.pnl == pytest.approx(-10 * trade.quantity)


def test_signal_without_stop_is_ignored():
    strategy = ScriptedStrategy({0: buy(100)})
    result = run(strategy, flat_candles([100, 101, 102]))
    assert result.trades == []
    assert result.final_capital == 10000.0


def test_end_of_backtest_closes_open_position():
    candles = flat_candles([100, 105, 110])
    result = run(ScriptedStrategy({0: buy(100, stop=90)}), candles)
    trade = result.trades[-1]
    assert trade.exit_reason == END_OF_BACKTEST
    assert trade.exit_price == 110
    assert trade.exit_time == candles[-1].close_time
    assert result.final_capital == pytest.approx(10000 + 10 * 15)
    assert result.equity_curve[-1] == result.final_capital


def test_exit_signal_uses_its_reason():
    strategy = ScriptedStrategy({0: buy(100, stop=90), 1: exit_signal(110, "RSI neutral")})
    result = run(strategy, flat_candles([100, 110, 120]))
    assert len(result.trades) == 1
    assert result.trades[0].exit_reason == "RSI neutral"
    assert result.trades[0].exit_price == 110


def test_reversal_closes_then_opens_opposite():
    strategy = ScriptedStrategy({0: buy(100, stop=90), 1: sell(105, stop=120)})
    result = run(strategy, flat_candles([100, 105, 100]))
    assert [t.exit_reason for t in result.trades] == [SIGNAL_REVERSAL, END_OF_BACKTEST]
    assert result.trades[0].direction == TradeDirection.LONG
    assert result.trades[1].direction == TradeDirection.SHORT
    assert strategy.calls[1][1] > 0
    assert strategy.calls[2][1] < 0


def test_same_direction_signal_does_not_pyramid():
    strategy = ScriptedStrategy({0: buy(100, stop=90), 1: buy(101, stop=91)})
    result = run(strategy, flat_candles([100, 101, 102]))
    assert len(result.trades) == 1
    assert result.trades[0].quantity == pytest.approx(15)


def test_fees_charged_on_entry_and_exit():
    settings = BacktestSettings(initial_capital=10000.0, commission_percent=0.1, slippage_percent=0.0)
    strategy = ScriptedStrategy({0: buy(100, stop=90), 1: exit_signal(110)})
    result = run(strategy, flat_candles([100, 110]), settings)
    trade = result.trades[0]
    assert trade.pnl == pytest.approx(150.0)
    assert trade.fees == pytest.approx(100 * 15 * 0.001 + 110 * 15 * 0.001)
    assert result.final_capital == pytest.approx(10000 + 150 - 3.15)


def test_slippage_is_adverse_on_both_sides():
    settings = BacktestSettings(initial_capital=10000.0, commission_percent=0.0, slippage_percent=0.1)
    strategy = ScriptedStrategy({0: buy(100, stop=90), 1: exit_signal(110)})
    trade = run(strategy, flat_candles([100, 110]), settings).trades[0]
    assert trade.entry_price == pytest.approx(100.1)
    assert trade.exit_price == pytest.approx(109.89)


def test_forced_exit_is_slippage_adjusted():
    settings = BacktestSettings(initial_capital=10000.0, commission_percent=0.0, slippage_percent=0.1)
    candles = make_candles([(100, 100, 100, 100), (100, 100, 80, 85)])
    trade = run(ScriptedStrategy({0: buy(100, stop=90)}), candles, settings).trades[0]
    assert trade.exit_price == pytest.approx(90 * 0.999)


def test_atr_widens_sizing_stop():
    strategy = ScriptedStrategy({0: buy(100, stop=95)}, atr=4.0)
    result = run(strategy, flat_candles([100, 100]))
    # max(5, 4 * 2.5) = 10 point stop for sizing
    assert result.trades[0].quantity == pytest.approx(15)


def test_strategy_stop_trails_position():
    candles = make_candles([(100, 100, 100, 100), (110, 110, 110, 110), (110, 110, 104, 106)])
    strategy = ScriptedStrategy({0: buy(100, stop=90)}, stops={1: 105})
    trade = run(strategy, candles).trades[0]
    assert trade.exit_reason == STOP_LOSS
    assert trade.exit_price == 105
    assert trade.stop_loss == 105


def test_partial_exit_moves_stop_to_breakeven():
    partial = TradeSignal(
        "BTCUSDT", SignalType.PARTIAL_EXIT, 110, reason="Take half",
        partial_exit_percent=50, move_stop_to_breakeven=True,
    )
    candles = make_candles([(100, 100, 100, 100), (110, 110, 110, 110), (105, 105, 99, 101)])
    result = run(ScriptedStrategy({0: buy(100, stop=90), 1: partial}), candles)

    first, second = result.trades
    assert first.exit_reason == "Take half"
    assert first.quantity == pytest.approx(7.5)
    assert second.exit_reason == STOP_LOSS
    assert second.quantity == pytest.approx(7.5)
    assert second.exit_price == 100
    assert result.final_capital == pytest.approx(10000 + 7.5 * 10)


def test_partial_exit_fraction_and_percent_agree():
    def partial(pct):
        return TradeSignal("BTCUSDT", SignalType.PARTIAL_EXIT, 110, partial_exit_percent=pct, stop_loss=95)

    a = run(ScriptedStrategy({0: buy(100, stop=90), 1: partial(0.25)}), flat_candles([100, 110, 110]))
    b = run(ScriptedStrategy({0: buy(100, stop=90), 1: partial(25)}), flat_candles([100, 110, 110]))
    assert a.trades[0].quantity == pytest.approx(3.75)
    assert b.trades[0].quantity == pytest.approx(3.75)


def test_partial_exit_larger_than_position_closes_it():
    partial = TradeSignal("BTCUSDT", SignalType.PARTIAL_EXIT, 110, partial_exit_quantity=1000)
    strategy = ScriptedStrategy({0: buy(100, stop=90), 1: partial})
    result = run(strategy, flat_candles([100, 110, 120]))
    assert len(result.trades) == 1
    assert result.trades[0].quantity == pytest.approx(15)
    assert strategy.calls[2][1] == 0


def test_capital_conservation():
    settings = BacktestSettings(initial_capital=10000.0, commission_percent=0.1, slippage_percent=0.05)
    script = {
        0: buy(100, stop=95),
        2: sell(104, stop=110),
        4: exit_signal(99),
        5: buy(98, stop=90),
    }
    candles = flat_candles([100, 102, 104, 101, 99, 98, 103, 107])
    result = run(ScriptedStrategy(script), candles, settings)
    assert len(result.trades) == 3
    expected = result.initial_capital + sum(t.pnl for t in result.trades) - sum(t.fees for t in result.trades)
    assert result.final_capital == pytest.approx(expected)
    assert result.total_fees == pytest.approx(sum(t.fees for t in result.trades))


def test_repeated_runs_are_identical():
    script = {0: buy(100, stop=95), 3: exit_signal(103), 4: sell(102, stop=108)}
    candles = flat_candles([100, 101, 102, 103, 102, 100, 99])
    engine = BacktestEngine(ScriptedStrategy(script))
    assert engine.run(candles) == engine.run(candles)


def test_dataframe_input():
    df = pd.DataFrame({
        "open_time": pd.date_range("2024-01-01", periods=3, freq="h"),
        "open": [100.0, 102.0, 107.0],
        "high": [105.0, 108.0, 107.0],
        "low": [95.0, 100.0, 90.0],
        "close": [102.0, 107.0, 95.0],
        "volume": [1.0, 1.0, 1.0],
    })
    engine = BacktestEngine(ScriptedStrategy({0: buy(102, stop=95)}), settings=NO_COSTS)
    result = engine.run(df, "BTCUSDT", timeframe="1h")
    assert result.trades[0].exit_reason == STOP_LOSS
    assert result.end_date == df["open_time"].iloc[-1] + pd.Timedelta(hours=1)


def test_profitable_run_on_minute_bars():
    candles = make_candles([(100, 101, 99, 100), (100, 121, 99, 120), (120, 131, 119, 130)],
                           interval=timedelta(minutes=1))
    result = run(ScriptedStrategy({0: buy(100, stop=90)}), candles)
    assert result.final_capital == pytest.approx(10450.0)
    assert result.metrics.annualized_return == ANNUALIZED_RETURN_CAP
