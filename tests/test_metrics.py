"""Unit tests for analytics.metrics."""

from datetime import datetime, timedelta

import pytest

from tradelab.analytics.metrics import (
    ANNUALIZED_RETURN_CAP,
    PROFIT_FACTOR_SENTINEL,
    PerformanceMetrics,
    annualized_return,
    average_interval,
    calculate_metrics,
    max_drawdown,
    period_returns,
    profit_factor,
    risk_adjusted_ratios,
    win_rate,
)
from tradelab.core.types import Trade, TradeDirection

from helpers import flat_candles

T0 = datetime(2024, 1, 1)


def trade(entry, exit_, quantity=1.0, direction=TradeDirection.LONG, fees=0.0, hours=2):
    return Trade("BTCUSDT", T0, T0 + timedelta(hours=hours), entry, exit_, quantity, direction, fees=fees)


def test_win_rate():
    assert win_rate([1, -1, 1, 1]) == 75.0
    assert win_rate([]) == 0.0


def test_profit_factor():
    assert profit_factor([10, -5, 10, -5]) == 2.0
    assert profit_factor([10, 10]) == PROFIT_FACTOR_SENTINEL
    assert profit_factor([-5, -5]) == 0.0


def test_max_drawdown():
    # peak 12000, trough 9000
    dd, dd_pct = max_drawdown([10000, 12000, 9000, 11000], 10000)
    assert dd == pytest.approx(3000)
    assert dd_pct == pytest.approx(25.0)


def test_max_drawdown_counts_initial_capital_as_peak():
    dd, dd_pct = max_drawdown([9500, 9800], 10000)
    assert dd == pytest.approx(500)
    assert dd_pct == pytest.approx(5.0)


def test_period_returns():
    assert period_returns([100, 110, 99]) == pytest.approx([0.1, -0.1])


def test_average_interval():
    assert average_interval(flat_candles([1, 2, 3])) == timedelta(hours=1)
    assert average_interval(flat_candles([1])) == timedelta(days=1)


def test_annualized_return():
    end = T0 + timedelta(days=365.25)
    assert annualized_return(11000, 10000, T0, end) == pytest.approx(10.0)
    assert annualized_return(0, 10000, T0, end) == -100.0
    assert annualized_return(11000, 10000, T0, T0) == 0.0


def test_annualized_return_caps_short_profitable_span():
    end = T0 + timedelta(minutes=3)
    assert annualized_return(10450, 10000, T0, end) == ANNUALIZED_RETURN_CAP
    assert annualized_return(9000, 10000, T0, end) == pytest.approx(-100.0)
    week = annualized_return(10100, 10000, T0, T0 + timedelta(days=7))
    assert 0 < week < ANNUALIZED_RETURN_CAP


def test_risk_ratios_zero_without_variance():
    sharpe, sortino = risk_adjusted_ratios([0.01] * 10, 20.0, timedelta(days=1))
    assert sharpe == 0.0
    assert sortino == 0.0


def test_sortino_needs_two_negative_returns():
    _, sortino = risk_adjusted_ratios([0.02, -0.01, 0.03], 20.0, timedelta(days=1))
    assert sortino == 0.0
    _, sortino = risk_adjusted_ratios([0.02, -0.01, 0.03, -0.02], 20.0, timedelta(days=1))
    assert sortino > 0


def test_interval_scales_annualisation():
    returns = [0.01, -0.02, 0.015, -0.005]
    daily, _ = risk_adjusted_ratios(returns, 20.0, timedelta(days=1))
    hourly, _ = risk_adjusted_ratios(returns, 20.0, timedelta(hours=1))
    assert daily == pytest.approx(hourly * (24 ** 0.5))


def test_calculate_metrics_without_trades():
    assert calculate_metrics([], [10000, 10000], 10000, T0, T0 + timedelta(days=1)) == PerformanceMetrics.empty()


def test_calculate_metrics():
    trades = [
        trade(100, 110, 10, fees=2.0),
        trade(100, 95, 10, fees=2.0),
        trade(100, 90, 5, direction=TradeDirection.SHORT, fees=1.0, hours=4),
    ]
    equity = [10000, 10098, 10046, 10095]
    m = calculate_metrics(trades, equity, 10000, T0, T0 + timedelta(days=10), timedelta(days=1))
    assert m.total_trades == 3
    assert m.winning_trades == 2
    assert m.losing_trades == 1
    assert m.win_rate == pytest.approx(200 / 3)
    assert m.profit_factor == pytest.approx((98 + 49) / 52)
    assert m.largest_win == pytest.approx(98)
    assert m.largest_loss == pytest.approx(-52)
    assert m.total_return == pytest.approx(0.95)
    assert m.average_holding_period == timedelta(hours=8) / 3
