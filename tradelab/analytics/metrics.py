"""
Performance metrics over a completed run: returns, drawdown, Sharpe, Sortino,
profit factor, win rate and trade statistics.
Risk ratios are annualised with the actual average bar interval.
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Sequence, Tuple

import numpy as np

from tradelab.core.types import Candle, Trade

PROFIT_FACTOR_SENTINEL = 999.0
ANNUALIZED_RETURN_CAP = 1_000_000.0
DAYS_PER_YEAR = 365.25


@dataclass(frozen=True)
class PerformanceMetrics:
    """Aggregate performance metrics. Percent fields are in percent units."""
    total_return: float
    annualized_return: float
    max_drawdown: float
    max_drawdown_percent: float
    sharpe_ratio: float
    sortino_ratio: float
    profit_factor: float
    win_rate: float
    total_trades: int
    winning_trades: int
    losing_trades: int
    average_win: float
    average_loss: float
    largest_win: float
    largest_loss: float
    average_holding_period: timedelta

    @classmethod
    def empty(cls) -> "PerformanceMetrics":
        return cls(
            total_return=0.0, annualized_return=0.0, max_drawdown=0.0, max_drawdown_percent=0.0,
            sharpe_ratio=0.0, sortino_ratio=0.0, profit_factor=0.0, win_rate=0.0,
            total_trades=0, winning_trades=0, losing_trades=0,
            average_win=0.0, average_loss=0.0, largest_win=0.0, largest_loss=0.0,
            average_holding_period=timedelta(0),
        )


def max_drawdown(equity_curve: Sequence[float], initial_capital: float) -> Tuple[float, float]:
    """(absolute, percent) drawdown from a running peak that starts at initial capital."""
    if not equity_curve:
        return 0.0, 0.0
    arr = np.asarray(equity_curve, dtype=float)
    peak = np.maximum.accumulate(np.maximum(arr, initial_capital))
    dd = peak - arr
    dd_pct = np.where(peak > 0, dd / np.where(peak > 0, peak, 1.0) * 100.0, 0.0)
    return float(max(dd.max(), 0.0)), float(max(dd_pct.max(), 0.0))


def period_returns(equity_curve: Sequence[float]) -> List[float]:
    """Bar-over-bar returns, skipping steps from a non-positive base."""
    returns = []
    for prev, cur in zip(equity_curve, equity_curve[1:]):
        if prev > 0:
            returns.append((cur - prev) / prev)
    return returns


def average_interval(candles: Sequence[Candle]) -> timedelta:
    """Mean positive gap between consecutive open times; one day if unknown."""
    gaps = [
        (b.open_time - a.open_time)
        for a, b in zip(candles, candles[1:])
        if b.open_time > a.open_time
    ]
    if not gaps:
        return timedelta(days=1)
    return sum(gaps, timedelta(0)) / len(gaps)


def annualized_return(final_capital: float, initial_capital: float, start: datetime, end: datetime) -> float:
    years = (end - start).total_seconds() / 86400.0 / DAYS_PER_YEAR
    if years <= 0:
        return 0.0
    ratio = final_capital / initial_capital
    if ratio <= 0:
        return -100.0
    # short spans compound past float range, so cap in log space
    growth = math.log(ratio) / years
    if growth >= math.log1p(ANNUALIZED_RETURN_CAP / 100.0):
        return ANNUALIZED_RETURN_CAP
    return math.expm1(growth) * 100.0


def risk_adjusted_ratios(
    returns: Sequence[float],
    annual_return: float,
    interval: timedelta,
) -> Tuple[float, float]:
    """
    (sharpe, sortino): annualised return over annualised population std / downside deviation.
    Downside deviation needs at least two negative returns.
    """
    if not returns:
        return 0.0, 0.0
    arr = np.asarray(returns, dtype=float)
    std = float(arr.std()) if len(arr) > 1 else 0.0
    negative = arr[arr < 0]
    downside = float(np.sqrt(np.mean(negative ** 2))) if len(negative) > 1 else 0.0

    interval_days = interval.total_seconds() / 86400.0
    periods_per_year = 365.0 / interval_days if interval_days > 0 else 365.0
    factor = math.sqrt(periods_per_year)

    annual_std = std * factor
    annual_downside = downside * factor
    sharpe = annual_return / 100.0 / annual_std if annual_std > 0 else 0.0
    sortino = annual_return / 100.0 / annual_downside if annual_downside > 0 else 0.0
    return sharpe, sortino


def profit_factor(pnls: Sequence[float]) -> float:
    """Gross profit / gross loss. No losses: sentinel if profitable, else 0."""
    gross_profit = sum(p for p in pnls if p > 0)
    gross_loss = abs(sum(p for p in pnls if p <= 0))
    if gross_loss > 0:
        return gross_profit / gross_loss
    return PROFIT_FACTOR_SENTINEL if gross_profit > 0 else 0.0


def win_rate(pnls: Sequence[float]) -> float:
    """Percent of trades with positive PnL."""
    if not pnls:
        return 0.0
    return sum(1 for p in pnls if p > 0) / len(pnls) * 100.0


def calculate_metrics(
    trades: Sequence[Trade],
    equity_curve: Sequence[float],
    initial_capital: float,
    start: datetime,
    end: datetime,
    interval: timedelta = timedelta(days=1),
) -> PerformanceMetrics:
    """
    Trade statistics use net PnL (after fees), so they reconcile with final capital.
    """
    completed = [t for t in trades if t.exit_price is not None]
    if not trades or not completed:
        return PerformanceMetrics.empty()

    pnls = [t.net_pnl for t in completed]
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p <= 0]

    final_capital = equity_curve[-1] if equity_curve else initial_capital
    total_return = (final_capital - initial_capital) / initial_capital * 100.0
    annual = annualized_return(final_capital, initial_capital, start, end)
    dd_abs, dd_pct = max_drawdown(equity_curve, initial_capital)
    sharpe, sortino = risk_adjusted_ratios(period_returns(equity_curve), annual, interval)

    holding = [t.holding_period for t in completed if t.holding_period is not None]
    avg_holding = sum(holding, timedelta(0)) / len(holding) if holding else timedelta(0)

    return PerformanceMetrics(
        total_return=total_return,
        annualized_return=annual,
        max_drawdown=dd_abs,
        max_drawdown_percent=dd_pct,
        sharpe_ratio=sharpe,
        sortino_ratio=sortino,
        profit_factor=profit_factor(pnls),
        win_rate=win_rate(pnls),
        total_trades=len(completed),
        winning_trades=len(wins),
        losing_trades=len(losses),
        average_win=sum(wins) / len(wins) if wins else 0.0,
        average_loss=sum(losses) / len(losses) if losses else 0.0,
        largest_win=max(wins) if wins else 0.0,
        largest_loss=min(losses) if losses else 0.0,
        average_holding_period=avg_holding,
    )
