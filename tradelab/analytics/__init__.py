"""Analytics: performance metrics, fitness scoring, Monte Carlo resampling."""

from tradelab.analytics.fitness import (
    FitnessFunction,
    OptimizationTarget,
    PerformanceFitnessCalculator,
    PerformanceFitnessPolicy,
)
from tradelab.analytics.metrics import (
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
from tradelab.analytics.monte_carlo import MonteCarloResult, MonteCarloSimulator

__all__ = [
    "FitnessFunction",
    "OptimizationTarget",
    "PerformanceFitnessCalculator",
    "PerformanceFitnessPolicy",
    "PerformanceMetrics",
    "annualized_return",
    "average_interval",
    "calculate_metrics",
    "max_drawdown",
    "period_returns",
    "profit_factor",
    "risk_adjusted_ratios",
    "win_rate",
    "MonteCarloResult",
    "MonteCarloSimulator",
]
