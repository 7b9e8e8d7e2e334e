"""
Fitness scoring: turn performance metrics into one scalar for the optimizer.
Policy violations short-circuit to negative sentinels so they always rank last.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from tradelab.analytics.metrics import PerformanceMetrics


class FitnessFunction(str, Enum):
    SHARPE = "SHARPE"
    SORTINO = "SORTINO"
    PROFIT_FACTOR = "PROFIT_FACTOR"
    RETURN = "RETURN"
    RISK_ADJUSTED = "RISK_ADJUSTED"
    COMBINED = "COMBINED"


class OptimizationTarget(str, Enum):
    SHARPE_RATIO = "SHARPE_RATIO"
    SORTINO_RATIO = "SORTINO_RATIO"
    PROFIT_FACTOR = "PROFIT_FACTOR"
    TOTAL_RETURN = "TOTAL_RETURN"
    RISK_ADJUSTED = "RISK_ADJUSTED"


@dataclass(frozen=True)
class PerformanceFitnessPolicy:
    """
    Hard limits and sentinels. The three penalties are distinct so a run's
    fitness tells you why it was rejected.
    """
    min_trades: int = 30
    max_drawdown_percent: float = 30.0
    insufficient_trades_penalty: float = -100.0
    max_drawdown_penalty: float = -999.0
    invalid_settings_penalty: float = -1000.0
    drawdown_penalty_threshold_percent: float = 20.0
    drawdown_penalty_factor: float = 0.1


class PerformanceFitnessCalculator:

    def __init__(self, policy: Optional[PerformanceFitnessPolicy] = None):
        self.policy = policy or PerformanceFitnessPolicy()

    @property
    def invalid_settings_penalty(self) -> float:
        return self.policy.invalid_settings_penalty

    def meets_policy(self, metrics: PerformanceMetrics) -> bool:
        return (
            metrics.total_trades >= self.policy.min_trades
            and metrics.max_drawdown_percent <= self.policy.max_drawdown_percent
        )

    def policy_penalty(self, metrics: PerformanceMetrics) -> Optional[float]:
        if metrics.total_trades < self.policy.min_trades:
            return self.policy.insufficient_trades_penalty
        if metrics.max_drawdown_percent > self.policy.max_drawdown_percent:
            return self.policy.max_drawdown_penalty
        return None

    def calculate_fitness(self, function: FitnessFunction, metrics: PerformanceMetrics) -> float:
        penalty = self.policy_penalty(metrics)
        if penalty is not None:
            return penalty
        if function == FitnessFunction.SORTINO:
            return metrics.sortino_ratio
        if function == FitnessFunction.PROFIT_FACTOR:
            return metrics.profit_factor
        if function == FitnessFunction.RETURN:
            return metrics.total_return
        if function == FitnessFunction.RISK_ADJUSTED:
            excess = max(0.0, metrics.max_drawdown_percent - self.policy.drawdown_penalty_threshold_percent)
            return metrics.sharpe_ratio - excess * self.policy.drawdown_penalty_factor
        if function == FitnessFunction.COMBINED:
            return self.combined_fitness(metrics)
        return metrics.sharpe_ratio

    def calculate_score(self, target: OptimizationTarget, metrics: PerformanceMetrics) -> float:
        penalty = self.policy_penalty(metrics)
        if penalty is not None:
            return penalty
        if target == OptimizationTarget.SORTINO_RATIO:
            return metrics.sortino_ratio
        if target == OptimizationTarget.PROFIT_FACTOR:
            return metrics.profit_factor
        if target == OptimizationTarget.TOTAL_RETURN:
            return metrics.total_return
        if target == OptimizationTarget.RISK_ADJUSTED:
            return metrics.annualized_return / (metrics.max_drawdown_percent + 1) * (metrics.sharpe_ratio + 1)
        return metrics.sharpe_ratio

    def score(self, objective: Union[FitnessFunction, OptimizationTarget], metrics: PerformanceMetrics) -> float:
        if isinstance(objective, OptimizationTarget):
            return self.calculate_score(objective, metrics)
        return self.calculate_fitness(objective, metrics)

    @staticmethod
    def combined_fitness(metrics: PerformanceMetrics) -> float:
        """Positive Sharpe, boosted by profit factor (capped at 3), damped by drawdown."""
        sharpe = max(0.0, metrics.sharpe_ratio)
        pf = 1 + min(3.0, metrics.profit_factor) / 10
        dd = 1 - min(1.0, metrics.max_drawdown_percent / 100)
        return sharpe * pf * dd
