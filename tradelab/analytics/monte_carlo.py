"""
Monte Carlo trade resampling: shuffle the order of closed trades to estimate the
distribution of total return and max drawdown, and the probability of ruin.
"""

from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

import numpy as np

from tradelab.analytics.metrics import max_drawdown
from tradelab.core.config import MonteCarloSettings

if TYPE_CHECKING:
    from tradelab.backtesting.engine import BacktestResult

logger = logging.getLogger("tradelab.monte_carlo")


@dataclass
class MonteCarloResult:
    """Percent-unit return and drawdown distribution over all permutations."""
    original_return: float
    median_return: float
    percentile5_return: float = 0.0
    percentile95_return: float = 0.0
    average_max_drawdown: float = 0.0
    percentile5_drawdown: float = 0.0
    percentile95_drawdown: float = 0.0
    ruin_probability: float = 0.0
    confidence_level: float = 0.0
    all_returns: List[float] = field(default_factory=list)
    all_drawdowns: List[float] = field(default_factory=list)

    def is_within_confidence_band(self, live_return: float) -> bool:
        return self.percentile5_return <= live_return <= self.percentile95_return

    def assess(self) -> str:
        if self.ruin_probability < 1:
            return "Excellent - Very low risk of significant loss"
        if self.ruin_probability < 5:
            return "Good - Acceptable risk level"
        if self.ruin_probability < 10:
            return "Moderate - Consider reducing position sizes"
        return "High Risk - Strategy needs review"


def percentile(values: Sequence[float], pct: float) -> float:
    """Nearest-rank percentile."""
    return float(np.percentile(values, pct, method="inverted_cdf"))


def replay(pnls: Sequence[float], initial_capital: float) -> Tuple[float, float]:
    """(total return %, max drawdown %) of applying pnls in order."""
    equity = initial_capital + np.cumsum(np.asarray(pnls, dtype=float))
    _, dd_pct = max_drawdown(equity.tolist(), initial_capital)
    final = float(equity[-1]) if len(equity) else initial_capital
    return (final - initial_capital) / initial_capital * 100, dd_pct


class MonteCarloSimulator:
    """
    Owns a seeded random stream; the same seed on a fresh simulator reproduces
    the same permutations.
    """

    def __init__(self, settings: Optional[MonteCarloSettings] = None):
        self.settings = settings or MonteCarloSettings()
        self._rng = random.Random(self.settings.random_seed)

    def simulate(self, backtest: BacktestResult) -> MonteCarloResult:
        pnls = [t.net_pnl for t in backtest.trades if t.exit_price is not None]
        original = backtest.metrics.total_return
        if len(pnls) < self.settings.minimum_trades:
            logger.warning(
                "Monte Carlo skipped: %d trades < %d required", len(pnls), self.settings.minimum_trades,
            )
            return MonteCarloResult(original_return=original, median_return=original)

        returns = []
        drawdowns = []
        for _ in range(self.settings.simulations):
            shuffled = list(pnls)
            self._rng.shuffle(shuffled)
            total, dd = replay(shuffled, backtest.initial_capital)
            returns.append(total)
            drawdowns.append(dd)
        returns.sort()
        drawdowns.sort()

        ruin = sum(1 for r in returns if r <= self.settings.ruin_threshold_percent) / len(returns) * 100
        positive = sum(1 for r in returns if r > 0) / len(returns) * 100
        result = MonteCarloResult(
            original_return=original,
            median_return=percentile(returns, 50),
            percentile5_return=percentile(returns, 5),
            percentile95_return=percentile(returns, 95),
            average_max_drawdown=float(np.mean(drawdowns)),
            percentile5_drawdown=percentile(drawdowns, 5),
            percentile95_drawdown=percentile(drawdowns, 95),
            ruin_probability=ruin,
            confidence_level=positive,
            all_returns=returns,
            all_drawdowns=drawdowns,
        )
        logger.info(
            "Monte Carlo %d runs: median %.2f%%, p5 %.2f%%, p95 %.2f%%, ruin %.2f%%",
            len(returns), result.median_return, result.percentile5_return,
            result.percentile95_return, ruin,
        )
        return result
