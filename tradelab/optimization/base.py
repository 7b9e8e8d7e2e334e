"""
Shared machinery for strategy-family optimizers.

An adapter describes its genome as a list of parameter specs plus a validator.
Random creation, single-field mutation and uniform crossover are derived from
the specs; fitness is a full backtest scored by PerformanceFitnessCalculator.
"""

from __future__ import annotations
import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar, Union

from tradelab.analytics.fitness import (
    FitnessFunction,
    OptimizationTarget,
    PerformanceFitnessCalculator,
    PerformanceFitnessPolicy,
)
from tradelab.backtesting.engine import BacktestEngine, CandleInput, to_candles
from tradelab.core.config import BacktestSettings, GeneticOptimizerSettings, RiskSettings
from tradelab.core.exceptions import InsufficientDataError
from tradelab.core.types import Candle
from tradelab.optimization.genetic import GeneticOptimizationResult, GeneticOptimizer, ProgressCallback
from tradelab.strategies.base import Strategy

logger = logging.getLogger("tradelab.optimizer")

S = TypeVar("S")
C = TypeVar("C")

MIN_OPTIMIZATION_CANDLES = 200

Objective = Union[FitnessFunction, OptimizationTarget]


def mutate_int(value: int, low: int, high: int, rng: random.Random) -> int:
    """Shift by up to a quarter of the range (at least one step), clamped."""
    delta = max(1, (high - low) // 4)
    return max(low, min(high, value + rng.randint(-delta, delta)))


def mutate_float(value: float, low: float, high: float, rng: random.Random) -> float:
    delta = (high - low) / 4
    return max(low, min(high, value + (rng.random() * 2 - 1) * delta))


def pick(first: Any, second: Any, rng: random.Random) -> Any:
    return first if rng.random() > 0.5 else second


@dataclass(frozen=True)
class IntParam:
    name: str
    low: int
    high: int

    def sample(self, rng: random.Random) -> int:
        return rng.randint(self.low, self.high)

    def mutate(self, value: int, rng: random.Random) -> int:
        return mutate_int(value, self.low, self.high, rng)

    def contains(self, value: int) -> bool:
        return self.low <= value <= self.high


@dataclass(frozen=True)
class FloatParam:
    name: str
    low: float
    high: float

    def sample(self, rng: random.Random) -> float:
        return self.low + rng.random() * (self.high - self.low)

    def mutate(self, value: float, rng: random.Random) -> float:
        return mutate_float(value, self.low, self.high, rng)

    def contains(self, value: float) -> bool:
        return self.low <= value <= self.high


@dataclass(frozen=True)
class BoolParam:
    """Sampled with p=0.5; mutation flips it."""
    name: str

    def sample(self, rng: random.Random) -> bool:
        return rng.random() > 0.5

    def mutate(self, value: bool, rng: random.Random) -> bool:
        return not value

    def contains(self, value: bool) -> bool:
        return True


Param = Union[IntParam, FloatParam, BoolParam]


class StrategyOptimizerBase(ABC, Generic[S, C]):
    """
    Genome operators and fitness for one strategy family.

    Subclasses provide the range config, the mutable parameters, the template
    genome holding the fixed fields, and the cross-field validator. The settings
    genome must be a dataclass.
    """

    default_objective: Objective = FitnessFunction.RISK_ADJUSTED

    def __init__(
        self,
        strategy_factory: Callable[[S], Strategy],
        config: Optional[C] = None,
        risk_settings: Optional[RiskSettings] = None,
        backtest_settings: Optional[BacktestSettings] = None,
        objective: Optional[Objective] = None,
        policy: Optional[PerformanceFitnessPolicy] = None,
    ):
        self.strategy_factory = strategy_factory
        self.config = config if config is not None else self.default_config()
        self.risk_settings = risk_settings or RiskSettings()
        self.backtest_settings = backtest_settings or BacktestSettings()
        self.objective = objective if objective is not None else self.default_objective
        self.fitness_calculator = PerformanceFitnessCalculator(policy or self.default_policy())

    @abstractmethod
    def default_config(self) -> C:
        pass

    def default_policy(self) -> Optional[PerformanceFitnessPolicy]:
        return None

    @abstractmethod
    def parameters(self) -> Sequence[Param]:
        """Mutable fields of the genome, in mutation slot order."""
        pass

    @abstractmethod
    def template(self) -> S:
        """Genome carrying the fixed (non-optimized) fields."""
        pass

    @abstractmethod
    def validate(self, genome: S) -> bool:
        pass

    def create_random(self, rng: random.Random) -> S:
        values = {}
        for param in self.parameters():
            values[param.name] = param.sample(rng)
        return replace(self.template(), **values)

    def mutate(self, genome: S, rng: random.Random) -> S:
        params = self.parameters()
        param = params[rng.randrange(len(params))]
        return replace(genome, **{param.name: param.mutate(getattr(genome, param.name), rng)})

    def crossover(self, first: S, second: S, rng: random.Random) -> S:
        values = {}
        for f in fields(first):
            values[f.name] = pick(getattr(first, f.name), getattr(second, f.name), rng)
        return replace(first, **values)

    def in_ranges(self, genome: S) -> bool:
        return all(p.contains(getattr(genome, p.name)) for p in self.parameters())

    def evaluate_fitness(self, genome: S, candles: Sequence[Candle], symbol: str) -> float:
        """Backtest the genome and score it. Invalid or failing genomes get the invalid-settings penalty."""
        if not self.validate(genome):
            return self.fitness_calculator.invalid_settings_penalty
        try:
            engine = BacktestEngine(self.strategy_factory(genome), self.risk_settings, self.backtest_settings)
            result = engine.run(candles, symbol)
            return self.fitness_calculator.score(self.objective, result.metrics)
        except Exception:
            logger.debug("Backtest failed for %r", genome, exc_info=True)
            return self.fitness_calculator.invalid_settings_penalty

    def create_optimizer(self, settings: Optional[GeneticOptimizerSettings] = None) -> GeneticOptimizer[S]:
        return GeneticOptimizer(self, settings)

    def optimize(
        self,
        candles: CandleInput,
        symbol: str,
        settings: Optional[GeneticOptimizerSettings] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> GeneticOptimizationResult[S]:
        """Run the genetic search over one candle window."""
        series: List[Candle] = to_candles(candles)
        if len(series) < MIN_OPTIMIZATION_CANDLES:
            raise InsufficientDataError(
                f"Insufficient data for optimization. Required: {MIN_OPTIMIZATION_CANDLES} candles minimum"
            )
        optimizer = self.create_optimizer(settings)
        logger.info(
            "Optimizing %s on %s: %d candles, population %d, generations %d",
            type(self).__name__, symbol, len(series),
            optimizer.settings.population_size, optimizer.settings.generations,
        )
        return optimizer.optimize(lambda genome: self.evaluate_fitness(genome, series, symbol), progress)
