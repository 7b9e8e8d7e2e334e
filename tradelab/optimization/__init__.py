"""Genetic optimizer and strategy-family genome adapters."""

from tradelab.optimization.genetic import (
    EARLY_STOP_MESSAGE,
    FAILED_EVALUATION_FITNESS,
    Chromosome,
    FunctionOperators,
    GenerationStats,
    GeneticOptimizationResult,
    GeneticOptimizer,
    GeneticProgress,
    GenomeOperators,
)
from tradelab.optimization.base import (
    MIN_OPTIMIZATION_CANDLES,
    BoolParam,
    FloatParam,
    IntParam,
    StrategyOptimizerBase,
)
from tradelab.optimization.trend import AdxOptimizer, AdxOptimizerConfig, AdxStrategySettings
from tradelab.optimization.ma import MaOptimizer, MaOptimizerConfig, MaStrategySettings
from tradelab.optimization.rsi import RsiOptimizer, RsiOptimizerConfig, RsiStrategySettings
from tradelab.optimization.ensemble import EnsembleOptimizer, EnsembleOptimizerConfig, EnsembleSettings
from tradelab.optimization.full_ensemble import (
    FullEnsembleOptimizer,
    FullEnsembleOptimizerConfig,
    FullEnsembleSettings,
)

__all__ = [
    "EARLY_STOP_MESSAGE",
    "FAILED_EVALUATION_FITNESS",
    "Chromosome",
    "FunctionOperators",
    "GenerationStats",
    "GeneticOptimizationResult",
    "GeneticOptimizer",
    "GeneticProgress",
    "GenomeOperators",
    "MIN_OPTIMIZATION_CANDLES",
    "BoolParam",
    "FloatParam",
    "IntParam",
    "StrategyOptimizerBase",
    "AdxOptimizer",
    "AdxOptimizerConfig",
    "AdxStrategySettings",
    "MaOptimizer",
    "MaOptimizerConfig",
    "MaStrategySettings",
    "RsiOptimizer",
    "RsiOptimizerConfig",
    "RsiStrategySettings",
    "EnsembleOptimizer",
    "EnsembleOptimizerConfig",
    "EnsembleSettings",
    "FullEnsembleOptimizer",
    "FullEnsembleOptimizerConfig",
    "FullEnsembleSettings",
]
