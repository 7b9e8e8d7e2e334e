"""
Weighted-ensemble optimizer: tunes member weights and the agreement threshold
while the member strategies keep their own settings.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional

from tradelab.analytics.fitness import OptimizationTarget, PerformanceFitnessPolicy
from tradelab.optimization.base import BoolParam, FloatParam, Param, StrategyOptimizerBase

ADX_STRATEGY_NAME = "ADX Trend Following + Volume"
MA_STRATEGY_NAME = "MA Crossover"
RSI_STRATEGY_NAME = "RSI Mean Reversion"


@dataclass(frozen=True)
class EnsembleSettings:
    adx_weight: float = 0.5
    ma_weight: float = 0.25
    rsi_weight: float = 0.25
    minimum_agreement: float = 0.6
    use_confidence_weighting: bool = True

    @property
    def strategy_weights(self) -> Dict[str, float]:
        return {
            ADX_STRATEGY_NAME: self.adx_weight,
            MA_STRATEGY_NAME: self.ma_weight,
            RSI_STRATEGY_NAME: self.rsi_weight,
        }


@dataclass(frozen=True)
class EnsembleOptimizerConfig:
    weight_min: float = 0.05
    weight_max: float = 1.0
    minimum_agreement_min: float = 0.4
    minimum_agreement_max: float = 0.8
    allow_confidence_weighting_toggle: bool = True
    default_use_confidence_weighting: bool = True
    min_trades: int = 20


class EnsembleOptimizer(StrategyOptimizerBase[EnsembleSettings, EnsembleOptimizerConfig]):
    default_objective = OptimizationTarget.RISK_ADJUSTED

    def default_config(self) -> EnsembleOptimizerConfig:
        return EnsembleOptimizerConfig()

    def default_policy(self) -> Optional[PerformanceFitnessPolicy]:
        return PerformanceFitnessPolicy(min_trades=self.config.min_trades)

    def parameters(self) -> List[Param]:
        c = self.config
        params: List[Param] = [
            FloatParam("adx_weight", c.weight_min, c.weight_max),
            FloatParam("ma_weight", c.weight_min, c.weight_max),
            FloatParam("rsi_weight", c.weight_min, c.weight_max),
            FloatParam("minimum_agreement", c.minimum_agreement_min, c.minimum_agreement_max),
        ]
        if c.allow_confidence_weighting_toggle:
            params.append(BoolParam("use_confidence_weighting"))
        return params

    def template(self) -> EnsembleSettings:
        return EnsembleSettings(use_confidence_weighting=self.config.default_use_confidence_weighting)

    def validate(self, genome: EnsembleSettings) -> bool:
        return self.in_ranges(genome)
