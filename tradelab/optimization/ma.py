"""Moving-average crossover optimizer."""

from __future__ import annotations
from dataclasses import dataclass
from typing import List

from tradelab.optimization.base import BoolParam, FloatParam, IntParam, Param, StrategyOptimizerBase


@dataclass(frozen=True)
class MaStrategySettings:
    fast_ma_period: int = 10
    slow_ma_period: int = 30
    atr_period: int = 14
    atr_stop_multiplier: float = 2.0
    take_profit_multiplier: float = 2.0
    volume_period: int = 20
    volume_threshold: float = 1.2
    require_volume_confirmation: bool = True


@dataclass(frozen=True)
class MaOptimizerConfig:
    fast_ma_min: int = 5
    fast_ma_max: int = 25
    slow_ma_min: int = 20
    slow_ma_max: int = 120
    atr_multiplier_min: float = 1.5
    atr_multiplier_max: float = 4.0
    take_profit_multiplier_min: float = 1.0
    take_profit_multiplier_max: float = 3.0
    volume_threshold_min: float = 1.0
    volume_threshold_max: float = 2.5
    atr_period: int = 14
    volume_period: int = 20


class MaOptimizer(StrategyOptimizerBase[MaStrategySettings, MaOptimizerConfig]):

    def default_config(self) -> MaOptimizerConfig:
        return MaOptimizerConfig()

    def parameters(self) -> List[Param]:
        c = self.config
        return [
            IntParam("fast_ma_period", c.fast_ma_min, c.fast_ma_max),
            IntParam("slow_ma_period", c.slow_ma_min, c.slow_ma_max),
            FloatParam("atr_stop_multiplier", c.atr_multiplier_min, c.atr_multiplier_max),
            FloatParam("take_profit_multiplier", c.take_profit_multiplier_min, c.take_profit_multiplier_max),
            FloatParam("volume_threshold", c.volume_threshold_min, c.volume_threshold_max),
            BoolParam("require_volume_confirmation"),
        ]

    def template(self) -> MaStrategySettings:
        return MaStrategySettings(atr_period=self.config.atr_period, volume_period=self.config.volume_period)

    def validate(self, genome: MaStrategySettings) -> bool:
        return (
            genome.fast_ma_period < genome.slow_ma_period
            and genome.atr_stop_multiplier > 0
            and genome.take_profit_multiplier > 0
            and genome.volume_threshold > 0
        )
