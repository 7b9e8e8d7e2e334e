"""ADX trend-following optimizer."""

from __future__ import annotations
from dataclasses import dataclass
from typing import List

from tradelab.optimization.base import BoolParam, FloatParam, IntParam, Param, StrategyOptimizerBase


@dataclass(frozen=True)
class AdxStrategySettings:
    adx_period: int = 14
    adx_threshold: float = 25.0
    adx_exit_threshold: float = 18.0
    require_fresh_trend: bool = False
    fast_ema_period: int = 20
    slow_ema_period: int = 50
    atr_period: int = 14
    atr_stop_multiplier: float = 2.5
    take_profit_multiplier: float = 1.5
    volume_period: int = 20
    volume_threshold: float = 1.5
    require_volume_confirmation: bool = True
    obv_period: int = 20
    require_obv_confirmation: bool = True


@dataclass(frozen=True)
class AdxOptimizerConfig:
    adx_period_min: int = 10
    adx_period_max: int = 25
    adx_threshold_min: float = 18.0
    adx_threshold_max: float = 35.0
    adx_exit_threshold_min: float = 12.0
    adx_exit_threshold_max: float = 25.0
    fast_ema_min: int = 8
    fast_ema_max: int = 30
    slow_ema_min: int = 35
    slow_ema_max: int = 100
    atr_multiplier_min: float = 1.5
    atr_multiplier_max: float = 4.0
    take_profit_multiplier_min: float = 1.0
    take_profit_multiplier_max: float = 3.0
    volume_threshold_min: float = 1.0
    volume_threshold_max: float = 2.5
    atr_period: int = 14


class AdxOptimizer(StrategyOptimizerBase[AdxStrategySettings, AdxOptimizerConfig]):

    def default_config(self) -> AdxOptimizerConfig:
        return AdxOptimizerConfig()

    def parameters(self) -> List[Param]:
        c = self.config
        return [
            IntParam("adx_period", c.adx_period_min, c.adx_period_max),
            FloatParam("adx_threshold", c.adx_threshold_min, c.adx_threshold_max),
            FloatParam("adx_exit_threshold", c.adx_exit_threshold_min, c.adx_exit_threshold_max),
            IntParam("fast_ema_period", c.fast_ema_min, c.fast_ema_max),
            IntParam("slow_ema_period", c.slow_ema_min, c.slow_ema_max),
            FloatParam("atr_stop_multiplier", c.atr_multiplier_min, c.atr_multiplier_max),
            FloatParam("take_profit_multiplier", c.take_profit_multiplier_min, c.take_profit_multiplier_max),
            FloatParam("volume_threshold", c.volume_threshold_min, c.volume_threshold_max),
            BoolParam("require_volume_confirmation"),
            BoolParam("require_obv_confirmation"),
        ]

    def template(self) -> AdxStrategySettings:
        return AdxStrategySettings(atr_period=self.config.atr_period)

    def validate(self, genome: AdxStrategySettings) -> bool:
        return (
            genome.fast_ema_period < genome.slow_ema_period
            and 0 <= genome.adx_threshold <= 100
            and genome.atr_stop_multiplier > 0
            and genome.take_profit_multiplier > 0
        )
