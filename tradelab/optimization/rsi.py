"""RSI mean-reversion optimizer."""

from __future__ import annotations
from dataclasses import dataclass
from typing import List

from tradelab.optimization.base import BoolParam, FloatParam, IntParam, Param, StrategyOptimizerBase

NEUTRAL_MIDPOINT = 50.0


@dataclass(frozen=True)
class RsiStrategySettings:
    rsi_period: int = 14
    oversold_level: float = 30.0
    overbought_level: float = 70.0
    neutral_zone_low: float = 45.0
    neutral_zone_high: float = 55.0
    exit_on_neutral: bool = False
    atr_period: int = 14
    atr_stop_multiplier: float = 1.5
    take_profit_multiplier: float = 2.0
    trend_filter_period: int = 50
    use_trend_filter: bool = True
    volume_period: int = 20
    volume_threshold: float = 1.0
    require_volume_confirmation: bool = False


@dataclass(frozen=True)
class RsiOptimizerConfig:
    rsi_period_min: int = 10
    rsi_period_max: int = 20
    oversold_min: float = 20.0
    oversold_max: float = 35.0
    overbought_min: float = 65.0
    overbought_max: float = 80.0
    atr_multiplier_min: float = 1.0
    atr_multiplier_max: float = 3.5
    take_profit_multiplier_min: float = 1.5
    take_profit_multiplier_max: float = 3.0
    trend_filter_period_min: int = 20
    trend_filter_period_max: int = 100
    volume_threshold_min: float = 1.0
    volume_threshold_max: float = 2.5
    neutral_zone_low: float = 45.0
    neutral_zone_high: float = 55.0
    atr_period: int = 14
    volume_period: int = 20


class RsiOptimizer(StrategyOptimizerBase[RsiStrategySettings, RsiOptimizerConfig]):

    def default_config(self) -> RsiOptimizerConfig:
        return RsiOptimizerConfig()

    def parameters(self) -> List[Param]:
        c = self.config
        return [
            IntParam("rsi_period", c.rsi_period_min, c.rsi_period_max),
            FloatParam("oversold_level", c.oversold_min, c.oversold_max),
            FloatParam("overbought_level", c.overbought_min, c.overbought_max),
            FloatParam("atr_stop_multiplier", c.atr_multiplier_min, c.atr_multiplier_max),
            FloatParam("take_profit_multiplier", c.take_profit_multiplier_min, c.take_profit_multiplier_max),
            IntParam("trend_filter_period", c.trend_filter_period_min, c.trend_filter_period_max),
            FloatParam("volume_threshold", c.volume_threshold_min, c.volume_threshold_max),
            BoolParam("exit_on_neutral"),
            BoolParam("use_trend_filter"),
            BoolParam("require_volume_confirmation"),
        ]

    def template(self) -> RsiStrategySettings:
        c = self.config
        return RsiStrategySettings(
            neutral_zone_low=c.neutral_zone_low,
            neutral_zone_high=c.neutral_zone_high,
            atr_period=c.atr_period,
            volume_period=c.volume_period,
        )

    def validate(self, genome: RsiStrategySettings) -> bool:
        return (
            genome.oversold_level < genome.overbought_level
            and genome.oversold_level < NEUTRAL_MIDPOINT < genome.overbought_level
            and genome.neutral_zone_low < genome.neutral_zone_high
            and genome.atr_stop_multiplier > 0
            and genome.take_profit_multiplier > 0
            and genome.volume_threshold > 0
        )
