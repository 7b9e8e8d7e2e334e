"""
Full-parameter ensemble optimizer: member weights plus the ADX, MA and RSI
member settings in one genome.
"""

from __future__ import annotations
import random
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from tradelab.analytics.fitness import OptimizationTarget, PerformanceFitnessPolicy
from tradelab.optimization.base import (
    BoolParam,
    FloatParam,
    IntParam,
    Param,
    StrategyOptimizerBase,
    mutate_float,
    mutate_int,
)
from tradelab.optimization.ensemble import ADX_STRATEGY_NAME, MA_STRATEGY_NAME, RSI_STRATEGY_NAME
from tradelab.optimization.ma import MaStrategySettings
from tradelab.optimization.rsi import NEUTRAL_MIDPOINT, RsiStrategySettings
from tradelab.optimization.trend import AdxStrategySettings

# Minimum gaps kept by the coupled mutation slots
ADX_EXIT_GAP = 5.0
MA_PERIOD_GAP = 10


@dataclass(frozen=True)
class FullEnsembleSettings:
    adx_weight: float = 0.5
    ma_weight: float = 0.25
    rsi_weight: float = 0.25
    minimum_agreement: float = 0.6
    use_confidence_weighting: bool = True

    adx_period: int = 14
    adx_threshold: float = 25.0
    adx_exit_threshold: float = 18.0
    adx_fast_ema_period: int = 20
    adx_slow_ema_period: int = 50
    adx_atr_multiplier: float = 2.5
    adx_volume_threshold: float = 1.5
    adx_require_volume_confirmation: bool = True

    ma_fast_period: int = 10
    ma_slow_period: int = 30
    ma_atr_multiplier: float = 2.0
    ma_take_profit_multiplier: float = 2.0
    ma_volume_threshold: float = 1.2
    ma_require_volume_confirmation: bool = True

    rsi_period: int = 14
    rsi_oversold: float = 30.0
    rsi_overbought: float = 70.0
    rsi_atr_multiplier: float = 1.5
    rsi_take_profit_multiplier: float = 2.0
    rsi_use_trend_filter: bool = True

    @property
    def strategy_weights(self) -> Dict[str, float]:
        return {
            ADX_STRATEGY_NAME: self.adx_weight,
            MA_STRATEGY_NAME: self.ma_weight,
            RSI_STRATEGY_NAME: self.rsi_weight,
        }

    def adx_settings(self) -> AdxStrategySettings:
        return AdxStrategySettings(
            adx_period=self.adx_period,
            adx_threshold=self.adx_threshold,
            adx_exit_threshold=self.adx_exit_threshold,
            fast_ema_period=self.adx_fast_ema_period,
            slow_ema_period=self.adx_slow_ema_period,
            atr_stop_multiplier=self.adx_atr_multiplier,
            volume_threshold=self.adx_volume_threshold,
            require_volume_confirmation=self.adx_require_volume_confirmation,
        )

    def ma_settings(self) -> MaStrategySettings:
        return MaStrategySettings(
            fast_ma_period=self.ma_fast_period,
            slow_ma_period=self.ma_slow_period,
            atr_stop_multiplier=self.ma_atr_multiplier,
            take_profit_multiplier=self.ma_take_profit_multiplier,
            volume_threshold=self.ma_volume_threshold,
            require_volume_confirmation=self.ma_require_volume_confirmation,
        )

    def rsi_settings(self) -> RsiStrategySettings:
        return RsiStrategySettings(
            rsi_period=self.rsi_period,
            oversold_level=self.rsi_oversold,
            overbought_level=self.rsi_overbought,
            atr_stop_multiplier=self.rsi_atr_multiplier,
            take_profit_multiplier=self.rsi_take_profit_multiplier,
            use_trend_filter=self.rsi_use_trend_filter,
        )


@dataclass(frozen=True)
class FullEnsembleOptimizerConfig:
    weight_min: float = 0.1
    weight_max: float = 0.8
    minimum_agreement_min: float = 0.4
    minimum_agreement_max: float = 0.8
    min_trades: int = 20

    adx_period_min: int = 10
    adx_period_max: int = 20
    adx_threshold_min: float = 20.0
    adx_threshold_max: float = 35.0
    adx_exit_threshold_min: float = 15.0
    adx_exit_threshold_max: float = 25.0
    adx_fast_ema_min: int = 10
    adx_fast_ema_max: int = 30
    adx_slow_ema_min: int = 40
    adx_slow_ema_max: int = 80
    adx_atr_multiplier_min: float = 1.5
    adx_atr_multiplier_max: float = 4.0
    adx_volume_threshold_min: float = 1.0
    adx_volume_threshold_max: float = 2.5

    ma_fast_min: int = 5
    ma_fast_max: int = 20
    ma_slow_min: int = 25
    ma_slow_max: int = 60
    ma_atr_multiplier_min: float = 1.5
    ma_atr_multiplier_max: float = 3.5
    ma_take_profit_multiplier_min: float = 1.5
    ma_take_profit_multiplier_max: float = 3.0
    ma_volume_threshold_min: float = 1.0
    ma_volume_threshold_max: float = 2.0

    rsi_period_min: int = 10
    rsi_period_max: int = 20
    rsi_oversold_min: float = 20.0
    rsi_oversold_max: float = 35.0
    rsi_overbought_min: float = 65.0
    rsi_overbought_max: float = 80.0
    rsi_atr_multiplier_min: float = 1.0
    rsi_atr_multiplier_max: float = 3.0
    rsi_take_profit_multiplier_min: float = 1.5
    rsi_take_profit_multiplier_max: float = 3.0


class FullEnsembleOptimizer(StrategyOptimizerBase[FullEnsembleSettings, FullEnsembleOptimizerConfig]):
    """
    Besides one slot per parameter, two coupled slots mutate a pair together:
    the ADX entry threshold with its exit threshold, and the MA fast period with
    the slow period.
    """

    default_objective = OptimizationTarget.RISK_ADJUSTED
    coupled_slots = 2

    def default_config(self) -> FullEnsembleOptimizerConfig:
        return FullEnsembleOptimizerConfig()

    def default_policy(self) -> Optional[PerformanceFitnessPolicy]:
        return PerformanceFitnessPolicy(min_trades=self.config.min_trades)

    def parameters(self) -> List[Param]:
        c = self.config
        return [
            FloatParam("adx_weight", c.weight_min, c.weight_max),
            FloatParam("ma_weight", c.weight_min, c.weight_max),
            FloatParam("rsi_weight", c.weight_min, c.weight_max),
            FloatParam("minimum_agreement", c.minimum_agreement_min, c.minimum_agreement_max),
            BoolParam("use_confidence_weighting"),
            IntParam("adx_period", c.adx_period_min, c.adx_period_max),
            FloatParam("adx_threshold", c.adx_threshold_min, c.adx_threshold_max),
            FloatParam("adx_exit_threshold", c.adx_exit_threshold_min, c.adx_exit_threshold_max),
            IntParam("adx_fast_ema_period", c.adx_fast_ema_min, c.adx_fast_ema_max),
            IntParam("adx_slow_ema_period", c.adx_slow_ema_min, c.adx_slow_ema_max),
            FloatParam("adx_atr_multiplier", c.adx_atr_multiplier_min, c.adx_atr_multiplier_max),
            FloatParam("adx_volume_threshold", c.adx_volume_threshold_min, c.adx_volume_threshold_max),
            BoolParam("adx_require_volume_confirmation"),
            IntParam("ma_fast_period", c.ma_fast_min, c.ma_fast_max),
            IntParam("ma_slow_period", c.ma_slow_min, c.ma_slow_max),
            FloatParam("ma_atr_multiplier", c.ma_atr_multiplier_min, c.ma_atr_multiplier_max),
            FloatParam("ma_take_profit_multiplier", c.ma_take_profit_multiplier_min, c.ma_take_profit_multiplier_max),
            FloatParam("ma_volume_threshold", c.ma_volume_threshold_min, c.ma_volume_threshold_max),
            BoolParam("ma_require_volume_confirmation"),
            IntParam("rsi_period", c.rsi_period_min, c.rsi_period_max),
            FloatParam("rsi_oversold", c.rsi_oversold_min, c.rsi_oversold_max),
            FloatParam("rsi_overbought", c.rsi_overbought_min, c.rsi_overbought_max),
            FloatParam("rsi_atr_multiplier", c.rsi_atr_multiplier_min, c.rsi_atr_multiplier_max),
            FloatParam("rsi_take_profit_multiplier", c.rsi_take_profit_multiplier_min, c.rsi_take_profit_multiplier_max),
            BoolParam("rsi_use_trend_filter"),
        ]

    def template(self) -> FullEnsembleSettings:
        return FullEnsembleSettings()

    def mutate(self, genome: FullEnsembleSettings, rng: random.Random) -> FullEnsembleSettings:
        params = self.parameters()
        slot = rng.randrange(len(params) + self.coupled_slots)
        if slot < len(params):
            param = params[slot]
            return replace(genome, **{param.name: param.mutate(getattr(genome, param.name), rng)})

        c = self.config
        if slot == len(params):
            threshold = mutate_float(genome.adx_threshold, c.adx_threshold_min, c.adx_threshold_max, rng)
            exit_threshold = mutate_float(
                genome.adx_exit_threshold, c.adx_exit_threshold_min, c.adx_exit_threshold_max, rng,
            )
            return replace(
                genome,
                adx_threshold=threshold,
                adx_exit_threshold=min(threshold - ADX_EXIT_GAP, exit_threshold),
            )

        fast = mutate_int(genome.ma_fast_period, c.ma_fast_min, c.ma_fast_max, rng)
        slow = mutate_int(genome.ma_slow_period, c.ma_slow_min, c.ma_slow_max, rng)
        return replace(genome, ma_fast_period=fast, ma_slow_period=max(fast + MA_PERIOD_GAP, slow))

    def validate(self, genome: FullEnsembleSettings) -> bool:
        c = self.config
        weights_ok = all(
            c.weight_min <= w <= c.weight_max
            for w in (genome.adx_weight, genome.ma_weight, genome.rsi_weight)
        )
        return (
            weights_ok
            and genome.adx_exit_threshold < genome.adx_threshold
            and genome.adx_fast_ema_period < genome.adx_slow_ema_period
            and genome.ma_fast_period < genome.ma_slow_period
            and genome.rsi_oversold < NEUTRAL_MIDPOINT < genome.rsi_overbought
            and genome.rsi_oversold < genome.rsi_overbought
        )
