"""
Settings value objects and the config.yaml / .env loader.
Settings are frozen; use dataclasses.replace for variants.
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv


@dataclass(frozen=True)
class BacktestSettings:
    """Capital and cost model. Percentages are in percent units (0.1 = 0.1%)."""
    initial_capital: float = 10000.0
    commission_percent: float = 0.1
    slippage_percent: float = 0.05

    def __post_init__(self) -> None:
        if self.initial_capital <= 0:
            raise ValueError("initial_capital must be positive")
        if self.commission_percent < 0 or self.slippage_percent < 0:
            raise ValueError("commission_percent and slippage_percent must be non-negative")


@dataclass(frozen=True)
class RiskSettings:
    risk_per_trade_percent: float = 1.5
    max_portfolio_heat_percent: float = 15.0
    max_drawdown_percent: float = 20.0
    # read from config.yaml but not enforced by the backtester
    max_daily_drawdown_percent: float = 3.0
    atr_stop_multiplier: float = 2.5
    # not read by the backtester; strategies carry their own multipliers
    take_profit_multiplier: float = 1.5
    minimum_equity_usd: float = 100.0

    def __post_init__(self) -> None:
        if self.risk_per_trade_percent <= 0:
            raise ValueError("risk_per_trade_percent must be positive")


@dataclass(frozen=True)
class GeneticOptimizerSettings:
    """
    Attributes:
        population_size: Genomes per generation.
        generations: Upper bound on generations evaluated.
        elite_count: Top genomes copied unchanged into the next generation.
        tournament_size: Genomes drawn (with replacement) per tournament.
        crossover_rate: Probability a child is produced by crossover.
        mutation_rate: Probability a child is mutated.
        early_stopping_patience: Window of generations checked for a plateau.
        early_stopping_threshold: Minimum best-fitness gain over the window.
        random_seed: Seed for the single operator random stream.
        max_workers: Thread pool size for fitness evaluation (None = executor default).
    """
    population_size: int = 100
    generations: int = 50
    elite_count: int = 5
    tournament_size: int = 5
    crossover_rate: float = 0.8
    mutation_rate: float = 0.15
    early_stopping_patience: int = 10
    early_stopping_threshold: float = 0.01
    random_seed: Optional[int] = None
    max_workers: Optional[int] = None

    def __post_init__(self) -> None:
        if self.population_size < 1:
            raise ValueError("population_size must be at least 1")
        if self.generations < 1:
            raise ValueError("generations must be at least 1")
        if not 0 <= self.elite_count <= self.population_size:
            raise ValueError("elite_count must be between 0 and population_size")
        if self.tournament_size < 1:
            raise ValueError("tournament_size must be at least 1")
        if not 0.0 <= self.crossover_rate <= 1.0 or not 0.0 <= self.mutation_rate <= 1.0:
            raise ValueError("crossover_rate and mutation_rate must be within [0, 1]")
        if self.early_stopping_patience < 1:
            raise ValueError("early_stopping_patience must be at least 1")


@dataclass(frozen=True)
class WalkForwardSettings:
    """Window fractions of the full series and robustness thresholds."""
    in_sample_ratio: float = 0.7
    out_of_sample_ratio: float = 0.2
    step_ratio: float = 0.1
    min_wfe_threshold: float = 50.0
    min_consistency_threshold: float = 60.0
    min_sharpe_threshold: float = 0.5

    def __post_init__(self) -> None:
        for name in ("in_sample_ratio", "out_of_sample_ratio", "step_ratio"):
            value = getattr(self, name)
            if not 0.0 < value <= 1.0:
                raise ValueError(f"{name} must be within (0, 1], got {value}")


@dataclass(frozen=True)
class MonteCarloSettings:
    simulations: int = 1000
    ruin_threshold_percent: float = -50.0
    minimum_trades: int = 10
    random_seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.simulations < 1:
            raise ValueError("simulations must be at least 1")


@dataclass(frozen=True)
class Config:
    """Unified configuration. Immutable after load."""
    backtest: BacktestSettings = field(default_factory=BacktestSettings)
    risk: RiskSettings = field(default_factory=RiskSettings)
    optimizer: GeneticOptimizerSettings = field(default_factory=GeneticOptimizerSettings)
    walk_forward: WalkForwardSettings = field(default_factory=WalkForwardSettings)
    monte_carlo: MonteCarloSettings = field(default_factory=MonteCarloSettings)
    symbol: str = "BTCUSDT"
    timeframe: str = "1h"
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    log_file: str = "tradelab.log"


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> Config:
    """Load config.yaml and overlay with TRADELAB_* environment variables."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = Path(config_path) if config_path else root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    def env(key: str, default: str = "") -> str:
        return os.getenv(key, default).strip()

    def env_int(key: str, default: Optional[int]) -> Optional[int]:
        raw = os.getenv(key)
        if raw is None or not raw.strip():
            return default
        try:
            return int(raw)
        except ValueError:
            return default

    def env_float(key: str, default: float) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    backtest = data.get("backtest", {}) or {}
    risk = data.get("risk", {}) or {}
    optimizer = data.get("optimizer", {}) or {}
    walk_forward = data.get("walk_forward", {}) or {}
    monte_carlo = data.get("monte_carlo", {}) or {}
    logging_cfg = data.get("logging", {}) or {}
    market = data.get("market", {}) or {}

    defaults = GeneticOptimizerSettings()
    seed = env_int("TRADELAB_RANDOM_SEED", optimizer.get("random_seed"))

    return Config(
        backtest=BacktestSettings(
            initial_capital=env_float("TRADELAB_INITIAL_CAPITAL", backtest.get("initial_capital", 10000.0)),
            commission_percent=env_float("TRADELAB_COMMISSION_PERCENT", backtest.get("commission_percent", 0.1)),
            slippage_percent=env_float("TRADELAB_SLIPPAGE_PERCENT", backtest.get("slippage_percent", 0.05)),
        ),
        risk=RiskSettings(
            risk_per_trade_percent=env_float("TRADELAB_RISK_PER_TRADE_PERCENT", risk.get("risk_per_trade_percent", 1.5)),
            max_portfolio_heat_percent=float(risk.get("max_portfolio_heat_percent", 15.0)),
            max_drawdown_percent=env_float("TRADELAB_MAX_DRAWDOWN_PERCENT", risk.get("max_drawdown_percent", 20.0)),
            max_daily_drawdown_percent=float(risk.get("max_daily_drawdown_percent", 3.0)),
            atr_stop_multiplier=float(risk.get("atr_stop_multiplier", 2.5)),
            take_profit_multiplier=float(risk.get("take_profit_multiplier", 1.5)),
            minimum_equity_usd=float(risk.get("minimum_equity_usd", 100.0)),
        ),
        optimizer=GeneticOptimizerSettings(
            population_size=env_int("TRADELAB_POPULATION_SIZE", optimizer.get("population_size", defaults.population_size)),
            generations=env_int("TRADELAB_GENERATIONS", optimizer.get("generations", defaults.generations)),
            elite_count=int(optimizer.get("elite_count", defaults.elite_count)),
            tournament_size=int(optimizer.get("tournament_size", defaults.tournament_size)),
            crossover_rate=float(optimizer.get("crossover_rate", defaults.crossover_rate)),
            mutation_rate=float(optimizer.get("mutation_rate", defaults.mutation_rate)),
            early_stopping_patience=int(optimizer.get("early_stopping_patience", defaults.early_stopping_patience)),
            early_stopping_threshold=float(optimizer.get("early_stopping_threshold", defaults.early_stopping_threshold)),
            random_seed=seed,
            max_workers=env_int("TRADELAB_MAX_WORKERS", optimizer.get("max_workers")),
        ),
        walk_forward=WalkForwardSettings(
            in_sample_ratio=float(walk_forward.get("in_sample_ratio", 0.7)),
            out_of_sample_ratio=float(walk_forward.get("out_of_sample_ratio", 0.2)),
            step_ratio=float(walk_forward.get("step_ratio", 0.1)),
            min_wfe_threshold=float(walk_forward.get("min_wfe_threshold", 50.0)),
            min_consistency_threshold=float(walk_forward.get("min_consistency_threshold", 60.0)),
            min_sharpe_threshold=float(walk_forward.get("min_sharpe_threshold", 0.5)),
        ),
        monte_carlo=MonteCarloSettings(
            simulations=env_int("TRADELAB_MONTE_CARLO_SIMULATIONS", monte_carlo.get("simulations", 1000)),
            ruin_threshold_percent=float(monte_carlo.get("ruin_threshold_percent", -50.0)),
            minimum_trades=int(monte_carlo.get("minimum_trades", 10)),
            random_seed=seed,
        ),
        symbol=env("TRADELAB_SYMBOL", market.get("symbol", "BTCUSDT")).upper(),
        timeframe=env("TRADELAB_TIMEFRAME", market.get("timeframe", "1h")),
        log_level=env("TRADELAB_LOG_LEVEL", logging_cfg.get("level", "INFO")),
        log_dir=Path(logging_cfg.get("log_dir", "logs")),
        log_file=logging_cfg.get("log_file", "tradelab.log"),
    )
