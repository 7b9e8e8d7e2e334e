"""Unit tests for core.config and core.logger."""

import logging
from dataclasses import FrozenInstanceError, replace

import pytest

from tradelab.core.config import BacktestSettings, Config, WalkForwardSettings, load_config
from tradelab.core.logger import setup_logging

ENV_KEYS = [
    "TRADELAB_INITIAL_CAPITAL",
    "TRADELAB_COMMISSION_PERCENT",
    "TRADELAB_SLIPPAGE_PERCENT",
    "TRADELAB_RISK_PER_TRADE_PERCENT",
    "TRADELAB_MAX_DRAWDOWN_PERCENT",
    "TRADELAB_RANDOM_SEED",
    "TRADELAB_POPULATION_SIZE",
    "TRADELAB_GENERATIONS",
    "TRADELAB_MAX_WORKERS",
    "TRADELAB_MONTE_CARLO_SIMULATIONS",
    "TRADELAB_SYMBOL",
    "TRADELAB_TIMEFRAME",
    "TRADELAB_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # set first so teardown also removes anything a .env file loads
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(tmp_path / "missing.yaml", project_root=tmp_path)
    assert config == Config()


def test_yaml_values(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "backtest:\n"
        "  initial_capital: 5000\n"
        "  commission_percent: 0.04\n"
        "optimizer:\n"
        "  population_size: 30\n"
        "  random_seed: 99\n"
        "market:\n"
        "  symbol: ethusdt\n"
        "  timeframe: 4h\n",
        encoding="utf-8",
    )
    config = load_config(path, project_root=tmp_path)
    assert config.backtest.initial_capital == 5000
    assert config.backtest.commission_percent == 0.04
    assert config.optimizer.population_size == 30
    assert config.optimizer.random_seed == 99
    assert config.monte_carlo.random_seed == 99
    assert config.symbol == "ETHUSDT"
    assert config.timeframe == "4h"


def test_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("backtest:\n  initial_capital: 5000\n", encoding="utf-8")
    monkeypatch.setenv("TRADELAB_INITIAL_CAPITAL", "25000")
    monkeypatch.setenv("TRADELAB_RANDOM_SEED", "7")
    config = load_config(path, project_root=tmp_path)
    assert config.backtest.initial_capital == 25000
    assert config.optimizer.random_seed == 7


def test_dotenv_file_is_loaded(tmp_path):
    (tmp_path / ".env").write_text("TRADELAB_SYMBOL=solusdt\n", encoding="utf-8")
    config = load_config(tmp_path / "missing.yaml", project_root=tmp_path)
    assert config.symbol == "SOLUSDT"


def test_bad_env_number_falls_back(tmp_path, monkeypatch):
    monkeypatch.setenv("TRADELAB_INITIAL_CAPITAL", "lots")
    monkeypatch.setenv("TRADELAB_POPULATION_SIZE", "many")
    config = load_config(tmp_path / "missing.yaml", project_root=tmp_path)
    assert config.backtest.initial_capital == 10000.0
    assert config.optimizer.population_size == 100


def test_settings_are_frozen_and_validated():
    settings = BacktestSettings()
    with pytest.raises(FrozenInstanceError):
        settings.initial_capital = 1.0
    assert replace(settings, slippage_percent=0.0).slippage_percent == 0.0
    with pytest.raises(ValueError):
        BacktestSettings(initial_capital=0)
    with pytest.raises(ValueError):
        WalkForwardSettings(step_ratio=0.0)


def test_setup_logging_writes_file(tmp_path):
    logger = setup_logging("DEBUG", tmp_path, "run.log")
    try:
        assert logger.level == logging.DEBUG
        logging.getLogger("tradelab.backtest").info("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "tradelab.backtest | hello" in (tmp_path / "run.log").read_text(encoding="utf-8")
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
