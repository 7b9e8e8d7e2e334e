"""Unit tests for backtesting.position."""

from datetime import datetime, timedelta

import pytest

from tradelab.backtesting.position import PositionState
from tradelab.core.types import TradeDirection

T0 = datetime(2024, 1, 1)


def opened(direction=TradeDirection.LONG, quantity=2.0):
    pos = PositionState()
    pos.open(quantity, 100.0, direction, T0, 90.0, 120.0, 20.0)
    return pos


def test_flat_by_default():
    pos = PositionState()
    assert not pos.has_position
    assert pos.entry_price is None
    assert pos.unrealized_pnl(150.0) == 0.0


def test_short_has_negative_quantity():
    pos = opened(TradeDirection.SHORT)
    assert pos.quantity == -2.0
    assert pos.is_short
    assert pos.absolute_quantity == 2.0
    assert pos.unrealized_pnl(90.0) == pytest.approx(20.0)


def test_position_value_and_risk():
    pos = opened()
    assert pos.position_value == 200.0
    assert pos.risk_amount == 20.0


def test_partial_close_keeps_side_and_updates_stop():
    pos = opened(TradeDirection.SHORT, 3.0)
    pos.partial_close(1.0, 95.0)
    assert pos.quantity == -2.0
    assert pos.stop_loss == 95.0


def test_partial_close_of_everything_goes_flat():
    pos = opened()
    pos.partial_close(5.0)
    assert not pos.has_position
    assert pos.entry_price is None


def test_update_stop_ignored_when_flat_or_none():
    pos = PositionState()
    pos.update_stop_loss(95.0)
    assert pos.stop_loss is None
    pos = opened()
    pos.update_stop_loss(None)
    assert pos.stop_loss == 90.0
    pos.update_stop_loss(97.0)
    assert pos.stop_loss == 97.0


def test_excursions_track_extremes():
    pos = opened()
    for pnl in (5.0, -8.0, 12.0, 3.0):
        pos.update_excursions(pnl)
    assert pos.best_pnl == 12.0
    assert pos.worst_pnl == -8.0
    assert pos.bars_in_trade == 4


def test_duration():
    pos = opened()
    assert pos.duration(T0 + timedelta(hours=5)) == timedelta(hours=5)
    assert PositionState().duration(T0) == timedelta(0)
