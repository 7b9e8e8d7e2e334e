"""Candle builders and scripted strategies shared by the test modules."""

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from tradelab.core.types import Candle, SignalType, StrategyState, TradeSignal
from tradelab.strategies.base import Strategy

START = datetime(2024, 1, 1)
HOUR = timedelta(hours=1)


def make_candle(index: int, o: float, h: float, l: float, c: float, volume: float = 100.0,
                interval: timedelta = HOUR, start: datetime = START) -> Candle:
    opened = start + index * interval
    return Candle(opened, o, h, l, c, volume, opened + interval)


def make_candles(bars: Sequence[Tuple[float, float, float, float]], interval: timedelta = HOUR,
                 start: datetime = START) -> List[Candle]:
    return [make_candle(i, *bar, interval=interval, start=start) for i, bar in enumerate(bars)]


def flat_candles(closes: Sequence[float], interval: timedelta = HOUR, start: datetime = START) -> List[Candle]:
    """Bars with open = high = low = close."""
    return make_candles([(c, c, c, c) for c in closes], interval, start)


def buy(price: float, stop: Optional[float] = None, target: Optional[float] = None, reason: str = "Buy") -> TradeSignal:
    return TradeSignal("BTCUSDT", SignalType.BUY, price, stop_loss=stop, take_profit=target, reason=reason)


def sell(price: float, stop: Optional[float] = None, target: Optional[float] = None, reason: str = "Sell") -> TradeSignal:
    return TradeSignal("BTCUSDT", SignalType.SELL, price, stop_loss=stop, take_profit=target, reason=reason)


def exit_signal(price: float, reason: str = "Exit") -> TradeSignal:
    return TradeSignal("BTCUSDT", SignalType.EXIT, price, reason=reason)


class ScriptedStrategy(Strategy):
    """Emits a fixed signal per bar index and records every call."""

    name = "Scripted"

    def __init__(
        self,
        script: Optional[Dict[int, TradeSignal]] = None,
        atr: Optional[float] = None,
        stops: Optional[Dict[int, float]] = None,
        state: Optional[StrategyState] = None,
    ):
        self.script = script or {}
        self.atr = atr
        self.stops = stops or {}
        self.state = state or StrategyState()
        self.bar = 0
        self.stop: Optional[float] = None
        self.calls: List[Tuple[Candle, float]] = []

    def analyze(self, candle, current_position, symbol=None):
        index = self.bar
        self.bar += 1
        self.calls.append((candle, current_position))
        if index in self.stops:
            self.stop = self.stops[index]
        return self.script.get(index)

    def reset(self):
        self.bar = 0
        self.stop = None
        self.calls = []

    @property
    def current_atr(self):
        return self.atr

    @property
    def current_stop_loss(self):
        return self.stop

    def get_current_state(self):
        return self.state


class BuyFirstBarStrategy(Strategy):
    """Buys on the first bar with a fixed fractional stop, then holds."""

    name = "Buy And Hold"

    def __init__(self, stop_fraction: float = 0.5):
        self.stop_fraction = stop_fraction
        self.done = False

    def analyze(self, candle, current_position, symbol=None):
        if self.done:
            return None
        self.done = True
        return buy(candle.close, stop=candle.close * self.stop_fraction)

    def reset(self):
        self.done = False


class IdleStrategy(Strategy):
    name = "Idle"

    def analyze(self, candle, current_position, symbol=None):
        return None

    def reset(self):
        pass
