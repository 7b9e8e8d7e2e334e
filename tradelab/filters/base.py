"""
Signal filter contract for multi-timeframe analysis: an auxiliary strategy's
state can confirm, veto or score a primary strategy's signal.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tradelab.core.types import SignalType, StrategyState, TradeSignal


class FilterMode(str, Enum):
    CONFIRM = "CONFIRM"  # must approve
    VETO = "VETO"  # may block
    SCORE = "SCORE"  # scales confidence only


@dataclass(frozen=True)
class FilterResult:
    approved: bool
    reason: str
    confidence_adjustment: Optional[float] = None


EXIT_PASS = FilterResult(True, "Exit signals not filtered", 1.0)


def is_exit(signal: TradeSignal) -> bool:
    return signal.type in (SignalType.EXIT, SignalType.PARTIAL_EXIT)


class SignalFilter(ABC):
    name: str = "Filter"

    def __init__(self, mode: FilterMode):
        self.mode = mode

    @abstractmethod
    def evaluate(self, signal: TradeSignal, state: StrategyState) -> FilterResult:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(mode={self.mode.value})"
