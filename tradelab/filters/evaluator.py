"""
Combine auxiliary filter results: confirm filters must all approve, any veto
rejection blocks, score filters multiply into one confidence factor.
"""

from __future__ import annotations
import logging
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from tradelab.core.types import StrategyState, TradeSignal
from tradelab.filters.base import FilterMode, FilterResult, SignalFilter

logger = logging.getLogger("tradelab.filters")

NOT_READY = FilterResult(True, "Filter state not ready; skipping filter evaluation", 1.0)


class SignalFilterEvaluator:

    @staticmethod
    def evaluate(
        signal: TradeSignal,
        filters: Sequence[Tuple[SignalFilter, StrategyState]],
    ) -> FilterResult:
        if not filters:
            return FilterResult(True, "No filters", 1.0)
        results = []
        for signal_filter, state in filters:
            # warm-up: nothing computed yet, so never block on it
            result = signal_filter.evaluate(signal, state) if state.is_ready else NOT_READY
            results.append((signal_filter, result))
        return SignalFilterEvaluator.combine(results)

    @staticmethod
    def combine(results: List[Tuple[SignalFilter, FilterResult]]) -> FilterResult:
        for mode, label in ((FilterMode.CONFIRM, "Confirm"), (FilterMode.VETO, "Veto")):
            for signal_filter, result in results:
                if signal_filter.mode == mode and not result.approved:
                    logger.debug("%s filter %s rejected: %s", label, signal_filter.name, result.reason)
                    return FilterResult(
                        False,
                        f"{label} filter '{signal_filter.name}' rejected: {result.reason}",
                        result.confidence_adjustment,
                    )

        combined = 1.0
        parts = []
        for signal_filter, result in results:
            if signal_filter.mode != FilterMode.SCORE or result.confidence_adjustment is None:
                continue
            combined *= result.confidence_adjustment
            parts.append(f"{signal_filter.name}: {result.confidence_adjustment:.2f}x")
        reason = "Score filters applied: " + ", ".join(parts) if parts else "All filters approved"
        return FilterResult(True, reason, combined)

    @staticmethod
    def apply_confidence_adjustment(signal: TradeSignal, multiplier: Optional[float]) -> TradeSignal:
        """Annotate the signal reason with a non-neutral multiplier. Sizing is left to the caller."""
        if multiplier is None or multiplier == 1.0:
            return signal
        return replace(signal, reason=f"{signal.reason} [Confidence: {multiplier:.2f}x]")
