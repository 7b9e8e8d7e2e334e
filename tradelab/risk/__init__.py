"""Risk management: position sizing, portfolio heat, drawdown circuit breaker."""

from tradelab.risk.manager import OpenPosition, PositionSizeResult, RiskManager

__all__ = ["OpenPosition", "PositionSizeResult", "RiskManager"]
