"""Exception types for the swap guard.

Guard rejections are normally returned as `GuardDecision` values; the
exceptions here cover callers that prefer raising (`evaluate_or_raise`) and
the fatal conditions on the rebalancing path.
"""

from __future__ import annotations

from enum import Enum, unique


@unique
class Rejection(Enum):
    """One member per reason the pre-trade guard can refuse a swap."""
    BOT_BLOCKED = "BotBlocked"
    SANDWICH_DETECTED = "SandwichDetected"
    COOLDOWN_NOT_MET = "CooldownNotMet"
    MEV_DETECTED = "MEVDetected"
    PRICE_UNAVAILABLE = "PriceUnavailable"
    # Declared for completeness; imbalance triggers a rebalance, never a rejection.
    LIQUIDITY_IMBALANCE = "LiquidityImbalance"


class SwapGuardError(Exception):
    """Base class for swap guard errors."""


class SwapRejectedError(SwapGuardError):
    """Raised by `evaluate_or_raise()` when the guard refuses a swap."""

    def __init__(self, reason: Rejection) -> None:
        self.reason = reason
        super().__init__(f"swap rejected: {reason.value}")


class ReserveIntegrityError(SwapGuardError):
    """Raised when reported deltas are inconsistent with the pool's reserves."""


class ReentrancyError(SwapGuardError):
    """Raised when the rebalancing critical section is entered twice."""


class UnknownPoolError(SwapGuardError):
    """Raised in strict mode when an imbalanced pool has no rotation target."""


class UnauthorizedError(SwapGuardError):
    """Raised when a non-owner calls an administrative method."""


class ConfigError(SwapGuardError):
    """Raised when a settings file or override cannot be parsed."""
