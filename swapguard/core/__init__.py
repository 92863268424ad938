"""
Core swap guard algorithms
"""

from .errors import (
    ConfigError,
    ReentrancyError,
    Rejection,
    ReserveIntegrityError,
    SwapGuardError,
    SwapRejectedError,
    UnauthorizedError,
    UnknownPoolError,
)
from .guard import GuardDecision, PreTradeGuard
from .hook import BalanceDelta, HookPermissions, SwapContext, SwapGuardHook
from .interfaces import Direction, LiquidityMover, PoolReserveReader, PriceOracle
from .rebalancer import (
    PostTradeRebalancer,
    RebalanceDecision,
    RebalanceInstruction,
    RebalancerConfig,
)

__all__ = [
    "ConfigError",
    "ReentrancyError",
    "Rejection",
    "ReserveIntegrityError",
    "SwapGuardError",
    "SwapRejectedError",
    "UnauthorizedError",
    "UnknownPoolError",
    "GuardDecision",
    "PreTradeGuard",
    "BalanceDelta",
    "HookPermissions",
    "SwapContext",
    "SwapGuardHook",
    "Direction",
    "LiquidityMover",
    "PoolReserveReader",
    "PriceOracle",
    "PostTradeRebalancer",
    "RebalanceDecision",
    "RebalanceInstruction",
    "RebalancerConfig",
]
