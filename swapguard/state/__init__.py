"""
State management for the swap guard
"""

from .config import DEFAULT_COOLDOWN_SECONDS, MAX_COOLDOWN_SECONDS, GuardConfig
from .pools import PoolId, PoolKey, PoolRotation, compute_pool_id, pool_id_of
from .traders import EMPTY_RECORD, Address, TraderRecord, TraderTable

__all__ = [
    "DEFAULT_COOLDOWN_SECONDS",
    "MAX_COOLDOWN_SECONDS",
    "GuardConfig",
    "PoolId",
    "PoolKey",
    "PoolRotation",
    "compute_pool_id",
    "pool_id_of",
    "EMPTY_RECORD",
    "Address",
    "TraderRecord",
    "TraderTable",
]
