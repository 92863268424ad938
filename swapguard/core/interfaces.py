"""Collaborator contracts consumed by the guard and the rebalancer.

The host environment supplies implementations; `swapguard.integration.memory`
ships in-memory ones for tests and offline replays. All calls are synchronous.
"""

from __future__ import annotations

from enum import Enum, unique
from typing import Protocol, Tuple, runtime_checkable

from ..state.pools import PoolKey


@unique
class Direction(Enum):
    ADD = "add"
    REMOVE = "remove"


@runtime_checkable
class PriceOracle(Protocol):
    def get_latest_price(self, pool: PoolKey) -> int:
        """Reference price for `pool` (unsigned, fixed precision). May raise."""
        ...


@runtime_checkable
class PoolReserveReader(Protocol):
    def get_slot0(self, pool: PoolKey) -> int:
        """Current sqrt price of `pool` in Q64.96."""
        ...

    def get_reserves(self, pool: PoolKey) -> Tuple[int, int]:
        """Current (reserve0, reserve1) of `pool`."""
        ...

    def get_liquidity(self, pool: PoolKey) -> int:
        """Current in-range liquidity of `pool`."""
        ...


@runtime_checkable
class LiquidityMover(Protocol):
    def modify_position(self, pool: str, amount: int, direction: Direction, beneficiary: str) -> None:
        """Move `amount` of liquidity into or out of `pool` on behalf of `beneficiary`."""
        ...
