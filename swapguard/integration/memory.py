"""
In-memory collaborators.

Dict-backed implementations of the price oracle, pool reserve reader and
liquidity mover, for tests, offline replays and demos. They perform no swap
math: callers report reserve deltas and the new sqrt price explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..core.interfaces import Direction
from ..state.pools import PoolId, PoolKey, pool_id_of


@dataclass
class PoolSnapshot:
    sqrt_price_x96: int
    reserve0: int
    reserve1: int
    liquidity: int

    def __post_init__(self) -> None:
        for name, val in (
            ("sqrt_price_x96", self.sqrt_price_x96),
            ("reserve0", self.reserve0),
            ("reserve1", self.reserve1),
            ("liquidity", self.liquidity),
        ):
            if not isinstance(val, int) or isinstance(val, bool):
                raise TypeError(f"{name} must be an int")
            if val < 0:
                raise ValueError(f"{name} must be non-negative: {val}")


@dataclass(frozen=True)
class PositionChange:
    pool_id: PoolId
    amount: int
    direction: Direction
    beneficiary: str


@dataclass
class InMemoryPoolManager:
    """
    Pool reserve reader + liquidity mover over a dict of snapshots.

    Every `modify_position` call is appended to `position_changes` in call order.
    """

    pools: Dict[PoolId, PoolSnapshot] = field(default_factory=dict)
    position_changes: List[PositionChange] = field(default_factory=list)

    def register(
        self,
        pool: "PoolKey | PoolId",
        *,
        sqrt_price_x96: int,
        reserve0: int,
        reserve1: int,
        liquidity: int,
    ) -> PoolId:
        pid = pool_id_of(pool)
        if pid in self.pools:
            raise ValueError(f"pool already registered: {pid}")
        self.pools[pid] = PoolSnapshot(
            sqrt_price_x96=sqrt_price_x96, reserve0=reserve0, reserve1=reserve1, liquidity=liquidity,
        )
        return pid

    def _snapshot(self, pool: "PoolKey | PoolId") -> PoolSnapshot:
        pid = pool_id_of(pool)
        snap = self.pools.get(pid)
        if snap is None:
            raise KeyError(f"unknown pool: {pid}")
        return snap

    def apply_swap(
        self,
        pool: "PoolKey | PoolId",
        amount0_delta: int,
        amount1_delta: int,
        *,
        sqrt_price_x96: Optional[int] = None,
    ) -> None:
        """Apply signed reserve deltas (and optionally a new price) reported by the executor."""
        snap = self._snapshot(pool)
        new0 = snap.reserve0 + amount0_delta
        new1 = snap.reserve1 + amount1_delta
        if new0 < 0 or new1 < 0:
            raise ValueError(f"swap would make reserves negative: ({new0}, {new1})")
        snap.reserve0 = new0
        snap.reserve1 = new1
        if sqrt_price_x96 is not None:
            snap.sqrt_price_x96 = sqrt_price_x96

    # -- PoolReserveReader ---------------------------------------------------

    def get_slot0(self, pool: "PoolKey | PoolId") -> int:
        return self._snapshot(pool).sqrt_price_x96

    def get_reserves(self, pool: "PoolKey | PoolId") -> Tuple[int, int]:
        snap = self._snapshot(pool)
        return snap.reserve0, snap.reserve1

    def get_liquidity(self, pool: "PoolKey | PoolId") -> int:
        return self._snapshot(pool).liquidity

    # -- LiquidityMover ------------------------------------------------------

    def modify_position(self, pool: "PoolKey | PoolId", amount: int, direction: Direction, beneficiary: str) -> None:
        snap = self._snapshot(pool)
        if amount < 0:
            raise ValueError(f"amount must be non-negative: {amount}")
        if direction == Direction.ADD:
            snap.liquidity += amount
        else:
            if amount > snap.liquidity:
                raise ValueError(f"cannot remove {amount} from liquidity {snap.liquidity}")
            snap.liquidity -= amount
        self.position_changes.append(
            PositionChange(pool_id=pool_id_of(pool), amount=amount, direction=direction, beneficiary=beneficiary)
        )


@dataclass
class StaticPriceOracle:
    """Oracle returning fixed per-pool prices; unknown pools raise `KeyError`."""

    prices: Dict[PoolId, int] = field(default_factory=dict)
    default_price: Optional[int] = None

    def set_price(self, pool: "PoolKey | PoolId", price: int) -> None:
        if not isinstance(price, int) or isinstance(price, bool) or price < 0:
            raise ValueError(f"price must be a non-negative int: {price!r}")
        self.prices[pool_id_of(pool)] = price

    def get_latest_price(self, pool: "PoolKey | PoolId") -> int:
        pid = pool_id_of(pool)
        if pid in self.prices:
            return self.prices[pid]
        if self.default_price is not None:
            return self.default_price
        raise KeyError(f"no oracle price for pool {pid}")
