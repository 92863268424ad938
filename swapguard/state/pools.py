"""
Pool identity and the rebalancing rotation table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .canonical import ZERO_ADDRESS, canonical_address, canonical_pool_id, pool_id_digest


PoolId = str  # 32-byte hex string (0x...)

MAX_FEE_PIPS = 1_000_000
MAX_TICK_SPACING = 32_767


def compute_pool_id(
    currency0: str,
    currency1: str,
    fee: int,
    tick_spacing: int,
    hooks: str = ZERO_ADDRESS,
) -> PoolId:
    """
    Deterministically compute a pool_id for the given pool parameters.

    The preimage is a domain-separated canonical JSON object, so the id does not
    depend on how callers spell the addresses.
    """
    payload = {
        "currency0": canonical_address(currency0, name="currency0"),
        "currency1": canonical_address(currency1, name="currency1"),
        "fee": int(fee),
        "hooks": canonical_address(hooks, name="hooks"),
        "tick_spacing": int(tick_spacing),
    }
    return pool_id_digest(payload)


@dataclass(frozen=True)
class PoolKey:
    """
    Identity of a two-asset pool.

    Attributes:
        currency0: Lower-sorted asset address
        currency1: Higher-sorted asset address
        fee: Swap fee in hundredths of a bip (0-1_000_000)
        tick_spacing: Tick spacing of the pool (1-32767)
        hooks: Address of the hook contract attached to the pool
    """

    currency0: str
    currency1: str
    fee: int
    tick_spacing: int
    hooks: str = ZERO_ADDRESS

    def __post_init__(self) -> None:
        c0 = canonical_address(self.currency0, name="currency0")
        c1 = canonical_address(self.currency1, name="currency1")
        if c0 >= c1:
            raise ValueError(f"Currencies must be in canonical order: {c0} < {c1}")
        for name, val in (("fee", self.fee), ("tick_spacing", self.tick_spacing)):
            if not isinstance(val, int) or isinstance(val, bool):
                raise TypeError(f"{name} must be an int")
        if not (0 <= self.fee <= MAX_FEE_PIPS):
            raise ValueError(f"fee must be in [0, {MAX_FEE_PIPS}]: {self.fee}")
        if not (1 <= self.tick_spacing <= MAX_TICK_SPACING):
            raise ValueError(f"tick_spacing must be in [1, {MAX_TICK_SPACING}]: {self.tick_spacing}")
        object.__setattr__(self, "currency0", c0)
        object.__setattr__(self, "currency1", c1)
        object.__setattr__(self, "hooks", canonical_address(self.hooks, name="hooks"))

    @property
    def pool_id(self) -> PoolId:
        return compute_pool_id(self.currency0, self.currency1, self.fee, self.tick_spacing, self.hooks)

    def __repr__(self) -> str:
        return (
            f"PoolKey(pool_id={self.pool_id[:18]}..., "
            f"currencies=({self.currency0[:10]}..., {self.currency1[:10]}...), "
            f"fee={self.fee}, tick_spacing={self.tick_spacing})"
        )


def pool_id_of(pool: "PoolKey | PoolId") -> PoolId:
    """Accept either a PoolKey or a raw pool id and return the canonical id."""
    if isinstance(pool, PoolKey):
        return pool.pool_id
    return canonical_pool_id(pool)


@dataclass(frozen=True)
class PoolRotation:
    """
    Closed cycle over pool ids: each pool maps to the next, the last to the first.

    With four pools A, B, C, D the table is A->B, B->C, C->D, D->A.
    """

    order: Tuple[PoolId, ...]
    _next: Mapping[PoolId, PoolId] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self) -> None:
        order = tuple(canonical_pool_id(p, name="rotation entry") for p in self.order)
        if len(order) < 2:
            raise ValueError("rotation needs at least two pools")
        if len(set(order)) != len(order):
            raise ValueError("rotation entries must be unique")
        table: Dict[PoolId, PoolId] = {}
        for i, pid in enumerate(order):
            table[pid] = order[(i + 1) % len(order)]
        object.__setattr__(self, "order", order)
        object.__setattr__(self, "_next", table)

    @classmethod
    def cycle(cls, pools: Iterable["PoolKey | PoolId"]) -> "PoolRotation":
        return cls(order=tuple(pool_id_of(p) for p in pools))

    def next_pool(self, pool: "PoolKey | PoolId") -> Optional[PoolId]:
        """Return the rebalance target for `pool`, or None if it is not in the cycle."""
        return self._next.get(pool_id_of(pool))

    def __contains__(self, pool: object) -> bool:
        if not isinstance(pool, (PoolKey, str)):
            return False
        try:
            return pool_id_of(pool) in self._next
        except ValueError:
            return False

    def __len__(self) -> int:
        return len(self.order)
