"""
Post-trade rebalancer.

Runs after the execution collaborator has applied a swap. Reconstructs the
pre-trade reserves from the reported deltas, flags the swap as imbalancing if
either reserve fell below 95% of its pre-trade value, and sizes a corrective
move of one tenth of the pool's liquidity towards the next pool in the
rotation.

The read-decide-act sequence is a single critical section: a collaborator that
calls back into the rebalancer while it is running gets `ReentrancyError`;
other threads wait their turn.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from ..state.pools import PoolId, PoolKey, PoolRotation, pool_id_of
from .errors import ReentrancyError, ReserveIntegrityError, UnknownPoolError
from .fixed_point import RESERVE_FLOOR_PCT, rebalance_amount, reserve_ratio_pct
from .interfaces import Direction, LiquidityMover, PoolReserveReader

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RebalancerConfig:
    """Runtime config for the rebalancer."""

    rotation: Optional[PoolRotation] = None
    # If True, an imbalanced pool outside the rotation raises UnknownPoolError
    # instead of producing no action.
    strict_rotation: bool = False


@dataclass(frozen=True)
class RebalanceInstruction:
    source_pool: PoolId
    target_pool: PoolId
    amount: int
    direction: Direction = Direction.ADD

    def __post_init__(self) -> None:
        if not isinstance(self.amount, int) or isinstance(self.amount, bool):
            raise TypeError("amount must be an int")
        if self.amount < 0:
            raise ValueError(f"amount must be non-negative: {self.amount}")
        if self.source_pool == self.target_pool:
            raise ValueError("source_pool and target_pool must differ")


@dataclass(frozen=True)
class RebalanceDecision:
    """Outcome of one post-trade evaluation.

    `instruction` is None for NoAction. The ratios are the observed
    `post * 100 // pre` values for each reserve.
    """

    imbalanced: bool
    ratio0_pct: int
    ratio1_pct: int
    instruction: Optional[RebalanceInstruction] = None
    executed: bool = False

    @property
    def no_action(self) -> bool:
        return self.instruction is None


class _NonReentrant:
    """
    Critical section that other threads wait for and the owning thread cannot re-enter.

    A nested entry from the thread already inside raises `ReentrancyError`;
    entries from other threads block until the section is free.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._local = threading.local()

    @contextmanager
    def enter(self, what: str) -> Iterator[None]:
        if getattr(self._local, "inside", False):
            raise ReentrancyError(f"{what} is already in progress on this thread")
        with self._lock:
            self._local.inside = True
            try:
                yield
            finally:
                self._local.inside = False

    @property
    def locked(self) -> bool:
        return self._lock.locked()


def pre_trade_reserves(reserve0: int, reserve1: int, amount0_delta: int, amount1_delta: int) -> tuple[int, int]:
    """Undo the reported deltas. Raises ReserveIntegrityError on non-positive results."""
    for name, val in (
        ("reserve0", reserve0),
        ("reserve1", reserve1),
        ("amount0_delta", amount0_delta),
        ("amount1_delta", amount1_delta),
    ):
        if not isinstance(val, int) or isinstance(val, bool):
            raise TypeError(f"{name} must be an int")
    if reserve0 < 0 or reserve1 < 0:
        raise ReserveIntegrityError(f"post-trade reserves must be non-negative: ({reserve0}, {reserve1})")
    pre0 = reserve0 - amount0_delta
    pre1 = reserve1 - amount1_delta
    if pre0 <= 0 or pre1 <= 0:
        raise ReserveIntegrityError(
            f"pre-trade reserves must be positive: ({pre0}, {pre1}) "
            f"from reserves ({reserve0}, {reserve1}) and deltas ({amount0_delta}, {amount1_delta})"
        )
    return pre0, pre1


class PostTradeRebalancer:
    """
    Detect post-trade reserve skew and issue corrective liquidity moves.

    Args:
        reader: Pool state reader (reserves + liquidity, already reflecting the swap)
        mover: Liquidity mover used by `rebalance()`; optional for decision-only use
        config: Rotation table and unknown-pool policy
    """

    def __init__(
        self,
        reader: PoolReserveReader,
        mover: Optional[LiquidityMover] = None,
        config: RebalancerConfig = RebalancerConfig(),
    ) -> None:
        self.reader = reader
        self.mover = mover
        self.config = config
        self._guard = _NonReentrant()

    @property
    def busy(self) -> bool:
        return self._guard.locked

    def evaluate(self, pool: PoolKey, amount0_delta: int, amount1_delta: int) -> RebalanceDecision:
        """Decide whether the swap just applied to `pool` needs a correction."""
        with self._guard.enter("rebalance evaluation"):
            return self._decide(pool, amount0_delta, amount1_delta)

    def rebalance(
        self,
        pool: PoolKey,
        amount0_delta: int,
        amount1_delta: int,
        beneficiary: str,
    ) -> RebalanceDecision:
        """Evaluate and, if needed, hand the instruction to the mover in the same critical section."""
        if self.mover is None:
            raise ValueError("rebalance() requires a LiquidityMover")
        with self._guard.enter("rebalance"):
            decision = self._decide(pool, amount0_delta, amount1_delta)
            instr = decision.instruction
            if instr is None or instr.amount == 0:
                return decision
            self.mover.modify_position(instr.target_pool, instr.amount, instr.direction, beneficiary)
            logger.info(
                "moved %d liquidity %s -> %s for %s",
                instr.amount, instr.source_pool, instr.target_pool, beneficiary,
            )
            return RebalanceDecision(
                imbalanced=decision.imbalanced,
                ratio0_pct=decision.ratio0_pct,
                ratio1_pct=decision.ratio1_pct,
                instruction=instr,
                executed=True,
            )

    def _decide(self, pool: PoolKey, amount0_delta: int, amount1_delta: int) -> RebalanceDecision:
        reserve0, reserve1 = self.reader.get_reserves(pool)
        try:
            pre0, pre1 = pre_trade_reserves(reserve0, reserve1, amount0_delta, amount1_delta)
        except ReserveIntegrityError:
            logger.error("reserve integrity check failed for %r", pool)
            raise

        ratio0 = reserve_ratio_pct(reserve0, pre0)
        ratio1 = reserve_ratio_pct(reserve1, pre1)
        imbalanced = ratio0 < RESERVE_FLOOR_PCT or ratio1 < RESERVE_FLOOR_PCT
        if not imbalanced:
            return RebalanceDecision(imbalanced=False, ratio0_pct=ratio0, ratio1_pct=ratio1)

        source = pool_id_of(pool)
        target = self.config.rotation.next_pool(source) if self.config.rotation is not None else None
        if target is None:
            if self.config.strict_rotation:
                raise UnknownPoolError(f"no rotation target for pool {source}")
            logger.warning("imbalanced pool %s has no rotation target; no action", source)
            return RebalanceDecision(imbalanced=True, ratio0_pct=ratio0, ratio1_pct=ratio1)

        amount = rebalance_amount(self.reader.get_liquidity(pool))
        instr = RebalanceInstruction(source_pool=source, target_pool=target, amount=amount)
        logger.info(
            "imbalance on %s (ratios %d%%/%d%%): move %d to %s",
            source, ratio0, ratio1, amount, target,
        )
        return RebalanceDecision(imbalanced=True, ratio0_pct=ratio0, ratio1_pct=ratio1, instruction=instr)
