"""
Swap hook facade (imperative shell).

Wires the pre-trade guard and the post-trade rebalancer into a swap
lifecycle:

  before_swap -> (host executes the swap) -> after_swap

`before_swap` returns the guard decision; a rejection aborts the swap.
`after_swap` runs the rebalancer and executes any instruction through the
liquidity mover with the hook's own address as beneficiary.

Administrative changes (denylist, cooldown, ownership) are gated on a single
owner address.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..state.canonical import canonical_address
from ..state.config import GuardConfig
from ..state.pools import PoolKey
from ..state.traders import Address, TraderTable
from .errors import UnauthorizedError
from .guard import GuardDecision, PreTradeGuard
from .interfaces import LiquidityMover, PoolReserveReader, PriceOracle
from .rebalancer import PostTradeRebalancer, RebalanceDecision, RebalancerConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HookPermissions:
    """Lifecycle callbacks the hook implements."""

    before_initialize: bool = False
    after_initialize: bool = False
    before_add_liquidity: bool = False
    after_add_liquidity: bool = False
    before_remove_liquidity: bool = False
    after_remove_liquidity: bool = False
    before_swap: bool = False
    after_swap: bool = False
    before_donate: bool = False
    after_donate: bool = False


@dataclass(frozen=True)
class SwapContext:
    """Execution-environment facts for one swap (trusted)."""

    sequence: int
    timestamp: int

    def __post_init__(self) -> None:
        for name, val in (("sequence", self.sequence), ("timestamp", self.timestamp)):
            if not isinstance(val, int) or isinstance(val, bool):
                raise TypeError(f"{name} must be an int")
            if val < 0:
                raise ValueError(f"{name} must be non-negative: {val}")


@dataclass(frozen=True)
class BalanceDelta:
    """Signed reserve changes applied by a swap (pool's perspective: + inflow, - outflow)."""

    amount0: int
    amount1: int


class SwapGuardHook:
    def __init__(
        self,
        *,
        address: Address,
        owner: Address,
        oracle: PriceOracle,
        reader: PoolReserveReader,
        mover: LiquidityMover,
        config: Optional[GuardConfig] = None,
        rebalancer_config: RebalancerConfig = RebalancerConfig(),
        traders: Optional[TraderTable] = None,
    ) -> None:
        self.address = canonical_address(address, name="hook address")
        self._owner = canonical_address(owner, name="owner")
        self.config = config if config is not None else GuardConfig()
        self.guard = PreTradeGuard(self.config, oracle, reader, traders)
        self.rebalancer = PostTradeRebalancer(reader, mover, rebalancer_config)

    @staticmethod
    def permissions() -> HookPermissions:
        return HookPermissions(before_swap=True, after_swap=True)

    @property
    def owner(self) -> Address:
        return self._owner

    # ------------------------------------------------------------------
    # Swap lifecycle
    # ------------------------------------------------------------------

    def before_swap(self, sender: Address, key: PoolKey, ctx: SwapContext) -> GuardDecision:
        return self.guard.evaluate(sender, key, ctx.sequence, ctx.timestamp)

    def after_swap(self, sender: Address, key: PoolKey, delta: BalanceDelta, ctx: SwapContext) -> RebalanceDecision:
        decision = self.rebalancer.rebalance(key, delta.amount0, delta.amount1, beneficiary=self.address)
        if decision.imbalanced:
            logger.info(
                "swap by %s at seq=%d left %r imbalanced (executed=%s)",
                sender, ctx.sequence, key, decision.executed,
            )
        return decision

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def _require_owner(self, caller: Address) -> None:
        if canonical_address(caller, name="caller") != self._owner:
            raise UnauthorizedError(f"caller {caller} is not the owner")

    def set_blocked(self, caller: Address, address: Address, blocked: bool) -> None:
        self._require_owner(caller)
        self.config.set_blocked(address, blocked)
        logger.info("denylist %s %s", "add" if blocked else "remove", canonical_address(address))

    def set_cooldown(self, caller: Address, seconds: int) -> None:
        self._require_owner(caller)
        self.config.set_cooldown(seconds)
        logger.info("cooldown set to %ds", seconds)

    def transfer_ownership(self, caller: Address, new_owner: Address) -> None:
        self._require_owner(caller)
        self._owner = canonical_address(new_owner, name="new_owner")
        logger.info("ownership transferred to %s", self._owner)
