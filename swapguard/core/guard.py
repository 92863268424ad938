"""
Pre-trade guard (functional core + per-address state).

Evaluates one swap request before execution. Checks run in a fixed order and
short-circuit on the first failure:

  denylist -> same-slot -> cooldown -> price deviation -> accept

Only an accepted swap writes state, and it writes the whole trader record in
one `TraderTable.set`. Any collaborator failure while reading prices fails
closed (`PRICE_UNAVAILABLE`).
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Set, Tuple

from ..state.canonical import canonical_address
from ..state.config import GuardConfig
from ..state.pools import PoolKey
from ..state.traders import Address, TraderRecord, TraderTable
from .errors import ReentrancyError, Rejection, SwapRejectedError
from .fixed_point import exceeds_price_deviation, sqrt_price_x96_to_price
from .interfaces import PoolReserveReader, PriceOracle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuardDecision:
    """Outcome of a single guard evaluation."""

    accepted: bool
    rejection: Optional[Rejection] = None
    record: Optional[TraderRecord] = None
    pool_price: Optional[int] = None
    oracle_price: Optional[int] = None

    @classmethod
    def reject(cls, reason: Rejection, **observed: Optional[int]) -> "GuardDecision":
        return cls(accepted=False, rejection=reason, **observed)


# ---------------------------------------------------------------------------
# Checks (pure)
# ---------------------------------------------------------------------------

def check_same_slot(record: TraderRecord, current_sequence: int) -> bool:
    """True when the address already traded in this execution slot."""
    return record.last_trade_sequence != 0 and record.last_trade_sequence == current_sequence


def check_cooldown(record: TraderRecord, current_time: int, cooldown_seconds: int) -> bool:
    """True when the address is still inside its cooldown window.

    Addresses that never traded (`last_trade_time == 0`) are exempt.
    """
    if record.last_trade_time == 0:
        return False
    return current_time < record.last_trade_time + cooldown_seconds


def check_price_deviation(record: TraderRecord, pool_price: int) -> bool:
    """True when the pool price moved more than 1% since the address's last swap."""
    return exceeds_price_deviation(pool_price, record.last_trade_price)


def _require_price(name: str, value: object) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")
    return value


# ---------------------------------------------------------------------------
# Guard
# ---------------------------------------------------------------------------

class PreTradeGuard:
    """
    Accept/reject swaps before execution.

    Args:
        config: Cooldown and denylist (owned by the caller, mutated via admin methods)
        oracle: Reference price source; read on every price check
        reader: Pool state reader providing the Q64.96 sqrt price
        traders: Per-address trade history (a fresh table if omitted)
    """

    def __init__(
        self,
        config: GuardConfig,
        oracle: PriceOracle,
        reader: PoolReserveReader,
        traders: Optional[TraderTable] = None,
    ) -> None:
        self.config = config
        self.oracle = oracle
        self.reader = reader
        self.traders = traders if traders is not None else TraderTable()
        self._local = threading.local()

    def evaluate(
        self,
        trader: Address,
        pool: PoolKey,
        current_sequence: int,
        current_time: int,
    ) -> GuardDecision:
        for name, val in (("current_sequence", current_sequence), ("current_time", current_time)):
            if not isinstance(val, int) or isinstance(val, bool):
                raise TypeError(f"{name} must be an int")
            if val < 0:
                raise ValueError(f"{name} must be non-negative: {val}")

        if self.config.is_blocked(trader):
            return self._rejected(trader, Rejection.BOT_BLOCKED)

        active = self._active_addresses()
        key = canonical_address(trader)
        if key in active:
            # A collaborator called back into the guard for the same address.
            raise ReentrancyError(f"nested guard evaluation for {key}")
        active.add(key)
        try:
            return self._evaluate_locked(trader, pool, current_sequence, current_time)
        finally:
            active.discard(key)

    def _evaluate_locked(
        self,
        trader: Address,
        pool: PoolKey,
        current_sequence: int,
        current_time: int,
    ) -> GuardDecision:
        with self.traders.lock(trader):
            record = self.traders.get(trader)

            if check_same_slot(record, current_sequence):
                return self._rejected(trader, Rejection.SANDWICH_DETECTED)

            if check_cooldown(record, current_time, self.config.cooldown_seconds):
                return self._rejected(trader, Rejection.COOLDOWN_NOT_MET)

            prices = self._read_prices(pool)
            if prices is None:
                return self._rejected(trader, Rejection.PRICE_UNAVAILABLE)
            oracle_price, pool_price = prices

            if check_price_deviation(record, pool_price):
                logger.info(
                    "price deviation for %s: last=%d now=%d oracle=%d",
                    trader, record.last_trade_price, pool_price, oracle_price,
                )
                return GuardDecision.reject(
                    Rejection.MEV_DETECTED, pool_price=pool_price, oracle_price=oracle_price,
                )

            new_record = TraderRecord(
                last_trade_sequence=current_sequence,
                last_trade_price=pool_price,
                last_trade_time=current_time,
            )
            self.traders.set(trader, new_record)

        logger.debug("accepted swap from %s at seq=%d price=%d", trader, current_sequence, pool_price)
        return GuardDecision(
            accepted=True, record=new_record, pool_price=pool_price, oracle_price=oracle_price,
        )

    def evaluate_or_raise(
        self,
        trader: Address,
        pool: PoolKey,
        current_sequence: int,
        current_time: int,
    ) -> GuardDecision:
        """Like ``evaluate()`` but raises ``SwapRejectedError`` on rejection."""
        decision = self.evaluate(trader, pool, current_sequence, current_time)
        if not decision.accepted:
            assert decision.rejection is not None
            raise SwapRejectedError(decision.rejection)
        return decision

    def _active_addresses(self) -> Set[str]:
        active = getattr(self._local, "active", None)
        if active is None:
            active = set()
            self._local.active = active
        return active

    def _read_prices(self, pool: PoolKey) -> Optional[Tuple[int, int]]:
        try:
            oracle_price = _require_price("oracle price", self.oracle.get_latest_price(pool))
            sqrt_price = self.reader.get_slot0(pool)
            pool_price = sqrt_price_x96_to_price(sqrt_price)
        except Exception as exc:
            logger.warning("price read failed for %r, failing closed: %s", pool, exc)
            return None
        return oracle_price, pool_price

    @staticmethod
    def _rejected(trader: Address, reason: Rejection) -> GuardDecision:
        logger.info("rejected swap from %s: %s", trader, reason.value)
        return GuardDecision.reject(reason)

