"""Tests for the swap hook facade (lifecycle + administration)."""

from __future__ import annotations

import pytest

from swapguard.core.errors import Rejection, UnauthorizedError
from swapguard.core.fixed_point import price_to_sqrt_price_x96
from swapguard.core.hook import BalanceDelta, HookPermissions, SwapContext, SwapGuardHook
from swapguard.core.rebalancer import RebalancerConfig
from swapguard.integration.memory import InMemoryPoolManager, StaticPriceOracle
from swapguard.state.config import MAX_COOLDOWN_SECONDS
from swapguard.state.pools import PoolKey, PoolRotation


OWNER = "0x" + "0e" * 20
HOOK = "0x" + "c0" * 20
TRADER = "0x" + "a1" * 20
MALLORY = "0x" + "66" * 20

C0 = "0x" + "01" * 20
C1 = "0x" + "02" * 20
POOLS = [PoolKey(currency0=C0, currency1=C1, fee=fee, tick_spacing=ts) for fee, ts in ((100, 1), (500, 10), (3000, 60), (10000, 200))]


def _hook() -> tuple[SwapGuardHook, InMemoryPoolManager]:
    m = InMemoryPoolManager()
    oracle = StaticPriceOracle()
    for key in POOLS:
        m.register(key, sqrt_price_x96=price_to_sqrt_price_x96(10_000), reserve0=1000, reserve1=1000, liquidity=5000)
        oracle.set_price(key, 10_000)
    hook = SwapGuardHook(
        address=HOOK,
        owner=OWNER,
        oracle=oracle,
        reader=m,
        mover=m,
        rebalancer_config=RebalancerConfig(rotation=PoolRotation.cycle(POOLS)),
    )
    return hook, m


def test_permissions_only_swap_callbacks() -> None:
    perms = SwapGuardHook.permissions()
    assert perms == HookPermissions(before_swap=True, after_swap=True)


def test_swap_context_validation() -> None:
    with pytest.raises(ValueError):
        SwapContext(sequence=-1, timestamp=0)
    with pytest.raises(TypeError):
        SwapContext(sequence=1, timestamp=False)  # type: ignore[arg-type]


def test_full_lifecycle_with_rebalance() -> None:
    hook, m = _hook()
    ctx = SwapContext(sequence=10, timestamp=1000)
    assert hook.before_swap(TRADER, POOLS[0], ctx).accepted
    m.apply_swap(POOLS[0], -60, 64)
    d = hook.after_swap(TRADER, POOLS[0], BalanceDelta(-60, 64), ctx)
    assert d.executed is True
    assert m.position_changes[0].pool_id == POOLS[1].pool_id
    assert m.position_changes[0].beneficiary == HOOK


def test_before_swap_rejects_same_block_repeat() -> None:
    hook, _ = _hook()
    ctx = SwapContext(sequence=10, timestamp=1000)
    assert hook.before_swap(TRADER, POOLS[0], ctx).accepted
    assert hook.before_swap(TRADER, POOLS[1], ctx).rejection == Rejection.SANDWICH_DETECTED


def test_owner_can_block_and_unblock() -> None:
    hook, _ = _hook()
    hook.set_blocked(OWNER, TRADER, True)
    ctx = SwapContext(sequence=1, timestamp=1)
    assert hook.before_swap(TRADER, POOLS[0], ctx).rejection == Rejection.BOT_BLOCKED
    hook.set_blocked(OWNER, TRADER, False)
    assert hook.before_swap(TRADER, POOLS[0], ctx).accepted


def test_owner_address_is_case_insensitive() -> None:
    hook, _ = _hook()
    hook.set_cooldown(OWNER.upper().replace("0X", "0x"), 30)
    assert hook.config.cooldown_seconds == 30


def test_non_owner_admin_rejected() -> None:
    hook, _ = _hook()
    with pytest.raises(UnauthorizedError):
        hook.set_blocked(MALLORY, TRADER, True)
    with pytest.raises(UnauthorizedError):
        hook.set_cooldown(MALLORY, 1)
    with pytest.raises(UnauthorizedError):
        hook.transfer_ownership(MALLORY, MALLORY)
    assert hook.config.is_blocked(TRADER) is False


def test_cooldown_ceiling_enforced() -> None:
    hook, _ = _hook()
    hook.set_cooldown(OWNER, MAX_COOLDOWN_SECONDS)
    with pytest.raises(ValueError):
        hook.set_cooldown(OWNER, MAX_COOLDOWN_SECONDS + 1)
    assert hook.config.cooldown_seconds == MAX_COOLDOWN_SECONDS


def test_transfer_ownership() -> None:
    hook, _ = _hook()
    hook.transfer_ownership(OWNER, MALLORY)
    assert hook.owner == MALLORY
    hook.set_cooldown(MALLORY, 5)
    with pytest.raises(UnauthorizedError):
        hook.set_cooldown(OWNER, 5)
