"""Property tests for guard checks and fixed-point helpers."""

from __future__ import annotations

import importlib.util

import pytest

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import given, settings

from swapguard.core.errors import Rejection
from swapguard.core.fixed_point import (
    exceeds_price_deviation,
    is_reserve_drop,
    price_to_sqrt_price_x96,
    sqrt_price_x96_to_price,
)
from swapguard.core.guard import PreTradeGuard
from swapguard.integration.memory import InMemoryPoolManager, StaticPriceOracle
from swapguard.state.config import GuardConfig
from swapguard.state.pools import PoolKey
from swapguard.state.traders import TraderRecord, TraderTable

KEY = PoolKey(currency0="0x" + "01" * 20, currency1="0x" + "02" * 20, fee=500, tick_spacing=10)

addresses = st.binary(min_size=20, max_size=20).map(lambda b: "0x" + b.hex())
prices = st.integers(min_value=0, max_value=10**30)


def _guard(price: int, cooldown: int = 15, traders: TraderTable | None = None) -> PreTradeGuard:
    manager = InMemoryPoolManager()
    manager.register(KEY, sqrt_price_x96=price_to_sqrt_price_x96(price), reserve0=1, reserve1=1, liquidity=1)
    return PreTradeGuard(GuardConfig(cooldown_seconds=cooldown), StaticPriceOracle(default_price=price), manager, traders)


@settings(max_examples=200, deadline=None)
@given(prices)
def test_price_round_trip_exact(price: int) -> None:
    assert sqrt_price_x96_to_price(price_to_sqrt_price_x96(price)) == price


@settings(max_examples=200, deadline=None)
@given(st.integers(min_value=1, max_value=10**24), st.integers(min_value=0, max_value=10**24))
def test_deviation_matches_floor_rule(last: int, now: int) -> None:
    assert exceeds_price_deviation(now, last) == (abs(now - last) > last // 100)


@settings(max_examples=200, deadline=None)
@given(st.integers(min_value=0, max_value=10**24), st.integers(min_value=1, max_value=10**24))
def test_reserve_drop_monotone_in_post(post: int, pre: int) -> None:
    # More reserves left after the swap can never make the drop worse.
    if is_reserve_drop(post + 1, pre):
        assert is_reserve_drop(post, pre)


@settings(max_examples=100, deadline=None)
@given(addresses, st.integers(min_value=0, max_value=10**6), st.integers(min_value=0, max_value=10**9))
def test_denylisted_always_bot_blocked(addr: str, seq: int, ts: int) -> None:
    guard = _guard(10_000)
    guard.config.set_blocked(addr, True)
    guard.traders.set(addr, TraderRecord(last_trade_sequence=seq, last_trade_price=1, last_trade_time=ts))
    assert guard.evaluate(addr, KEY, seq, ts).rejection == Rejection.BOT_BLOCKED


@settings(max_examples=100, deadline=None)
@given(
    st.integers(min_value=1, max_value=10**9),
    st.integers(min_value=0, max_value=60),
    st.integers(min_value=0, max_value=200),
)
def test_cooldown_boundary_property(last_time: int, cooldown: int, offset: int) -> None:
    addr = "0x" + "cc" * 20
    guard = _guard(10_000, cooldown=cooldown)
    guard.traders.set(addr, TraderRecord(last_trade_sequence=1, last_trade_price=10_000, last_trade_time=last_time))
    now = last_time + offset
    d = guard.evaluate(addr, KEY, 2, now)
    if now < last_time + cooldown:
        assert d.rejection == Rejection.COOLDOWN_NOT_MET
    else:
        assert d.accepted is True


@settings(max_examples=100, deadline=None)
@given(st.integers(min_value=100, max_value=10**12), st.integers(min_value=-(10**10), max_value=10**10))
def test_mev_property(last_price: int, move: int) -> None:
    pool_price = last_price + move
    if pool_price < 0:
        pool_price = 0
    addr = "0x" + "dd" * 20
    guard = _guard(pool_price)
    guard.traders.set(addr, TraderRecord(last_trade_sequence=1, last_trade_price=last_price, last_trade_time=1))
    d = guard.evaluate(addr, KEY, 2, 10_000)
    if abs(pool_price - last_price) > last_price // 100:
        assert d.rejection == Rejection.MEV_DETECTED
    else:
        assert d.accepted is True
