"""Tests for pool identity and the rotation table."""

from __future__ import annotations

import pytest

from swapguard.state.pools import PoolKey, PoolRotation, compute_pool_id, pool_id_of


C0 = "0x" + "01" * 20
C1 = "0x" + "02" * 20


def _key(fee: int = 3000, ts: int = 60) -> PoolKey:
    return PoolKey(currency0=C0, currency1=C1, fee=fee, tick_spacing=ts)


def test_pool_id_deterministic_and_spelling_independent() -> None:
    a = compute_pool_id(C0, C1, 3000, 60)
    b = compute_pool_id(C0[2:].upper(), C1.upper().replace("0X", "0x"), 3000, 60)
    assert a == b
    assert a.startswith("0x") and len(a) == 66


def test_pool_id_depends_on_every_field() -> None:
    base = _key().pool_id
    assert _key(fee=500).pool_id != base
    assert _key(ts=10).pool_id != base
    assert PoolKey(currency0=C0, currency1=C1, fee=3000, tick_spacing=60, hooks="0x" + "cc" * 20).pool_id != base


def test_pool_key_requires_canonical_order() -> None:
    with pytest.raises(ValueError):
        PoolKey(currency0=C1, currency1=C0, fee=3000, tick_spacing=60)
    with pytest.raises(ValueError):
        PoolKey(currency0=C0, currency1=C0, fee=3000, tick_spacing=60)


def test_pool_key_bounds() -> None:
    with pytest.raises(ValueError):
        _key(fee=1_000_001)
    with pytest.raises(ValueError):
        _key(ts=0)
    with pytest.raises(TypeError):
        PoolKey(currency0=C0, currency1=C1, fee=True, tick_spacing=60)  # type: ignore[arg-type]


def test_pool_key_canonicalizes_addresses() -> None:
    k = PoolKey(currency0=C0.upper().replace("0X", "0x"), currency1=C1, fee=3000, tick_spacing=60)
    assert k.currency0 == C0
    assert k == _key()


def test_pool_id_of_accepts_key_or_id() -> None:
    k = _key()
    assert pool_id_of(k) == k.pool_id
    assert pool_id_of(k.pool_id.upper().replace("0X", "0x")) == k.pool_id
    with pytest.raises(ValueError):
        pool_id_of("0xabc")


def test_rotation_four_pool_cycle() -> None:
    a, b, c, d = (_key(fee=f) for f in (100, 500, 3000, 10000))
    rot = PoolRotation.cycle([a, b, c, d])
    assert rot.next_pool(a) == b.pool_id
    assert rot.next_pool(b) == c.pool_id
    assert rot.next_pool(c) == d.pool_id
    assert rot.next_pool(d) == a.pool_id
    assert len(rot) == 4


def test_rotation_unknown_pool_is_none() -> None:
    rot = PoolRotation.cycle([_key(fee=100), _key(fee=500)])
    outsider = _key(fee=3000)
    assert rot.next_pool(outsider) is None
    assert outsider not in rot
    assert _key(fee=100) in rot
    assert "garbage" not in rot


def test_rotation_validation() -> None:
    with pytest.raises(ValueError):
        PoolRotation.cycle([_key()])
    with pytest.raises(ValueError):
        PoolRotation.cycle([_key(), _key()])
