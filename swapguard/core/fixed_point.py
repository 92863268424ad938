"""Pure arithmetic for the swap guard.

Every function is stateless and operates on plain Python ints, so squaring a
160-bit sqrt price cannot overflow and no value ever passes through a float.

Rounding is explicit: `//` (floor) everywhere. Inputs reaching the ratio
helpers are positive, so floor and truncation agree.
"""

from __future__ import annotations

import math

# Q64.96 fixed point
Q96: int = 1 << 96
Q192: int = 1 << 192
MAX_SQRT_PRICE_X96: int = (1 << 160) - 1

# Pre-trade price deviation: |pool - last| > last // PRICE_DEVIATION_DIVISOR (1%)
PRICE_DEVIATION_DIVISOR: int = 100

# Post-trade reserve floor: reserve * 100 // pre < RESERVE_FLOOR_PCT (95%)
PERCENT_SCALE: int = 100
RESERVE_FLOOR_PCT: int = 95

# Share of pool liquidity moved per correction (1/10)
REBALANCE_DIVISOR: int = 10


# -- Basic helpers -----------------------------------------------------------

def abs_val(x: int) -> int:
    """Absolute value of *x*."""
    return x if x >= 0 else -x


def _require_int(name: str, value: object) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    return value


# -- Price -------------------------------------------------------------------

def sqrt_price_x96_to_price(sqrt_price_x96: int) -> int:
    """Pool price from a Q64.96 sqrt price: ``sqrt**2 // 2**192``.

    Prices below one unit of token1 per token0 floor to 0.
    """
    _require_int("sqrt_price_x96", sqrt_price_x96)
    if not (0 <= sqrt_price_x96 <= MAX_SQRT_PRICE_X96):
        raise ValueError(f"sqrt_price_x96 out of range: {sqrt_price_x96}")
    return (sqrt_price_x96 * sqrt_price_x96) >> 192


def price_to_sqrt_price_x96(price: int) -> int:
    """Smallest Q64.96 sqrt price whose squared, floored price equals *price*.

    Inverse of `sqrt_price_x96_to_price` on integer prices; used to script
    pool states in tests and replays.
    """
    _require_int("price", price)
    if price < 0:
        raise ValueError(f"price must be non-negative: {price}")
    s = math.isqrt(price << 192)
    if (s * s) >> 192 != price:
        s += 1
    if s > MAX_SQRT_PRICE_X96:
        raise ValueError(f"price out of range: {price}")
    return s


def price_deviation_limit(last_price: int) -> int:
    """Largest accepted absolute move away from *last_price* (1%, floored)."""
    return last_price // PRICE_DEVIATION_DIVISOR


def exceeds_price_deviation(pool_price: int, last_price: int) -> bool:
    """True when *pool_price* moved strictly more than 1% from a set *last_price*.

    An unset (zero) last price never trips the check.
    """
    if last_price == 0:
        return False
    return abs_val(pool_price - last_price) > price_deviation_limit(last_price)


# -- Reserves ----------------------------------------------------------------

def reserve_ratio_pct(post: int, pre: int) -> int:
    """``post * 100 // pre``. *pre* must be positive."""
    if pre <= 0:
        raise ValueError(f"pre-trade reserve must be positive: {pre}")
    return (post * PERCENT_SCALE) // pre


def is_reserve_drop(post: int, pre: int) -> bool:
    """True when a reserve fell below 95% of its pre-trade value."""
    return reserve_ratio_pct(post, pre) < RESERVE_FLOOR_PCT


def rebalance_amount(liquidity: int) -> int:
    """Liquidity moved per correction: one tenth, floored."""
    if liquidity < 0:
        raise ValueError(f"liquidity must be non-negative: {liquidity}")
    return liquidity // REBALANCE_DIVISOR
