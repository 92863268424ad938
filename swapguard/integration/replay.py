"""
Scenario replay: drive a `SwapGuardHook` over a scripted sequence of swaps.

A scenario is a YAML document holding the settings keys understood by
`settings.py` plus:

    hook: "0x..."            # hook address (beneficiary of rebalances)
    owner: "0x..."
    pools:
      - name: A
        key: {currency0: "0x..", currency1: "0x..", fee: 3000, tick_spacing: 60}
        sqrt_price_x96: 79228162514264337593543950336
        # or: price: 10000  (sqrt price derived exactly)
        reserve0: 1000
        reserve1: 1000
        liquidity: 5000
        oracle_price: 1          # optional
    swaps:
      - sender: "0x.."
        pool: A
        sequence: 100
        timestamp: 1000
        amount0_delta: -60
        amount1_delta: 64
        sqrt_price_x96: 79228...   # optional post-swap price

Rotation entries may name pools declared under `pools`. Rejected swaps are not
applied. A reserve integrity failure (or a missing rotation target in strict
mode) stops the replay.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from ..core.errors import ConfigError, ReserveIntegrityError, UnknownPoolError
from ..core.fixed_point import price_to_sqrt_price_x96
from ..core.hook import BalanceDelta, SwapContext, SwapGuardHook
from ..state.canonical import ZERO_ADDRESS
from ..state.pools import PoolKey
from .memory import InMemoryPoolManager, StaticPriceOracle
from .settings import parse_pool_key, settings_from_mapping

logger = logging.getLogger(__name__)

DEFAULT_HOOK_ADDRESS = "0x" + "00" * 19 + "c0"

STATUS_ACCEPTED = "accepted"
STATUS_REJECTED = "rejected"
STATUS_FATAL = "fatal"


@dataclass(frozen=True)
class SwapEvent:
    sender: str
    pool: str
    sequence: int
    timestamp: int
    amount0_delta: int
    amount1_delta: int
    sqrt_price_x96: Optional[int] = None


@dataclass(frozen=True)
class ReplayOutcome:
    index: int
    sender: str
    pool: str
    status: str
    reason: Optional[str] = None
    pool_price: Optional[int] = None
    rebalance_target: Optional[str] = None
    rebalance_amount: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "sender": self.sender,
            "pool": self.pool,
            "status": self.status,
            "reason": self.reason,
            "pool_price": self.pool_price,
            "rebalance_target": self.rebalance_target,
            "rebalance_amount": self.rebalance_amount,
        }


@dataclass
class Scenario:
    hook: SwapGuardHook
    manager: InMemoryPoolManager
    oracle: StaticPriceOracle
    pools: Dict[str, PoolKey]
    swaps: List[SwapEvent] = field(default_factory=list)

    def pool_name(self, pool_id: str) -> str:
        for name, key in self.pools.items():
            if key.pool_id == pool_id:
                return name
        return pool_id


def _req_int(obj: Mapping[str, Any], name: str, where: str, default: Optional[int] = None) -> int:
    val = obj.get(name, default)
    if not isinstance(val, int) or isinstance(val, bool):
        raise ConfigError(f"{where}: {name} must be an int")
    return int(val)


def _sqrt_price(obj: Mapping[str, Any], where: str, *, required: bool) -> Optional[int]:
    """Read `sqrt_price_x96`, or derive it from a plain integer `price`."""
    if "sqrt_price_x96" in obj:
        return _req_int(obj, "sqrt_price_x96", where)
    if "price" in obj:
        try:
            return price_to_sqrt_price_x96(_req_int(obj, "price", where))
        except ValueError as exc:
            raise ConfigError(f"{where}: {exc}") from exc
    if required:
        raise ConfigError(f"{where}: one of sqrt_price_x96 or price is required")
    return None


def _parse_swap(i: int, obj: Any, pools: Mapping[str, PoolKey]) -> SwapEvent:
    where = f"swaps[{i}]"
    if not isinstance(obj, Mapping):
        raise ConfigError(f"{where} must be a mapping")
    sender = obj.get("sender")
    if not isinstance(sender, str):
        raise ConfigError(f"{where}: sender must be an address string")
    pool = obj.get("pool")
    if pool not in pools:
        raise ConfigError(f"{where}: unknown pool {pool!r}")
    sqrt_price = _sqrt_price(obj, where, required=False)
    return SwapEvent(
        sender=sender,
        pool=pool,
        sequence=_req_int(obj, "sequence", where),
        timestamp=_req_int(obj, "timestamp", where),
        amount0_delta=_req_int(obj, "amount0_delta", where, 0),
        amount1_delta=_req_int(obj, "amount1_delta", where, 0),
        sqrt_price_x96=sqrt_price,
    )


def build_scenario(doc: Mapping[str, Any], *, apply_env: bool = True) -> Scenario:
    if not isinstance(doc, Mapping):
        raise ConfigError("scenario must be a mapping")

    manager = InMemoryPoolManager()
    oracle = StaticPriceOracle()
    pools: Dict[str, PoolKey] = {}
    for i, entry in enumerate(doc.get("pools") or []):
        where = f"pools[{i}]"
        if not isinstance(entry, Mapping) or not isinstance(entry.get("name"), str):
            raise ConfigError(f"{where} must be a mapping with a name")
        name = entry["name"]
        if name in pools:
            raise ConfigError(f"{where}: duplicate pool name {name!r}")
        key_obj = entry.get("key")
        if not isinstance(key_obj, Mapping):
            raise ConfigError(f"{where}: key must be a mapping")
        key = parse_pool_key(key_obj)
        try:
            manager.register(
                key,
                sqrt_price_x96=_sqrt_price(entry, where, required=True),
                reserve0=_req_int(entry, "reserve0", where),
                reserve1=_req_int(entry, "reserve1", where),
                liquidity=_req_int(entry, "liquidity", where),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"{where}: {exc}") from exc
        oracle.set_price(key, _req_int(entry, "oracle_price", where, 0))
        pools[name] = key

    settings_doc = {k: v for k, v in doc.items() if k not in ("pools", "swaps", "hook", "owner")}
    rotation = settings_doc.get("rotation")
    if isinstance(rotation, list):
        settings_doc["rotation"] = [pools[r].pool_id if isinstance(r, str) and r in pools else r for r in rotation]
    settings = settings_from_mapping(settings_doc, apply_env=apply_env)

    hook_address = doc.get("hook", DEFAULT_HOOK_ADDRESS)
    owner = doc.get("owner", ZERO_ADDRESS)
    try:
        hook = SwapGuardHook(
            address=hook_address,
            owner=owner,
            oracle=oracle,
            reader=manager,
            mover=manager,
            config=settings.guard_config(),
            rebalancer_config=settings.rebalancer_config(),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid hook/owner address: {exc}") from exc

    swaps = [_parse_swap(i, s, pools) for i, s in enumerate(doc.get("swaps") or [])]
    return Scenario(hook=hook, manager=manager, oracle=oracle, pools=pools, swaps=swaps)


def load_scenario(path: Path, *, apply_env: bool = True) -> Scenario:
    try:
        doc = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"cannot read scenario {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    return build_scenario(doc or {}, apply_env=apply_env)


def run_scenario(scenario: Scenario) -> List[ReplayOutcome]:
    outcomes: List[ReplayOutcome] = []
    hook = scenario.hook
    for i, ev in enumerate(scenario.swaps):
        key = scenario.pools[ev.pool]
        ctx = SwapContext(sequence=ev.sequence, timestamp=ev.timestamp)

        decision = hook.before_swap(ev.sender, key, ctx)
        if not decision.accepted:
            assert decision.rejection is not None
            outcomes.append(
                ReplayOutcome(
                    index=i, sender=ev.sender, pool=ev.pool, status=STATUS_REJECTED,
                    reason=decision.rejection.value, pool_price=decision.pool_price,
                )
            )
            continue

        try:
            scenario.manager.apply_swap(key, ev.amount0_delta, ev.amount1_delta, sqrt_price_x96=ev.sqrt_price_x96)
            rebalance = hook.after_swap(ev.sender, key, BalanceDelta(ev.amount0_delta, ev.amount1_delta), ctx)
        except (ReserveIntegrityError, UnknownPoolError, ValueError) as exc:
            logger.error("replay stopped at swap %d: %s", i, exc)
            outcomes.append(
                ReplayOutcome(index=i, sender=ev.sender, pool=ev.pool, status=STATUS_FATAL, reason=str(exc))
            )
            break

        instr = rebalance.instruction
        outcomes.append(
            ReplayOutcome(
                index=i,
                sender=ev.sender,
                pool=ev.pool,
                status=STATUS_ACCEPTED,
                pool_price=decision.pool_price,
                rebalance_target=scenario.pool_name(instr.target_pool) if instr is not None else None,
                rebalance_amount=instr.amount if instr is not None else None,
            )
        )
    return outcomes
