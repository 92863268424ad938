"""
Guard configuration: cooldown window and denylist.

This is the only mutable policy state the guard reads. It is owned by whoever
constructs the guard and passed in explicitly; administrative changes go
through the methods below so the cooldown ceiling is enforced at the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional, Set

from .canonical import canonical_address
from .traders import Address


DEFAULT_COOLDOWN_SECONDS = 15
MAX_COOLDOWN_SECONDS = 60


def _check_cooldown(seconds: int) -> int:
    if not isinstance(seconds, int) or isinstance(seconds, bool):
        raise TypeError("cooldown_seconds must be an int")
    if seconds < 0:
        raise ValueError(f"cooldown_seconds must be non-negative: {seconds}")
    if seconds > MAX_COOLDOWN_SECONDS:
        raise ValueError(f"cooldown_seconds must be <= {MAX_COOLDOWN_SECONDS}: {seconds}")
    return int(seconds)


@dataclass
class GuardConfig:
    cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS
    _blocked: Set[Address] = field(default_factory=set)

    def __post_init__(self) -> None:
        self.cooldown_seconds = _check_cooldown(self.cooldown_seconds)
        self._blocked = {canonical_address(a) for a in self._blocked}

    @classmethod
    def from_values(
        cls,
        *,
        cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS,
        denylist: Optional[Iterable[Address]] = None,
    ) -> "GuardConfig":
        return cls(cooldown_seconds=cooldown_seconds, _blocked=set(denylist or ()))

    def is_blocked(self, address: Address) -> bool:
        return canonical_address(address) in self._blocked

    def set_blocked(self, address: Address, blocked: bool) -> None:
        if not isinstance(blocked, bool):
            raise TypeError("blocked must be a bool")
        addr = canonical_address(address)
        if blocked:
            self._blocked.add(addr)
        else:
            self._blocked.discard(addr)

    def set_cooldown(self, seconds: int) -> None:
        self.cooldown_seconds = _check_cooldown(seconds)

    @property
    def denylist(self) -> FrozenSet[Address]:
        return frozenset(self._blocked)
