"""
Per-address trade history (v1).

We track, per trading address, the sequence position, pool price and
timestamp of its most recent accepted swap. Policy lives in the guard; this
table is a pure state holder.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, Mapping

from .canonical import canonical_address


Address = str  # 20-byte hex string (0x...)


@dataclass(frozen=True)
class TraderRecord:
    """
    Snapshot of an address's last accepted swap.

    All fields are zero for an address that has never traded.
    """

    last_trade_sequence: int = 0
    last_trade_price: int = 0
    last_trade_time: int = 0

    def __post_init__(self) -> None:
        for name, val in (
            ("last_trade_sequence", self.last_trade_sequence),
            ("last_trade_price", self.last_trade_price),
            ("last_trade_time", self.last_trade_time),
        ):
            if not isinstance(val, int) or isinstance(val, bool):
                raise TypeError(f"{name} must be an int")
            if val < 0:
                raise ValueError(f"{name} must be non-negative: {val}")

    @property
    def has_traded(self) -> bool:
        return self.last_trade_sequence != 0 or self.last_trade_time != 0


EMPTY_RECORD = TraderRecord()


@dataclass
class TraderTable:
    """
    Mutable mapping: address -> TraderRecord.

    Absent addresses read as `EMPTY_RECORD`. Records are replaced whole, never
    patched field by field, so a reader can never observe a half-written record.
    """

    _records: Dict[Address, TraderRecord] = field(default_factory=dict)
    _locks: Dict[Address, threading.Lock] = field(default_factory=dict, repr=False)
    _locks_guard: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get(self, address: Address) -> TraderRecord:
        addr = canonical_address(address)
        return self._records.get(addr, EMPTY_RECORD)

    def has(self, address: Address) -> bool:
        return canonical_address(address) in self._records

    def set(self, address: Address, record: TraderRecord) -> None:
        if not isinstance(record, TraderRecord):
            raise TypeError("record must be a TraderRecord")
        addr = canonical_address(address)
        self._records[addr] = record

    @contextmanager
    def lock(self, address: Address) -> Iterator[None]:
        """Serialize read-modify-write sequences for one address."""
        addr = canonical_address(address)
        with self._locks_guard:
            addr_lock = self._locks.setdefault(addr, threading.Lock())
        with addr_lock:
            yield

    def snapshot(self) -> Mapping[Address, TraderRecord]:
        # Shallow copy; records are immutable.
        return dict(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"TraderTable({len(self._records)} entries)"
