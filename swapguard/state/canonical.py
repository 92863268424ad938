"""
Canonical spellings for addresses and pool ids, plus the pool-id digest.

Every lookup key (trader table, denylist, rotation table, owner check) goes
through these helpers, so "0xAB..", "ab.." and " 0xab.. " name the same entry.
"""

from __future__ import annotations

import hashlib
import json
import re
from typing import Mapping, Union


ADDRESS_NBYTES = 20
POOL_ID_NBYTES = 32

ZERO_ADDRESS = "0x" + "00" * ADDRESS_NBYTES

POOL_ID_DOMAIN = b"swapguard:pool_id:v1\x00"

_HEX_RE = re.compile(r"[0-9a-f]+")


def _canonical_hex(value: str, *, nbytes: int, name: str) -> str:
    """Lowercase, 0x-prefixed, exactly `nbytes` long. The prefix is optional on input."""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, got {type(value).__name__}")
    digits = value.strip().lower()
    if digits.startswith("0x"):
        digits = digits[2:]
    if len(digits) != 2 * nbytes:
        raise ValueError(f"{name} must be {nbytes} bytes of hex, got {len(digits)} hex chars")
    if not _HEX_RE.fullmatch(digits):
        raise ValueError(f"{name} is not hex: {value!r}")
    return "0x" + digits


def canonical_address(address: str, *, name: str = "address") -> str:
    return _canonical_hex(address, nbytes=ADDRESS_NBYTES, name=name)


def canonical_pool_id(pool_id: str, *, name: str = "pool_id") -> str:
    return _canonical_hex(pool_id, nbytes=POOL_ID_NBYTES, name=name)


def pool_id_digest(fields: Mapping[str, Union[int, str]]) -> str:
    """
    sha256 over the domain prefix and the fields as compact sorted-key JSON.

    Only str and int values are accepted; anything else (floats in particular)
    would make the encoding ambiguous.
    """
    for key, val in fields.items():
        if not isinstance(val, (int, str)) or isinstance(val, bool):
            raise TypeError(f"pool id field {key!r} must be int or str, got {type(val).__name__}")
    body = json.dumps(dict(fields), sort_keys=True, separators=(",", ":")).encode("ascii")
    return "0x" + hashlib.sha256(POOL_ID_DOMAIN + body).hexdigest()
