"""
Settings loader for guard and rebalancer configuration.

Reads a YAML document (PyYAML `safe_load`) and then applies environment
overrides:

- `SWAPGUARD_COOLDOWN_SECONDS`: int, clamped to [0, 60]
- `SWAPGUARD_STRICT_ROTATION`: 1/true/yes enables strict rotation

Example file:

    cooldown_seconds: 15
    denylist:
      - "0x000000000000000000000000000000000000dead"
    strict_rotation: false
    rotation:
      - {currency0: "0x...01", currency1: "0x...02", fee: 3000, tick_spacing: 60}
      - "0x<32-byte pool id>"
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional

import yaml

from ..core.errors import ConfigError
from ..core.rebalancer import RebalancerConfig
from ..state.config import DEFAULT_COOLDOWN_SECONDS, MAX_COOLDOWN_SECONDS, GuardConfig
from ..state.pools import PoolId, PoolKey, PoolRotation, pool_id_of

logger = logging.getLogger(__name__)

ENV_COOLDOWN = "SWAPGUARD_COOLDOWN_SECONDS"
ENV_STRICT_ROTATION = "SWAPGUARD_STRICT_ROTATION"

_KNOWN_KEYS = {"cooldown_seconds", "denylist", "rotation", "strict_rotation"}


def _env_int(name: str, default: int, *, lo: int, hi: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except Exception:
        logger.warning("ignoring non-integer %s=%r", name, raw)
        return int(default)
    if v < lo:
        return int(lo)
    if v > hi:
        return int(hi)
    return int(v)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS
    denylist: tuple[str, ...] = ()
    rotation: tuple[PoolId, ...] = ()
    strict_rotation: bool = False

    def guard_config(self) -> GuardConfig:
        return GuardConfig.from_values(cooldown_seconds=self.cooldown_seconds, denylist=self.denylist)

    def rebalancer_config(self) -> RebalancerConfig:
        rotation = PoolRotation(order=self.rotation) if self.rotation else None
        return RebalancerConfig(rotation=rotation, strict_rotation=self.strict_rotation)


def parse_pool_ref(obj: Any) -> PoolId:
    """A pool reference is either a pool id string or a PoolKey mapping."""
    if isinstance(obj, str):
        return pool_id_of(obj)
    if isinstance(obj, Mapping):
        return parse_pool_key(obj).pool_id
    raise ConfigError(f"pool reference must be a string or mapping, got {type(obj).__name__}")


def parse_pool_key(obj: Mapping[str, Any]) -> PoolKey:
    try:
        kwargs = {
            "currency0": obj["currency0"],
            "currency1": obj["currency1"],
            "fee": obj["fee"],
            "tick_spacing": obj["tick_spacing"],
        }
        if "hooks" in obj:
            kwargs["hooks"] = obj["hooks"]
        return PoolKey(**kwargs)
    except KeyError as exc:
        raise ConfigError(f"pool key missing field {exc.args[0]!r}") from exc
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid pool key: {exc}") from exc


def settings_from_mapping(obj: Mapping[str, Any], *, apply_env: bool = True) -> Settings:
    if not isinstance(obj, Mapping):
        raise ConfigError("settings document must be a mapping")
    unknown = set(obj) - _KNOWN_KEYS
    if unknown:
        raise ConfigError(f"unknown settings keys: {sorted(unknown)}")

    cooldown = obj.get("cooldown_seconds", DEFAULT_COOLDOWN_SECONDS)
    if not isinstance(cooldown, int) or isinstance(cooldown, bool):
        raise ConfigError("cooldown_seconds must be an int")
    if not (0 <= cooldown <= MAX_COOLDOWN_SECONDS):
        raise ConfigError(f"cooldown_seconds must be in [0, {MAX_COOLDOWN_SECONDS}]: {cooldown}")

    denylist_raw = obj.get("denylist") or []
    if not isinstance(denylist_raw, list) or not all(isinstance(a, str) for a in denylist_raw):
        raise ConfigError("denylist must be a list of address strings")

    rotation_raw = obj.get("rotation") or []
    if not isinstance(rotation_raw, list):
        raise ConfigError("rotation must be a list of pool references")
    try:
        rotation: List[PoolId] = [parse_pool_ref(p) for p in rotation_raw]
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid rotation entry: {exc}") from exc

    strict = obj.get("strict_rotation", False)
    if not isinstance(strict, bool):
        raise ConfigError("strict_rotation must be a bool")

    if apply_env:
        cooldown = _env_int(ENV_COOLDOWN, cooldown, lo=0, hi=MAX_COOLDOWN_SECONDS)
        strict = _env_flag(ENV_STRICT_ROTATION, strict)

    settings = Settings(
        cooldown_seconds=cooldown,
        denylist=tuple(denylist_raw),
        rotation=tuple(rotation),
        strict_rotation=strict,
    )
    # Surface address / rotation errors at load time rather than on first swap.
    try:
        settings.guard_config()
        settings.rebalancer_config()
    except (TypeError, ValueError) as exc:
        raise ConfigError(str(exc)) from exc
    return settings


def load_settings(path: Optional[Path] = None, *, apply_env: bool = True) -> Settings:
    """Load settings from a YAML file; with no path, defaults plus environment overrides."""
    if path is None:
        return settings_from_mapping({}, apply_env=apply_env)
    try:
        obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"cannot read settings file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    return settings_from_mapping(obj or {}, apply_env=apply_env)
