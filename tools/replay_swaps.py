#!/usr/bin/env python3
"""Replay a scripted swap scenario through the swap guard hook.

Prints one line per swap (or a JSON array with --json). Exit code is 0 when
every swap was evaluated, 1 when the replay stopped on a fatal integrity
error, 2 on an unreadable scenario.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from swapguard.core.errors import ConfigError
from swapguard.integration.replay import STATUS_FATAL, load_scenario, run_scenario


def _format(outcome) -> str:
    line = f"[{outcome.index:>3}] {outcome.sender[:10]}.. pool={outcome.pool} {outcome.status}"
    if outcome.reason:
        line += f" reason={outcome.reason}"
    if outcome.rebalance_target is not None:
        line += f" rebalance={outcome.rebalance_amount}->{outcome.rebalance_target}"
    return line


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    p.add_argument("scenario", type=Path, help="YAML scenario file")
    p.add_argument("--json", action="store_true", help="Emit outcomes as JSON")
    p.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    p.add_argument("--no-env", action="store_true", help="Ignore SWAPGUARD_* environment overrides")
    args = p.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        scenario = load_scenario(args.scenario, apply_env=not args.no_env)
    except ConfigError as exc:
        print(f"[replay] FAIL: {exc}", file=sys.stderr)
        return 2

    outcomes = run_scenario(scenario)
    if args.json:
        print(json.dumps([o.to_dict() for o in outcomes], indent=2))
    else:
        for o in outcomes:
            print(_format(o))

    if outcomes and outcomes[-1].status == STATUS_FATAL:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
