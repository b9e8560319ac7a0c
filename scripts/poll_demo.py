#!/usr/bin/env python3
"""Drive a StatePoller against a simulated player state.

Registers a shared store, watches a fake "weapon" probe that flips every few
ticks, and prints every change the store reports.  Useful for eyeballing
notification order and poll cadence.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyobstore import ChangeEvent, ObservableStore, PollerConfig, StatePoller, get_cache, register_cache  # noqa: E402

_LOG = logging.getLogger("poll_demo")

_WEAPONS = (0, 453432689, 0, 736523883)


class _SimulatedPlayer:
    def __init__(self, flip_every: int) -> None:
        self._flip_every = max(1, flip_every)
        self._tick = 0

    def read_weapon(self) -> dict[str, Any]:
        weapon = _WEAPONS[(self._tick // self._flip_every) % len(_WEAPONS)]
        self._tick += 1
        return {"weapon": weapon, "isArmed": weapon != 0}


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--interval", type=float, default=0.5, help="Seconds between polls")
    parser.add_argument("--duration", type=float, default=5.0, help="Seconds to run")
    parser.add_argument("--flip-every", type=int, default=3, help="Polls between simulated weapon changes")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> None:
    register_cache("Cache", ObservableStore())
    store = get_cache("Cache")
    assert store is not None

    def _print_event(event: ChangeEvent) -> None:
        print(f"{event.observed_at:%H:%M:%S.%f} {event.action:<6} {event.key}: {event.old_value!r} -> {event.new_value!r}")

    store.on_any_change(_print_event)

    player = _SimulatedPlayer(args.flip_every)
    poller = StatePoller(store, PollerConfig(interval=args.interval))
    poller.watch("Weapon", player.read_weapon, lambda values: _LOG.info("Weapon changed: %s", values))

    async with poller:
        await asyncio.sleep(args.duration)

    print(f"final snapshot: {store.snapshot()}")


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(_run(args))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
