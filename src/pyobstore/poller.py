"""Periodic poller that mirrors external state into a store.

Each named watch has a reader returning a mapping of observable key -> value.
On every tick the poller compares the reading with the watch's last-seen
snapshot; when anything differs it writes the whole reading into the store
with ``set`` and then hands it to the watch's callback.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

from pyobstore.config import PollerConfig
from pyobstore.exceptions import InvalidArgumentError
from pyobstore.store import ObservableStore, values_equal

_logger = logging.getLogger(__name__)

Reader = Callable[[], Mapping[str, Any] | Awaitable[Mapping[str, Any]]]
WatchCallback = Callable[[dict[str, Any]], None | Awaitable[None]]


@dataclass(slots=True)
class _Watch:
    name: str
    reader: Reader
    callback: WatchCallback | None = None
    last_seen: dict[str, Any] | None = None

    def differs(self, reading: Mapping[str, Any]) -> bool:
        if self.last_seen is None or self.last_seen.keys() != reading.keys():
            return True
        return any(not values_equal(value, self.last_seen[key]) for key, value in reading.items())


class StatePoller:
    """Asyncio task polling watches into an :class:`ObservableStore`.

    Usage::

        poller = StatePoller(store)
        poller.watch("weapon", read_weapon, on_weapon_change)
        async with poller:
            ...
    """

    def __init__(self, store: ObservableStore, config: PollerConfig | None = None) -> None:
        self._store = store
        self._config = config or PollerConfig()
        self._watches: dict[str, _Watch] = {}
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def store(self) -> ObservableStore:
        return self._store

    def watch(self, name: str, reader: Reader, callback: WatchCallback | None = None) -> None:
        """Register a named reader and an optional change callback."""
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError(f"Invalid watch name {name!r}")
        if not callable(reader):
            raise InvalidArgumentError(f"reader for watch {name!r} must be callable")
        if callback is not None and not callable(callback):
            raise InvalidArgumentError(f"callback for watch {name!r} must be callable")
        if name in self._watches:
            raise InvalidArgumentError(f"Watch {name!r} is already registered")
        self._watches[name] = _Watch(name=name, reader=reader, callback=callback)

    async def poll_once(self) -> dict[str, dict[str, Any]]:
        """Read every watch once. Returns the readings of watches that changed.

        A watch whose writes into the store fail keeps its previous snapshot,
        so the same reading is written again on the next poll.
        """
        changed: dict[str, dict[str, Any]] = {}
        for watch in list(self._watches.values()):
            try:
                result = watch.reader()
                if inspect.isawaitable(result):
                    result = await result
            except Exception:
                _logger.warning("Reader for watch=%s failed", watch.name, exc_info=True)
                continue

            if not isinstance(result, Mapping):
                _logger.warning("Reader for watch=%s returned %s, expected a mapping", watch.name, type(result).__name__)
                continue
            if not watch.differs(result):
                continue

            reading = dict(result)
            write_failed = False
            for key, value in reading.items():
                try:
                    self._store.set(key, value)
                except Exception:
                    write_failed = True
                    _logger.warning("Writing key=%r for watch=%s failed", key, watch.name, exc_info=True)
            if write_failed:
                continue

            watch.last_seen = reading
            changed[watch.name] = reading
            _logger.debug("Watch changed name=%s keys=%s", watch.name, list(reading))

            if watch.callback is None:
                continue
            try:
                outcome = watch.callback(dict(reading))
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                _logger.warning("Callback for watch=%s failed", watch.name, exc_info=True)
        return changed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start polling on the running event loop."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        _logger.debug("Poller started interval=%s watches=%d", self._config.interval, len(self._watches))

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        _logger.debug("Poller stopped")

    async def __aenter__(self) -> StatePoller:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._config.interval)
            try:
                await self.poll_once()
            except Exception:
                _logger.debug("Poll failed", exc_info=True)
