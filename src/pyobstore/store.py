"""Observable in-memory key-value store.

Entries are committed before any listener runs, so a failing listener can
never roll back or block a state transition.  Listeners run synchronously on
the mutating caller's thread, in registration order.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from pyobstore._missing import MISSING
from pyobstore._redact import summarize_for_log
from pyobstore.config import StoreConfig
from pyobstore.events import ChangeAction, ChangeEvent
from pyobstore.exceptions import InvalidArgumentError, InvalidKeyError, ListenerFailure

_logger = logging.getLogger(__name__)

Listener = Callable[[ChangeAction, Any, Any], None]
Observer = Callable[[ChangeEvent], None]

_SCALAR_TYPES: tuple[type, ...] = (str, bytes, int, float, bool, complex, type(None))


def values_equal(a: Any, b: Any) -> bool:
    """Reference equality, plus value equality for same-typed scalars.

    Containers and arbitrary objects compare by identity only: replacing a
    list with an equal but distinct list is a change.
    """
    if a is b:
        return True
    return type(a) is type(b) and isinstance(a, _SCALAR_TYPES) and bool(a == b)


def _check_key(key: Any) -> str:
    if not isinstance(key, str) or not key:
        raise InvalidKeyError(key)
    return key


def _check_callback(callback: Any) -> None:
    if not callable(callback):
        raise InvalidArgumentError(f"callback must be callable, got {type(callback).__name__}")


@dataclass(slots=True)
class Entry:
    """A stored key/value pair, owned by exactly one store."""

    key: str
    value: Any

    def update(self, new_value: Any) -> bool:
        """Replace the value if it differs. Returns whether it changed."""
        if values_equal(new_value, self.value):
            return False
        self.value = new_value
        return True


@dataclass(eq=False, slots=True)
class _Registration:
    callback: Callable[..., None]
    active: bool = field(default=True)


class Subscription:
    """Handle for a registered listener.

    ``unsubscribe()`` detaches the callback; calling it again is a no-op.
    """

    __slots__ = ("_detach", "_registration", "key")

    def __init__(self, registration: _Registration, detach: Callable[[], None], *, key: str | None) -> None:
        self._registration = registration
        self._detach = detach
        self.key = key

    @property
    def active(self) -> bool:
        return self._registration.active

    @property
    def callback(self) -> Callable[..., None]:
        return self._registration.callback

    def unsubscribe(self) -> None:
        if not self._registration.active:
            return
        self._registration.active = False
        self._detach()

    def __repr__(self) -> str:
        scope = repr(self.key) if self.key is not None else "*"
        return f"<Subscription key={scope} active={self.active}>"


class ObservableStore:
    """In-memory key-value store with per-key change listeners.

    Usage::

        store = ObservableStore()
        store.on_change("score", lambda action, old, new: print(action, old, new))
        store.set("score", 10)      # set <MISSING> 10
        store.get("score")          # 10
        store.remove("score")       # remove 10 <MISSING>
        store.get("score")          # MISSING

    Not thread-safe unless constructed with ``StoreConfig(thread_safe=True)``.
    """

    def __init__(self, config: StoreConfig | None = None, *, name: str | None = None) -> None:
        self._config = config or StoreConfig()
        self.name = name
        self._entries: dict[str, Entry] = {}
        self._listeners: dict[str, list[_Registration]] = {}
        self._observers: list[_Registration] = []
        self._lock: contextlib.AbstractContextManager[Any] = (
            threading.RLock() if self._config.thread_safe else contextlib.nullcontext()
        )

    @property
    def config(self) -> StoreConfig:
        return self._config

    def __repr__(self) -> str:
        return f"<ObservableStore name={self.name!r} entries={len(self._entries)}>"

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set(self, key: str, value: Any) -> None:
        """Create or update the entry for *key* and notify its listeners."""
        _check_key(key)
        if value is MISSING:
            raise InvalidArgumentError("MISSING cannot be stored; use remove() to delete a key")

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                old_value: Any = MISSING
                self._entries[key] = Entry(key, value)
                changed = True
            else:
                old_value = entry.value
                changed = entry.update(value)

            if not changed and not self._config.notify_unchanged:
                _logger.debug("set key=%s unchanged; notification suppressed", key)
                return

            if _logger.isEnabledFor(logging.DEBUG):
                _logger.debug(
                    "set key=%s old=%s new=%s changed=%s",
                    key,
                    summarize_for_log(old_value),
                    summarize_for_log(value),
                    changed,
                )
            self._notify(key, ChangeAction.SET, old_value, value, changed)

    def remove(self, key: str) -> None:
        """Delete *key* and notify its listeners. Unset keys are a no-op."""
        _check_key(key)
        with self._lock:
            entry = self._entries.pop(key, None)
            if entry is None:
                return
            if _logger.isEnabledFor(logging.DEBUG):
                _logger.debug("remove key=%s old=%s", key, summarize_for_log(entry.value))
            self._notify(key, ChangeAction.REMOVE, entry.value, MISSING, True)

    def clear(self) -> None:
        """Remove every entry, one notification per removed key.

        When listener errors are not isolated, every key is still removed
        and the first :class:`ListenerFailure` is raised afterwards.
        """
        first_failure: ListenerFailure | None = None
        with self._lock:
            keys = list(self._entries)
            _logger.debug("clear store=%s entries=%d", self.name, len(keys))
            for key in keys:
                try:
                    self.remove(key)
                except ListenerFailure as failure:
                    if first_failure is None:
                        first_failure = failure
        if first_failure is not None:
            raise first_failure

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: str) -> Any:
        """Return the value for *key*, or ``MISSING`` when it is unset."""
        _check_key(key)
        with self._lock:
            entry = self._entries.get(key)
            return entry.value if entry is not None else MISSING

    def get_or(self, key: str, default: Any = None) -> Any:
        value = self.get(key)
        return default if value is MISSING else value

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def items(self) -> list[tuple[str, Any]]:
        with self._lock:
            return [(key, entry.value) for key, entry in self._entries.items()]

    def snapshot(self) -> dict[str, Any]:
        """Shallow copy of the current key -> value mapping."""
        return dict(self.items())

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def on_change(self, key: str, callback: Listener) -> Subscription:
        """Call ``callback(action, old_value, new_value)`` on every change to *key*.

        Any number of listeners may watch a key; they run in registration
        order.  ``old_value``/``new_value`` are ``MISSING`` when the key was
        unset before a ``set`` or after a ``remove``.
        """
        _check_key(key)
        _check_callback(callback)
        registration = _Registration(callback)
        with self._lock:
            self._listeners.setdefault(key, []).append(registration)

        def _detach() -> None:
            with self._lock:
                registrations = self._listeners.get(key)
                if registrations is None:
                    return
                with contextlib.suppress(ValueError):
                    registrations.remove(registration)
                if not registrations:
                    del self._listeners[key]

        return Subscription(registration, _detach, key=key)

    def on_any_change(self, callback: Observer) -> Subscription:
        """Call ``callback(event)`` with the :class:`ChangeEvent` of every change.

        Store-wide observers run after the per-key listeners of the change.
        """
        _check_callback(callback)
        registration = _Registration(callback)
        with self._lock:
            self._observers.append(registration)

        def _detach() -> None:
            with self._lock, contextlib.suppress(ValueError):
                self._observers.remove(registration)

        return Subscription(registration, _detach, key=None)

    def listener_count(self, key: str | None = None) -> int:
        """Listeners on *key*, or store-wide observers when *key* is ``None``."""
        with self._lock:
            if key is None:
                return len(self._observers)
            return len(self._listeners.get(key, ()))

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _notify(self, key: str, action: ChangeAction, old_value: Any, new_value: Any, changed: bool) -> None:
        listeners = list(self._listeners.get(key, ()))
        observers = list(self._observers)
        if not listeners and not observers:
            return

        event = ChangeEvent(
            key=key,
            action=action,
            old_value=old_value,
            new_value=new_value,
            changed=changed,
        )
        args = event.as_args()
        for registration in listeners:
            # Unsubscribed by an earlier listener of this same dispatch.
            if registration.active:
                self._invoke(registration.callback, event, args)
        for registration in observers:
            if registration.active:
                self._invoke(registration.callback, event, (event,))

    def _invoke(self, callback: Callable[..., None], event: ChangeEvent, args: tuple[Any, ...]) -> None:
        try:
            callback(*args)
        except Exception as exc:
            failure = ListenerFailure(
                f"Listener {callback!r} failed on {event.action} of key {event.key!r}: {exc}",
                key=event.key,
                action=event.action,
                listener=callback,
            )
            if not self._config.isolate_listener_errors:
                raise failure from exc

            failure.__cause__ = exc
            _logger.warning(
                "Listener failed on %s of key=%s store=%s",
                event.action,
                event.key,
                self.name,
                exc_info=True,
            )
            if self._config.on_listener_error is not None:
                try:
                    self._config.on_listener_error(failure)
                except Exception:
                    _logger.debug("on_listener_error callback failed", exc_info=True)
