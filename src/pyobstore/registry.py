"""Process-wide directory of named stores.

Components that need a shared store look it up by name instead of holding a
direct reference.  The first registration under a name wins; later attempts
are rejected with a :class:`~pyobstore.exceptions.DuplicateNameWarning`.
"""

from __future__ import annotations

import logging
import threading
import warnings
from collections.abc import Mapping
from types import MappingProxyType

from pyobstore.exceptions import DuplicateNameWarning, InvalidArgumentError
from pyobstore.store import ObservableStore

_logger = logging.getLogger(__name__)


class CacheRegistry:
    """Name -> store directory. Holds no cache data itself."""

    def __init__(self) -> None:
        self._stores: dict[str, ObservableStore] = {}
        self._lock = threading.Lock()

    def register(self, name: str, store: ObservableStore, *, _stacklevel: int = 2) -> bool:
        """Register *store* under *name*.

        Returns
        -------
        bool
            ``True`` when registered, ``False`` when *name* was already
            taken (the existing registration is kept).
        """
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError(f"Invalid cache name {name!r}: name must be a non-empty string")
        if store is None:
            raise InvalidArgumentError(f"Cannot register None under cache name {name!r}")

        with self._lock:
            existing = self._stores.get(name)
            if existing is None:
                self._stores[name] = store
                if isinstance(store, ObservableStore) and store.name is None:
                    store.name = name
                _logger.debug("Registered cache name=%s", name)
                return True

        _logger.warning("Cache %r is already registered; keeping the existing instance", name)
        warnings.warn(
            f"Cache {name!r} is already registered",
            DuplicateNameWarning,
            stacklevel=_stacklevel,
        )
        return False

    def lookup(self, name: str) -> ObservableStore | None:
        """Return the store registered under *name*, or ``None``."""
        with self._lock:
            return self._stores.get(name)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._stores)

    def snapshot(self) -> Mapping[str, ObservableStore]:
        """Read-only copy of the whole directory."""
        with self._lock:
            return MappingProxyType(dict(self._stores))

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._stores

    def __len__(self) -> int:
        with self._lock:
            return len(self._stores)


_default_registry: CacheRegistry | None = None
_default_lock = threading.Lock()


def default_registry() -> CacheRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _default_registry
    with _default_lock:
        if _default_registry is None:
            _default_registry = CacheRegistry()
        return _default_registry


def reset_default_registry() -> None:
    """Discard the process-wide registry. The next access starts empty."""
    global _default_registry
    with _default_lock:
        _default_registry = None


def register_cache(name: str, store: ObservableStore, *, registry: CacheRegistry | None = None) -> bool:
    """Register *store* in *registry* (default: the process-wide one)."""
    target = registry if registry is not None else default_registry()
    return target.register(name, store, _stacklevel=3)


def get_cache(name: str, *, registry: CacheRegistry | None = None) -> ObservableStore | None:
    """Look up *name* in *registry* (default: the process-wide one)."""
    target = registry if registry is not None else default_registry()
    return target.lookup(name)
