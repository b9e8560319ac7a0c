"""pyobstore - In-memory observable key-value store with a named-store registry."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyobstore")
except PackageNotFoundError:
    __version__ = "0+local"
from pyobstore._missing import MISSING, is_missing
from pyobstore.config import PollerConfig, StoreConfig
from pyobstore.events import ChangeAction, ChangeEvent
from pyobstore.exceptions import (
    ConfigError,
    DuplicateNameWarning,
    InvalidArgumentError,
    InvalidKeyError,
    ListenerFailure,
    ObstoreError,
)
from pyobstore.poller import StatePoller
from pyobstore.registry import (
    CacheRegistry,
    default_registry,
    get_cache,
    register_cache,
    reset_default_registry,
)
from pyobstore.store import Entry, ObservableStore, Subscription, values_equal

__all__ = [
    "__version__",
    "CacheRegistry",
    "ChangeAction",
    "ChangeEvent",
    "ConfigError",
    "DuplicateNameWarning",
    "Entry",
    "InvalidArgumentError",
    "InvalidKeyError",
    "ListenerFailure",
    "MISSING",
    "ObservableStore",
    "ObstoreError",
    "PollerConfig",
    "StatePoller",
    "StoreConfig",
    "Subscription",
    "default_registry",
    "get_cache",
    "is_missing",
    "register_cache",
    "reset_default_registry",
    "values_equal",
]
