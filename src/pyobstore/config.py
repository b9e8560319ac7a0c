"""Store and poller configuration for pyobstore."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from pyobstore.exceptions import ConfigError

if TYPE_CHECKING:
    from pyobstore.exceptions import ListenerFailure

#: Poll cadence used by the state poller when nothing else is configured.
DEFAULT_POLL_INTERVAL: float = 0.5


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class StoreConfig:
    """Behaviour switches for an :class:`~pyobstore.store.ObservableStore`.

    Parameters
    ----------
    notify_unchanged : bool
        Fire listeners for a ``set`` whose value equals the stored one.
        The entry itself is never rewritten in that case.  Defaults to
        ``True`` so listeners observe ``(set, v, v)``.
    isolate_listener_errors : bool
        Run each listener in its own ``try``/``except`` so one failing
        callback cannot stop the others or the mutator.  When ``False``
        the first failure is raised to the caller as
        :class:`~pyobstore.exceptions.ListenerFailure` (after the state
        change has been committed).
    thread_safe : bool
        Guard every operation, including listener dispatch, with a single
        re-entrant lock.
    on_listener_error : callable or None
        Receives each isolated :class:`~pyobstore.exceptions.ListenerFailure`
        in addition to the WARNING log record.
    """

    notify_unchanged: bool = True
    isolate_listener_errors: bool = True
    thread_safe: bool = False
    on_listener_error: Callable[[ListenerFailure], None] | None = None

    @classmethod
    def from_env(cls, **overrides: Any) -> StoreConfig:
        """Create configuration from ``PYOBSTORE_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        _ENV_BOOL_MAP = {
            "PYOBSTORE_NOTIFY_UNCHANGED": ("notify_unchanged", True),
            "PYOBSTORE_ISOLATE_LISTENER_ERRORS": ("isolate_listener_errors", True),
            "PYOBSTORE_THREAD_SAFE": ("thread_safe", False),
        }
        for env_key, (field_name, default) in _ENV_BOOL_MAP.items():
            if field_name not in overrides:
                config_kwargs[field_name] = _env_bool(env.get(env_key), default)

        config_kwargs.update(overrides)
        return cls(**config_kwargs)


@dataclasses.dataclass(frozen=True)
class PollerConfig:
    """Configuration for :class:`~pyobstore.poller.StatePoller`.

    Parameters
    ----------
    interval : float
        Seconds to sleep between polls.
    """

    interval: float = DEFAULT_POLL_INTERVAL

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ConfigError(f"interval must be positive, got {self.interval!r}")

    @classmethod
    def from_env(cls, **overrides: Any) -> PollerConfig:
        """Create configuration from ``PYOBSTORE_POLL_INTERVAL``."""
        config_kwargs: dict[str, Any] = {}
        interval_env = os.environ.get("PYOBSTORE_POLL_INTERVAL")
        if interval_env is not None and "interval" not in overrides:
            config_kwargs["interval"] = _env_float("PYOBSTORE_POLL_INTERVAL", interval_env)
        config_kwargs.update(overrides)
        return cls(**config_kwargs)
