from __future__ import annotations

import pytest

from pyobstore import ConfigError, PollerConfig, StoreConfig
from pyobstore.config import DEFAULT_POLL_INTERVAL


def test_store_config_defaults() -> None:
    config = StoreConfig()
    assert config.notify_unchanged is True
    assert config.isolate_listener_errors is True
    assert config.thread_safe is False
    assert config.on_listener_error is None


def test_store_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PYOBSTORE_NOTIFY_UNCHANGED", "no")
    monkeypatch.setenv("PYOBSTORE_THREAD_SAFE", "on")
    monkeypatch.setenv("PYOBSTORE_ISOLATE_LISTENER_ERRORS", "maybe")

    config = StoreConfig.from_env()

    assert config.notify_unchanged is False
    assert config.thread_safe is True
    # Unrecognised values fall back to the default.
    assert config.isolate_listener_errors is True


def test_store_config_overrides_beat_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PYOBSTORE_THREAD_SAFE", "1")
    config = StoreConfig.from_env(thread_safe=False)
    assert config.thread_safe is False


def test_poller_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PYOBSTORE_POLL_INTERVAL", raising=False)
    assert PollerConfig.from_env().interval == DEFAULT_POLL_INTERVAL

    monkeypatch.setenv("PYOBSTORE_POLL_INTERVAL", "0.25")
    assert PollerConfig.from_env().interval == 0.25
    assert PollerConfig.from_env(interval=2.0).interval == 2.0


def test_poller_config_rejects_bad_interval(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PYOBSTORE_POLL_INTERVAL", "fast")
    with pytest.raises(ConfigError):
        PollerConfig.from_env()
    with pytest.raises(ConfigError):
        PollerConfig(interval=0)
