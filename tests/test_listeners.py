from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import pytest
from pydantic import ValidationError

from pyobstore import (
    MISSING,
    ChangeAction,
    ChangeEvent,
    InvalidArgumentError,
    ListenerFailure,
    ObservableStore,
    StoreConfig,
)


def _boom(*_: Any) -> None:
    raise RuntimeError("boom")


def test_listeners_run_in_registration_order() -> None:
    store = ObservableStore()
    order: list[str] = []
    store.on_change("k", lambda *_: order.append("first"))
    store.on_change("k", lambda *_: order.append("second"))
    store.on_change("k", lambda *_: order.append("third"))

    store.set("k", 1)

    assert order == ["first", "second", "third"]


def test_listeners_only_see_their_key() -> None:
    store = ObservableStore()
    seen: list[Any] = []
    store.on_change("a", lambda action, old, new: seen.append(new))

    store.set("b", 1)
    store.set("a", 2)

    assert seen == [2]


def test_non_callable_callback_rejected() -> None:
    store = ObservableStore()
    with pytest.raises(InvalidArgumentError):
        store.on_change("k", "not callable")  # type: ignore[arg-type]
    with pytest.raises(InvalidArgumentError):
        store.on_any_change(None)  # type: ignore[arg-type]


def test_unsubscribe_stops_delivery() -> None:
    store = ObservableStore()
    seen: list[Any] = []
    subscription = store.on_change("k", lambda action, old, new: seen.append(new))

    store.set("k", 1)
    subscription.unsubscribe()
    subscription.unsubscribe()
    store.set("k", 2)

    assert seen == [1]
    assert not subscription.active
    assert store.listener_count("k") == 0


def test_same_callback_registered_twice_is_removed_independently() -> None:
    store = ObservableStore()
    seen: list[Any] = []

    def listener(action: ChangeAction, old: Any, new: Any) -> None:
        seen.append(new)

    first = store.on_change("k", listener)
    store.on_change("k", listener)
    first.unsubscribe()
    store.set("k", "x")

    assert seen == ["x"]
    assert store.listener_count("k") == 1


def test_listener_unsubscribed_during_dispatch_is_skipped() -> None:
    store = ObservableStore()
    seen: list[str] = []
    subscriptions: dict[str, Any] = {}

    def first(*_: Any) -> None:
        seen.append("first")
        subscriptions["second"].unsubscribe()

    store.on_change("k", first)
    subscriptions["second"] = store.on_change("k", lambda *_: seen.append("second"))

    store.set("k", 1)

    assert seen == ["first"]


def test_listener_added_during_dispatch_waits_for_next_change() -> None:
    store = ObservableStore()
    seen: list[Any] = []

    def subscribe_more(action: ChangeAction, old: Any, new: Any) -> None:
        if new == 1:
            store.on_change("k", lambda a, o, n: seen.append(n))

    store.on_change("k", subscribe_more)
    store.set("k", 1)
    store.set("k", 2)

    assert seen == [2]


def test_store_wide_observer_receives_events_after_key_listeners() -> None:
    store = ObservableStore()
    order: list[str] = []
    events: list[ChangeEvent] = []
    store.on_change("k", lambda *_: order.append("listener"))

    def observer(event: ChangeEvent) -> None:
        order.append("observer")
        events.append(event)

    store.on_any_change(observer)
    store.set("k", 1)
    store.set("other", 2)
    store.remove("k")

    assert order == ["listener", "observer", "observer", "listener", "observer"]
    assert [(e.key, e.action, e.old_value, e.new_value) for e in events] == [
        ("k", ChangeAction.SET, MISSING, 1),
        ("other", ChangeAction.SET, MISSING, 2),
        ("k", ChangeAction.REMOVE, 1, MISSING),
    ]
    assert all(e.changed for e in events)
    assert store.listener_count() == 1


def test_unchanged_set_event_is_flagged() -> None:
    store = ObservableStore()
    events: list[ChangeEvent] = []
    store.on_any_change(events.append)

    store.set("k", "v")
    store.set("k", "v")

    assert [e.changed for e in events] == [True, False]


def test_failing_listener_is_isolated(caplog: pytest.LogCaptureFixture) -> None:
    failures: list[ListenerFailure] = []
    store = ObservableStore(StoreConfig(on_listener_error=failures.append), name="isolated")
    seen: list[Any] = []
    store.on_change("k", _boom)
    store.on_change("k", lambda action, old, new: seen.append(new))

    with caplog.at_level(logging.WARNING, logger="pyobstore.store"):
        store.set("k", 1)

    assert store.get("k") == 1
    assert seen == [1]
    assert len(failures) == 1
    assert failures[0].key == "k"
    assert failures[0].action == ChangeAction.SET
    assert failures[0].listener is _boom
    assert isinstance(failures[0].__cause__, RuntimeError)
    assert "Listener failed" in caplog.text


def test_failing_error_hook_does_not_unwind_mutator() -> None:
    store = ObservableStore(StoreConfig(on_listener_error=_boom))
    store.on_change("k", _boom)

    store.set("k", 1)

    assert store.get("k") == 1


def test_failing_listener_propagates_when_not_isolated() -> None:
    store = ObservableStore(StoreConfig(isolate_listener_errors=False))
    seen: list[Any] = []
    store.on_change("k", _boom)
    store.on_change("k", lambda action, old, new: seen.append(new))

    with pytest.raises(ListenerFailure) as exc_info:
        store.set("k", 1)

    # State is committed before dispatch.
    assert store.get("k") == 1
    assert seen == []
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_remove_commits_before_failing_listener() -> None:
    store = ObservableStore(StoreConfig(isolate_listener_errors=False))
    store.set("k", 1)
    store.on_change("k", _boom)

    with pytest.raises(ListenerFailure):
        store.remove("k")

    assert store.get("k") is MISSING


def test_change_event_validation() -> None:
    with pytest.raises(ValidationError):
        ChangeEvent(key="", action=ChangeAction.SET)
    with pytest.raises(ValidationError):
        ChangeEvent(key="k", action="update")

    naive = ChangeEvent(key="k", action="remove", observed_at=datetime(2026, 1, 1))
    assert naive.observed_at.tzinfo is UTC
    assert naive.action is ChangeAction.REMOVE
    assert naive.old_value is MISSING
    assert naive.as_args() == (ChangeAction.REMOVE, MISSING, MISSING)


def test_change_event_keeps_payload_identity() -> None:
    payload = {"nested": [1, 2]}
    event = ChangeEvent(key="k", action=ChangeAction.SET, new_value=payload)
    assert event.new_value is payload
