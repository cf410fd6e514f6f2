from __future__ import annotations

import logging

from msgwindow.services.subscriptions import SubscriptionBus


def test_notify_calls_each_listener_once() -> None:
    bus = SubscriptionBus()
    calls: list[str] = []
    bus.subscribe("s1", lambda: calls.append("a"))
    bus.subscribe("s1", lambda: calls.append("b"))

    bus.notify("s1")
    assert sorted(calls) == ["a", "b"]


def test_handle_is_idempotent() -> None:
    bus = SubscriptionBus()
    unsub = bus.subscribe("s1", lambda: None)
    assert bus.subscriber_count("s1") == 1
    assert unsub.active is True

    unsub()
    unsub()
    assert unsub.active is False
    assert bus.subscriber_count("s1") == 0


def test_same_callable_subscribed_twice() -> None:
    bus = SubscriptionBus()
    calls: list[int] = []

    def listener() -> None:
        calls.append(1)

    first = bus.subscribe("s1", listener)
    bus.subscribe("s1", listener)
    bus.notify("s1")
    assert calls == [1, 1]

    first()
    bus.notify("s1")
    assert calls == [1, 1, 1]


def test_handle_as_context_manager() -> None:
    bus = SubscriptionBus()
    with bus.subscribe("s1", lambda: None):
        assert bus.subscriber_count("s1") == 1
    assert bus.subscriber_count("s1") == 0


def test_failing_listener_does_not_block_others(caplog) -> None:
    bus = SubscriptionBus()
    calls: list[int] = []

    def boom() -> None:
        raise RuntimeError("render failed")

    bus.subscribe("s1", boom)
    bus.subscribe("s1", lambda: calls.append(1))

    with caplog.at_level(logging.ERROR):
        bus.notify("s1")
    assert calls == [1]
    assert "render failed" in caplog.text


def test_detach_drops_all_listeners() -> None:
    bus = SubscriptionBus()
    unsub = bus.subscribe("s1", lambda: None)
    bus.subscribe("s1", lambda: None)
    assert bus.detach("s1") == 2
    assert bus.subscriber_count("s1") == 0
    # stale handle after detach is harmless
    unsub()
    assert bus.detach("s1") == 0


def test_listener_may_unsubscribe_during_notify() -> None:
    bus = SubscriptionBus()
    calls: list[int] = []
    handle = None

    def once() -> None:
        calls.append(1)
        handle()

    handle = bus.subscribe("s1", once)
    bus.notify("s1")
    bus.notify("s1")
    assert calls == [1]


def test_detach_invalidates_handles() -> None:
    bus = SubscriptionBus()
    calls: list[int] = []

    def listener() -> None:
        calls.append(1)

    old = bus.subscribe("s1", listener)
    bus.detach("s1")
    assert old.active is False

    bus.subscribe("s1", listener)
    old()
    assert bus.subscriber_count("s1") == 1
    bus.notify("s1")
    assert calls == [1]
