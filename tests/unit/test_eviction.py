from __future__ import annotations

import logging

from msgwindow.services.eviction import evict_pending

from .factories import make_msg, make_tool_call_msg


def test_no_eviction_under_capacity() -> None:
    pending = [make_msg("a", 1), make_msg("b", 2)]
    assert evict_pending(pending, 2, set()) == []
    assert [m.id for m in pending] == ["a", "b"]


def test_evicts_oldest_first() -> None:
    pending = [make_msg(f"m{i}", i) for i in range(5)]
    evicted = evict_pending(pending, 3, set())
    assert [m.id for m in evicted] == ["m0", "m1"]
    assert [m.id for m in pending] == ["m2", "m3", "m4"]


def test_skips_pinned_messages() -> None:
    pending = [make_tool_call_msg("perm", 0, "req-keep")] + [make_msg(f"m{i}", i) for i in range(1, 5)]
    evicted = evict_pending(pending, 3, {"req-keep"})
    assert [m.id for m in evicted] == ["m1", "m2"]
    assert [m.id for m in pending] == ["perm", "m3", "m4"]


def test_pinned_messages_may_exceed_capacity(caplog) -> None:
    pending = [make_tool_call_msg(f"p{i}", i, f"req-{i}") for i in range(3)]
    with caplog.at_level(logging.WARNING):
        evicted = evict_pending(pending, 1, {"req-0", "req-1", "req-2"})
    assert evicted == []
    assert len(pending) == 3
    assert "pinned" in caplog.text
