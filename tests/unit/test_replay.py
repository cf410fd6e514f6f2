from __future__ import annotations

import json

import pytest

from msgwindow.cli.replay import ReplayError, apply_event, replay_lines
from msgwindow.services.window_store import MessageWindowStore

from .factories import make_msg, make_tool_call_msg


def _line(event: dict) -> str:
    return json.dumps(event)


def _messages_event(*msgs) -> dict:
    return {"type": "messages", "messages": [m.model_dump(mode="json", by_alias=True) for m in msgs]}


def test_replay_applies_events_in_order(store: MessageWindowStore) -> None:
    lines = [
        _line({"type": "at_bottom", "value": False}),
        _line(_messages_event(make_tool_call_msg("m1", 1, "req-abc"), make_msg("m2", 2))),
        "",
        _line({"type": "permissions", "ids": ["req-abc"]}),
    ]
    assert replay_lines(store, "s1", lines) == 3
    snap = store.snapshot("s1")
    assert snap.pending_count == 2
    assert snap.has_pending_permission_prompt is True

    replay_lines(store, "s1", [_line({"type": "flush"})])
    assert len(store.snapshot("s1").messages) == 2


def test_clear_event(store: MessageWindowStore) -> None:
    replay_lines(store, "s1", [_line(_messages_event(make_msg("m1", 1))), _line({"type": "clear"})])
    assert store.sessions() == []


def test_reports_line_number_for_bad_json(store: MessageWindowStore) -> None:
    with pytest.raises(ReplayError) as exc_info:
        replay_lines(store, "s1", [_line({"type": "flush"}), "{not json"])
    assert exc_info.value.line_no == 2
    assert "invalid JSON" in exc_info.value.reason


def test_unknown_event_type(store: MessageWindowStore) -> None:
    with pytest.raises(ValueError, match="unknown event type"):
        apply_event(store, "s1", {"type": "teleport"})


def test_invalid_message_is_rejected(store: MessageWindowStore) -> None:
    with pytest.raises(ReplayError) as exc_info:
        replay_lines(store, "s1", [_line({"type": "messages", "messages": [{"id": "m1"}]})])
    assert "invalid message" in exc_info.value.reason
    assert store.snapshot("s1").pending_count == 0


def test_non_object_line(store: MessageWindowStore) -> None:
    with pytest.raises(ReplayError, match="JSON object"):
        replay_lines(store, "s1", ["[1, 2]"])


@pytest.mark.parametrize("value", ["false", 0, None])
def test_at_bottom_requires_boolean(store: MessageWindowStore, value) -> None:
    with pytest.raises(ReplayError, match="boolean"):
        replay_lines(store, "s1", [_line({"type": "at_bottom", "value": value})])
    assert store.snapshot("s1").at_bottom is False


def test_after_event_sees_each_applied_event(store: MessageWindowStore) -> None:
    seen: list[str] = []
    replay_lines(
        store,
        "s1",
        [_line({"type": "at_bottom", "value": False}), _line({"type": "flush"})],
        after_event=lambda event: seen.append(event["type"]),
    )
    assert seen == ["at_bottom", "flush"]
