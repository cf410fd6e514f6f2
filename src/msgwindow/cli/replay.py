"""Replay a JSON-lines event log against a message window store."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from typing import Any

from pydantic import ValidationError

from ..models import Message
from ..services.window_store import MessageWindowStore


class ReplayError(ValueError):
    def __init__(self, line_no: int, reason: str) -> None:
        super().__init__(f"line {line_no}: {reason}")
        self.line_no = line_no
        self.reason = reason


def apply_event(store: MessageWindowStore, session_id: str, event: dict[str, Any]) -> None:
    """Apply one event. Raises ``ValueError`` for unknown or malformed events."""
    event_type = event.get("type")
    if event_type == "messages":
        raw = event.get("messages")
        if not isinstance(raw, list):
            raise ValueError("'messages' event needs a 'messages' list")
        try:
            batch = [Message.model_validate(m) for m in raw]
        except ValidationError as e:
            raise ValueError(f"invalid message: {e.errors()[0]['msg']}") from e
        store.ingest(session_id, batch)
    elif event_type == "at_bottom":
        value = event.get("value", True)
        if not isinstance(value, bool):
            raise ValueError("'at_bottom' event needs a boolean 'value'")
        store.set_at_bottom(session_id, value)
    elif event_type == "permissions":
        ids = event.get("ids", [])
        if not isinstance(ids, list):
            raise ValueError("'permissions' event needs an 'ids' list")
        store.set_pending_permission_request_ids(session_id, [str(i) for i in ids])
    elif event_type == "flush":
        store.flush(session_id)
    elif event_type == "clear":
        store.clear(session_id)
    else:
        raise ValueError(f"unknown event type {event_type!r}")


def replay_lines(
    store: MessageWindowStore,
    session_id: str,
    lines: Iterable[str],
    after_event: Callable[[dict[str, Any]], None] | None = None,
) -> int:
    """Apply each non-blank line as an event; returns how many were applied.

    ``after_event`` is called with each event once it has been applied.
    """
    applied = 0
    for line_no, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            event = json.loads(line)
        except json.JSONDecodeError as e:
            raise ReplayError(line_no, f"invalid JSON ({e.msg})") from e
        if not isinstance(event, dict):
            raise ReplayError(line_no, "event must be a JSON object")
        try:
            apply_event(store, session_id, event)
        except ValueError as e:
            raise ReplayError(line_no, str(e)) from e
        if after_event is not None:
            after_event(event)
        applied += 1
    return applied
