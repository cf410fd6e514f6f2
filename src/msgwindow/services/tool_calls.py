"""Tool-call identifier extraction and permission pinning.

Message content is opaque to the window engine. The only thing it looks for is
the identifier of a tool call the agent made, because a pending permission
request is keyed by that identifier. Supported agent record shapes:

- Claude output: ``{"type": "output", "data": {"type": "assistant",
  "message": {"content": [{"type": "tool_use", "id": ...}]}}}``
- Normalized blocks: ``[{"type": "tool-call", "id": ...}]``
- Codex: ``{"type": "codex", "data": {"type": "tool-call", "callId": ...}}``
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Any

from ..models import Message

_EMPTY: frozenset[str] = frozenset()


def _unwrap_agent_record(content: Any) -> Any:
    if not isinstance(content, dict):
        return None
    if content.get("role") != "agent":
        return None
    return content.get("content")


def _ids_from_blocks(blocks: Any) -> set[str]:
    ids: set[str] = set()
    if not isinstance(blocks, list):
        return ids
    for block in blocks:
        if not isinstance(block, dict):
            continue
        if block.get("type") in ("tool_use", "tool-call"):
            block_id = block.get("id")
            if isinstance(block_id, str) and block_id:
                ids.add(block_id)
    return ids


def extract_tool_call_ids(content: Any) -> frozenset[str]:
    """Return the tool-call identifiers carried by an agent message payload."""
    record = _unwrap_agent_record(content)
    if record is None:
        return _EMPTY

    if isinstance(record, list):
        return frozenset(_ids_from_blocks(record))
    if not isinstance(record, dict):
        return _EMPTY

    data = record.get("data")
    if not isinstance(data, dict):
        return _EMPTY

    record_type = record.get("type")
    if record_type == "output" and data.get("type") == "assistant":
        message = data.get("message")
        if isinstance(message, dict):
            return frozenset(_ids_from_blocks(message.get("content")))
        return _EMPTY
    if record_type == "codex" and data.get("type") == "tool-call":
        call_id = data.get("callId")
        if isinstance(call_id, str) and call_id:
            return frozenset((call_id,))
    return _EMPTY


def is_pinned(message: Message, pending_request_ids: Collection[str]) -> bool:
    if not pending_request_ids:
        return False
    return any(tid in pending_request_ids for tid in extract_tool_call_ids(message.content))


def has_permission_prompt(
    pending: list[Message], pending_request_ids: Collection[str], *, at_bottom: bool
) -> bool:
    """Whether a message tied to an outstanding permission request is buffered."""
    if at_bottom or not pending_request_ids:
        return False
    return any(is_pinned(m, pending_request_ids) for m in pending)
