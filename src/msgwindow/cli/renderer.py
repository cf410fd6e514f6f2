"""Rich-based terminal rendering of a session's message window."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..models import Message, WindowSnapshot
from ..services.subscriptions import Unsubscribe
from ..services.tool_calls import extract_tool_call_ids
from ..services.window_store import MessageWindowStore

_PREVIEW_CHARS = 60


def _truncate(text: str, limit: int = _PREVIEW_CHARS) -> str:
    oneline = " ".join(text.split())
    if len(oneline) > limit:
        return oneline[: limit - 3] + "..."
    return oneline


def _text_from_content(content: Any) -> str:
    """Best-effort one-line preview of an opaque message payload."""
    if isinstance(content, str):
        return content
    if isinstance(content, dict):
        inner = content.get("content", content)
        if isinstance(inner, str):
            return inner
        if isinstance(inner, dict):
            data = inner.get("data")
            if isinstance(data, dict):
                message = data.get("message")
                if isinstance(message, dict):
                    body = message.get("content")
                    if isinstance(body, str):
                        return body
                    if isinstance(body, list):
                        parts = [
                            b.get("text") or b.get("name") or b.get("type", "")
                            for b in body
                            if isinstance(b, dict)
                        ]
                        return " ".join(p for p in parts if p)
    try:
        return json.dumps(content, default=str)
    except (TypeError, ValueError):
        return str(content)


def _role(content: Any) -> str:
    if isinstance(content, dict):
        role = content.get("role")
        if isinstance(role, str):
            return role
    return "?"


def _row(msg: Message) -> tuple[str, str, str, str]:
    tool_ids = extract_tool_call_ids(msg.content)
    tools = ", ".join(sorted(tool_ids))
    return (
        str(msg.seq),
        escape(_role(msg.content)),
        escape(_truncate(_text_from_content(msg.content))),
        escape(tools),
    )


def build_window_table(snapshot: WindowSnapshot, title: str = "Messages") -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Seq", justify="right", style="grey62")
    table.add_column("Role")
    table.add_column("Preview")
    table.add_column("Tool calls", style="cyan")
    for msg in snapshot.messages:
        table.add_row(*_row(msg))
    return table


def render_snapshot(console: Console, session_id: str, snapshot: WindowSnapshot) -> None:
    console.print(build_window_table(snapshot, title=f"Session {escape(session_id)}"))
    if snapshot.pending_count:
        line = f"[yellow]{snapshot.pending_count} new message(s) below[/yellow]"
        if snapshot.dropped_count:
            line += f" [grey62]({snapshot.dropped_count} older dropped)[/grey62]"
        console.print(line)
    if snapshot.has_pending_permission_prompt:
        console.print("[bold red]Permission request waiting in new messages[/bold red]")


class WindowRenderer:
    """Repaints a session window whenever the store reports a change."""

    def __init__(
        self, store: MessageWindowStore, session_id: str, console: Console | None = None
    ) -> None:
        self.store = store
        self.session_id = session_id
        self.console = console or Console()
        self.renders = 0
        self._unsubscribe: Unsubscribe | None = None

    def attach(self) -> None:
        """Subscribe, or subscribe again if a ``clear`` dropped the listener."""
        if self._unsubscribe is None or not self._unsubscribe.active:
            self._unsubscribe = self.store.subscribe(self.session_id, self.render)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def render(self) -> None:
        self.renders += 1
        render_snapshot(self.console, self.session_id, self.store.snapshot(self.session_id))
