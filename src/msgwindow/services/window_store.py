"""Per-session message windows: a visible transcript plus a bounded pending buffer.

While the viewer is scrolled to the latest message (``at_bottom``), incoming
messages go straight to ``visible``. Otherwise they are held in ``pending``
until the caller flushes. ``pending`` is capped at ``pending_window_size``;
the oldest entries are evicted first, except messages carrying a tool call
that is awaiting a permission decision.

All operations are synchronous. Each window has its own re-entrant lock, and
every mutate/evict/notify sequence runs while holding it, so listeners never
see a half-applied change. Listeners may call back into the store.
"""

from __future__ import annotations

import bisect
import heapq
import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from ..models import Message, WindowSnapshot
from .eviction import evict_pending
from .subscriptions import Listener, SubscriptionBus, Unsubscribe
from .tool_calls import has_permission_prompt

logger = logging.getLogger(__name__)

PENDING_WINDOW_SIZE = 200


def _seq(msg: Message) -> int:
    return msg.seq


@dataclass
class SessionWindow:
    visible: list[Message] = field(default_factory=list)
    pending: list[Message] = field(default_factory=list)
    at_bottom: bool = False
    pending_permission_request_ids: frozenset[str] = frozenset()
    dropped_count: int = 0
    version: int = 0
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    # ids currently held in visible or pending
    _ids: set[str] = field(default_factory=set, repr=False)

    @property
    def has_pending_permission_prompt(self) -> bool:
        return has_permission_prompt(
            self.pending, self.pending_permission_request_ids, at_bottom=self.at_bottom
        )

    def contains(self, message_id: str) -> bool:
        return message_id in self._ids

    def insert(self, queue: list[Message], msg: Message) -> None:
        bisect.insort_right(queue, msg, key=_seq)
        self._ids.add(msg.id)

    def discard(self, msgs: Iterable[Message]) -> None:
        for msg in msgs:
            self._ids.discard(msg.id)

    def take_local(self, local_id: str) -> list[Message] | None:
        """Remove the entry with ``local_id`` and return the queue it was in."""
        for queue in (self.visible, self.pending):
            for i, existing in enumerate(queue):
                if existing.local_id == local_id:
                    del queue[i]
                    self._ids.discard(existing.id)
                    return queue
        return None

    def to_snapshot(self) -> WindowSnapshot:
        return WindowSnapshot(
            messages=list(self.visible),
            pending=list(self.pending),
            pending_count=len(self.pending),
            has_pending_permission_prompt=self.has_pending_permission_prompt,
            at_bottom=self.at_bottom,
            dropped_count=self.dropped_count,
            version=self.version,
        )


class MessageWindowStore:
    """Registry of session windows plus the operations that mutate them."""

    def __init__(
        self,
        pending_window_size: int = PENDING_WINDOW_SIZE,
        bus: SubscriptionBus | None = None,
    ) -> None:
        if pending_window_size < 1:
            raise ValueError(
                f"pending_window_size must be a positive integer, got {pending_window_size}"
            )
        self.pending_window_size = pending_window_size
        self._bus = bus or SubscriptionBus()
        self._lock = threading.Lock()
        self._windows: dict[str, SessionWindow] = {}

    # --- Registry ---

    def get_or_create(self, session_id: str) -> SessionWindow:
        with self._lock:
            window = self._windows.get(session_id)
            if window is None:
                window = SessionWindow()
                self._windows[session_id] = window
                logger.info("Message window created for session %s", session_id)
            return window

    @contextmanager
    def _locked(self, session_id: str) -> Iterator[SessionWindow]:
        """Hold the lock of the window currently registered for ``session_id``.

        A ``clear`` may land between lookup and locking; the lookup is retried
        so mutations never go to a window that is no longer registered.
        """
        while True:
            window = self.get_or_create(session_id)
            with window.lock:
                with self._lock:
                    registered = self._windows.get(session_id) is window
                if registered:
                    yield window
                    return

    def clear(self, session_id: str) -> None:
        with self._lock:
            window = self._windows.get(session_id)
        if window is None:
            self._bus.detach(session_id)
            return
        with window.lock:
            with self._lock:
                if self._windows.get(session_id) is window:
                    del self._windows[session_id]
            detached = self._bus.detach(session_id)
        logger.info(
            "Message window cleared for session %s (%d listener(s) detached)",
            session_id,
            detached,
        )

    def sessions(self) -> list[str]:
        with self._lock:
            return list(self._windows)

    def snapshot(self, session_id: str) -> WindowSnapshot:
        with self._lock:
            window = self._windows.get(session_id)
        if window is None:
            return WindowSnapshot()
        with window.lock:
            return window.to_snapshot()

    def has_pending_permission_prompt(self, session_id: str) -> bool:
        with self._lock:
            window = self._windows.get(session_id)
        if window is None:
            return False
        with window.lock:
            return window.has_pending_permission_prompt

    # --- Subscriptions ---

    def subscribe(self, session_id: str, listener: Listener) -> Unsubscribe:
        """Register ``listener`` for change notifications. No initial call is made."""
        with self._locked(session_id):
            return self._bus.subscribe(session_id, listener)

    def _changed(self, session_id: str, window: SessionWindow) -> None:
        window.version += 1
        self._bus.notify(session_id)

    # --- Ingestion ---

    def ingest(self, session_id: str, messages: Iterable[Message]) -> None:
        batch = list(messages)
        if not batch:
            return

        with self._locked(session_id) as window:
            added = 0
            skipped = 0
            grew_pending = False
            for msg in batch:
                if window.contains(msg.id):
                    skipped += 1
                    continue

                queue = window.take_local(msg.local_id) if msg.local_id else None
                if queue is None:
                    queue = window.visible if window.at_bottom else window.pending
                window.insert(queue, msg)
                added += 1
                if queue is window.pending:
                    grew_pending = True

            if grew_pending:
                evicted = evict_pending(
                    window.pending,
                    self.pending_window_size,
                    window.pending_permission_request_ids,
                )
                if evicted:
                    window.discard(evicted)
                    window.dropped_count += len(evicted)

            logger.debug(
                "Ingested %d message(s) for session %s (%d duplicate(s) skipped)",
                added,
                session_id,
                skipped,
            )
            self._changed(session_id, window)

    # --- Control signals ---

    def set_at_bottom(self, session_id: str, value: bool) -> None:
        """Update the routing flag. Existing pending messages stay put until ``flush``."""
        with self._locked(session_id) as window:
            window.at_bottom = bool(value)
            self._changed(session_id, window)

    def set_pending_permission_request_ids(
        self, session_id: str, ids: Iterable[str]
    ) -> None:
        with self._locked(session_id) as window:
            before = window.has_pending_permission_prompt
            window.pending_permission_request_ids = frozenset(ids)
            if window.has_pending_permission_prompt != before:
                self._changed(session_id, window)

    # --- Flush ---

    def flush(self, session_id: str) -> None:
        with self._locked(session_id) as window:
            moved = len(window.pending)
            if moved:
                window.visible = list(heapq.merge(window.visible, window.pending, key=_seq))
                window.pending = []
            window.dropped_count = 0
            logger.debug("Flushed %d pending message(s) for session %s", moved, session_id)
            self._changed(session_id, window)
