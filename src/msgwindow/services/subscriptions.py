"""In-process subscription bus for window change notifications.

Listeners are plain callables keyed by session id. They are invoked with no
arguments; a listener reads the current state through ``snapshot``.
Unsubscribing is explicit: the handle returned by ``subscribe`` must be called
(or used as a context manager) to detach a listener.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class Unsubscribe:
    """Disposable handle returned by ``SubscriptionBus.subscribe``.

    The handle is the subscription's identity in the bus: calling it removes
    exactly this subscription, never another one sharing the same callable.
    """

    def __init__(self, bus: SubscriptionBus, session_id: str, listener: Listener) -> None:
        self._bus = bus
        self._session_id = session_id
        self._listener: Listener | None = listener

    @property
    def active(self) -> bool:
        return self._listener is not None

    @property
    def listener(self) -> Listener | None:
        return self._listener

    def _deactivate(self) -> None:
        self._listener = None

    def __call__(self) -> None:
        if self._listener is not None:
            self._listener = None
            self._bus.unsubscribe(self._session_id, self)

    def __enter__(self) -> Unsubscribe:
        return self

    def __exit__(self, *exc: object) -> None:
        self()


class SubscriptionBus:
    """Per-session listener registry.

    Each subscription is tracked separately, so the same callable subscribed
    twice is called twice and needs two unsubscribes.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: dict[str, list[Unsubscribe]] = {}

    def subscribe(self, session_id: str, listener: Listener) -> Unsubscribe:
        handle = Unsubscribe(self, session_id, listener)
        with self._lock:
            self._subscriptions.setdefault(session_id, []).append(handle)
        return handle

    def unsubscribe(self, session_id: str, handle: Unsubscribe) -> None:
        handle._deactivate()
        with self._lock:
            handles = self._subscriptions.get(session_id)
            if not handles:
                return
            for i, existing in enumerate(handles):
                if existing is handle:
                    del handles[i]
                    break
            if not handles:
                del self._subscriptions[session_id]

    def detach(self, session_id: str) -> int:
        """Drop every listener of a session and invalidate their handles.

        Returns how many were removed.
        """
        with self._lock:
            handles = self._subscriptions.pop(session_id, [])
        for handle in handles:
            handle._deactivate()
        return len(handles)

    def notify(self, session_id: str) -> None:
        with self._lock:
            handles = list(self._subscriptions.get(session_id, ()))
        for handle in handles:
            listener = handle.listener
            if listener is None:
                continue
            try:
                listener()
            except Exception:
                logger.exception("Window listener failed for session %s", session_id)

    def subscriber_count(self, session_id: str) -> int:
        with self._lock:
            return len(self._subscriptions.get(session_id, ()))
