from __future__ import annotations

import logging
from collections.abc import Collection

from ..models import Message
from .tool_calls import is_pinned

logger = logging.getLogger(__name__)


def evict_pending(
    pending: list[Message], capacity: int, pinned_ids: Collection[str]
) -> list[Message]:
    """Trim ``pending`` in place down to ``capacity``, oldest unpinned first.

    Messages tied to an outstanding permission request are never removed, so
    the bound is a soft cap: if only pinned messages are left over capacity,
    eviction stops. Returns the evicted messages in eviction order.
    """
    overflow = len(pending) - capacity
    if overflow <= 0:
        return []

    evicted: list[Message] = []
    kept: list[Message] = []
    # pending is ascending by seq, so a single forward scan drops the oldest.
    for msg in pending:
        if len(evicted) < overflow and not is_pinned(msg, pinned_ids):
            evicted.append(msg)
        else:
            kept.append(msg)
    pending[:] = kept

    if evicted:
        logger.debug("Evicted %d pending message(s)", len(evicted))
    if len(pending) > capacity:
        logger.warning(
            "Pending queue holds %d message(s) over capacity %d: remaining entries are pinned",
            len(pending) - capacity,
            capacity,
        )
    return evicted
