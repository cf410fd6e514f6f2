from __future__ import annotations

import pytest

from msgwindow.services.window_store import MessageWindowStore


@pytest.fixture()
def store() -> MessageWindowStore:
    return MessageWindowStore(pending_window_size=200)
