"""FastAPI application factory."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from .config import AppConfig, load_config
from .routers import windows
from .services.window_store import MessageWindowStore

logger = logging.getLogger(__name__)


def create_app(config: AppConfig | None = None) -> FastAPI:
    config = config or load_config()

    app = FastAPI(title="msgwindow")
    app.state.config = config
    app.state.window_store = MessageWindowStore(
        pending_window_size=config.window.pending_window_size
    )
    app.include_router(windows.router, prefix="/api")

    logger.info(
        "Message window API ready (pending_window_size=%d)",
        config.window.pending_window_size,
    )
    return app
