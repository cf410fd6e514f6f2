"""Configuration loader: YAML file with environment variable fallbacks."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .services.window_store import PENDING_WINDOW_SIZE

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class WindowConfig:
    pending_window_size: int = PENDING_WINDOW_SIZE


@dataclass
class AppSettings:
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "INFO"


@dataclass
class AppConfig:
    window: WindowConfig = field(default_factory=WindowConfig)
    app: AppSettings = field(default_factory=AppSettings)


def _resolve_data_dir() -> Path:
    env_dir = os.environ.get("MSGWINDOW_DATA_DIR")
    if env_dir:
        return Path(os.path.expanduser(env_dir))
    return Path.home() / ".msgwindow"


def _get_config_path(data_dir: Path | None = None) -> Path:
    return (data_dir or _resolve_data_dir()) / "config.yaml"


def _section(raw: dict[str, Any], name: str, path: Path) -> dict[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' in config.yaml ({path}) must be a mapping")
    return section


def load_config(config_path: Path | None = None) -> AppConfig:
    raw: dict[str, Any] = {}
    path = config_path or _get_config_path()

    if path.exists():
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"config.yaml ({path}) must contain a mapping at the top level")

    window_raw = _section(raw, "window", path)
    size_raw = window_raw.get("pending_window_size")
    if size_raw is None:
        size_raw = os.environ.get("MSGWINDOW_PENDING_WINDOW_SIZE", PENDING_WINDOW_SIZE)
    try:
        pending_window_size = int(size_raw)
    except (TypeError, ValueError):
        raise ValueError(
            f"window.pending_window_size must be an integer, got {size_raw!r}. "
            f"Fix config.yaml ({path}) or MSGWINDOW_PENDING_WINDOW_SIZE."
        ) from None
    if pending_window_size < 1:
        raise ValueError(
            f"window.pending_window_size must be at least 1, got {pending_window_size}. "
            f"Fix config.yaml ({path}) or MSGWINDOW_PENDING_WINDOW_SIZE."
        )

    app_raw = _section(raw, "app", path)
    host = app_raw.get("host") or os.environ.get("MSGWINDOW_HOST", "127.0.0.1")
    port_raw = app_raw.get("port") or os.environ.get("MSGWINDOW_PORT", 8080)
    try:
        port = int(port_raw)
    except (TypeError, ValueError):
        raise ValueError(
            f"app.port must be an integer, got {port_raw!r}. "
            f"Fix config.yaml ({path}) or MSGWINDOW_PORT."
        ) from None
    log_level = str(app_raw.get("log_level") or os.environ.get("MSGWINDOW_LOG_LEVEL", "INFO")).upper()
    if log_level not in _LOG_LEVELS:
        raise ValueError(
            f"app.log_level must be one of {', '.join(_LOG_LEVELS)}, got {log_level!r} ({path})"
        )

    return AppConfig(
        window=WindowConfig(pending_window_size=pending_window_size),
        app=AppSettings(host=host, port=port, log_level=log_level),
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
