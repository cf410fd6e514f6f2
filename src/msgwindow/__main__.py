"""CLI entry point for the msgwindow command."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import AppConfig, _get_config_path, configure_logging, load_config


def _load_config_or_exit() -> AppConfig:
    try:
        return load_config()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)


def _serve(config: AppConfig) -> None:
    import uvicorn

    from .app import create_app

    app = create_app(config)
    url = f"http://{config.app.host}:{config.app.port}"
    print(f"Config loaded from {_get_config_path()}")
    print(f"  Pending window size: {config.window.pending_window_size}")
    print(f"\nStarting msgwindow API at {url}")
    if config.app.host in ("0.0.0.0", "::"):
        print("  WARNING: Binding to all interfaces. The API is accessible from the network.", file=sys.stderr)

    uvicorn.run(app, host=config.app.host, port=config.app.port, log_level=config.app.log_level.lower())


def _replay(config: AppConfig, path: Path, session_id: str, watch: bool) -> None:
    from .cli.renderer import WindowRenderer, render_snapshot
    from .cli.replay import ReplayError, replay_lines
    from .services.window_store import MessageWindowStore

    store = MessageWindowStore(pending_window_size=config.window.pending_window_size)
    renderer = WindowRenderer(store, session_id)
    if watch:
        renderer.attach()

    try:
        with open(path, encoding="utf-8") as f:
            applied = replay_lines(
                store,
                session_id,
                f,
                after_event=(lambda _event: renderer.attach()) if watch else None,
            )
    except OSError as e:
        print(f"Cannot read {path}: {e}", file=sys.stderr)
        sys.exit(1)
    except ReplayError as e:
        print(f"Replay failed at {path}:{e.line_no}: {e.reason}", file=sys.stderr)
        sys.exit(1)
    finally:
        renderer.detach()

    render_snapshot(renderer.console, session_id, store.snapshot(session_id))
    print(f"\nApplied {applied} event(s)", file=sys.stderr)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="msgwindow", description="Per-session message window engine")
    parser.add_argument("--pending-window-size", type=int, help="Override the pending queue capacity")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("serve", help="Run the HTTP API")

    replay = sub.add_parser("replay", help="Replay a JSON-lines event log and print the window")
    replay.add_argument("file", type=Path)
    replay.add_argument("--session", default="replay", help="Session id to replay into")
    replay.add_argument("--watch", action="store_true", help="Repaint after every change")

    args = parser.parse_args(argv)

    config = _load_config_or_exit()
    if args.pending_window_size is not None:
        if args.pending_window_size < 1:
            parser.error("--pending-window-size must be at least 1")
        config.window.pending_window_size = args.pending_window_size
    configure_logging(config.app.log_level)

    if args.command == "replay":
        _replay(config, args.file, args.session, args.watch)
    elif args.command == "serve":
        _serve(config)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
