"""agentwatch CLI — main application entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from agentwatch import __version__
from agentwatch.engine.config import WatchConfig
from agentwatch.engine.errors import ConfigError
from agentwatch.engine.tracker import SessionTracker
from agentwatch.engine.yaml_config import find_config_file, load_yaml_config

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [pid=%(process)d] %(message)s"


def default_log_file() -> Path:
    return Path.home() / ".agentwatch" / "logs" / "agentwatch.log"


def configure_logging(
    level: str,
    *,
    log_file: Path | None = None,
    to_stderr: bool = True,
) -> None:
    """Route root logging to a rotating file and, optionally, stderr."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    formatter = logging.Formatter(LOG_FORMAT)
    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file, maxBytes=2_000_000, backupCount=5, encoding="utf-8"
            )
        except OSError as exc:
            sys.stderr.write(f"agentwatch: cannot open log file {log_file}: {exc}\n")
        else:
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
    if to_stderr:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agentwatch",
        description="Live activity of the Codex agent sessions in this project",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--project-root", metavar="DIR",
        help="Project directory whose sessions are tracked (default: cwd)",
    )
    parser.add_argument(
        "--sessions-root", metavar="DIR",
        help="Codex sessions directory (default: ~/.codex/sessions)",
    )
    parser.add_argument(
        "--interval", type=float, metavar="SECONDS",
        help="Poll interval in seconds (default: 1.5)",
    )
    parser.add_argument(
        "--max-sessions", type=int, metavar="N",
        help="Track at most the N most recent sessions (default: 8)",
    )
    parser.add_argument(
        "--config", metavar="PATH",
        help="YAML config file (default: auto-discover agentwatch.yaml)",
    )
    parser.add_argument(
        "--list", action="store_true",
        help="Print the tracked sessions and their current state, then exit",
    )
    parser.add_argument(
        "--server", action="store_true",
        help="Start HTTP+SSE server mode instead of the TUI",
    )
    parser.add_argument(
        "--host", help="Server bind address (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port", type=int, help="Server port (0=random available port)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> WatchConfig:
    """Env vars, then YAML, then CLI flags (highest wins)."""
    config = WatchConfig.from_env()
    if args.project_root:
        config.project_root = Path(args.project_root).expanduser()

    config_path = Path(args.config) if args.config else find_config_file(config.project_root)
    if config_path is not None:
        config = load_yaml_config(config_path, base=config)

    if args.project_root:
        config.project_root = Path(args.project_root).expanduser()
    if args.sessions_root:
        config.sessions_root = Path(args.sessions_root).expanduser()
    if args.interval is not None:
        config.poll_interval_seconds = max(0.1, args.interval)
    if args.max_sessions is not None:
        config.max_sessions = args.max_sessions
    if args.host:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.verbose:
        config.log_level = "DEBUG"
    return config


def print_sessions(tracker: SessionTracker, console: Console | None = None) -> None:
    """Render the tracker's sessions as a rich table."""
    console = console or Console()
    sessions = tracker.sessions()
    if not sessions:
        console.print(
            f"No Codex sessions for [bold]{tracker.config.project_root}[/bold] "
            f"under {tracker.config.sessions_root}"
        )
        return
    table = Table(title=f"Codex sessions · {tracker.config.project_root}")
    table.add_column("Agent", justify="right", style="bold")
    table.add_column("Session")
    table.add_column("Status")
    table.add_column("Active tools")
    for session in sessions:
        status = session.status.value
        color = "green" if status == "active" else "yellow"
        tools = "\n".join(escape(t.status_text) for t in session.active_tools.values()) or "—"
        table.add_row(
            f"#{session.agent_id}", escape(session.path.name), f"[{color}]{status}[/{color}]", tools,
        )
    console.print(table)


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = resolve_config(args)
    except FileNotFoundError as exc:
        parser.error(f"config file not found: {exc.filename or args.config}")
    except ConfigError as exc:
        parser.error(str(exc))

    if args.list:
        configure_logging(config.log_level if args.verbose else "WARNING")
        tracker = SessionTracker(config)
        tracker.bootstrap()
        print_sessions(tracker)
        sys.exit(0)

    if args.server:
        from agentwatch.server.server import WatchServer

        log_file = default_log_file()
        configure_logging(config.log_level, log_file=log_file)
        logger.info(
            "Starting agentwatch server project=%s sessions=%s port=%s log=%s",
            config.project_root, config.sessions_root, config.port, log_file,
        )
        server = WatchServer(SessionTracker(config), host=config.host, port=config.port)
        try:
            asyncio.run(server.start())
        except KeyboardInterrupt:
            pass
        sys.exit(0)

    # TUI mode: stderr belongs to the terminal UI, log to file only
    from agentwatch.tui.app import WatchApp

    configure_logging(config.log_level, log_file=default_log_file(), to_stderr=False)
    app = WatchApp(SessionTracker(config))
    app.run()


if __name__ == "__main__":
    main()
