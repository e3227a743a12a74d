"""Configuration loaded from environment variables.

All settings have sensible defaults. Override via AGENTWATCH_* env vars,
an optional YAML file (see yaml_config.py), or CLI flags.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from agentwatch.engine.discovery import (
    DEFAULT_DAYS_BACK,
    DEFAULT_MAX_SESSIONS,
    DEFAULT_SESSIONS_ROOT,
    TRANSCRIPT_SUFFIXES,
)

logger = logging.getLogger(__name__)

ENV_PREFIX = "AGENTWATCH_"


def _env_number(name: str, default, cast):
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning(
            "Ignoring invalid %s%s=%r, using default %s",
            ENV_PREFIX, name, raw, default,
        )
        return default


@dataclass
class WatchConfig:
    """Session tracker configuration."""

    # Which sessions count as "ours": transcripts whose cwd is this
    # directory, inside it, or one of its ancestors.
    project_root: Path = field(default_factory=Path.cwd)
    # Codex writes transcripts under <sessions_root>/YYYY/MM/DD/.
    sessions_root: Path = DEFAULT_SESSIONS_ROOT

    # Polling
    poll_interval_seconds: float = 1.5
    max_sessions: int = DEFAULT_MAX_SESSIONS
    days_back: int = DEFAULT_DAYS_BACK
    transcript_suffixes: tuple[str, ...] = TRANSCRIPT_SUFFIXES

    # Per-observer queue bound before a subscriber is resynced
    subscriber_queue_size: int = 1000

    # Server mode (port 0 = pick a free port)
    host: str = "127.0.0.1"
    port: int = 0

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> WatchConfig:
        """Load configuration from AGENTWATCH_* environment variables."""
        watch_vars = {
            k: v for k, v in os.environ.items() if k.startswith(ENV_PREFIX)
        }
        if watch_vars:
            logger.info(
                "WatchConfig.from_env: env overrides: %s",
                ", ".join(f"{k}={v}" for k, v in sorted(watch_vars.items())),
            )
        else:
            logger.debug("WatchConfig.from_env: no AGENTWATCH_* env vars set, using defaults")

        project_root = os.getenv(ENV_PREFIX + "PROJECT_ROOT")
        sessions_root = os.getenv(ENV_PREFIX + "SESSIONS_ROOT")
        config = cls(
            project_root=Path(project_root).expanduser() if project_root else Path.cwd(),
            sessions_root=(
                Path(sessions_root).expanduser() if sessions_root else DEFAULT_SESSIONS_ROOT
            ),
            poll_interval_seconds=_env_number(
                "POLL_INTERVAL", cls.poll_interval_seconds, float,
            ),
            max_sessions=_env_number("MAX_SESSIONS", cls.max_sessions, int),
            days_back=_env_number("DAYS_BACK", cls.days_back, int),
            subscriber_queue_size=_env_number(
                "QUEUE_SIZE", cls.subscriber_queue_size, int,
            ),
            host=os.getenv(ENV_PREFIX + "HOST", cls.host),
            port=_env_number("PORT", cls.port, int),
            log_level=os.getenv(ENV_PREFIX + "LOG_LEVEL", cls.log_level).upper(),
        )
        logger.debug(
            "WatchConfig.from_env: project_root=%s sessions_root=%s interval=%.2fs",
            config.project_root, config.sessions_root, config.poll_interval_seconds,
        )
        return config
