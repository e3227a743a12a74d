"""Exception hierarchy for the session tracker.

Per-line and per-session read problems never surface as exceptions; they
are logged and retried on the next tick. These exceptions cover the
caller-facing failure modes only.
"""
from __future__ import annotations

from pathlib import Path


class WatchError(Exception):
    """Base exception for all agentwatch errors."""


class ConfigError(WatchError):
    """A configuration file exists but cannot be used."""
    def __init__(self, path: str | Path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Invalid config {self.path}: {reason}")


class SessionNotTrackedError(WatchError):
    """Lookup of a transcript path the registry has never registered."""
    def __init__(self, path: str | Path):
        self.path = str(path)
        super().__init__(f"Session not tracked: {self.path}")
