"""Session tracking engine — discovery, tailing and state reconstruction."""
from .config import WatchConfig
from .errors import ConfigError, SessionNotTrackedError, WatchError
from .tracker import SessionTracker

__all__ = [
    "ConfigError",
    "SessionNotTrackedError",
    "SessionTracker",
    "WatchConfig",
    "WatchError",
]
