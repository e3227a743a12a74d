"""YAML configuration loader.

Overlays a single optional YAML file on top of the env-derived
``WatchConfig``. When no file is given or discovered, env vars and
defaults apply unchanged.

Example YAML:
    watch:
      sessions_root: ~/.codex/sessions
      poll_interval_seconds: 1.0
      max_sessions: 8
      days_back: 1
      transcript_suffixes: [.jsonl]
      subscriber_queue_size: 1000
      host: 127.0.0.1
      port: 8765
      log_level: DEBUG

Relative paths are resolved against the project root.
"""
from __future__ import annotations

import logging
from dataclasses import fields, replace
from pathlib import Path
from typing import Any

import yaml

from agentwatch.engine.config import WatchConfig
from agentwatch.engine.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_CANDIDATES: tuple[str, ...] = (
    ".agentwatch/agentwatch.yaml",
    "agentwatch.yaml",
)

_PATH_KEYS = {"project_root", "sessions_root"}
_FLOAT_KEYS = {"poll_interval_seconds"}
_INT_KEYS = {"max_sessions", "days_back", "subscriber_queue_size", "port"}
_STR_KEYS = {"host", "log_level"}


def find_config_file(project_root: str | Path) -> Path | None:
    """Return the first existing config candidate under *project_root*."""
    root = Path(project_root)
    for candidate in CONFIG_CANDIDATES:
        path = root / candidate
        if path.is_file():
            logger.info("Auto-discovered config: %s", path)
            return path
    logger.debug(
        "No config file found under %s (tried %s)",
        root, ", ".join(CONFIG_CANDIDATES),
    )
    return None


def _coerce(path: Path, key: str, value: Any, base: WatchConfig) -> Any:
    try:
        if key in _PATH_KEYS:
            resolved = Path(str(value)).expanduser()
            if not resolved.is_absolute():
                resolved = Path(base.project_root) / resolved
            return resolved
        if key in _FLOAT_KEYS:
            return float(value)
        if key in _INT_KEYS:
            return int(value)
        if key in _STR_KEYS:
            text = str(value)
            return text.upper() if key == "log_level" else text
        if key == "transcript_suffixes":
            if isinstance(value, str):
                value = [value]
            return tuple(str(s) if str(s).startswith(".") else f".{s}" for s in value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(path, f"bad value for {key!r}: {value!r} ({exc})") from exc
    return value


def load_yaml_config(path: str | Path, base: WatchConfig | None = None) -> WatchConfig:
    """Load *path* and overlay its ``watch:`` section on *base*.

    Raises FileNotFoundError when *path* does not exist and ConfigError
    when it cannot be parsed or holds values of the wrong type.
    """
    path = Path(path)
    base = base or WatchConfig.from_env()
    logger.info("load_yaml_config: loading %s (exists=%s)", path, path.exists())
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.error("load_yaml_config: config file not found at %s", path.absolute())
        raise
    except yaml.YAMLError as exc:
        raise ConfigError(path, f"YAML parse error: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(path, "top level must be a mapping")
    section = raw.get("watch") or {}
    if not isinstance(section, dict):
        raise ConfigError(path, "'watch' must be a mapping")

    known = {f.name for f in fields(WatchConfig)}
    overrides: dict[str, Any] = {}
    for key, value in section.items():
        if key not in known:
            logger.warning("load_yaml_config: ignoring unknown key watch.%s in %s", key, path)
            continue
        overrides[key] = _coerce(path, key, value, base)

    config = replace(base, **overrides)
    logger.info(
        "load_yaml_config: applied %d override(s) from %s: %s",
        len(overrides), path.name, ", ".join(sorted(overrides)) or "(none)",
    )
    return config
