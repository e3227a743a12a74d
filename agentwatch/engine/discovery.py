"""Discovery of Codex session transcripts belonging to the current project.

Codex writes one JSONL file per run under ``<root>/YYYY/MM/DD/``. Only
today's and yesterday's directories are scanned. A file belongs to the
project when the ``cwd`` of its first ``turn_context`` record is the
project root, inside it, or one of its ancestors.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable
from datetime import date, timedelta
from pathlib import Path

from agentwatch.engine.records import TurnContext, parse_line

logger = logging.getLogger(__name__)

DEFAULT_SESSIONS_ROOT = Path.home() / ".codex" / "sessions"
DEFAULT_MAX_SESSIONS = 8
DEFAULT_DAYS_BACK = 1
TRANSCRIPT_SUFFIXES: tuple[str, ...] = (".jsonl",)


def normalize_path(path: str | os.PathLike[str]) -> str:
    """Absolute, normalised form of *path* without resolving symlinks."""
    return os.path.abspath(os.fspath(path))


def is_same_project_path(a: str | os.PathLike[str], b: str | os.PathLike[str]) -> bool:
    """True when *a* and *b* are equal or one contains the other."""
    left = normalize_path(a)
    right = normalize_path(b)
    if left == right:
        return True
    return (
        left.startswith(right.rstrip(os.sep) + os.sep)
        or right.startswith(left.rstrip(os.sep) + os.sep)
    )


class SessionDiscovery:
    """Find recent transcripts and decide which belong to the project.

    The path -> cwd table lives as long as this object. A session's
    working directory cannot change mid-file, so entries (including
    "no cwd found") are never invalidated; only unreadable files are
    retried on the next pass.
    """

    def __init__(
        self,
        sessions_root: Path = DEFAULT_SESSIONS_ROOT,
        project_root: Path | str | None = None,
        *,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        days_back: int = DEFAULT_DAYS_BACK,
        suffixes: Iterable[str] = TRANSCRIPT_SUFFIXES,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.sessions_root = Path(sessions_root)
        self.project_root = normalize_path(project_root or Path.cwd())
        self.max_sessions = max_sessions
        self.days_back = days_back
        self.suffixes = tuple(suffixes)
        self._today = today
        self._cwd_cache: dict[Path, str | None] = {}

    # ── Enumeration ──

    def date_dirs(self) -> list[Path]:
        """``root/YYYY/MM/DD`` for today back to ``days_back`` days ago."""
        today = self._today()
        dirs = []
        for days_ago in range(self.days_back + 1):
            day = today - timedelta(days=days_ago)
            dirs.append(
                self.sessions_root / f"{day.year:04d}" / f"{day.month:02d}" / f"{day.day:02d}"
            )
        return dirs

    def list_candidate_files(self) -> list[Path]:
        """Transcript files in the recent date dirs, oldest mtime first."""
        candidates: list[tuple[float, Path]] = []
        for directory in self.date_dirs():
            try:
                entries = list(os.scandir(directory))
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.debug("Cannot list %s: %s", directory, exc)
                continue
            for entry in entries:
                if not entry.name.endswith(self.suffixes):
                    continue
                try:
                    if not entry.is_file():
                        continue
                    mtime = entry.stat().st_mtime
                except OSError:
                    continue
                candidates.append((mtime, Path(entry.path)))
        candidates.sort(key=lambda item: item[0])
        return [path for _, path in candidates]

    # ── Project matching ──

    def session_cwd(self, path: Path) -> str | None:
        """Normalised cwd from the first usable ``turn_context`` record."""
        if path in self._cwd_cache:
            return self._cwd_cache[path]
        cwd: str | None = None
        try:
            with path.open("r", encoding="utf-8", errors="replace") as f:
                for line in f:
                    record = parse_line(line)
                    if isinstance(record, TurnContext):
                        cwd = normalize_path(record.cwd)
                        break
        except OSError as exc:
            logger.debug("Cannot inspect session cwd for %s: %s", path, exc)
            return None
        self._cwd_cache[path] = cwd
        return cwd

    def match_project(self, path: Path) -> bool:
        cwd = self.session_cwd(path)
        if not cwd:
            return False
        return is_same_project_path(cwd, self.project_root)

    def find_project_sessions(self) -> list[Path]:
        """Up to ``max_sessions`` most recently modified project transcripts."""
        matches = []
        for path in self.list_candidate_files():
            try:
                if self.match_project(path):
                    matches.append(path)
            except Exception:
                logger.exception("Skipping session %s: cwd lookup failed", path)
        if self.max_sessions > 0:
            matches = matches[-self.max_sessions:]
        return matches
