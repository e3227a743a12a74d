from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from types import SimpleNamespace

import pytest

from agentwatch.adapters.events import TrackerEvent
from agentwatch.engine.config import WatchConfig

TODAY = date(2026, 3, 14)


def _row(row_type: str, payload: dict) -> str:
    return json.dumps(
        {"timestamp": "2026-03-14T10:00:00Z", "type": row_type, "payload": payload},
        ensure_ascii=False,
    )


def turn_context(cwd: str) -> str:
    return _row("turn_context", {"cwd": cwd, "model": "gpt-5-codex"})


def function_call(call_id: str, name: str = "exec_command", arguments: str | None = None) -> str:
    payload = {"type": "function_call", "call_id": call_id, "name": name}
    if arguments is not None:
        payload["arguments"] = arguments
    return _row("response_item", payload)


def function_call_output(call_id: str) -> str:
    return _row("response_item", {"type": "function_call_output", "call_id": call_id, "output": "ok"})


def task_started() -> str:
    return _row("event_msg", {"type": "task_started"})


def task_complete() -> str:
    return _row("event_msg", {"type": "task_complete"})


def exec_args(cmd: str) -> str:
    return json.dumps({"cmd": cmd}, ensure_ascii=False)


def join_lines(*lines: str) -> bytes:
    return "".join(line + "\n" for line in lines).encode("utf-8")


@pytest.fixture
def rollout() -> SimpleNamespace:
    """Builders for Codex rollout transcript lines."""
    return SimpleNamespace(
        turn_context=turn_context,
        function_call=function_call,
        function_call_output=function_call_output,
        task_started=task_started,
        task_complete=task_complete,
        exec_args=exec_args,
        join=join_lines,
    )


@pytest.fixture
def events() -> list[TrackerEvent]:
    return []


@pytest.fixture
def sessions_root(tmp_path: Path) -> Path:
    root = tmp_path / "sessions"
    root.mkdir()
    return root


@pytest.fixture
def day_dir(sessions_root: Path):
    """Return the date directory for *day* (default TODAY), creating it."""

    def _day_dir(day: date = TODAY) -> Path:
        path = sessions_root / f"{day.year:04d}" / f"{day.month:02d}" / f"{day.day:02d}"
        path.mkdir(parents=True, exist_ok=True)
        return path

    return _day_dir


@pytest.fixture
def watch_config(tmp_path: Path, sessions_root: Path) -> WatchConfig:
    project = tmp_path / "proj"
    project.mkdir()
    return WatchConfig(
        project_root=project,
        sessions_root=sessions_root,
        poll_interval_seconds=0.01,
        subscriber_queue_size=50,
    )
