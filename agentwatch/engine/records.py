"""Typed views of the Codex rollout records the tracker understands.

Each transcript line is a JSON envelope ``{"type": ..., "payload": {...}}``.
``parse_record`` turns the subset of envelopes the tracker cares about into
one dataclass per record kind and returns ``None`` for everything else.
Supporting a new record kind means adding a dataclass and a parser entry.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FunctionCall:
    call_id: str
    name: str
    arguments: Any = None


@dataclass(frozen=True)
class FunctionCallOutput:
    call_id: str


@dataclass(frozen=True)
class TaskStarted:
    pass


@dataclass(frozen=True)
class TaskComplete:
    pass


@dataclass(frozen=True)
class TurnContext:
    cwd: str


Record = FunctionCall | FunctionCallOutput | TaskStarted | TaskComplete | TurnContext


def _parse_function_call(payload: dict[str, Any]) -> Record | None:
    call_id = payload.get("call_id")
    if not isinstance(call_id, str):
        return None
    name = payload.get("name")
    return FunctionCall(
        call_id=call_id,
        name=name if isinstance(name, str) else "Tool",
        arguments=payload.get("arguments"),
    )


def _parse_function_call_output(payload: dict[str, Any]) -> Record | None:
    call_id = payload.get("call_id")
    if not isinstance(call_id, str):
        return None
    return FunctionCallOutput(call_id=call_id)


def _parse_turn_context(payload: dict[str, Any]) -> Record | None:
    cwd = payload.get("cwd")
    if isinstance(cwd, str) and cwd:
        return TurnContext(cwd=cwd)
    return None


# (envelope type, payload type) -> parser. turn_context carries no
# nested type tag, so its payload type key is None.
_PARSERS: dict[tuple[str, str | None], Callable[[dict[str, Any]], Record | None]] = {
    ("response_item", "function_call"): _parse_function_call,
    ("response_item", "function_call_output"): _parse_function_call_output,
    ("event_msg", "task_started"): lambda _payload: TaskStarted(),
    ("event_msg", "task_complete"): lambda _payload: TaskComplete(),
    ("turn_context", None): _parse_turn_context,
}


def parse_record(row: Any) -> Record | None:
    """Map a decoded JSON envelope to a typed record, or ``None``."""
    if not isinstance(row, dict):
        return None
    payload = row.get("payload")
    if not isinstance(payload, dict):
        return None
    row_type = row.get("type")
    if row_type == "turn_context":
        parser = _PARSERS.get((row_type, None))
    else:
        parser = _PARSERS.get((row_type, payload.get("type")))
    if parser is None:
        return None
    return parser(payload)


def parse_line(line: str) -> Record | None:
    """Decode one transcript line; malformed JSON yields ``None``."""
    if not line.strip():
        return None
    try:
        row = json.loads(line)
    except (ValueError, RecursionError):
        logger.debug("Skipping malformed transcript line: %.80s", line)
        return None
    return parse_record(row)
