from __future__ import annotations

import json
import random
from pathlib import Path

from agentwatch.adapters.events import (
    StatusChanged,
    ToolFinished,
    ToolsCleared,
    ToolStarted,
)
from agentwatch.engine.processor import RecordProcessor
from agentwatch.engine.records import (
    FunctionCall,
    FunctionCallOutput,
    TaskComplete,
    TaskStarted,
    TurnContext,
    parse_line,
    parse_record,
)
from agentwatch.shared.models.session import SessionState, SessionStatus


def _session(agent_id: int = 1) -> SessionState:
    return SessionState(path=Path(f"/tmp/rollout-{agent_id}.jsonl"), agent_id=agent_id)


def _feed(processor: RecordProcessor, session: SessionState, *lines: str, emit: bool = True) -> None:
    for line in lines:
        processor.process_line(session, line, emit)


# ── Record parsing ──


def test_parse_record_variants(rollout) -> None:
    assert parse_line(rollout.task_started()) == TaskStarted()
    assert parse_line(rollout.task_complete()) == TaskComplete()
    assert parse_line(rollout.turn_context("/proj")) == TurnContext(cwd="/proj")
    assert parse_line(rollout.function_call("a", "apply_patch", "{}")) == FunctionCall(
        call_id="a", name="apply_patch", arguments="{}",
    )
    assert parse_line(rollout.function_call_output("a")) == FunctionCallOutput(call_id="a")


def test_parse_record_ignores_unknown_and_malformed() -> None:
    assert parse_line("") is None
    assert parse_line("{not json") is None
    assert parse_line("[1, 2, 3]") is None
    assert parse_record({"type": "response_item", "payload": {"type": "message"}}) is None
    assert parse_record({"type": "event_msg", "payload": {"type": "agent_message"}}) is None
    assert parse_record({"type": "response_item", "payload": "nope"}) is None
    assert parse_record({"type": "turn_context", "payload": {"cwd": ""}}) is None


def test_function_call_requires_string_call_id() -> None:
    row = {"type": "response_item", "payload": {"type": "function_call", "call_id": 7, "name": "x"}}
    assert parse_record(row) is None


def test_function_call_without_name_uses_placeholder() -> None:
    row = {"type": "response_item", "payload": {"type": "function_call", "call_id": "a"}}
    assert parse_record(row) == FunctionCall(call_id="a", name="Tool", arguments=None)


# ── State machine ──


def test_exec_command_lifecycle_events(rollout, events) -> None:
    processor = RecordProcessor(events.append)
    session = _session()
    cmd = "ls -la /very/long/path/that/exceeds/the/limit/of/the/status/line/by/a/lot"

    _feed(
        processor, session,
        rollout.task_started(),
        rollout.function_call("a", "exec_command", rollout.exec_args(cmd)),
    )
    assert events == [
        StatusChanged(agent_id=1, status="active"),
        ToolStarted(agent_id=1, tool_id="a", status_text=f"Running: {cmd[:56]}…"),
    ]
    assert session.status is SessionStatus.ACTIVE

    events.clear()
    _feed(processor, session, rollout.function_call_output("a"))
    assert events == [
        ToolFinished(agent_id=1, tool_id="a"),
        StatusChanged(agent_id=1, status="waiting"),
    ]
    assert session.active_tools == {}
    assert session.status is SessionStatus.WAITING


def test_function_call_activates_without_task_started(rollout, events) -> None:
    processor = RecordProcessor(events.append)
    session = _session()
    _feed(processor, session, rollout.function_call("a", "apply_patch"))
    assert events == [
        ToolStarted(agent_id=1, tool_id="a", status_text="Editing files"),
        StatusChanged(agent_id=1, status="active"),
    ]


def test_duplicate_call_id_is_not_restarted(rollout, events) -> None:
    processor = RecordProcessor(events.append)
    session = _session()
    _feed(
        processor, session,
        rollout.function_call("a", "write_stdin"),
        rollout.function_call("a", "write_stdin"),
    )
    assert [e for e in events if isinstance(e, ToolStarted)] == [
        ToolStarted(agent_id=1, tool_id="a", status_text="Reading command output"),
    ]
    assert list(session.active_tools) == ["a"]


def test_output_for_unknown_call_does_not_emit_finish(rollout, events) -> None:
    processor = RecordProcessor(events.append)
    session = _session()
    _feed(processor, session, rollout.function_call_output("ghost"))
    assert events == []
    assert session.status is SessionStatus.WAITING


def test_status_stays_active_while_tools_remain(rollout, events) -> None:
    processor = RecordProcessor(events.append)
    session = _session()
    _feed(
        processor, session,
        rollout.function_call("a", "exec_command"),
        rollout.function_call("b", "apply_patch"),
        rollout.function_call_output("a"),
    )
    assert session.status is SessionStatus.ACTIVE
    assert list(session.active_tools) == ["b"]
    assert StatusChanged(agent_id=1, status="waiting") not in events


def test_task_complete_clears_tools_and_waits(rollout, events) -> None:
    processor = RecordProcessor(events.append)
    session = _session()
    _feed(
        processor, session,
        rollout.function_call("a", "exec_command"),
        rollout.function_call("b", "search_query"),
    )
    events.clear()
    _feed(processor, session, rollout.task_complete())
    assert events == [
        ToolsCleared(agent_id=1),
        StatusChanged(agent_id=1, status="waiting"),
    ]
    assert session.active_tools == {}


def test_task_complete_is_idempotent(rollout, events) -> None:
    processor = RecordProcessor(events.append)
    session = _session()
    _feed(processor, session, rollout.task_complete(), rollout.task_complete())
    assert events == []
    assert session.status is SessionStatus.WAITING
    assert session.active_tools == {}


def test_repeated_task_started_emits_once(rollout, events) -> None:
    processor = RecordProcessor(events.append)
    session = _session()
    _feed(processor, session, rollout.task_started(), rollout.task_started())
    assert events == [StatusChanged(agent_id=1, status="active")]


def test_silent_processing_updates_state_only(rollout, events) -> None:
    processor = RecordProcessor(events.append)
    session = _session()
    _feed(
        processor, session,
        rollout.task_started(),
        rollout.function_call("a", "exec_command", rollout.exec_args("make")),
        emit=False,
    )
    assert events == []
    assert session.status is SessionStatus.ACTIVE
    assert session.active_tools["a"].status_text == "Running: make"


def test_interleaved_calls_leave_exactly_unfinished_tools(rollout) -> None:
    rng = random.Random(1234)
    processor = RecordProcessor()
    sessions = {agent_id: _session(agent_id) for agent_id in (1, 2, 3)}
    pending: dict[int, set[str]] = {agent_id: set() for agent_id in sessions}
    started: list[tuple[int, str]] = []

    for n in range(300):
        agent_id = rng.choice(list(sessions))
        if started and rng.random() < 0.45:
            owner, call_id = started.pop(rng.randrange(len(started)))
            processor.process_line(sessions[owner], rollout.function_call_output(call_id), True)
            pending[owner].discard(call_id)
        else:
            call_id = f"call-{n}"
            processor.process_line(sessions[agent_id], rollout.function_call(call_id), True)
            pending[agent_id].add(call_id)
            started.append((agent_id, call_id))

    for agent_id, session in sessions.items():
        assert set(session.active_tools) == pending[agent_id]
        expected = SessionStatus.ACTIVE if pending[agent_id] else SessionStatus.WAITING
        assert session.status is expected


def test_malformed_lines_are_skipped(rollout, events) -> None:
    processor = RecordProcessor(events.append)
    session = _session()
    _feed(
        processor, session,
        "{garbage",
        json.dumps({"type": "response_item"}),
        rollout.function_call("a", "apply_patch"),
    )
    assert list(session.active_tools) == ["a"]


def test_parse_line_drops_lines_json_cannot_decode() -> None:
    assert parse_line("9" * 5000) is None
    assert parse_line("[" * 100_000) is None
