"""Per-session state machine driven by transcript records.

``waiting`` is the initial status. A tool call starting or ``task_started``
moves a session to ``active``; it returns to ``waiting`` only when every
active tool has produced output or ``task_complete`` force-clears them.
Status events are transition-gated, and nothing is emitted while a
session is being hydrated.
"""
from __future__ import annotations

import logging
from collections.abc import Callable

from agentwatch.adapters.events import (
    StatusChanged,
    ToolFinished,
    ToolsCleared,
    ToolStarted,
    TrackerEvent,
)
from agentwatch.engine.records import (
    FunctionCall,
    FunctionCallOutput,
    Record,
    TaskComplete,
    TaskStarted,
    parse_line,
)
from agentwatch.shared.formatters.tool_status import format_tool_status
from agentwatch.shared.models.session import SessionState, SessionStatus, ToolInfo

logger = logging.getLogger(__name__)

EventSink = Callable[[TrackerEvent], None]


class RecordProcessor:
    """Apply transcript records to a ``SessionState`` and emit events."""

    def __init__(self, sink: EventSink | None = None) -> None:
        self._sink = sink
        self._handlers: dict[type, Callable[[SessionState, Record, bool], None]] = {
            FunctionCall: self._on_function_call,
            FunctionCallOutput: self._on_function_call_output,
            TaskStarted: self._on_task_started,
            TaskComplete: self._on_task_complete,
        }

    def process_line(self, session: SessionState, line: str, emit: bool) -> None:
        record = parse_line(line)
        if record is not None:
            self.process(session, record, emit)

    def process(self, session: SessionState, record: Record, emit: bool) -> None:
        handler = self._handlers.get(type(record))
        if handler is not None:
            handler(session, record, emit)

    # ── Handlers ──

    def _on_function_call(self, session: SessionState, record: FunctionCall, emit: bool) -> None:
        if record.call_id not in session.active_tools:
            status_text = format_tool_status(record.name, record.arguments)
            session.active_tools[record.call_id] = ToolInfo(
                name=record.name, status_text=status_text,
            )
            if emit:
                self._emit(ToolStarted(
                    agent_id=session.agent_id,
                    tool_id=record.call_id,
                    status_text=status_text,
                ))
        self.set_status(session, SessionStatus.ACTIVE, emit)

    def _on_function_call_output(
        self, session: SessionState, record: FunctionCallOutput, emit: bool,
    ) -> None:
        if session.active_tools.pop(record.call_id, None) is not None and emit:
            self._emit(ToolFinished(agent_id=session.agent_id, tool_id=record.call_id))
        if not session.active_tools:
            self.set_status(session, SessionStatus.WAITING, emit)

    def _on_task_started(self, session: SessionState, record: TaskStarted, emit: bool) -> None:
        self.set_status(session, SessionStatus.ACTIVE, emit)

    def _on_task_complete(self, session: SessionState, record: TaskComplete, emit: bool) -> None:
        self.clear_tools(session, emit)
        self.set_status(session, SessionStatus.WAITING, emit)

    # ── Mutations shared with the tailer ──

    def set_status(self, session: SessionState, status: SessionStatus, emit: bool) -> None:
        if session.status == status:
            return
        session.status = status
        if emit:
            self._emit(StatusChanged(agent_id=session.agent_id, status=status.value))

    def clear_tools(self, session: SessionState, emit: bool) -> None:
        if not session.active_tools:
            return
        session.active_tools.clear()
        if emit:
            self._emit(ToolsCleared(agent_id=session.agent_id))

    def _emit(self, event: TrackerEvent) -> None:
        if self._sink is not None:
            self._sink(event)
