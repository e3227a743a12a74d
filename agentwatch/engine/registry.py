"""Registry of tracked transcript sessions.

Maps each transcript path to its ``SessionState`` and hands out agent ids
from a counter that starts at 1. Ids are never reused and entries are
never evicted while the process runs.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from agentwatch.adapters.events import SessionCreated, StatusChanged, ToolStarted
from agentwatch.engine.errors import SessionNotTrackedError
from agentwatch.engine.processor import EventSink
from agentwatch.engine.tailer import SessionTailer
from agentwatch.shared.models.session import SessionState, SessionStatus

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Owns every ``SessionState`` and the agent id counter."""

    def __init__(self, tailer: SessionTailer, sink: EventSink | None = None) -> None:
        self._tailer = tailer
        self._sink = sink
        self._sessions: dict[Path, SessionState] = {}
        self._next_agent_id = 1

    def register(self, path: Path, live: bool) -> SessionState:
        """Track *path*, hydrating it from its current content.

        Registering an already-tracked path returns the existing state.
        With *live* set, observers are told about the new session and
        whatever state hydration reconstructed for it.
        """
        existing = self._sessions.get(path)
        if existing is not None:
            return existing

        session = SessionState(path=path, agent_id=self._next_agent_id)
        self._next_agent_id += 1
        lines = self._tailer.hydrate(session)
        self._sessions[path] = session
        logger.info(
            "Registered agent %d for %s (lines=%d status=%s tools=%d live=%s)",
            session.agent_id, path, lines, session.status.value,
            len(session.active_tools), live,
        )

        if live and self._sink is not None:
            self._sink(SessionCreated(agent_id=session.agent_id))
            if session.status == SessionStatus.ACTIVE:
                self._sink(StatusChanged(
                    agent_id=session.agent_id, status=session.status.value,
                ))
            for tool_id, tool in session.active_tools.items():
                self._sink(ToolStarted(
                    agent_id=session.agent_id,
                    tool_id=tool_id,
                    status_text=tool.status_text,
                ))
        return session

    def get(self, path: Path) -> SessionState | None:
        return self._sessions.get(path)

    def get_required(self, path: Path) -> SessionState:
        session = self._sessions.get(path)
        if session is None:
            raise SessionNotTrackedError(path)
        return session

    def sessions(self) -> list[SessionState]:
        """All tracked sessions, in agent id order."""
        return list(self._sessions.values())

    def __contains__(self, path: object) -> bool:
        return path in self._sessions

    def __iter__(self) -> Iterator[SessionState]:
        return iter(self.sessions())

    def __len__(self) -> int:
        return len(self._sessions)
