"""Session data models for tracked transcript files.

One ``SessionState`` exists per discovered transcript path. It is owned by
the registry and only mutated from the poller's tick.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class SessionStatus(str, Enum):
    """Activity status reconstructed for an agent session."""
    WAITING = "waiting"
    ACTIVE = "active"


@dataclass
class ToolInfo:
    """A tool call that has started but whose output has not arrived."""

    name: str
    status_text: str


@dataclass
class SessionState:
    """Tail position and reconstructed activity for one transcript file.

    ``partial`` holds the raw bytes of an unterminated trailing line so
    that a multi-byte character split across two reads decodes intact.
    ``active_tools`` keeps insertion order, which is the order tools are
    announced to observers.
    """

    path: Path
    agent_id: int
    offset: int = 0
    partial: bytes = b""
    active_tools: dict[str, ToolInfo] = field(default_factory=dict)
    status: SessionStatus = SessionStatus.WAITING

    def reset(self) -> None:
        """Forget everything read so far (used after truncation)."""
        self.offset = 0
        self.partial = b""
        self.active_tools.clear()
        self.status = SessionStatus.WAITING

    def to_dict(self) -> dict:
        return {
            "agent_id": self.agent_id,
            "path": str(self.path),
            "status": self.status.value,
            "active_tools": [
                {"tool_id": tool_id, "name": tool.name, "status_text": tool.status_text}
                for tool_id, tool in self.active_tools.items()
            ],
        }
