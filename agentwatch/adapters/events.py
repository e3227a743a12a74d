"""Event types emitted by the session tracker.

Each event is a typed dataclass. ``event_to_dict`` gives the plain-dict
wire form used by the SSE server; ``dict_to_event`` parses it back.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class TrackerEvent:
    """Base event from the session tracker."""
    event_type: str = ""


@dataclass
class SessionCreated(TrackerEvent):
    event_type: str = "session_created"
    agent_id: int = 0


@dataclass
class StatusChanged(TrackerEvent):
    event_type: str = "status_changed"
    agent_id: int = 0
    status: str = ""


@dataclass
class ToolStarted(TrackerEvent):
    event_type: str = "tool_started"
    agent_id: int = 0
    tool_id: str = ""
    status_text: str = ""


@dataclass
class ToolFinished(TrackerEvent):
    event_type: str = "tool_finished"
    agent_id: int = 0
    tool_id: str = ""


@dataclass
class ToolsCleared(TrackerEvent):
    event_type: str = "tools_cleared"
    agent_id: int = 0


@dataclass
class ResyncSnapshot(TrackerEvent):
    """Current truth for every tracked agent, sent to attaching observers.

    ``per_agent`` maps agent id to ``{"status": str, "active_tools": [...]}``
    where each tool is ``{"tool_id", "name", "status_text"}``.
    """
    event_type: str = "resync_snapshot"
    agent_ids: list[int] = field(default_factory=list)
    per_agent: dict[int, dict[str, Any]] = field(default_factory=dict)


# Map of event type strings to dataclass constructors
_EVENT_MAP: dict[str, type[TrackerEvent]] = {
    "session_created": SessionCreated,
    "status_changed": StatusChanged,
    "tool_started": ToolStarted,
    "tool_finished": ToolFinished,
    "tools_cleared": ToolsCleared,
    "resync_snapshot": ResyncSnapshot,
}


def event_to_dict(event: TrackerEvent) -> dict[str, Any]:
    """Convert a typed event dataclass to a plain dict for JSON serialization."""
    d: dict[str, Any] = {}
    for f in event.__dataclass_fields__:
        val = getattr(event, f)
        if val is not None:
            d[f] = val
    # JSON object keys are strings; keep them that way on the wire
    if "per_agent" in d:
        d["per_agent"] = {str(k): v for k, v in d["per_agent"].items()}
    if "event_type" in d:
        d["event"] = d.pop("event_type")
    return d


def dict_to_event(data: dict[str, Any]) -> TrackerEvent:
    """Convert a wire dict back to a typed event dataclass."""
    event_type = data.get("event", "")
    cls = _EVENT_MAP.get(event_type, TrackerEvent)
    valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
    filtered = {k: v for k, v in data.items() if k in valid_fields}
    if "per_agent" in filtered:
        filtered["per_agent"] = {int(k): v for k, v in filtered["per_agent"].items()}
    if "event" in data and "event_type" not in filtered:
        filtered["event_type"] = data["event"]
    return cls(**filtered)
