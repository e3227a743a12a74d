"""Observer-side view of agent activity, rebuilt purely from events.

Front ends keep one ``ObservedState`` and feed it every event from their
subscription. A ``ResyncSnapshot`` replaces the view wholesale; the other
events are applied idempotently, so re-announcements after a resync are
harmless.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from agentwatch.adapters.events import (
    ResyncSnapshot,
    SessionCreated,
    StatusChanged,
    ToolFinished,
    ToolsCleared,
    ToolStarted,
    TrackerEvent,
)
from agentwatch.shared.models.session import SessionStatus


@dataclass
class ObservedAgent:
    agent_id: int
    status: str = SessionStatus.WAITING.value
    # tool_id -> status text, in start order
    tools: dict[str, str] = field(default_factory=dict)


@dataclass
class ObservedState:
    agents: dict[int, ObservedAgent] = field(default_factory=dict)

    def _agent(self, agent_id: int) -> ObservedAgent:
        agent = self.agents.get(agent_id)
        if agent is None:
            agent = self.agents[agent_id] = ObservedAgent(agent_id=agent_id)
        return agent

    def apply(self, event: TrackerEvent) -> None:
        if isinstance(event, ResyncSnapshot):
            self.agents = {}
            for agent_id in event.agent_ids:
                detail = event.per_agent.get(agent_id, {})
                agent = self._agent(agent_id)
                agent.status = detail.get("status", SessionStatus.WAITING.value)
                agent.tools = {
                    tool["tool_id"]: tool.get("status_text", "")
                    for tool in detail.get("active_tools", [])
                }
        elif isinstance(event, SessionCreated):
            self._agent(event.agent_id)
        elif isinstance(event, StatusChanged):
            self._agent(event.agent_id).status = event.status
        elif isinstance(event, ToolStarted):
            self._agent(event.agent_id).tools[event.tool_id] = event.status_text
        elif isinstance(event, ToolFinished):
            self._agent(event.agent_id).tools.pop(event.tool_id, None)
        elif isinstance(event, ToolsCleared):
            self._agent(event.agent_id).tools.clear()

    def summary(self) -> dict[int, tuple[str, list[tuple[str, str]]]]:
        """Comparable form: agent id -> (status, [(tool_id, status_text)])."""
        return {
            agent_id: (agent.status, list(agent.tools.items()))
            for agent_id, agent in sorted(self.agents.items())
        }

    @property
    def active_count(self) -> int:
        return sum(1 for a in self.agents.values() if a.status == SessionStatus.ACTIVE.value)
