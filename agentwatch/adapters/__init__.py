"""Adapters package - typed events and observer fan-out.

Connects the tracking engine to its front ends (SSE server, TUI).
"""
from __future__ import annotations

__all__ = [
    "Broadcaster",
    "Subscription",
    "event_to_dict",
    "dict_to_event",
]

from agentwatch.adapters.broadcaster import Broadcaster, Subscription
from agentwatch.adapters.events import dict_to_event, event_to_dict
