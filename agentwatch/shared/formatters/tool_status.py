"""Short status text for in-flight tool calls.

A registry of per-tool formatters turns a tool name plus its raw
arguments string into the one-line status shown next to an agent.
Adding a tool requires only a single decorated function:

    @tool_status("my_tool")
    def _status_my_tool(name, args):
        return "Doing my thing"

Exact names are checked first, then registered name prefixes, then the
``Using <name>`` fallback.
"""

from __future__ import annotations

import json
from typing import Any, Callable

STATUS_MAX_LENGTH = 56
ELLIPSIS = "…"
MCP_PREFIX = "mcp__"

StatusFormatter = Callable[[str, dict[str, Any]], str]


# ── Argument Parsing ──


def parse_args(arguments: Any) -> dict[str, Any]:
    """Parse a JSON-encoded arguments string, returning ``{}`` on failure.

    Codex writes ``arguments`` as a JSON string. Anything that is not a
    string or does not decode to an object yields an empty dict.
    """
    if not isinstance(arguments, str) or not arguments:
        return {}
    try:
        parsed = json.loads(arguments)
    except (json.JSONDecodeError, TypeError):
        return {}
    if isinstance(parsed, dict):
        return parsed
    return {}


def short_status(value: Any, max_length: int = STATUS_MAX_LENGTH) -> str:
    """Trim *value* and cut it to *max_length* characters plus an ellipsis."""
    if not isinstance(value, str):
        return ""
    trimmed = value.strip()
    if len(trimmed) > max_length:
        return trimmed[:max_length] + ELLIPSIS
    return trimmed


# ── Formatter Registry ──

_FORMATTERS: dict[str, StatusFormatter] = {}
_PREFIX_FORMATTERS: list[tuple[str, StatusFormatter]] = []


def tool_status(*names: str):
    """Decorator to register a status formatter for one or more tool names."""

    def decorator(fn: StatusFormatter):
        for name in names:
            _FORMATTERS[name] = fn
        return fn

    return decorator


def tool_status_prefix(prefix: str):
    """Decorator to register a status formatter for a tool name prefix."""

    def decorator(fn: StatusFormatter):
        _PREFIX_FORMATTERS.append((prefix, fn))
        return fn

    return decorator


def format_tool_status(name: str, arguments: Any = None) -> str:
    """Main entry point: dispatch to a registered formatter or the default."""
    args = parse_args(arguments)
    formatter = _FORMATTERS.get(name)
    if formatter is None:
        for prefix, candidate in _PREFIX_FORMATTERS:
            if name.startswith(prefix):
                formatter = candidate
                break
        else:
            formatter = _status_default
    return formatter(name, args)


# ── Formatters ──


@tool_status("exec_command")
def _status_exec_command(name: str, args: dict[str, Any]) -> str:
    cmd = short_status(args.get("cmd"))
    return f"Running: {cmd}" if cmd else "Running command"


@tool_status("write_stdin")
def _status_write_stdin(name: str, args: dict[str, Any]) -> str:
    return "Reading command output"


@tool_status("apply_patch")
def _status_apply_patch(name: str, args: dict[str, Any]) -> str:
    return "Editing files"


@tool_status("search_query", "image_query")
def _status_web_search(name: str, args: dict[str, Any]) -> str:
    return "Searching the web"


@tool_status("open", "click", "find")
def _status_web_read(name: str, args: dict[str, Any]) -> str:
    return "Reading web content"


@tool_status(
    "mcp__playwright__browser_navigate",
    "mcp__playwright__browser_run_code",
)
def _status_browser(name: str, args: dict[str, Any]) -> str:
    return "Working in browser"


@tool_status_prefix(MCP_PREFIX)
def _status_mcp(name: str, args: dict[str, Any]) -> str:
    return f"Using {name[len(MCP_PREFIX):]}"


def _status_default(name: str, args: dict[str, Any]) -> str:
    """Fallback for unrecognised tool names."""
    return f"Using {name}"
