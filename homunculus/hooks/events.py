#!/usr/bin/env python3
"""
Homunculus Event Shapes - What a Tool-Use Hook Payload Can Be
=============================================================
Pure functions. No I/O.

The host sends arbitrary JSON. We recognize two shapes and say so explicitly:
  PreToolEvent    - before the tool runs (hook_type contains "Pre", or untagged)
  PostToolEvent   - after the tool runs (hook_type contains "Post")
  UnrecognizedEvent - not a JSON object, or an empty one: nothing to record
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

MAX_PAYLOAD_CHARS = 5000

TOOL_START = "tool_start"
TOOL_COMPLETE = "tool_complete"


@dataclass(frozen=True)
class PreToolEvent:
    tool: str
    session: str
    tool_input: Any

    event = TOOL_START


@dataclass(frozen=True)
class PostToolEvent:
    tool: str
    session: str
    tool_output: Any

    event = TOOL_COMPLETE


@dataclass(frozen=True)
class UnrecognizedEvent:
    reason: str


ToolEvent = Union[PreToolEvent, PostToolEvent]
ParsedEvent = Union[PreToolEvent, PostToolEvent, UnrecognizedEvent]


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value:
            return value
    return None


def truncate_payload(value: Any, limit: int = MAX_PAYLOAD_CHARS) -> str:
    """Serialize a tool input/output and cut it to ``limit`` characters."""
    if isinstance(value, str):
        text = value
    else:
        text = json.dumps(value, ensure_ascii=False, default=str)
    return text[:limit]


def parse_event(payload: Any, env: Optional[Mapping[str, str]] = None) -> ParsedEvent:
    """Classify a decoded hook payload."""
    if not isinstance(payload, dict):
        return UnrecognizedEvent("payload is not an object")
    if not payload:
        return UnrecognizedEvent("payload is empty")

    env = env or {}
    hook_type = str(_first(payload, "hook_type", "hook_event_name") or "unknown")
    tool = str(_first(payload, "tool_name", "tool") or "unknown")
    session = str(payload.get("session_id") or env.get("CLAUDE_SESSION_ID") or "unknown")

    if "Post" in hook_type and "Pre" not in hook_type:
        output = _first(payload, "tool_output", "tool_response", "output")
        return PostToolEvent(tool=tool, session=session, tool_output=output if output is not None else "")

    tool_input = _first(payload, "tool_input", "input")
    return PreToolEvent(tool=tool, session=session, tool_input=tool_input if tool_input is not None else {})


def build_observation(event: ToolEvent, now: Optional[datetime] = None) -> dict:
    """One Observation record. Carries input or output, never both."""
    now = now or datetime.now(timezone.utc)
    record = {
        "timestamp": now.isoformat().replace("+00:00", "Z"),
        "event": event.event,
        "tool": event.tool,
        "session": event.session,
    }
    if isinstance(event, PreToolEvent):
        text = truncate_payload(event.tool_input)
        if text:
            record["input"] = text
    else:
        text = truncate_payload(event.tool_output)
        if text:
            record["output"] = text
    return record
