#!/usr/bin/env python3
"""
Homunculus Observe Hook - Runs Before AND After Every Tool Invocation
=====================================================================
External process. One per event. Zero API calls. Never blocks the host.

What it does:
  1. Bails out if ~/.claude/homunculus/disabled exists
  2. Reads the tool event from stdin (JSON from Claude Code)
  3. Loads config.json (absent/invalid -> defaults)
  4. Rotates observations.jsonl into observations.archive/ if over size
  5. Appends one observation line (input for tool_start, output for tool_complete)
  6. Bumps the per-session counter

Claude Code hook protocol:
  - stdin: JSON with hook_type/hook_event_name, tool_name, tool_input,
           tool_output/tool_response, session_id
  - exit 0: always
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Optional

from homunculus import counter, store
from homunculus.context import HookContext
from homunculus.hooks.events import UnrecognizedEvent, build_observation, parse_event
from homunculus.logging_setup import configure_logging
from homunculus.results import Result

logger = logging.getLogger("homunculus.observe")


def read_payload(raw: str) -> Optional[Any]:
    """Decode stdin. Blank or invalid JSON means nothing to record."""
    if not raw or not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


def record(ctx: HookContext, payload: Any) -> Result:
    """
    Record one tool-use event.

    Returns Result(ok, value=<record dict>) on append, Result(ok, value=None)
    when there was nothing to do, or a failure describing the first step
    that broke. Never raises for I/O or payload problems.
    """
    if ctx.is_disabled():
        return Result.success(None)

    event = parse_event(payload, ctx.env)
    if isinstance(event, UnrecognizedEvent):
        logger.debug("skipping event: %s", event.reason)
        return Result.success(None)

    settings = ctx.load_settings()
    log_path = settings.store_path
    observation = build_observation(event)

    rotated = store.rotate_if_needed(log_path, settings.max_file_size_mb)
    if not rotated:
        # A failed rotation still lets the append go through
        logger.debug("rotation failed: %s", rotated.error)

    appended = store.append_observation(log_path, observation)
    if not appended:
        return appended

    try:
        counter.increment(ctx, event.session)
    except OSError as exc:
        return Result.failure(exc)

    return Result.success(observation)


def main() -> None:
    """PreToolUse / PostToolUse hook entry point."""
    configure_logging("Observer")
    try:
        ctx = HookContext.from_environment()
        if ctx.is_disabled():
            sys.exit(0)
        result = record(ctx, read_payload(sys.stdin.read()))
        if not result:
            logger.debug("observation not recorded: %s", result.error)
    except Exception as exc:  # hooks must never fail the host
        logger.debug("observe hook error: %s", exc)
    sys.exit(0)


if __name__ == "__main__":
    main()
