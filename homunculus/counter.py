"""
Homunculus Session Counter
==========================
A cheap per-session tally of observations since the last analysis, kept in a
temp-dir file named after the sanitized session id.

The read-increment-write below is not atomic across processes. Two hooks
firing for the same session at once can under-count. That is acceptable:
the analysis trigger counts log lines, which is the authoritative number.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from homunculus.context import HookContext

logger = logging.getLogger("homunculus.counter")

_UNSAFE = re.compile(r"[^a-zA-Z0-9_-]")
_MAX_ID_LEN = 64
_PREFIX = "claude-obs-count-"


def sanitize_session_id(session_id: object) -> str:
    """Make a session id safe to use as a file name component."""
    return _UNSAFE.sub("_", str(session_id))[:_MAX_ID_LEN]


def counter_path(ctx: HookContext, session_id: object) -> Path:
    return ctx.temp_dir / f"{_PREFIX}{sanitize_session_id(session_id)}"


def _read(path: Path) -> int:
    try:
        return int(path.read_text(encoding="utf-8").strip())
    except (OSError, ValueError):
        return 0


def get(ctx: HookContext, session_id: object) -> int:
    """Current count, 0 when the counter file is missing or garbled."""
    return _read(counter_path(ctx, session_id))


def increment(ctx: HookContext, session_id: object) -> int:
    """Bump the counter and return the new value."""
    path = counter_path(ctx, session_id)
    count = _read(path) + 1
    path.write_text(str(count), encoding="utf-8")
    return count


def reset(ctx: HookContext, session_id: object) -> None:
    """Delete the counter file. Missing is fine."""
    path = counter_path(ctx, session_id)
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.debug("could not reset counter %s: %s", path, exc)
