"""
Homunculus Observation Store - JSONL Log, Rotation, Archival
============================================================
The active log is append-only and shared by every hook process on the
machine. It is never truncated in place: it is renamed into a sibling
``<stem>.archive/`` directory and the next append starts a fresh file.

Archive names:
  observations-<ts>.jsonl   size-triggered rotation
  processed-<ts>.jsonl      consumed by an analysis pass

<ts> is the UTC ISO-8601 time with ':' and '.' replaced by '-', cut to
second resolution (2026-10-19T06-09-00).
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from homunculus.results import Result

logger = logging.getLogger("homunculus.store")

ROTATED_PREFIX = "observations"
PROCESSED_PREFIX = "processed"

_BYTES_PER_MB = 1024 * 1024

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def archive_timestamp(now: Optional[datetime] = None) -> str:
    now = now or _utc_now()
    iso = now.astimezone(timezone.utc).isoformat()
    return iso.replace(":", "-").replace(".", "-")[:19]


def archive_dir_for(path: Path) -> Path:
    return path.parent / f"{path.stem}.archive"


def file_size_bytes(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return 0


def _archive_target(archive_dir: Path, prefix: str, ts: str) -> Path:
    target = archive_dir / f"{prefix}-{ts}.jsonl"
    n = 0
    # Second resolution can collide; never overwrite an existing archive.
    while target.exists():
        n += 1
        target = archive_dir / f"{prefix}-{ts}-{n}.jsonl"
    return target


def _move_to_archive(path: Path, prefix: str, clock: Clock) -> Path:
    archive_dir = archive_dir_for(path)
    archive_dir.mkdir(parents=True, exist_ok=True)
    target = _archive_target(archive_dir, prefix, archive_timestamp(clock()))
    path.rename(target)
    logger.debug("archived %s -> %s", path, target)
    return target


def rotate_if_needed(path: Path, max_mb: float, clock: Clock = _utc_now) -> Result:
    """
    Move the log into the archive if it has reached ``max_mb``.

    Returns Result(ok, value=True) when a rotation happened, value=False
    when the file was under the limit, and a failure when the rename failed.
    """
    size_mb = file_size_bytes(path) / _BYTES_PER_MB
    if size_mb < max_mb:
        return Result.success(False)
    try:
        _move_to_archive(path, ROTATED_PREFIX, clock)
    except OSError as exc:
        return Result.failure(exc)
    return Result.success(True)


def archive(path: Path, clock: Clock = _utc_now) -> Result:
    """Archive a log consumed by analysis. No-op when the file is absent."""
    if not path.exists():
        return Result.success(None)
    try:
        return Result.success(_move_to_archive(path, PROCESSED_PREFIX, clock))
    except OSError as exc:
        return Result.failure(exc)


def append_observation(path: Path, record: dict) -> Result:
    """Append one record as a single JSON line."""
    try:
        line = json.dumps(record) + "\n"
        path.parent.mkdir(parents=True, exist_ok=True)
        # One write per record; O_APPEND keeps concurrent lines whole.
        with path.open("a", encoding="utf-8") as f:
            f.write(line)
    except (OSError, ValueError) as exc:
        return Result.failure(exc)
    return Result.success()


def count_observations(path: Path) -> int:
    """Number of non-blank lines in the log."""
    try:
        with path.open(encoding="utf-8", errors="replace") as f:
            return sum(1 for line in f if line.strip())
    except OSError:
        return 0


def list_archives(path: Path) -> list[Path]:
    archive_dir = archive_dir_for(path)
    if not archive_dir.is_dir():
        return []
    return sorted(archive_dir.glob("*.jsonl"))
