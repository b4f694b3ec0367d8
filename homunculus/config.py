"""
Homunculus configuration -- all paths resolved here, zero hardcoding.
=====================================================================
Every module imports paths from here. No hardcoded home paths anywhere.

State directory priority:
  1. HOMUNCULUS_DIR env var
  2. ~/.claude/homunculus/

Config file priority:
  1. HOMUNCULUS_CONFIG env var
  2. <state dir>/config.json

Recognized config sections (everything else is kept but ignored):
  observer.min_observations_to_analyze   int, default 20
  observation.store_path                 path, default <state>/observations.jsonl
  observation.max_file_size_mb           number, default 10
  instincts.personal_path                path
  instincts.inherited_path               path
  evolution.evolved_path                 path
  learned_skills_path                    path
  min_session_length                     int, default 10
"""

from __future__ import annotations

import json
import math
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

DEFAULT_MIN_OBSERVATIONS = 20
DEFAULT_MAX_FILE_SIZE_MB = 10
DEFAULT_MIN_SESSION_LENGTH = 10

OBSERVATIONS_FILENAME = "observations.jsonl"
DISABLED_MARKER = "disabled"
PENDING_MARKER = ".pending-analysis"

_TILDE = re.compile(r"^~([/\\]|$)")

# (section, key) pairs holding paths; None section means top level
_PATH_FIELDS: tuple[tuple[Optional[str], str], ...] = (
    ("observation", "store_path"),
    ("instincts", "personal_path"),
    ("instincts", "inherited_path"),
    ("evolution", "evolved_path"),
    (None, "learned_skills_path"),
)


def get_state_dir(env: Optional[Mapping[str, str]] = None, home: Optional[Path] = None) -> Path:
    """Resolve the homunculus state directory."""
    env = os.environ if env is None else env
    override = env.get("HOMUNCULUS_DIR")
    if override:
        return Path(override)
    return (home or Path.home()) / ".claude" / "homunculus"


def get_config_path(state_dir: Path, env: Optional[Mapping[str, str]] = None) -> Path:
    """Resolve the config.json location."""
    env = os.environ if env is None else env
    override = env.get("HOMUNCULUS_CONFIG")
    if override:
        return Path(override)
    return state_dir / "config.json"


def resolve_tilde_path(value: Optional[str], home: Optional[str] = None) -> Optional[str]:
    """Expand a leading ``~`` to the home directory and normalize."""
    if not value:
        return value
    home = home if home is not None else str(Path.home())
    return os.path.normpath(_TILDE.sub(lambda _: home + os.sep, value, count=1))


def load_config(path: Path | str, home: Optional[str] = None) -> Optional[dict]:
    """
    Load config.json, resolving tilde paths in the known path fields.

    Returns None when the file is missing, unreadable, or not a JSON object.
    Callers apply defaults themselves.
    """
    try:
        config = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    if not isinstance(config, dict):
        return None

    for section, key in _PATH_FIELDS:
        holder = config if section is None else config.get(section)
        if isinstance(holder, dict) and isinstance(holder.get(key), str):
            holder[key] = resolve_tilde_path(holder[key], home=home)
    return config


def _section(config: Optional[dict], name: str) -> dict:
    if not config:
        return {}
    value = config.get(name)
    return value if isinstance(value, dict) else {}


def _number(value: Any, default: float) -> float:
    # bool is an int subclass; treat it as unset
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not value:
        return default
    if not math.isfinite(value):
        return default
    return value


def _path(value: Any) -> Optional[Path]:
    return Path(value) if isinstance(value, str) and value else None


@dataclass(frozen=True)
class ObserverSettings:
    """Typed view over the raw config mapping, with defaults applied."""

    min_observations: int
    max_file_size_mb: float
    store_path: Path
    personal_instincts_dir: Path
    inherited_instincts_dir: Path
    learned_skills_dir: Path
    min_session_length: int

    @classmethod
    def from_config(cls, config: Optional[dict], state_dir: Path, home: Path) -> "ObserverSettings":
        observer = _section(config, "observer")
        observation = _section(config, "observation")
        instincts = _section(config, "instincts")
        top = config or {}

        store_path = _path(observation.get("store_path"))
        personal = _path(instincts.get("personal_path"))
        inherited = _path(instincts.get("inherited_path"))
        learned = _path(top.get("learned_skills_path"))

        return cls(
            min_observations=int(_number(observer.get("min_observations_to_analyze"), DEFAULT_MIN_OBSERVATIONS)),
            max_file_size_mb=_number(observation.get("max_file_size_mb"), DEFAULT_MAX_FILE_SIZE_MB),
            store_path=store_path or state_dir / OBSERVATIONS_FILENAME,
            personal_instincts_dir=personal or state_dir / "instincts" / "personal",
            inherited_instincts_dir=inherited or state_dir / "instincts" / "inherited",
            learned_skills_dir=learned or home / ".claude" / "skills" / "learned",
            min_session_length=int(_number(top.get("min_session_length"), DEFAULT_MIN_SESSION_LENGTH)),
        )
