"""
Homunculus HookContext - Everything a Hook Process Needs From Its Host
======================================================================
One context per process. Holds the resolved directories, the environment,
and the seams to the outside world (PATH lookup, subprocess runner) so tests
can pin them without restarting the interpreter.

The discovered Python interpreter is cached on the context, never on the
module, so two contexts never share an answer.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping, Optional, Sequence

from homunculus.config import (
    DISABLED_MARKER,
    ObserverSettings,
    get_config_path,
    get_state_dir,
    load_config,
)

logger = logging.getLogger("homunculus.context")

Runner = Callable[..., "subprocess.CompletedProcess[str]"]
Which = Callable[[str], Optional[str]]

_UNSET = object()


@dataclass
class HookContext:
    home: Path
    state_dir: Path
    temp_dir: Path
    env: Mapping[str, str] = field(default_factory=dict)
    is_windows: bool = False
    which: Which = shutil.which
    run: Runner = subprocess.run
    _python_command: object = field(default=_UNSET, repr=False)

    @classmethod
    def from_environment(cls) -> "HookContext":
        env = dict(os.environ)
        home = Path.home()
        return cls(
            home=home,
            state_dir=get_state_dir(env, home),
            temp_dir=Path(tempfile.gettempdir()),
            env=env,
            is_windows=sys.platform == "win32",
        )

    # ------------------------------------------------------------------
    # Paths and flags
    # ------------------------------------------------------------------

    @property
    def config_path(self) -> Path:
        return get_config_path(self.state_dir, self.env)

    @property
    def disabled_marker(self) -> Path:
        return self.state_dir / DISABLED_MARKER

    def is_disabled(self) -> bool:
        return self.disabled_marker.exists()

    def ensure_state_dir(self) -> Path:
        self.state_dir.mkdir(parents=True, exist_ok=True)
        return self.state_dir

    def session_id(self, default: str = "default") -> str:
        return self.env.get("CLAUDE_SESSION_ID") or default

    def transcript_path(self) -> Optional[Path]:
        value = self.env.get("CLAUDE_TRANSCRIPT_PATH")
        return Path(value) if value else None

    def load_settings(self) -> ObserverSettings:
        """Load config.json (absent or invalid means all defaults)."""
        config = load_config(self.config_path, home=str(self.home))
        return ObserverSettings.from_config(config, self.state_dir, self.home)

    # ------------------------------------------------------------------
    # Interpreter discovery
    # ------------------------------------------------------------------

    def python_candidates(self) -> Sequence[str]:
        if self.is_windows:
            return ("python", "python3", "py")
        return ("python3", "python")

    def find_python_command(self) -> Optional[str]:
        """First interpreter answering ``--version``; cached for this context."""
        if self._python_command is not _UNSET:
            return self._python_command  # type: ignore[return-value]

        found: Optional[str] = None
        for cmd in self.python_candidates():
            try:
                result = self.run(
                    [cmd, "--version"],
                    capture_output=True,
                    text=True,
                    timeout=5,
                )
            except (subprocess.TimeoutExpired, FileNotFoundError, OSError):
                continue
            if result.returncode == 0:
                found = cmd
                break

        logger.debug("python command: %s", found)
        self._python_command = found
        return found

    def pin_python_command(self, command: Optional[str]) -> None:
        """Inject a known interpreter answer (or None for 'absent')."""
        self._python_command = command
