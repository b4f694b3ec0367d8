"""
Homunculus Binary Resolver
==========================
Finds tool binaries (ruff, black, mypy, ...) without touching the project's
virtualenv or manifest.

Priority (first hit wins):
  1. System PATH
  2. ~/.claude/hooks-packages/bin/
  3. pip install --target ~/.claude/hooks-packages/ (first use only), then 2.

Installed tools import from the hooks-packages directory, so run them with
``resolver.run_env()`` (it puts that directory on PYTHONPATH).
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Optional

from homunculus.context import HookContext
from homunculus.results import Result

logger = logging.getLogger("homunculus.resolver")

INSTALL_TIMEOUT_SECS = 120
_ERROR_SNIPPET = 200


class BinaryResolver:
    """Locate or install command-line tools into an isolated user directory."""

    def __init__(self, ctx: HookContext) -> None:
        self.ctx = ctx
        self._found: dict[str, str] = {}

    @property
    def packages_dir(self) -> Path:
        return self.ctx.home / ".claude" / "hooks-packages"

    @property
    def bin_dirs(self) -> list[Path]:
        if self.ctx.is_windows:
            return [self.packages_dir / "Scripts", self.packages_dir / "bin"]
        return [self.packages_dir / "bin"]

    def _names(self, name: str) -> list[str]:
        if self.ctx.is_windows:
            return [f"{name}.exe", f"{name}.cmd", f"{name}.ps1", name]
        return [name]

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find_in_path(self, name: str) -> Optional[str]:
        candidates = [f"{name}.cmd", name] if self.ctx.is_windows else [name]
        for candidate in candidates:
            found = self.ctx.which(candidate)
            if found:
                return found
        return None

    def find_in_packages(self, name: str) -> Optional[str]:
        for bin_dir in self.bin_dirs:
            for candidate in self._names(name):
                full = bin_dir / candidate
                if full.exists():
                    return str(full)
        return None

    # ------------------------------------------------------------------
    # Install
    # ------------------------------------------------------------------

    def install_command(self, package: str, python: str) -> list[str]:
        return [
            python, "-m", "pip", "install",
            "--target", str(self.packages_dir),
            "--upgrade",
            "--disable-pip-version-check",
            package,
        ]

    def install(self, package: str) -> Result:
        """Install ``package`` into the hooks-packages directory."""
        try:
            self.packages_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            return Result.failure(exc)

        python = self.ctx.find_python_command() or sys.executable
        print(
            f"[Hook] Installing {package} to user scope (~/.claude/hooks-packages/)...",
            file=sys.stderr,
        )
        try:
            result = self.ctx.run(
                self.install_command(package, python),
                capture_output=True,
                text=True,
                timeout=INSTALL_TIMEOUT_SECS,
            )
        except subprocess.TimeoutExpired:
            error = f"timed out after {INSTALL_TIMEOUT_SECS}s"
        except (FileNotFoundError, OSError) as exc:
            error = str(exc)
        else:
            if result.returncode == 0:
                print(f"[Hook] {package} installed successfully.", file=sys.stderr)
                return Result.success(str(self.packages_dir))
            error = (result.stderr or result.stdout or f"exit {result.returncode}").strip()

        print(f"[Hook] Failed to install {package}: {error[:_ERROR_SNIPPET]}", file=sys.stderr)
        print(f"[Hook] To enable this hook manually: pip install --user {package}", file=sys.stderr)
        return Result.failure(error)

    # ------------------------------------------------------------------
    # Resolve
    # ------------------------------------------------------------------

    def resolve_or_install(self, package: str, binary: Optional[str] = None) -> Optional[str]:
        """
        Full path to ``binary`` (defaults to the package name), or None if
        it is nowhere to be found and could not be installed.
        """
        binary = binary or package
        if binary in self._found:
            return self._found[binary]

        found = self.find_in_path(binary) or self.find_in_packages(binary)
        if not found and self.install(package):
            found = self.find_in_packages(binary)

        if found:
            logger.debug("resolved %s -> %s", binary, found)
            self._found[binary] = found
        return found

    def run_env(self) -> dict[str, str]:
        """Environment for running a tool installed into hooks-packages."""
        env = dict(self.ctx.env)
        existing = env.get("PYTHONPATH")
        parts = [str(self.packages_dir)] + ([existing] if existing else [])
        env["PYTHONPATH"] = os.pathsep.join(parts)
        return env
