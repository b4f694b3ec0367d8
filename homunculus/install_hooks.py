#!/usr/bin/env python3
"""
Homunculus Hooks Installer - Wire Hooks into Claude Code Settings
=================================================================
Reads ~/.claude/settings.json, adds Homunculus hooks, preserves existing hooks.

Usage:
  python -m homunculus install-hooks           # Install hooks
  python -m homunculus install-hooks --check   # Check if hooks are installed
  python -m homunculus install-hooks --remove  # Remove Homunculus hooks (keep others)

Creates the state directory structure:
  ~/.claude/homunculus/
    observations.jsonl      - Tool use observations
    observations.archive/   - Rotated and processed observation logs
    instincts/personal/     - Instincts written by the analyzer
    instincts/inherited/    - Instincts imported from elsewhere
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Optional

from homunculus.context import HookContext

# Marker to identify Homunculus hooks in the settings
_MARKER = "homunculus.hooks"


def _command(python: str, module: str) -> dict[str, str]:
    return {"type": "command", "command": f"{python} -m homunculus.hooks.{module}"}


def hook_definitions(python: str = "python3") -> dict[str, dict[str, Any]]:
    """The hook entries Claude Code will execute, keyed by hook type."""
    return {
        "PreToolUse": {"matcher": "*", "hooks": [_command(python, "observe")]},
        "PostToolUse": {"matcher": "*", "hooks": [_command(python, "observe")]},
        "Stop": {
            "matcher": "*",
            "hooks": [
                _command(python, "session_end"),
                _command(python, "evaluate_session"),
            ],
        },
    }


def settings_path(ctx: HookContext) -> Path:
    return ctx.home / ".claude" / "settings.json"


# ============================================================================
# DIRECTORY SETUP
# ============================================================================


def setup_directories(ctx: HookContext) -> list[str]:
    """Create the state directory structure. Returns created dirs."""
    state = ctx.state_dir
    created: list[str] = []
    for d in (
        state,
        state / "instincts" / "personal",
        state / "instincts" / "inherited",
        state / "observations.archive",
    ):
        if not d.exists():
            d.mkdir(parents=True, exist_ok=True)
            created.append(str(d))
    return created


# ============================================================================
# SETTINGS I/O
# ============================================================================


def _load_settings(path: Path) -> dict:
    """Load settings.json or return an empty dict."""
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (ValueError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def _save_settings(path: Path, settings: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(settings, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


# ============================================================================
# HOOK DETECTION
# ============================================================================


def _is_homunculus_hook(hook_entry: Any) -> bool:
    if not isinstance(hook_entry, dict):
        return False
    return any(_MARKER in str(h.get("command", "")) for h in hook_entry.get("hooks", []) if isinstance(h, dict))


def _installed_types(settings: dict) -> list[str]:
    hooks_section = settings.get("hooks", {})
    if not isinstance(hooks_section, dict):
        return []
    return [
        hook_type
        for hook_type, entries in hooks_section.items()
        if isinstance(entries, list) and any(_is_homunculus_hook(e) for e in entries)
    ]


# ============================================================================
# INSTALL / REMOVE / CHECK
# ============================================================================


def install(ctx: HookContext, python: Optional[str] = None) -> dict[str, Any]:
    """
    Install Homunculus hooks into Claude Code settings.
    Preserves all existing hooks. Idempotent per hook type.
    """
    created_dirs = setup_directories(ctx)
    path = settings_path(ctx)
    settings = _load_settings(path)
    already = set(_installed_types(settings))

    hooks_section = settings.get("hooks")
    if not isinstance(hooks_section, dict):
        hooks_section = {}

    python = python or ctx.find_python_command() or "python3"
    installed: list[str] = []
    for hook_type, hook_config in hook_definitions(python).items():
        if hook_type in already:
            continue
        existing = hooks_section.get(hook_type, [])
        if not isinstance(existing, list):
            existing = []
        existing.append(hook_config)
        hooks_section[hook_type] = existing
        installed.append(hook_type)

    if not installed:
        return {
            "status": "already_installed",
            "message": "Homunculus hooks are already installed.",
            "dirs_created": created_dirs,
        }

    settings["hooks"] = hooks_section
    _save_settings(path, settings)
    return {
        "status": "installed",
        "message": f"Homunculus hooks installed for: {', '.join(installed)}",
        "hook_types": installed,
        "dirs_created": created_dirs,
        "settings_path": str(path),
    }


def remove(ctx: HookContext) -> dict[str, Any]:
    """Remove Homunculus hooks from Claude Code settings. Keeps all others."""
    path = settings_path(ctx)
    settings = _load_settings(path)
    present = _installed_types(settings)
    if not present:
        return {"status": "not_installed", "message": "Homunculus hooks are not installed."}

    hooks_section = settings["hooks"]
    for hook_type in present:
        filtered = [e for e in hooks_section[hook_type] if not _is_homunculus_hook(e)]
        if filtered:
            hooks_section[hook_type] = filtered
        else:
            hooks_section.pop(hook_type, None)

    _save_settings(path, settings)
    return {
        "status": "removed",
        "message": f"Homunculus hooks removed from: {', '.join(present)}",
        "removed_types": present,
    }


def check(ctx: HookContext) -> dict[str, Any]:
    """Check installation status."""
    path = settings_path(ctx)
    present = _installed_types(_load_settings(path))
    return {
        "hooks_installed": set(present) >= set(hook_definitions()),
        "hook_types": present,
        "directories": {
            "state_dir": ctx.state_dir.exists(),
            "personal_instincts": (ctx.state_dir / "instincts" / "personal").exists(),
            "archive": (ctx.state_dir / "observations.archive").exists(),
        },
        "settings_path": str(path),
    }


# ============================================================================
# CLI
# ============================================================================


def main(args: Optional[list[str]] = None) -> int:
    args = sys.argv[1:] if args is None else args
    ctx = HookContext.from_environment()

    if "--check" in args:
        result = check(ctx)
        print("Homunculus hooks: " + ("INSTALLED" if result["hooks_installed"] else "NOT INSTALLED"))
        print(f"  Settings: {result['settings_path']}")
        for name, exists in result["directories"].items():
            print(f"  {name}: {'OK' if exists else 'MISSING'}")
        return 0 if result["hooks_installed"] else 1

    if "--remove" in args:
        print(remove(ctx)["message"])
        return 0

    result = install(ctx)
    print(result["message"])
    for d in result.get("dirs_created", []):
        print(f"  Created: {d}")
    for ht in result.get("hook_types", []):
        print(f"  Installed: {ht}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
