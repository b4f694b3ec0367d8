"""
Homunculus - Continuous-Learning Observer for Claude Code
=========================================================
Records every tool call into a rotating JSONL log, hands the log to an
external analyzer at session end, and resolves helper tool binaries into an
isolated per-user directory.

Usage:
    from homunculus.context import HookContext
    from homunculus.hooks.observe import record
    from homunculus.hooks.session_end import maybe_analyze

    ctx = HookContext.from_environment()
    record(ctx, {"hook_type": "PreToolUse", "tool_name": "Edit", ...})
    maybe_analyze(ctx)
"""

__version__ = "0.3.0"
