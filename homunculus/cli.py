"""
Homunculus command line.

Usage:
  python -m homunculus status                    # Observation log + counter summary
  python -m homunculus observe                   # Run the observe hook (stdin JSON)
  python -m homunculus analyze                   # Run the session-end analysis
  python -m homunculus evaluate                  # Run the session evaluator
  python -m homunculus resolve <package> [bin]   # Find or install a tool binary
  python -m homunculus install-hooks [--check|--remove]
  python -m homunculus disable | enable          # Toggle the disabled marker
"""

from __future__ import annotations

import sys
from typing import Optional

from homunculus import counter, store
from homunculus.config import PENDING_MARKER
from homunculus.context import HookContext


def show_status(ctx: HookContext) -> None:
    settings = ctx.load_settings()
    log_path = settings.store_path
    session = ctx.session_id()
    pending = ctx.state_dir / PENDING_MARKER

    print("Homunculus")
    print(f"  State dir:      {ctx.state_dir}")
    print(f"  Observations:   {store.count_observations(log_path)} in {log_path}")
    print(f"  Size:           {store.file_size_bytes(log_path) / (1024 * 1024):.2f} MB "
          f"(rotates at {settings.max_file_size_mb} MB)")
    print(f"  Archives:       {len(store.list_archives(log_path))}")
    print(f"  Session {session}: {counter.get(ctx, session)} since last analysis")
    print(f"  Threshold:      {settings.min_observations}")
    print(f"  Disabled:       {'yes' if ctx.is_disabled() else 'no'}")
    if pending.exists():
        lines = pending.read_text(encoding="utf-8").strip().splitlines()
        print(f"  Pending:        {lines[-1] if lines else ''}")


def set_disabled(ctx: HookContext, disabled: bool) -> None:
    marker = ctx.disabled_marker
    if disabled:
        ctx.ensure_state_dir()
        marker.touch()
        print(f"Observation disabled ({marker})")
    else:
        marker.unlink(missing_ok=True)
        print("Observation enabled")


def resolve(ctx: HookContext, args: list[str]) -> int:
    from homunculus.resolver import BinaryResolver

    if not args:
        print("Usage: python -m homunculus resolve <package> [binary]")
        return 1
    binary = args[1] if len(args) > 1 else None
    found = BinaryResolver(ctx).resolve_or_install(args[0], binary)
    if not found:
        return 1
    print(found)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] in ("-h", "--help", "help"):
        print(__doc__)
        return 0

    cmd, rest = argv[0].lower(), argv[1:]

    # Hook commands own their exit (always 0)
    if cmd == "observe":
        from homunculus.hooks.observe import main as observe_main
        observe_main()
    elif cmd == "analyze":
        from homunculus.hooks.session_end import main as session_end_main
        session_end_main()
    elif cmd == "evaluate":
        from homunculus.hooks.evaluate_session import main as evaluate_main
        evaluate_main()

    ctx = HookContext.from_environment()

    if cmd == "status":
        show_status(ctx)
        return 0
    if cmd == "resolve":
        return resolve(ctx, rest)
    if cmd == "install-hooks":
        from homunculus.install_hooks import main as install_main
        return install_main(rest)
    if cmd in ("disable", "enable"):
        set_disabled(ctx, cmd == "disable")
        return 0

    print(f"Unknown command: {cmd}")
    print(__doc__)
    return 1
