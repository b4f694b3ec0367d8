#!/usr/bin/env python3
"""
Homunculus Session End Hook - Runs When a Claude Code Session Stops
===================================================================
External process. No daemon, no signals, no PID files.

What it does:
  1. Bails out if ~/.claude/homunculus/disabled exists
  2. Counts non-blank lines in observations.jsonl
  3. Below observer.min_observations_to_analyze (default 20): skip
  4. `claude` on PATH: ask it (haiku, 3 turns, 2 min) to turn patterns seen
     3+ times into instinct files, then archive the log as processed-<ts>
     and reset the session counter -- whatever the analyzer's exit status
  5. No `claude`: write .pending-analysis and keep the log for next time

Claude Code hook protocol:
  - exit 0: always
"""

from __future__ import annotations

import enum
import logging
import subprocess
import sys
from datetime import datetime, timezone
from pathlib import Path

from homunculus import counter, store
from homunculus.config import PENDING_MARKER
from homunculus.context import HookContext
from homunculus.logging_setup import configure_logging

logger = logging.getLogger("homunculus.session_end")

ANALYZER_COMMAND = "claude"
ANALYZER_MODEL = "haiku"
ANALYZER_MAX_TURNS = 3
ANALYZER_TIMEOUT_SECS = 120
MIN_PATTERN_OCCURRENCES = 3


class AnalysisOutcome(enum.Enum):
    DISABLED = "disabled"
    SKIPPED = "skipped"
    ANALYZED = "analyzed"
    ANALYZER_FAILED = "analyzer_failed"
    DEFERRED = "deferred"


def build_prompt(observations_file: Path, instincts_dir: Path) -> str:
    return " ".join([
        f"Read {observations_file} and identify patterns.",
        f"If you find {MIN_PATTERN_OCCURRENCES}+ occurrences of the same pattern, create an instinct file",
        f"in {instincts_dir}/ following the instinct format",
        "(YAML frontmatter with id, trigger, confidence, domain, source fields).",
        "Be conservative - only create instincts for clear patterns.",
    ])


def run_analyzer(ctx: HookContext, analyzer: str, prompt: str) -> bool:
    """Invoke the external analyzer once. True on exit status 0."""
    try:
        result = ctx.run(
            [
                analyzer,
                "--model", ANALYZER_MODEL,
                "--max-turns", str(ANALYZER_MAX_TURNS),
                "--print",
                prompt,
            ],
            capture_output=True,
            text=True,
            timeout=ANALYZER_TIMEOUT_SECS,
        )
    except subprocess.TimeoutExpired:
        logger.warning("Analysis timed out after %ds", ANALYZER_TIMEOUT_SECS)
        return False
    except (FileNotFoundError, OSError) as exc:
        logger.warning("Analysis could not start: %s", exc)
        return False

    if result.returncode == 0:
        logger.info("Analysis complete")
        return True
    logger.warning("Analysis returned non-zero: %s", (result.stderr or "")[:200])
    return False


def write_pending_marker(ctx: HookContext, obs_count: int) -> Path:
    marker = ctx.ensure_state_dir() / PENDING_MARKER
    now = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    marker.write_text(f"{now}\n{obs_count} observations pending analysis\n", encoding="utf-8")
    return marker


def maybe_analyze(ctx: HookContext) -> AnalysisOutcome:
    """One analysis pass over the shared observation log."""
    if ctx.is_disabled():
        return AnalysisOutcome.DISABLED

    settings = ctx.load_settings()
    log_path = settings.store_path
    obs_count = store.count_observations(log_path)

    if obs_count < settings.min_observations:
        logger.info(
            "%d observations (need %d) - skipping analysis",
            obs_count, settings.min_observations,
        )
        return AnalysisOutcome.SKIPPED

    logger.info("Analyzing %d observations...", obs_count)

    analyzer = ctx.which(ANALYZER_COMMAND)
    if not analyzer:
        try:
            write_pending_marker(ctx, obs_count)
        except OSError as exc:
            logger.debug("could not write pending marker: %s", exc)
        logger.info("Claude CLI not in PATH - marked for pending analysis")
        return AnalysisOutcome.DEFERRED

    prompt = build_prompt(log_path, settings.personal_instincts_dir)
    succeeded = run_analyzer(ctx, analyzer, prompt)

    archived = store.archive(log_path)
    if not archived:
        logger.debug("archive failed: %s", archived.error)
    counter.reset(ctx, ctx.session_id())

    return AnalysisOutcome.ANALYZED if succeeded else AnalysisOutcome.ANALYZER_FAILED


def main() -> None:
    """Stop / SessionEnd hook entry point."""
    configure_logging("Observer")
    try:
        maybe_analyze(HookContext.from_environment())
    except Exception as exc:  # hooks must never fail the host
        logger.info("Error: %s", exc)
    sys.exit(0)


if __name__ == "__main__":
    main()
