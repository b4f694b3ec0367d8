#!/usr/bin/env python3
"""
Homunculus Session Evaluator - Flags Long Sessions for Skill Extraction
=======================================================================
Runs on Stop. Reads the transcript named by CLAUDE_TRANSCRIPT_PATH, counts
user messages, and if the session was long enough tells Claude (via stderr)
to look for reusable patterns and where to save learned skills.
"""

from __future__ import annotations

import logging
import re
import sys
from pathlib import Path
from typing import Optional

from homunculus.context import HookContext
from homunculus.logging_setup import configure_logging

logger = logging.getLogger("homunculus.evaluate_session")

_USER_MESSAGE = re.compile(r'"type"\s*:\s*"user"')


def count_user_messages(transcript: Path) -> int:
    try:
        return len(_USER_MESSAGE.findall(transcript.read_text(encoding="utf-8", errors="replace")))
    except OSError:
        return 0


def evaluate(ctx: HookContext) -> Optional[int]:
    """
    Returns the user message count when the session qualifies for
    evaluation, None otherwise.
    """
    transcript = ctx.transcript_path()
    if transcript is None or not transcript.is_file():
        return None

    settings = ctx.load_settings()
    learned_dir = settings.learned_skills_dir
    try:
        learned_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.debug("could not create %s: %s", learned_dir, exc)

    message_count = count_user_messages(transcript)
    if message_count < settings.min_session_length:
        logger.info("Session too short (%d messages), skipping", message_count)
        return None

    logger.info("Session has %d messages - evaluate for extractable patterns", message_count)
    logger.info("Save learned skills to: %s", learned_dir)
    return message_count


def main() -> None:
    configure_logging("ContinuousLearning")
    try:
        evaluate(HookContext.from_environment())
    except Exception as exc:  # hooks must never fail the host
        logger.info("Error: %s", exc)
    sys.exit(0)


if __name__ == "__main__":
    main()
