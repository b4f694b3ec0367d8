"""Stderr logging for hook processes.

Hooks talk to the user only through stderr; stdout belongs to the host
protocol. Set HOMUNCULUS_DEBUG=1 to see the swallowed failures.
"""

from __future__ import annotations

import logging
import os
import sys

_ROOT = "homunculus"
_FORMAT = "[%(tag)s] %(message)s"


class _TagFilter(logging.Filter):
    def __init__(self, tag: str) -> None:
        super().__init__()
        self.tag = tag

    def filter(self, record: logging.LogRecord) -> bool:
        record.tag = self.tag
        return True


def configure_logging(tag: str = "Observer") -> logging.Logger:
    """Attach one stderr handler to the ``homunculus`` logger (idempotent)."""
    logger = logging.getLogger(_ROOT)
    level = logging.DEBUG if os.environ.get("HOMUNCULUS_DEBUG") else logging.INFO
    logger.setLevel(level)

    for handler in logger.handlers:
        if getattr(handler, "_homunculus", False):
            handler.filters = [_TagFilter(tag)]
            return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler.addFilter(_TagFilter(tag))
    handler._homunculus = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
