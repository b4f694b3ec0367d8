"""Outcome values returned by the fail-soft internals.

Internals never swallow errors silently: they report them here and the hook
entry points decide to ignore them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Result:
    """Outcome of a single best-effort operation."""

    ok: bool
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: BaseException | str) -> "Result":
        if isinstance(error, BaseException):
            error = f"{type(error).__name__}: {error}"
        return cls(ok=False, error=error)

    def __bool__(self) -> bool:
        return self.ok
