"""Row and time ceilings shared by the router and the executor.

The router clamps early so the values it logs are the values that run; the
executor clamps again and its result is the one that counts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

DEFAULT_MAX_ROWS: Final[int] = 1000
MAX_ROWS_CEILING: Final[int] = 1000

DEFAULT_TIMEOUT_SECONDS: Final[int] = 30
TIMEOUT_CEILING_SECONDS: Final[int] = 60

DEFAULT_PREVIEW_ROWS: Final[int] = 50
PREVIEW_ROWS_CEILING: Final[int] = 500

DEFAULT_GENERATED_TOP: Final[int] = 100


def clamp(value: int | None, *, default: int, ceiling: int) -> int:
    """Resolve an optional positive integer against a default and a ceiling.

    Absent, zero and negative values all resolve to ``default``.
    """
    if value is None or value <= 0:
        return default
    return min(value, ceiling)


def clamp_max_rows(value: int | None) -> int:
    return clamp(value, default=DEFAULT_MAX_ROWS, ceiling=MAX_ROWS_CEILING)


def clamp_timeout(value: int | None) -> int:
    return clamp(value, default=DEFAULT_TIMEOUT_SECONDS, ceiling=TIMEOUT_CEILING_SECONDS)


def clamp_preview_rows(value: int | None) -> int:
    return clamp(value, default=DEFAULT_PREVIEW_ROWS, ceiling=PREVIEW_ROWS_CEILING)


def clamp_generated_top(value: int | None) -> int:
    return clamp(value, default=DEFAULT_GENERATED_TOP, ceiling=MAX_ROWS_CEILING)


@dataclass(slots=True, frozen=True)
class ExecutionLimits:
    """Execution limits used to bound row count and run time."""

    row_limit: int
    timeout_sec: int

    @classmethod
    def resolve(
        cls, max_rows: int | None = None, timeout_seconds: int | None = None
    ) -> ExecutionLimits:
        return cls(row_limit=clamp_max_rows(max_rows), timeout_sec=clamp_timeout(timeout_seconds))
