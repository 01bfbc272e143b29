"""Bounded execution of read-only SQL.

Exports the executor, its result type, and the shared limit helpers.
"""

from __future__ import annotations

from .limits import (
    DEFAULT_MAX_ROWS,
    DEFAULT_TIMEOUT_SECONDS,
    MAX_ROWS_CEILING,
    TIMEOUT_CEILING_SECONDS,
    ExecutionLimits,
    clamp_generated_top,
    clamp_max_rows,
    clamp_preview_rows,
    clamp_timeout,
)
from .runner import QueryExecutor, QueryResult, strip_trailing_semicolon

__all__ = [
    "DEFAULT_MAX_ROWS",
    "DEFAULT_TIMEOUT_SECONDS",
    "MAX_ROWS_CEILING",
    "TIMEOUT_CEILING_SECONDS",
    "ExecutionLimits",
    "QueryExecutor",
    "QueryResult",
    "clamp_generated_top",
    "clamp_max_rows",
    "clamp_preview_rows",
    "clamp_timeout",
    "strip_trailing_semicolon",
]
