"""Naive natural-language to SQL generation."""

from __future__ import annotations

from .dialects import Dialect, map_sqlalchemy_to_sqlglot, transpile_from_tsql
from .heuristic import (
    MAX_GENERATED_COLUMNS,
    GeneratedQuery,
    NlToSqlGenerator,
    build_tsql,
    pick_table,
    tokenize,
)

__all__ = [
    "MAX_GENERATED_COLUMNS",
    "Dialect",
    "GeneratedQuery",
    "NlToSqlGenerator",
    "build_tsql",
    "map_sqlalchemy_to_sqlglot",
    "pick_table",
    "tokenize",
    "transpile_from_tsql",
]
