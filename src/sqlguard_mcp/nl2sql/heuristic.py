"""Naive natural-language to SELECT generation.

No language model and no ranking: the question is split into lowercase
tokens, the first table whose bare name equals one of the tokens wins (or the
first table in the catalog when none does), and up to eight of its columns
are selected with a TOP clause. The statement is written in T-SQL, transpiled
to the active dialect, and must pass the safety classifier like any other.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Final

from fastmcp.utilities.logging import get_logger

from sqlguard_mcp.catalog import CatalogReader, ColumnMetadata, bracket_quote, split_qualified_name
from sqlguard_mcp.exceptions import GeneratedQueryError, InvalidParameterError
from sqlguard_mcp.execute import QueryExecutor, QueryResult, clamp_generated_top
from sqlguard_mcp.guard import is_read_only
from sqlguard_mcp.nl2sql.dialects import Dialect, map_sqlalchemy_to_sqlglot, transpile_from_tsql
from sqlguard_mcp.services import DatabaseContext

_logger = get_logger(__name__)

MAX_GENERATED_COLUMNS: Final[int] = 8
_TOKEN_SEPARATORS: Final[re.Pattern[str]] = re.compile(r"[\s,;.:?]+")


def tokenize(question: str) -> set[str]:
    """Lowercase tokens split on whitespace and common punctuation."""
    return {tok for tok in _TOKEN_SEPARATORS.split(question.lower()) if tok}


def pick_table(columns: list[ColumnMetadata], tokens: set[str]) -> str:
    """First table (catalog order) whose bare name is a token, else the first table."""
    seen: list[str] = []
    for col in columns:
        if col.qualified_table not in seen:
            seen.append(col.qualified_table)
    for qualified in seen:
        _, bare = split_qualified_name(qualified)
        if bare.lower() in tokens:
            return qualified
    return seen[0]


def build_tsql(qualified_table: str, column_names: list[str], top: int) -> str:
    schema, table = split_qualified_name(qualified_table)
    cols = ", ".join(bracket_quote(c) for c in column_names)
    return f"SELECT TOP {top} {cols} FROM {bracket_quote(schema)}.{bracket_quote(table)}"


@dataclass(frozen=True)
class GeneratedQuery:
    """A generated statement and how it was derived."""

    sql: str
    table: str
    columns: list[str]
    top: int
    dialect: Dialect


class NlToSqlGenerator:
    """Turns a question into a guarded SELECT, optionally running it."""

    def __init__(
        self, context: DatabaseContext, catalog: CatalogReader, executor: QueryExecutor
    ) -> None:
        self._context = context
        self._catalog = catalog
        self._executor = executor

    def generate(self, question: str, max_rows: int | None = None) -> GeneratedQuery:
        """Build the candidate statement for ``question``.

        Raises:
            InvalidParameterError: If the question is blank
            GeneratedQueryError: If the catalog is empty or the statement fails the guard
        """
        if not question or not question.strip():
            raise InvalidParameterError("question", "must not be empty")

        columns = self._catalog.all_columns()
        if not columns:
            msg = "No tables found in the catalog; nothing to query"
            raise GeneratedQueryError(msg)

        table = pick_table(columns, tokenize(question))
        selected = [c.name for c in columns if c.qualified_table == table][:MAX_GENERATED_COLUMNS]
        top = clamp_generated_top(max_rows)

        dialect = map_sqlalchemy_to_sqlglot(self._context.dialect_name)
        try:
            sql = transpile_from_tsql(build_tsql(table, selected, top), dialect)
        except ValueError as exc:
            raise GeneratedQueryError(str(exc)) from exc

        if not is_read_only(sql):
            _logger.error("Generated statement failed the safety check: %s", sql)
            msg = "Generated query was rejected by the safety check"
            raise GeneratedQueryError(msg)

        _logger.info("Generated for table %s: %s", table, sql)
        return GeneratedQuery(sql=sql, table=table, columns=selected, top=top, dialect=dialect)

    def run(
        self, generated: GeneratedQuery, timeout_seconds: int | None = None
    ) -> QueryResult:
        return self._executor.execute(generated.sql, generated.top, timeout_seconds)
