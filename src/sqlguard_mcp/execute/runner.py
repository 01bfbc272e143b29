"""Bounded execution of read-only SQL.

This module provides a small, dependency-injected executor that:
- Re-validates every caller statement with the safety classifier
- Applies a per-call timeout and a server-side row governor
- Materializes column names first, then rows as ordered mappings
- Maps backend failures onto typed errors the router can report
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
import time
from typing import Any

from fastmcp.utilities.logging import get_logger
import sqlalchemy as sa
from sqlalchemy.engine import Connection, CursorResult
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.sql import Executable

from sqlguard_mcp.exceptions import QueryExecutionError, QueryRejectedError, QueryTimeoutError
from sqlguard_mcp.execute.limits import ExecutionLimits
from sqlguard_mcp.guard import is_read_only, strip_sql_comments
from sqlguard_mcp.services.database_context import DatabaseContext

_logger = get_logger(__name__)

MAX_QUERY_DISPLAY = 100

# SQLSTATEs for a statement cancelled by its timeout: ODBC (pyodbc) and
# PostgreSQL query_canceled.
_TIMEOUT_SQLSTATES: frozenset[str] = frozenset({"HYT00", "57014"})
# MySQL ER_QUERY_TIMEOUT (MAX_EXECUTION_TIME exceeded).
_MYSQL_TIMEOUT_ERRNO = 3024

Row = dict[str, Any]


def strip_trailing_semicolon(sql: str) -> str:
    s = sql.strip()
    return s.removesuffix(";")


def preview_sql(sql: str) -> str:
    """Single-line, length-capped rendering of ``sql`` for logs."""
    flat = " ".join(sql.split())
    return flat[:MAX_QUERY_DISPLAY] + ("..." if len(flat) > MAX_QUERY_DISPLAY else "")


def _is_timeout(exc: DBAPIError) -> bool:
    """True when the driver reports a timeout cancellation, by code rather than message."""
    orig = exc.orig
    if orig is None:
        return False
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate in _TIMEOUT_SQLSTATES:
        return True
    args = getattr(orig, "args", ())
    if not args:
        return False
    first = args[0]
    if isinstance(first, str):
        return first.upper() in _TIMEOUT_SQLSTATES
    return isinstance(first, int) and first == _MYSQL_TIMEOUT_ERRNO


def _backend_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig if orig is not None else exc)


@dataclass(slots=True)
class QueryResult:
    """Columns and rows produced by one bounded execution.

    ``rows`` may be empty; that is a successful outcome, reported through
    ``is_empty`` rather than an exception.
    """

    columns: list[str]
    rows: list[Row] = field(default_factory=list)
    row_limit: int = 0
    elapsed_ms: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.rows

    @property
    def reached_limit(self) -> bool:
        return self.row_limit > 0 and len(self.rows) >= self.row_limit


class QueryExecutor:
    """Runs statements against the configured database under row/time ceilings."""

    def __init__(self, context: DatabaseContext) -> None:
        self._context = context

    # ---- public API -------------------------------------------------------
    def execute(
        self,
        sql: str,
        max_rows: int | None = None,
        timeout_seconds: int | None = None,
    ) -> QueryResult:
        """Validate and run a caller-supplied SELECT.

        Raises:
            QueryRejectedError: If the statement is not read-only
            NotConfiguredError: If no database connection is configured
            QueryTimeoutError: If the backend cancels the statement for time
            QueryExecutionError: For any other backend failure
        """
        if not is_read_only(sql):
            _logger.warning("Rejected statement: %s", preview_sql(sql or ""))
            msg = "Only read-only SELECT queries are allowed"
            raise QueryRejectedError(msg)

        limits = ExecutionLimits.resolve(max_rows, timeout_seconds)
        cleaned = strip_trailing_semicolon(strip_sql_comments(sql))
        _logger.info(
            "execute: %s (row_limit=%d, timeout=%ds)",
            preview_sql(cleaned),
            limits.row_limit,
            limits.timeout_sec,
        )
        return self._run(cleaned, limits)

    def execute_statement(self, statement: Executable, limits: ExecutionLimits) -> QueryResult:
        """Run a trusted, internally built Core statement under ``limits``.

        Used by catalog helpers (table preview, column statistics) whose
        statements are composed from quoted identifiers rather than caller text.
        """
        return self._run(statement, limits)

    @contextmanager
    def bounded_connection(self, timeout_seconds: int | None = None) -> Iterator[Connection]:
        """Open a connection with the session timeout applied and reset on exit."""
        limits = ExecutionLimits.resolve(None, timeout_seconds)
        engine = self._context.engine
        try:
            with engine.connect() as conn:
                self._apply_timeout(conn, limits.timeout_sec)
                try:
                    yield conn
                finally:
                    self._reset_session(conn)
        except SQLAlchemyError as exc:
            raise self._translate(exc, limits) from exc

    # ---- internals ---------------------------------------------------------
    def _run(self, statement: str | Executable, limits: ExecutionLimits) -> QueryResult:
        start = time.perf_counter()
        engine = self._context.engine
        try:
            with engine.connect() as conn:
                self._apply_timeout(conn, limits.timeout_sec)
                try:
                    result = self._issue(conn, statement, limits)
                    columns, rows = self._materialize(result, limits.row_limit)
                finally:
                    self._reset_session(conn)
        except SQLAlchemyError as exc:
            raise self._translate(exc, limits) from exc

        elapsed_ms = (time.perf_counter() - start) * 1000.0
        _logger.info(
            "Execution finished (elapsed_ms=%.1f, rows_returned=%d)",
            elapsed_ms,
            len(rows),
        )
        return QueryResult(
            columns=columns,
            rows=rows,
            row_limit=limits.row_limit,
            elapsed_ms=elapsed_ms,
        )

    def _issue(
        self, conn: Connection, statement: str | Executable, limits: ExecutionLimits
    ) -> CursorResult[Any]:
        if not isinstance(statement, str):
            return conn.execute(statement)

        # Caller text goes to the driver untouched: no bind-parameter parsing,
        # so literals such as '10:30' or '50%' survive.
        raw = conn.execution_options(no_parameters=True)
        if conn.dialect.name == "mssql":
            governed = f"SET NOCOUNT ON; SET ROWCOUNT {limits.row_limit}; {statement}"
            return raw.exec_driver_sql(governed)
        return raw.exec_driver_sql(statement)

    @staticmethod
    def _materialize(result: CursorResult[Any], row_limit: int) -> tuple[list[str], list[Row]]:
        if not result.returns_rows:
            return [], []
        columns = list(result.keys())
        rows: list[Row] = []
        for raw_row in result.fetchmany(row_limit):
            rows.append(dict(zip(columns, raw_row, strict=False)))
        result.close()
        return columns, rows

    def _apply_timeout(self, conn: Connection, timeout_sec: int) -> None:
        """Apply a per-connection statement timeout.

        Dialect-specific:
        - SQL Server: pyodbc query timeout on the DBAPI connection
        - PostgreSQL: SET statement_timeout = <ms>
        - MySQL:      SET SESSION MAX_EXECUTION_TIME = <ms>
        - SQLite:     no server-side timeout
        """
        dialect = conn.dialect.name
        ms = max(1, int(timeout_sec * 1000))
        if dialect == "mssql":
            dbapi_conn = conn.connection.dbapi_connection
            if dbapi_conn is not None and hasattr(dbapi_conn, "timeout"):
                dbapi_conn.timeout = timeout_sec
        elif dialect == "postgresql":
            conn.execute(sa.text("SET statement_timeout = :ms"), {"ms": ms})
        elif dialect in {"mysql", "mariadb"}:
            conn.execute(sa.text("SET SESSION MAX_EXECUTION_TIME = :ms"), {"ms": ms})

    def _reset_session(self, conn: Connection) -> None:
        """Undo session settings so pooled connections start clean."""
        if conn.closed or conn.invalidated:
            return
        dialect = conn.dialect.name
        try:
            if dialect == "mssql":
                conn.exec_driver_sql("SET ROWCOUNT 0")
                dbapi_conn = conn.connection.dbapi_connection
                if dbapi_conn is not None and hasattr(dbapi_conn, "timeout"):
                    dbapi_conn.timeout = 0
            elif dialect == "postgresql":
                conn.exec_driver_sql("RESET statement_timeout")
            elif dialect in {"mysql", "mariadb"}:
                conn.exec_driver_sql("SET SESSION MAX_EXECUTION_TIME = 0")
        except SQLAlchemyError as exc:
            # The connection is unusable; let the pool discard it.
            _logger.debug("Could not reset session settings: %s", exc)
            conn.invalidate(exc)

    @staticmethod
    def _translate(exc: SQLAlchemyError, limits: ExecutionLimits) -> QueryExecutionError:
        message = _backend_message(exc)
        if isinstance(exc, DBAPIError) and _is_timeout(exc):
            _logger.warning("Query timed out after %ds: %s", limits.timeout_sec, message)
            return QueryTimeoutError(
                f"Query timed out after {limits.timeout_sec}s; retry with a larger "
                f"timeoutSeconds or a narrower query. Backend said: {message}"
            )
        _logger.warning("Execution error: %s", message)
        return QueryExecutionError(f"Query execution failed: {message}")
