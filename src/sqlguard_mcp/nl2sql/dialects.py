"""Dialect mapping and transpilation via sqlglot.

Generated statements are written in T-SQL and converted to the active
database's dialect before they are classified and run.
"""

from __future__ import annotations

from typing import Final, Literal

from fastmcp.utilities.logging import get_logger
import sqlglot
from sqlglot.errors import SqlglotError

_logger = get_logger(__name__)

Dialect = Literal[
    "sql",
    "postgres",
    "mysql",
    "sqlite",
    "tsql",
    "oracle",
    "snowflake",
    "bigquery",
]

SQLALCHEMY_TO_SQLGLOT: Final[dict[str, Dialect]] = {
    "postgresql": "postgres",
    "postgres": "postgres",
    "mysql": "mysql",
    "mariadb": "mysql",
    "sqlite": "sqlite",
    "mssql": "tsql",
    "sqlserver": "tsql",
    "oracle": "oracle",
    "snowflake": "snowflake",
    "bigquery": "bigquery",
}


def map_sqlalchemy_to_sqlglot(sa_dialect_name: str) -> Dialect:
    """Map a SQLAlchemy dialect name to a sqlglot dialect literal.

    Falls back to generic "sql" when unknown.
    """
    return SQLALCHEMY_TO_SQLGLOT.get(sa_dialect_name.lower(), "sql")


def transpile_from_tsql(sql: str, target: Dialect) -> str:
    """Rewrite a T-SQL statement for ``target``; T-SQL passes through untouched.

    Raises:
        ValueError: If sqlglot cannot parse or render the statement
    """
    if target == "tsql":
        return sql
    try:
        out = sqlglot.transpile(sql, read="tsql", write=target)
    except SqlglotError as exc:
        _logger.warning("Transpile failed: %s", exc)
        msg = f"Could not transpile generated SQL to {target}: {exc}"
        raise ValueError(msg) from exc
    if not out:
        msg = f"Transpilation to {target} returned no statement"
        raise ValueError(msg)
    return out[0]
