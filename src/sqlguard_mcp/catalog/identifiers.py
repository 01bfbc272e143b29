"""Helpers for schema-qualified object names.

Every tool that accepts a table or procedure name uses the same rule: split
on the first dot into ``schema.object``; a bare name gets the default schema.
"""

from __future__ import annotations

from typing import Final

FALLBACK_SCHEMA: Final[str] = "dbo"

# System schemas hidden from listings, per dialect.
_EXCLUDED_SCHEMAS: Final[dict[str, frozenset[str]]] = {
    "postgresql": frozenset({"information_schema", "pg_catalog", "pg_toast"}),
    "mssql": frozenset({"information_schema", "sys", "guest"}),
    "mysql": frozenset({"information_schema", "mysql", "performance_schema", "sys"}),
    "mariadb": frozenset({"information_schema", "mysql", "performance_schema", "sys"}),
}
_DEFAULT_EXCLUDED: Final[frozenset[str]] = frozenset({"information_schema", "pg_catalog", "sys"})


def split_qualified_name(name: str, default_schema: str | None = None) -> tuple[str, str]:
    """Split ``schema.object`` on the first dot.

    Examples:
        >>> split_qualified_name("sales.orders")
        ('sales', 'orders')
        >>> split_qualified_name("orders", "main")
        ('main', 'orders')
        >>> split_qualified_name("a.b.c")
        ('a', 'b.c')
    """
    cleaned = name.strip()
    if "." in cleaned:
        schema, obj = cleaned.split(".", 1)
        return schema, obj
    return default_schema or FALLBACK_SCHEMA, cleaned


def qualify(schema: str, name: str) -> str:
    return f"{schema}.{name}"


def bracket_quote(identifier: str) -> str:
    """T-SQL bracket quoting with ``]`` escaped as ``]]``."""
    return "[" + identifier.replace("]", "]]") + "]"


def is_system_schema(schema: str, dialect_name: str) -> bool:
    """True for catalog/system schemas that listings should skip."""
    lowered = schema.lower()
    excluded = _EXCLUDED_SCHEMAS.get(dialect_name.lower(), _DEFAULT_EXCLUDED)
    if lowered in excluded:
        return True
    # SQL Server fixed database roles show up as schemas (db_owner, db_datareader, ...).
    return dialect_name == "mssql" and lowered.startswith("db_")
