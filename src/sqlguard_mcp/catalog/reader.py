"""Schema catalog reader.

This module provides the CatalogReader class, which answers the
introspection tools (tables, columns, procedures, relationships, statistics,
overview and preview) against the configured database.

Table and column discovery goes through a fresh SQLAlchemy ``Inspector`` on
every call, so nothing is cached between requests. Procedure queries are
plain SQL with bound parameters. Statements that touch table data (preview,
statistics) are built with SQLAlchemy Core, which quotes identifiers with the
dialect's own rules, and run through the bounded executor.
"""

from __future__ import annotations

import copy
from typing import Any, Final

from fastmcp.utilities.logging import get_logger
import sqlalchemy as sa
from sqlalchemy.engine import Connection
from sqlalchemy.engine.reflection import Inspector
from sqlalchemy.exc import NoSuchTableError

from sqlguard_mcp.catalog.identifiers import is_system_schema, qualify, split_qualified_name
from sqlguard_mcp.catalog.models import (
    ColumnMetadata,
    ColumnStats,
    ForeignKeyInfo,
    OverviewColumn,
    Relationship,
    TableOverview,
)
from sqlguard_mcp.execute.limits import ExecutionLimits, clamp_preview_rows
from sqlguard_mcp.execute.runner import QueryExecutor, QueryResult

_logger = get_logger(__name__)

NUMERIC_TYPE_MARKERS: Final[tuple[str, ...]] = (
    "int",
    "decimal",
    "numeric",
    "float",
    "real",
    "money",
)

_MSSQL_PROCEDURE_DEFINITION: Final[str] = (
    "SELECT sm.definition FROM sys.procedures p "
    "JOIN sys.sql_modules sm ON p.object_id = sm.object_id "
    "WHERE SCHEMA_NAME(p.schema_id) = :schema AND p.name = :name"
)
_ROUTINE_DEFINITION: Final[str] = (
    "SELECT ROUTINE_DEFINITION FROM INFORMATION_SCHEMA.ROUTINES "
    "WHERE ROUTINE_TYPE = 'PROCEDURE' AND ROUTINE_SCHEMA = :schema AND ROUTINE_NAME = :name"
)


def is_numeric_type(type_name: str) -> bool:
    """Substring test on the reported type name; a heuristic, not a type check."""
    lowered = type_name.lower()
    return any(marker in lowered for marker in NUMERIC_TYPE_MARKERS)


def _type_name(col_type: Any) -> str:
    if getattr(col_type, "collation", None):
        # Report the bare type; the collation suffix is noise for callers.
        col_type = copy.copy(col_type)
        col_type.collation = None
    try:
        return str(col_type)
    except sa.exc.CompileError:
        return type(col_type).__name__


def _references(schema: str, table: str, column: str) -> str:
    return f"{schema}.{table}({column})"


class CatalogReader:
    """Read-only views over the database catalog."""

    def __init__(self, executor: QueryExecutor) -> None:
        self._executor = executor

    # ---- tables and columns ---------------------------------------------
    def list_tables(self, schema: str | None = None) -> list[str]:
        """Qualified names of base tables, optionally within one schema."""
        with self._executor.bounded_connection() as conn:
            insp = sa.inspect(conn)
            names: list[str] = []
            for sch in self._schemas(conn, insp, schema):
                names.extend(qualify(sch, t) for t in sorted(insp.get_table_names(schema=sch)))
        return names

    def describe_table(self, table: str) -> tuple[str, list[ColumnMetadata]]:
        """Resolve ``table`` and return its qualified name and columns.

        An unknown table yields an empty column list.
        """
        with self._executor.bounded_connection() as conn:
            insp = sa.inspect(conn)
            schema, name = split_qualified_name(table, insp.default_schema_name)
            return qualify(schema, name), self._columns(insp, schema, name)

    def all_columns(self) -> list[ColumnMetadata]:
        """Every column of every table, in schema, table, ordinal order."""
        with self._executor.bounded_connection() as conn:
            insp = sa.inspect(conn)
            out: list[ColumnMetadata] = []
            for sch in self._schemas(conn, insp, None):
                for tbl in sorted(insp.get_table_names(schema=sch)):
                    out.extend(self._columns(insp, sch, tbl))
        return out

    def schema_overview(self) -> dict[str, TableOverview]:
        """Every table keyed by 'schema.table', with columns and outbound keys."""
        overview: dict[str, TableOverview] = {}
        with self._executor.bounded_connection() as conn:
            insp = sa.inspect(conn)
            for sch in self._schemas(conn, insp, None):
                for tbl in sorted(insp.get_table_names(schema=sch)):
                    columns = [
                        OverviewColumn(name=c.name, type=c.type, is_nullable=c.is_nullable)
                        for c in self._columns(insp, sch, tbl)
                    ]
                    fks = [
                        ForeignKeyInfo(
                            name=fk.get("name"),
                            column=local_col,
                            references=_references(
                                fk.get("referred_schema") or sch, fk["referred_table"], ref_col
                            ),
                        )
                        for fk in insp.get_foreign_keys(tbl, schema=sch)
                        for local_col, ref_col in zip(
                            fk.get("constrained_columns", []),
                            fk.get("referred_columns", []),
                            strict=False,
                        )
                    ]
                    overview[qualify(sch, tbl)] = TableOverview(columns=columns, foreign_keys=fks)
        return overview

    # ---- relationships ----------------------------------------------------
    def table_relationships(self, table: str) -> list[Relationship]:
        """Foreign keys leaving (Outbound) and entering (Inbound) ``table``."""
        with self._executor.bounded_connection() as conn:
            insp = sa.inspect(conn)
            schema, name = split_qualified_name(table, insp.default_schema_name)
            target = (schema.casefold(), name.casefold())
            edges: list[Relationship] = []

            for sch in self._schemas(conn, insp, None):
                for tbl in insp.get_table_names(schema=sch):
                    is_target = (sch.casefold(), tbl.casefold()) == target
                    for fk in insp.get_foreign_keys(tbl, schema=sch):
                        ref_schema = fk.get("referred_schema") or sch
                        ref_table = fk["referred_table"]
                        points_at_target = (ref_schema.casefold(), ref_table.casefold()) == target
                        if not (is_target or points_at_target):
                            continue
                        pairs = zip(
                            fk.get("constrained_columns", []),
                            fk.get("referred_columns", []),
                            strict=False,
                        )
                        for local_col, ref_col in pairs:
                            constraint = fk.get("name")
                            if is_target:
                                edges.append(
                                    Relationship(
                                        direction="Outbound",
                                        table=qualify(sch, tbl),
                                        column=local_col,
                                        references=_references(ref_schema, ref_table, ref_col),
                                        constraint=constraint,
                                    )
                                )
                            if points_at_target:
                                # Seen from the referenced side: its column, and who points at it.
                                edges.append(
                                    Relationship(
                                        direction="Inbound",
                                        table=qualify(ref_schema, ref_table),
                                        column=ref_col,
                                        references=_references(sch, tbl, local_col),
                                        constraint=constraint,
                                    )
                                )

        edges.sort(key=lambda e: (e.direction, e.table, e.column, e.references))
        return edges

    # ---- procedures --------------------------------------------------------
    def list_procedures(self, schema: str | None = None) -> list[str]:
        """Qualified stored procedure names; empty on engines without procedures."""
        with self._executor.bounded_connection() as conn:
            if conn.dialect.name == "sqlite":
                return []
            sql = (
                "SELECT ROUTINE_SCHEMA, ROUTINE_NAME FROM INFORMATION_SCHEMA.ROUTINES "
                "WHERE ROUTINE_TYPE = 'PROCEDURE'"
            )
            params: dict[str, str] = {}
            if schema:
                sql += " AND ROUTINE_SCHEMA = :schema"
                params["schema"] = schema
            sql += " ORDER BY ROUTINE_SCHEMA, ROUTINE_NAME"
            rows = conn.execute(sa.text(sql), params).fetchall()
        return [qualify(r[0], r[1]) for r in rows]

    def procedure_definition(self, procedure: str) -> str | None:
        """Source text of a stored procedure, or None when unavailable."""
        with self._executor.bounded_connection() as conn:
            if conn.dialect.name == "sqlite":
                return None
            insp = sa.inspect(conn)
            schema, name = split_qualified_name(procedure, insp.default_schema_name)
            if conn.dialect.name == "mssql":
                sql = _MSSQL_PROCEDURE_DEFINITION
            else:
                sql = _ROUTINE_DEFINITION
            definition = conn.execute(sa.text(sql), {"schema": schema, "name": name}).scalar()
        return definition or None

    # ---- data-touching helpers -------------------------------------------
    def preview_table(self, table: str, top: int | None = None) -> QueryResult | None:
        """First ``top`` rows of ``table``; None when the table does not exist."""
        limit = clamp_preview_rows(top)
        with self._executor.bounded_connection() as conn:
            insp = sa.inspect(conn)
            schema, name = split_qualified_name(table, insp.default_schema_name)
            if not insp.has_table(name, schema=schema):
                return None

        stmt = (
            sa.select(sa.literal_column("*"))
            .select_from(sa.table(name, schema=schema))
            .limit(limit)
        )
        return self._executor.execute_statement(stmt, ExecutionLimits.resolve(limit))

    def column_stats(self, table: str) -> tuple[str, list[ColumnStats] | None]:
        """Per-column profile of ``table``; None when the table does not exist."""
        qualified, columns = self.describe_table(table)
        if not columns:
            return qualified, None

        schema, name = split_qualified_name(qualified)
        limits = ExecutionLimits.resolve(1)
        stats: list[ColumnStats] = []
        for col in columns:
            numeric = is_numeric_type(col.type)
            result = self._executor.execute_statement(
                self._stats_statement(schema, name, col.name, numeric=numeric), limits
            )
            if result.is_empty:
                continue
            row = result.rows[0]
            avg = row.get("avg_value")
            distinct = row.get("distinct_count")
            stats.append(
                ColumnStats(
                    column=col.name,
                    type=col.type,
                    numeric=numeric,
                    total=int(row["total"] or 0),
                    nulls=int(row["nulls"] or 0),
                    min=row.get("min_value"),
                    max=row.get("max_value"),
                    avg=None if avg is None else float(avg),
                    distinct=None if distinct is None else int(distinct),
                )
            )
        return qualified, stats

    # ---- internals ---------------------------------------------------------
    @staticmethod
    def _stats_statement(schema: str, table: str, column: str, *, numeric: bool) -> sa.Select[Any]:
        col = sa.column(column)
        tbl = sa.table(table, col, schema=schema)
        selected: list[Any] = [
            sa.func.count(sa.literal_column("1")).label("total"),
            sa.func.sum(sa.case((col.is_(None), 1), else_=0)).label("nulls"),
        ]
        if numeric:
            selected += [
                sa.func.min(col).label("min_value"),
                sa.func.max(col).label("max_value"),
                sa.func.avg(sa.cast(col, sa.Float)).label("avg_value"),
            ]
        else:
            selected.append(
                sa.func.count(sa.distinct(sa.cast(col, sa.Unicode(4000)))).label("distinct_count")
            )
        return sa.select(*selected).select_from(tbl)

    @staticmethod
    def _schemas(conn: Connection, insp: Inspector, only: str | None) -> list[str]:
        if only:
            return [only] if insp.has_schema(only) else []
        try:
            schemas = insp.get_schema_names()
        except NotImplementedError:
            schemas = [insp.default_schema_name or "main"]
        return sorted(s for s in schemas if not is_system_schema(s, conn.dialect.name))

    @staticmethod
    def _columns(insp: Inspector, schema: str, table: str) -> list[ColumnMetadata]:
        if not insp.has_schema(schema) or not insp.has_table(table, schema=schema):
            _logger.info("Table not found: %s.%s", schema, table)
            return []
        try:
            reflected = insp.get_columns(table, schema=schema)
        except NoSuchTableError:
            _logger.info("Table not found: %s.%s", schema, table)
            return []

        qualified = qualify(schema, table)
        return [
            ColumnMetadata(
                qualified_table=qualified,
                name=col["name"],
                type=_type_name(col["type"]),
                is_nullable=bool(col.get("nullable", True)),
                max_length=getattr(col["type"], "length", None),
                ordinal=i,
            )
            for i, col in enumerate(reflected, start=1)
        ]
