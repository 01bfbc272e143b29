from __future__ import annotations

import pytest
import sqlalchemy as sa

from sqlguard_mcp.catalog import CatalogReader, ColumnMetadata
from sqlguard_mcp.exceptions import GeneratedQueryError, InvalidParameterError
from sqlguard_mcp.execute import QueryExecutor
from sqlguard_mcp.nl2sql import (
    NlToSqlGenerator,
    build_tsql,
    map_sqlalchemy_to_sqlglot,
    pick_table,
    tokenize,
    transpile_from_tsql,
)
from sqlguard_mcp.services import DatabaseContext


def _col(table: str, name: str, ordinal: int = 1) -> ColumnMetadata:
    return ColumnMetadata(
        qualified_table=table, name=name, type="INTEGER", is_nullable=True, ordinal=ordinal
    )


def test_tokenize() -> None:
    assert tokenize("Show me the Employees, please?") == {
        "show",
        "me",
        "the",
        "employees",
        "please",
    }
    assert tokenize("   ") == set()


def test_pick_table_exact_token_match() -> None:
    cols = [_col("dbo.customers", "id"), _col("dbo.orders", "id")]
    assert pick_table(cols, {"list", "orders"}) == "dbo.orders"


def test_pick_table_falls_back_to_first() -> None:
    cols = [_col("dbo.customers", "id"), _col("dbo.orders", "id")]
    assert pick_table(cols, {"order"}) == "dbo.customers"


def test_pick_table_first_match_wins() -> None:
    cols = [_col("dbo.orders", "id"), _col("sales.customers", "id")]
    assert pick_table(cols, {"customers", "orders"}) == "dbo.orders"


def test_build_tsql() -> None:
    sql = build_tsql("dbo.orders", ["id", "total"], 10)
    assert sql == "SELECT TOP 10 [id], [total] FROM [dbo].[orders]"


@pytest.mark.parametrize(
    ("name", "expected"),
    [("mssql", "tsql"), ("postgresql", "postgres"), ("sqlite", "sqlite"), ("whatever", "sql")],
)
def test_map_dialect(name: str, expected: str) -> None:
    assert map_sqlalchemy_to_sqlglot(name) == expected


def test_transpile_tsql_passthrough() -> None:
    sql = "SELECT TOP 5 [a] FROM [dbo].[t]"
    assert transpile_from_tsql(sql, "tsql") == sql


def test_transpile_to_sqlite_uses_limit() -> None:
    out = transpile_from_tsql("SELECT TOP 5 [a] FROM [dbo].[t]", "sqlite")
    assert "LIMIT 5" in out
    assert "TOP" not in out.upper()


def _generator(context: DatabaseContext, executor: QueryExecutor) -> NlToSqlGenerator:
    return NlToSqlGenerator(context, CatalogReader(executor), executor)


def test_generate_matches_table(context: DatabaseContext, executor: QueryExecutor) -> None:
    generated = _generator(context, executor).generate("show employees", 2)

    assert generated.table == "main.employees"
    assert generated.columns == ["id", "name", "salary", "email", "dept_id"]
    assert generated.top == 2
    assert generated.dialect == "sqlite"
    assert "LIMIT 2" in generated.sql
    assert "employees" in generated.sql


def test_generate_default_top(context: DatabaseContext, executor: QueryExecutor) -> None:
    generated = _generator(context, executor).generate("anything at all")
    assert generated.table == "main.departments"
    assert generated.top == 100


def test_generate_and_run(context: DatabaseContext, executor: QueryExecutor) -> None:
    gen = _generator(context, executor)
    result = gen.run(gen.generate("list departments", 1))
    assert result.rows == [{"id": 1, "name": "Sales"}]


def test_generate_caps_columns(context: DatabaseContext, executor: QueryExecutor) -> None:
    with context.engine.begin() as conn:
        conn.exec_driver_sql(
            "CREATE TABLE wide (" + ", ".join(f"c{i} INTEGER" for i in range(12)) + ")"
        )
    generated = _generator(context, executor).generate("wide")
    assert generated.columns == [f"c{i}" for i in range(8)]


def test_generate_blank_question(context: DatabaseContext, executor: QueryExecutor) -> None:
    with pytest.raises(InvalidParameterError, match="question"):
        _generator(context, executor).generate("   ")


def test_generate_empty_catalog(
    engine: sa.Engine, executor: QueryExecutor, context: DatabaseContext
) -> None:
    with engine.begin() as conn:
        conn.exec_driver_sql("DROP TABLE employees")
        conn.exec_driver_sql("DROP TABLE departments")
    with pytest.raises(GeneratedQueryError, match="No tables"):
        _generator(context, executor).generate("employees")


def test_generated_sql_still_guarded(context: DatabaseContext, executor: QueryExecutor) -> None:
    with context.engine.begin() as conn:
        conn.exec_driver_sql("CREATE TABLE audit (updated_by INTEGER)")
    with pytest.raises(GeneratedQueryError, match="safety"):
        _generator(context, executor).generate("audit")
