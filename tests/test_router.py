from __future__ import annotations

import json
from pathlib import Path

import pytest
import sqlalchemy as sa

from sqlguard_mcp.exceptions import (
    ConnectionConfigError,
    InvalidParameterError,
    MissingParameterError,
    NotConfiguredError,
    QueryRejectedError,
    UnknownToolError,
)
from sqlguard_mcp.services import DatabaseContext
from sqlguard_mcp.tools import TOOL_SPECS, ToolRouter, list_tool_descriptors, to_json_text


def _text(router: ToolRouter, name: str, arguments: dict | None = None) -> str:
    result = router.call(name, arguments)
    assert len(result.content) == 1
    assert result.content[0].type == "text"
    return result.content[0].text


def test_registry_and_handlers_agree(router: ToolRouter) -> None:
    listed = [d["name"] for d in list_tool_descriptors()]
    assert listed == router.tool_names
    assert len(set(listed)) == len(listed)


def test_descriptor_shape() -> None:
    by_name = {d["name"]: d for d in list_tool_descriptors()}

    query = by_name["sql_query"]["inputSchema"]
    assert query["type"] == "object"
    assert query["required"] == ["query"]
    assert query["properties"]["maxRows"]["type"] == "integer"
    assert query["properties"]["query"]["type"] == "string"

    connect = by_name["sql_connect"]["inputSchema"]
    assert connect["properties"]["provider"]["enum"] == ["SqlServer", "Sqlite", "Url"]
    assert connect["properties"]["trustServerCertificate"]["type"] == "boolean"

    assert by_name["schema_overview"]["inputSchema"]["properties"] == {}
    assert "schema" in by_name["list_tables"]["inputSchema"]["properties"]
    assert all(spec.description for spec in TOOL_SPECS)


def test_unknown_tool(router: ToolRouter) -> None:
    with pytest.raises(UnknownToolError, match="Unknown tool: nope"):
        router.call("nope", {})


def test_echo(router: ToolRouter) -> None:
    assert _text(router, "echo", {"text": "hi"}) == "Echo: hi"


def test_missing_parameter_names_it(router: ToolRouter) -> None:
    with pytest.raises(MissingParameterError, match="query"):
        router.call("sql_query", {})
    with pytest.raises(MissingParameterError, match="text"):
        router.call("echo", None)


def test_invalid_parameter_names_it(router: ToolRouter) -> None:
    with pytest.raises(InvalidParameterError, match="maxRows"):
        router.call("sql_query", {"query": "SELECT 1", "maxRows": "lots"})
    with pytest.raises(InvalidParameterError, match="arguments"):
        router.call("echo", ["not", "a", "mapping"])


def test_sql_query_returns_json_rows(router: ToolRouter) -> None:
    text = _text(router, "sql_query", {"query": "SELECT 1 AS x"})
    assert json.loads(text) == [{"x": 1}]


def test_sql_query_clamps_max_rows(router: ToolRouter) -> None:
    text = _text(router, "sql_query", {"query": "SELECT id FROM employees", "maxRows": 5000})
    assert len(json.loads(text)) == 3
    text = _text(router, "sql_query", {"query": "SELECT id FROM employees", "maxRows": 1})
    assert len(json.loads(text)) == 1


def test_sql_query_no_results(router: ToolRouter) -> None:
    text = _text(router, "sql_query", {"query": "SELECT id FROM employees WHERE 1 = 0"})
    assert text == "No results found"


def test_sql_query_rejected(router: ToolRouter) -> None:
    with pytest.raises(QueryRejectedError):
        router.call("sql_query", {"query": "DELETE FROM employees"})


def test_not_configured(unconfigured_router: ToolRouter) -> None:
    with pytest.raises(NotConfiguredError):
        unconfigured_router.call("sql_query", {"query": "SELECT 1"})
    with pytest.raises(NotConfiguredError):
        unconfigured_router.call("list_tables", {})
    assert _text(unconfigured_router, "echo", {"text": "x"}) == "Echo: x"


def test_list_tables(router: ToolRouter) -> None:
    assert json.loads(_text(router, "list_tables", {})) == ["main.departments", "main.employees"]
    assert _text(router, "list_tables", {"schema": "nope"}) == "No tables found"


def test_describe_table(router: ToolRouter) -> None:
    columns = json.loads(_text(router, "describe_table", {"table": "departments"}))
    assert columns[1] == {
        "name": "name",
        "type": "VARCHAR(50)",
        "isNullable": False,
        "maxLength": 50,
    }


def test_describe_unknown_table_is_not_an_error(router: ToolRouter) -> None:
    assert _text(router, "describe_table", {"table": "ghosts"}) == "Table not found: main.ghosts"


@pytest.mark.parametrize("tool", ["describe_table", "column_stats"])
def test_unknown_schema_is_not_an_error(router: ToolRouter, tool: str) -> None:
    text = _text(router, tool, {"table": "nosuch.employees"})
    assert text == "Table not found: nosuch.employees"


def test_table_preview(router: ToolRouter) -> None:
    rows = json.loads(_text(router, "table_preview", {"table": "employees", "top": 2}))
    assert [r["name"] for r in rows] == ["Alice", "Bob"]
    assert _text(router, "table_preview", {"table": "ghosts"}) == "Table not found: ghosts"


def test_table_preview_empty(router: ToolRouter, engine: sa.Engine) -> None:
    with engine.begin() as conn:
        conn.exec_driver_sql("CREATE TABLE empty_one (id INTEGER)")
    assert _text(router, "table_preview", {"table": "empty_one"}) == "No data"


def test_procedures_on_sqlite(router: ToolRouter) -> None:
    assert _text(router, "list_procedures", {}) == "No stored procedures found"
    assert (
        _text(router, "get_procedure_definition", {"procedure": "dbo.p"})
        == "Procedure not found or no definition available"
    )


def test_relationships(router: ToolRouter) -> None:
    edges = json.loads(_text(router, "get_table_relationships", {"table": "departments"}))
    assert edges == [
        {
            "direction": "Inbound",
            "table": "main.departments",
            "column": "id",
            "references": "main.employees(dept_id)",
            "constraint": None,
        }
    ]
    assert _text(router, "get_table_relationships", {"table": "ghosts"}) == "No relationships found"


def test_column_stats(router: ToolRouter) -> None:
    stats = json.loads(_text(router, "column_stats", {"table": "departments"}))
    assert stats == [
        {"column": "id", "type": "INTEGER", "total": 2, "nulls": 0, "min": 1, "max": 2, "avg": 1.5},
        {"column": "name", "type": "VARCHAR(50)", "total": 2, "nulls": 0, "distinct": 2},
    ]
    assert _text(router, "column_stats", {"table": "ghosts"}) == "Table not found: main.ghosts"


def test_schema_overview(router: ToolRouter) -> None:
    overview = json.loads(_text(router, "schema_overview"))
    assert set(overview) == {"main.departments", "main.employees"}
    assert overview["main.employees"]["foreignKeys"][0]["column"] == "dept_id"


def test_nl_to_sql_returns_query(router: ToolRouter) -> None:
    payload = json.loads(_text(router, "nl_to_sql", {"question": "show departments"}))
    assert set(payload) == {"query"}
    assert "departments" in payload["query"]
    assert "LIMIT 100" in payload["query"]


def test_nl_to_sql_execute(router: ToolRouter) -> None:
    rows = json.loads(
        _text(router, "nl_to_sql", {"question": "departments", "execute": True, "maxRows": 5})
    )
    assert rows == [{"id": 1, "name": "Sales"}, {"id": 2, "name": "Finance"}]


def test_sql_connect_sqlite_file(tmp_path: Path) -> None:
    db_file = tmp_path / "sample.db"
    seed = sa.create_engine(f"sqlite:///{db_file}")
    with seed.begin() as conn:
        conn.exec_driver_sql("CREATE TABLE things (id INTEGER)")
        conn.exec_driver_sql("INSERT INTO things VALUES (7)")
    seed.dispose()

    context = DatabaseContext()
    router = ToolRouter(context)
    text = _text(router, "sql_connect", {"provider": "sqlite", "sqliteFilePath": str(db_file)})
    assert text.startswith("SQL connection configured (sqlite)")
    assert json.loads(_text(router, "sql_query", {"query": "SELECT id FROM things"})) == [{"id": 7}]
    context.dispose()


def test_sql_connect_url_provider() -> None:
    context = DatabaseContext()
    router = ToolRouter(context)
    text = _text(router, "sql_connect", {"provider": "Url", "connectionString": "sqlite://"})
    assert "sqlite" in text
    assert context.is_configured
    context.dispose()


def test_sql_connect_never_echoes_password(monkeypatch: pytest.MonkeyPatch) -> None:
    context = DatabaseContext()
    captured = {}

    def fake_configure(url: sa.URL) -> object:
        captured["url"] = url
        return context.use_engine(sa.create_engine("sqlite://"))

    monkeypatch.setattr(context, "configure", fake_configure)
    router = ToolRouter(context)
    text = _text(
        router,
        "sql_connect",
        {
            "provider": "SqlServer",
            "server": "db.example.com",
            "database": "hr",
            "user": "reader",
            "password": "s3cret",
        },
    )
    assert "s3cret" not in text
    assert "hr" in text
    odbc = captured["url"].query["odbc_connect"]
    assert "ApplicationIntent=ReadOnly" in odbc
    assert "Encrypt=yes" in odbc
    context.dispose()


@pytest.mark.parametrize(
    "arguments",
    [
        {"provider": "Oracle"},
        {"provider": "SqlServer"},
        {"provider": "Sqlite"},
        {"provider": "Url"},
        {"provider": "Url", "connectionString": "not a url"},
    ],
)
def test_sql_connect_bad_input(arguments: dict) -> None:
    router = ToolRouter(DatabaseContext())
    with pytest.raises(ConnectionConfigError):
        router.call("sql_connect", arguments)


def test_to_json_text_handles_odd_scalars() -> None:
    import datetime as dt
    import decimal

    payload = [
        {
            "d": decimal.Decimal("1.50"),
            "i": decimal.Decimal("3"),
            "t": dt.date(2024, 1, 2),
            "b": b"\x01\xff",
        }
    ]
    assert json.loads(to_json_text(payload)) == [
        {"d": 1.5, "i": 3, "t": "2024-01-02", "b": "01ff"}
    ]
