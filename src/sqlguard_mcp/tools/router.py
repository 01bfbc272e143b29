"""Invocation router: tool name + argument bag -> one component call.

Each handler receives a validated argument model and returns the text that
becomes the single content item of the response. Structured results are
serialized as pretty-printed JSON text.
"""

from __future__ import annotations

from collections.abc import Callable
import datetime as dt
import decimal
import json
from typing import Any
import uuid

from fastmcp.utilities.logging import get_logger

from sqlguard_mcp.catalog import CatalogReader
from sqlguard_mcp.exceptions import ConnectionConfigError, UnknownToolError
from sqlguard_mcp.execute import QueryExecutor, QueryResult
from sqlguard_mcp.models import ToolResult
from sqlguard_mcp.nl2sql import NlToSqlGenerator
from sqlguard_mcp.services import ConfigService, DatabaseContext
from sqlguard_mcp.tools.arguments import (
    SUPPORTED_PROVIDERS,
    EchoArguments,
    NlToSqlArguments,
    NoArguments,
    ProcedureArguments,
    SchemaFilterArguments,
    SqlConnectArguments,
    SqlQueryArguments,
    TableArguments,
    TablePreviewArguments,
    decode_arguments,
)
from sqlguard_mcp.tools.registry import TOOL_SPECS, TOOLS_BY_NAME

_logger = get_logger(__name__)

NO_RESULTS = "No results found"
NO_DATA = "No data"
NO_TABLES = "No tables found"
NO_PROCEDURES = "No stored procedures found"
NO_PROCEDURE_DEFINITION = "Procedure not found or no definition available"
NO_RELATIONSHIPS = "No relationships found"


def _json_default(value: Any) -> Any:
    if isinstance(value, decimal.Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dt.datetime | dt.date | dt.time):
        return value.isoformat()
    if isinstance(value, bytes | bytearray | memoryview):
        return bytes(value).hex()
    if isinstance(value, uuid.UUID):
        return str(value)
    return str(value)


def to_json_text(payload: Any) -> str:
    """Pretty JSON for a text content item."""
    return json.dumps(payload, indent=2, default=_json_default, ensure_ascii=False)


def _rows_text(result: QueryResult, empty_message: str) -> str:
    return empty_message if result.is_empty else to_json_text(result.rows)


def _table_not_found(table: str) -> str:
    return f"Table not found: {table}"


class ToolRouter:
    """Dispatches tools/call requests to the components behind each tool."""

    def __init__(
        self,
        context: DatabaseContext,
        *,
        executor: QueryExecutor | None = None,
        catalog: CatalogReader | None = None,
        generator: NlToSqlGenerator | None = None,
    ) -> None:
        self.context = context
        self.executor = executor or QueryExecutor(context)
        self.catalog = catalog or CatalogReader(self.executor)
        self.generator = generator or NlToSqlGenerator(context, self.catalog, self.executor)

        self._handlers: dict[str, Callable[[Any], str]] = {
            "echo": self._echo,
            "sql_connect": self._sql_connect,
            "sql_query": self._sql_query,
            "list_tables": self._list_tables,
            "describe_table": self._describe_table,
            "table_preview": self._table_preview,
            "list_procedures": self._list_procedures,
            "get_procedure_definition": self._get_procedure_definition,
            "get_table_relationships": self._get_table_relationships,
            "column_stats": self._column_stats,
            "schema_overview": self._schema_overview,
            "nl_to_sql": self._nl_to_sql,
        }
        advertised = {spec.name for spec in TOOL_SPECS}
        if advertised != set(self._handlers):
            msg = f"Tool registry and handlers disagree: {sorted(advertised ^ set(self._handlers))}"
            raise RuntimeError(msg)

    @property
    def tool_names(self) -> list[str]:
        return list(self._handlers)

    def call(self, name: str | None, arguments: Any) -> ToolResult:
        """Validate ``arguments`` for tool ``name``, run it, and wrap the text.

        Raises:
            UnknownToolError: If ``name`` is not a registered tool
            SqlGuardError: Whatever the component raises, unchanged
        """
        spec = TOOLS_BY_NAME.get(name or "")
        if spec is None:
            msg = f"Unknown tool: {name}"
            raise UnknownToolError(msg)

        args = decode_arguments(spec.arguments, arguments)
        _logger.info("Tool call: %s", spec.name)
        text = self._handlers[spec.name](args)
        return ToolResult.of_text(text)

    # ---- handlers ----------------------------------------------------------
    def _echo(self, args: EchoArguments) -> str:
        return f"Echo: {args.text}"

    def _sql_connect(self, args: SqlConnectArguments) -> str:
        provider = args.provider.strip().lower()
        if provider == "sqlserver":
            url = ConfigService.build_sqlserver_url(
                connection_string=args.connection_string,
                server=args.server,
                database=args.database,
                user=args.user,
                password=args.password,
                trust_server_certificate=args.trust_server_certificate,
                integrated_security=args.integrated_security,
            )
        elif provider == "sqlite":
            url = ConfigService.build_sqlite_url(args.sqlite_file_path or "")
        elif provider == "url":
            if not args.connection_string:
                msg = "Provider 'Url' requires 'connectionString' holding a SQLAlchemy URL"
                raise ConnectionConfigError(msg)
            url = ConfigService.parse_url(args.connection_string)
        else:
            supported = ", ".join(SUPPORTED_PROVIDERS)
            msg = f"Unsupported provider '{args.provider}'. Use one of: {supported}"
            raise ConnectionConfigError(msg)

        summary = self.context.configure(url)
        database = args.database or summary.database
        target = f" to database '{database}'" if database else ""
        return f"SQL connection configured ({summary.dialect}){target}"

    def _sql_query(self, args: SqlQueryArguments) -> str:
        result = self.executor.execute(args.query, args.max_rows, args.timeout_seconds)
        return _rows_text(result, NO_RESULTS)

    def _list_tables(self, args: SchemaFilterArguments) -> str:
        tables = self.catalog.list_tables(args.schema_name)
        return to_json_text(tables) if tables else NO_TABLES

    def _describe_table(self, args: TableArguments) -> str:
        qualified, columns = self.catalog.describe_table(args.table)
        if not columns:
            return _table_not_found(qualified)
        return to_json_text([c.describe() for c in columns])

    def _table_preview(self, args: TablePreviewArguments) -> str:
        result = self.catalog.preview_table(args.table, args.top)
        if result is None:
            return _table_not_found(args.table)
        return _rows_text(result, NO_DATA)

    def _list_procedures(self, args: SchemaFilterArguments) -> str:
        procedures = self.catalog.list_procedures(args.schema_name)
        return to_json_text(procedures) if procedures else NO_PROCEDURES

    def _get_procedure_definition(self, args: ProcedureArguments) -> str:
        definition = self.catalog.procedure_definition(args.procedure)
        return definition or NO_PROCEDURE_DEFINITION

    def _get_table_relationships(self, args: TableArguments) -> str:
        edges = self.catalog.table_relationships(args.table)
        if not edges:
            return NO_RELATIONSHIPS
        return to_json_text([e.model_dump(by_alias=True) for e in edges])

    def _column_stats(self, args: TableArguments) -> str:
        qualified, stats = self.catalog.column_stats(args.table)
        if stats is None:
            return _table_not_found(qualified)
        return to_json_text([s.as_payload() for s in stats])

    def _schema_overview(self, _args: NoArguments) -> str:
        overview = self.catalog.schema_overview()
        return to_json_text({key: t.model_dump(by_alias=True) for key, t in overview.items()})

    def _nl_to_sql(self, args: NlToSqlArguments) -> str:
        generated = self.generator.generate(args.question, args.max_rows)
        if not args.execute:
            return to_json_text({"query": generated.sql})
        result = self.generator.run(generated, args.timeout_seconds)
        return _rows_text(result, NO_RESULTS)
