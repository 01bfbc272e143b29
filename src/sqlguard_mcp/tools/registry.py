"""Static tool registry.

The registry is an ordered, immutable tuple of `ToolSpec` built at import
time. Each tool's input schema is derived from its argument model, so the
advertised parameters and the validated parameters cannot drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass
import types
from typing import Any, Final, Union, get_args, get_origin

from sqlguard_mcp.tools.arguments import (
    EchoArguments,
    NlToSqlArguments,
    NoArguments,
    ProcedureArguments,
    SchemaFilterArguments,
    SqlConnectArguments,
    SqlQueryArguments,
    TableArguments,
    TablePreviewArguments,
    ToolArguments,
)

_JSON_TYPES: Final[dict[type, str]] = {
    str: "string",
    bool: "boolean",
    int: "integer",
    float: "number",
}


def _json_type(annotation: Any) -> str:
    if get_origin(annotation) in (Union, types.UnionType):
        non_null = [a for a in get_args(annotation) if a is not type(None)]
        if len(non_null) == 1:
            annotation = non_null[0]
    return _JSON_TYPES.get(annotation, "string")


def input_schema_for(model: type[ToolArguments]) -> dict[str, Any]:
    """JSON-schema-shaped description of ``model``'s wire parameters."""
    properties: dict[str, Any] = {}
    required: list[str] = []
    for field_name, info in model.model_fields.items():
        wire_name = info.alias or field_name
        prop: dict[str, Any] = {"type": _json_type(info.annotation)}
        if info.description:
            prop["description"] = info.description
        if isinstance(info.json_schema_extra, dict):
            prop.update(info.json_schema_extra)
        properties[wire_name] = prop
        if info.is_required():
            required.append(wire_name)
    return {"type": "object", "properties": properties, "required": required}


@dataclass(frozen=True)
class ToolSpec:
    """Descriptor of one tool: name, description and argument model."""

    name: str
    description: str
    arguments: type[ToolArguments]

    def descriptor(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": input_schema_for(self.arguments),
        }


TOOL_SPECS: Final[tuple[ToolSpec, ...]] = (
    ToolSpec(
        name="echo",
        description="Echo back the input text. Useful to check that the server is alive.",
        arguments=EchoArguments,
    ),
    ToolSpec(
        name="sql_connect",
        description=(
            "Configure the database connection used by every other database tool. "
            "SQL Server connections are encrypted and opened with read-only intent; "
            "SQLite files are opened read-only."
        ),
        arguments=SqlConnectArguments,
    ),
    ToolSpec(
        name="sql_query",
        description=(
            "Execute a read-only SELECT (CTEs allowed) with row and time limits. "
            "Statements containing INSERT, UPDATE, DELETE, EXEC, DROP or other mutating "
            "keywords anywhere are rejected. Returns rows as a JSON array."
        ),
        arguments=SqlQueryArguments,
    ),
    ToolSpec(
        name="list_tables",
        description="List base tables as 'schema.table', optionally filtered by schema.",
        arguments=SchemaFilterArguments,
    ),
    ToolSpec(
        name="describe_table",
        description="Describe a table's columns: name, type, nullability and max length.",
        arguments=TableArguments,
    ),
    ToolSpec(
        name="table_preview",
        description="Return the first rows of a table (default 50, at most 500).",
        arguments=TablePreviewArguments,
    ),
    ToolSpec(
        name="list_procedures",
        description="List stored procedures as 'schema.name', optionally filtered by schema.",
        arguments=SchemaFilterArguments,
    ),
    ToolSpec(
        name="get_procedure_definition",
        description="Return the source text of a stored procedure.",
        arguments=ProcedureArguments,
    ),
    ToolSpec(
        name="get_table_relationships",
        description=(
            "List foreign keys of a table in both directions. Outbound rows are keys the "
            "table holds; Inbound rows name the table's referenced column and the column in "
            "another table that points at it."
        ),
        arguments=TableArguments,
    ),
    ToolSpec(
        name="column_stats",
        description=(
            "Per-column statistics: row count and null count, plus min/max/avg for numeric "
            "columns or the distinct-value count for other columns."
        ),
        arguments=TableArguments,
    ),
    ToolSpec(
        name="schema_overview",
        description="Every table with its columns and foreign keys, keyed by 'schema.table'.",
        arguments=NoArguments,
    ),
    ToolSpec(
        name="nl_to_sql",
        description=(
            "Generate a simple SELECT from a plain-language question by matching words "
            "against table names. Returns the query, or runs it when execute is true."
        ),
        arguments=NlToSqlArguments,
    ),
)

TOOLS_BY_NAME: Final[dict[str, ToolSpec]] = {spec.name: spec for spec in TOOL_SPECS}


def list_tool_descriptors() -> list[dict[str, Any]]:
    return [spec.descriptor() for spec in TOOL_SPECS]
