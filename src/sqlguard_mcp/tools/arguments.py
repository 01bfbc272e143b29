"""Typed argument models for each tool.

The router validates the untyped argument bag of a tools/call request against
one of these models, once, and hands the handler a typed object. Wire names
are camelCase (``maxRows``); Python names are snake_case.

Numeric limits are clamped here with the same functions the executor uses, so
what the router logs matches what runs.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from sqlguard_mcp.exceptions import InvalidParameterError, MissingParameterError
from sqlguard_mcp.execute.limits import (
    clamp_generated_top,
    clamp_max_rows,
    clamp_preview_rows,
    clamp_timeout,
)

SUPPORTED_PROVIDERS: tuple[str, ...] = ("SqlServer", "Sqlite", "Url")

ArgsT = TypeVar("ArgsT", bound="ToolArguments")


class ToolArguments(BaseModel):
    """Base for tool argument models."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class NoArguments(ToolArguments):
    """Tools that take no parameters."""


class EchoArguments(ToolArguments):
    text: str = Field(description="Text to echo back")


class SqlConnectArguments(ToolArguments):
    provider: str = Field(
        description="Connection provider: 'SqlServer', 'Sqlite' or 'Url' (a SQLAlchemy URL)",
        json_schema_extra={"enum": list(SUPPORTED_PROVIDERS)},
    )
    connection_string: str | None = Field(
        default=None,
        description=(
            "SqlServer: ODBC-style connection string (explicit fields override it). "
            "Url: the SQLAlchemy database URL."
        ),
    )
    server: str | None = Field(default=None, description="SQL Server host[,port]")
    database: str | None = Field(default=None, description="Database name")
    user: str | None = Field(default=None, description="Login name")
    password: str | None = Field(default=None, description="Login password")
    trust_server_certificate: bool | None = Field(
        default=None, description="Accept the server certificate without validation"
    )
    integrated_security: bool | None = Field(
        default=None, description="Use integrated (Windows) authentication"
    )
    sqlite_file_path: str | None = Field(
        default=None, description="Sqlite: path to an existing database file, opened read-only"
    )


class SqlQueryArguments(ToolArguments):
    query: str = Field(description="Read-only SELECT (or WITH ... SELECT) statement to execute")
    max_rows: int | None = Field(
        default=None,
        validate_default=True,
        description="Maximum rows to return (1-1000, default 1000)",
    )
    timeout_seconds: int | None = Field(
        default=None,
        validate_default=True,
        description="Statement timeout in seconds (1-60, default 30)",
    )

    @field_validator("max_rows")
    @classmethod
    def _clamp_rows(cls, value: int | None) -> int:
        return clamp_max_rows(value)

    @field_validator("timeout_seconds")
    @classmethod
    def _clamp_timeout(cls, value: int | None) -> int:
        return clamp_timeout(value)


class SchemaFilterArguments(ToolArguments):
    schema_name: str | None = Field(
        default=None, alias="schema", description="Only list objects in this schema"
    )


class TableArguments(ToolArguments):
    table: str = Field(description="Table name as 'schema.table' or bare 'table'")


class TablePreviewArguments(TableArguments):
    top: int | None = Field(
        default=None,
        validate_default=True,
        description="Rows to return (1-500, default 50)",
    )

    @field_validator("top")
    @classmethod
    def _clamp_top(cls, value: int | None) -> int:
        return clamp_preview_rows(value)


class ProcedureArguments(ToolArguments):
    procedure: str = Field(description="Procedure name as 'schema.name' or bare 'name'")


class NlToSqlArguments(ToolArguments):
    question: str = Field(description="Question in plain language, e.g. 'show employees'")
    execute: bool = Field(
        default=False, description="Run the generated query instead of only returning it"
    )
    max_rows: int | None = Field(
        default=None,
        validate_default=True,
        description="TOP value for the generated query (1-1000, default 100)",
    )
    timeout_seconds: int | None = Field(
        default=None,
        validate_default=True,
        description="Statement timeout in seconds when executing (1-60, default 30)",
    )

    @field_validator("max_rows")
    @classmethod
    def _clamp_top(cls, value: int | None) -> int:
        return clamp_generated_top(value)

    @field_validator("timeout_seconds")
    @classmethod
    def _clamp_timeout(cls, value: int | None) -> int:
        return clamp_timeout(value)


def decode_arguments(model: type[ArgsT], arguments: Any) -> ArgsT:
    """Validate an untyped argument bag against ``model``.

    Raises:
        MissingParameterError: If a required parameter is absent
        InvalidParameterError: If a value cannot be coerced to its declared type
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise InvalidParameterError("arguments", "must be an object")
    try:
        return model.model_validate(arguments)
    except ValidationError as exc:
        first = exc.errors()[0]
        loc = first.get("loc") or ("arguments",)
        parameter = str(loc[0])
        if first.get("type") == "missing":
            raise MissingParameterError(parameter) from exc
        raise InvalidParameterError(parameter, first.get("msg", "invalid value")) from exc
