"""Exception hierarchy for sqlguard-mcp.

Every error raised while handling a decoded request derives from
`SqlGuardError`. Each class carries the numeric code that is written into the
error envelope, so the protocol layer never needs to know which component
raised it.

Error Categories:
- Protocol errors for unknown methods and tools
- Parameter errors for missing or malformed tool arguments
- Query errors for rejected, failed or timed-out SQL
- Configuration errors for a missing or invalid database connection
"""

from __future__ import annotations

from typing import ClassVar


class SqlGuardError(Exception):
    """Base exception for all request-level failures."""

    code: ClassVar[int] = -32603


class MethodNotFoundError(SqlGuardError):
    """Raised when the request names a method the server does not implement."""

    code: ClassVar[int] = -32601


class UnknownToolError(SqlGuardError):
    """Raised when `tools/call` names a tool that is not in the registry."""

    code: ClassVar[int] = -32601


class MissingParameterError(SqlGuardError):
    """Raised when a required tool argument is absent."""

    code: ClassVar[int] = -32602

    def __init__(self, parameter: str) -> None:
        self.parameter = parameter
        super().__init__(f"Missing required parameter: {parameter}")


class InvalidParameterError(SqlGuardError):
    """Raised when a tool argument cannot be coerced to its declared type."""

    code: ClassVar[int] = -32602

    def __init__(self, parameter: str, reason: str) -> None:
        self.parameter = parameter
        super().__init__(f"Invalid value for parameter '{parameter}': {reason}")


class QueryRejectedError(SqlGuardError):
    """Raised when the safety classifier refuses a statement.

    Distinct from `QueryExecutionError` so callers can tell "not allowed"
    apart from "failed to run".
    """

    code: ClassVar[int] = -32001


class QueryExecutionError(SqlGuardError):
    """Raised when the backend reports a failure while running a statement."""

    code: ClassVar[int] = -32002


class QueryTimeoutError(QueryExecutionError):
    """Raised when the backend cancels a statement for exceeding its timeout.

    Retryable by the caller with a larger `timeoutSeconds` or a narrower query.
    """

    code: ClassVar[int] = -32003


class NotConfiguredError(SqlGuardError):
    """Raised when a database tool is called before `sql_connect`."""

    code: ClassVar[int] = -32004


class ConnectionConfigError(SqlGuardError):
    """Raised when `sql_connect` arguments cannot produce a usable connection."""

    code: ClassVar[int] = -32602


class GeneratedQueryError(SqlGuardError):
    """Raised when a generated statement fails the safety classifier.

    The generator template should make this impossible; seeing it means the
    template or the catalog produced something unexpected.
    """

    code: ClassVar[int] = -32603
