"""Pydantic models for the line-delimited request/response protocol.

One request envelope per input line, one response envelope per output line.
A response carries exactly one of ``result`` or ``error``; the other is
omitted from the wire rather than written as null.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

RequestId = int | str


# -----------------------
# Requests
# -----------------------


class RequestParams(BaseModel):
    """Parameters of a request; ``name``/``arguments`` are used by tools/call."""

    model_config = ConfigDict(extra="allow")

    name: str | None = Field(default=None, description="Tool name for tools/call")
    arguments: Any = Field(
        default=None, description="Untyped tool arguments, validated per tool by the router"
    )


class Request(BaseModel):
    """Inbound request envelope."""

    jsonrpc: str | None = Field(default=None, description="Protocol tag; accepted, not required")
    id: RequestId | None = Field(
        default=None, description="Correlation id echoed verbatim; absent for notifications"
    )
    method: str = Field(description="Method name, e.g. 'tools/call'")
    params: RequestParams | None = None


# -----------------------
# Responses
# -----------------------


class ErrorObject(BaseModel):
    """Error payload of a failed request."""

    message: str
    code: int


class TextContent(BaseModel):
    """Single text content item; the only payload shape tools produce."""

    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """Result of tools/call: always one text item."""

    content: list[TextContent]

    @classmethod
    def of_text(cls, text: str) -> ToolResult:
        return cls(content=[TextContent(text=text)])


class Response(BaseModel):
    """Outbound response envelope."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: RequestId
    result: dict[str, Any] | None = None
    error: ErrorObject | None = None

    def to_line(self) -> str:
        """Compact single-line JSON with absent fields omitted."""
        return self.model_dump_json(exclude_none=True)
