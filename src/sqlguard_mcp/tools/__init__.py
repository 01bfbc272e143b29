"""Tool registry, argument models and the invocation router."""

from sqlguard_mcp.tools.arguments import SUPPORTED_PROVIDERS, ToolArguments, decode_arguments
from sqlguard_mcp.tools.registry import (
    TOOL_SPECS,
    TOOLS_BY_NAME,
    ToolSpec,
    input_schema_for,
    list_tool_descriptors,
)
from sqlguard_mcp.tools.router import ToolRouter, to_json_text

__all__ = [
    "SUPPORTED_PROVIDERS",
    "TOOLS_BY_NAME",
    "TOOL_SPECS",
    "ToolArguments",
    "ToolRouter",
    "ToolSpec",
    "decode_arguments",
    "input_schema_for",
    "list_tool_descriptors",
    "to_json_text",
]
