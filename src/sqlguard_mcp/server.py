"""Line-delimited protocol engine for sqlguard-mcp.

Reads one JSON request per line, dispatches it, and writes one JSON response
per line. Requests are handled strictly in order: response N is written and
flushed before line N+1 is read. Diagnostics go to the logger (stderr), never
to the protocol stream.
"""

from __future__ import annotations

from typing import Any, Final, TextIO

from fastmcp.utilities.logging import get_logger
from pydantic import ValidationError

from sqlguard_mcp import __version__
from sqlguard_mcp.exceptions import MethodNotFoundError, MissingParameterError, SqlGuardError
from sqlguard_mcp.execute.runner import preview_sql
from sqlguard_mcp.models import ErrorObject, Request, Response
from sqlguard_mcp.services import ConfigService, DatabaseContext
from sqlguard_mcp.tools import ToolRouter, list_tool_descriptors

_logger = get_logger(__name__)

SERVER_NAME: Final[str] = "sqlguard-mcp"
PROTOCOL_VERSION: Final[str] = "2024-11-05"
INTERNAL_ERROR_CODE: Final[int] = SqlGuardError.code


class ProtocolEngine:
    """Decode, dispatch, encode. One request at a time."""

    def __init__(
        self,
        router: ToolRouter,
        *,
        server_name: str = SERVER_NAME,
        server_version: str = __version__,
    ) -> None:
        self.router = router
        self.server_name = server_name
        self.server_version = server_version

    # ---- single line -------------------------------------------------------
    def handle_line(self, line: str) -> str | None:
        """Process one input line; return the response line, or None for no output.

        Blank lines, undecodable lines and notifications (no ``id``) produce
        no response.
        """
        if not line.strip():
            return None

        _logger.debug("Received line: %s", preview_sql(line))
        try:
            request = Request.model_validate_json(line)
        except ValidationError as exc:
            _logger.warning("Dropping malformed request line: %s", exc.errors()[0].get("msg"))
            return None

        if request.id is None:
            _logger.info("Notification received: %s", request.method)
            return None

        return self.dispatch(request).to_line()

    def dispatch(self, request: Request) -> Response:
        """Run ``request`` and convert any failure into an error envelope."""
        try:
            result = self._handle(request)
        except SqlGuardError as exc:
            _logger.info("Request %s failed (%s): %s", request.id, exc.code, exc)
            return Response(id=request.id, error=ErrorObject(message=str(exc), code=exc.code))
        except Exception as exc:
            _logger.exception("Unhandled error while handling request %s", request.id)
            return Response(
                id=request.id,
                error=ErrorObject(message=str(exc) or type(exc).__name__, code=INTERNAL_ERROR_CODE),
            )
        return Response(id=request.id, result=result)

    def _handle(self, request: Request) -> dict[str, Any]:
        method = request.method
        _logger.info("Dispatching method: %s", method)

        if method == "initialize":
            return {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": self.server_name, "version": self.server_version},
            }
        if method == "tools/list":
            return {"tools": list_tool_descriptors()}
        if method == "tools/call":
            params = request.params
            if params is None or not params.name:
                raise MissingParameterError("name")
            return self.router.call(params.name, params.arguments).model_dump()
        if method == "ping":
            return {}

        msg = f"Unknown method: {method}"
        raise MethodNotFoundError(msg)

    # ---- stream loop -------------------------------------------------------
    def serve(self, reader: TextIO, writer: TextIO) -> None:
        """Loop until end-of-input on ``reader``, writing responses to ``writer``."""
        _logger.info("%s %s ready", self.server_name, self.server_version)
        for line in reader:
            response = self.handle_line(line)
            if response is None:
                continue
            writer.write(response + "\n")
            writer.flush()
        _logger.info("End of input; shutting down")


def build_server(context: DatabaseContext | None = None) -> ProtocolEngine:
    """Build a protocol engine, configuring the database from the environment if set."""
    if context is None:
        context = DatabaseContext()
        url = ConfigService.get_database_url()
        if url:
            context.configure(ConfigService.parse_url(url))
    return ProtocolEngine(ToolRouter(context))
