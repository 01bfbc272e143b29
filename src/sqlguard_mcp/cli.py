"""Command-line entrypoint for the sqlguard-mcp protocol server.

Serves the line-delimited protocol over stdin/stdout. Diagnostics are written
to stderr so they never interleave with protocol output.
"""

from __future__ import annotations

import sys

import dotenv
from fastmcp.utilities.logging import configure_logging, get_logger

from sqlguard_mcp.server import build_server
from sqlguard_mcp.services import ConfigService

# Configure a module-level logger for local server logs.
_logger = get_logger(__name__)


def main() -> None:
    """Start the sqlguard-mcp server on stdin/stdout."""
    dotenv.load_dotenv()
    configure_logging(level=ConfigService.log_level())  # type: ignore[arg-type]

    try:
        engine = build_server()
    except Exception:
        _logger.exception("Startup failed")
        sys.exit(1)

    try:
        engine.serve(sys.stdin, sys.stdout)
    except KeyboardInterrupt:
        _logger.info("Interrupted by user. Exiting cleanly.")
    finally:
        engine.router.context.dispose()


if __name__ == "__main__":
    # Delegate to main() so behavior is consistent across execution paths.
    main()
