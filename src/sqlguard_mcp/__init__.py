"""sqlguard-mcp: read-only database tools over a line-delimited JSON protocol.

Exposes a fixed registry of tools (ad-hoc SELECT, schema discovery, column
statistics and a naive natural-language-to-SQL helper) and guarantees that
only statements the safety classifier accepts ever reach the database.
"""

__version__ = "0.1.0"

from sqlguard_mcp.exceptions import SqlGuardError  # noqa: E402
from sqlguard_mcp.guard import is_read_only, strip_sql_comments  # noqa: E402
from sqlguard_mcp.services import ConfigService, DatabaseContext  # noqa: E402

__all__ = [  # noqa: RUF022
    "__version__",
    # Guard
    "is_read_only",
    "strip_sql_comments",
    # Services
    "ConfigService",
    "DatabaseContext",
    # Errors
    "SqlGuardError",
]
