"""Services package for sqlguard-mcp.

Main Components:
- ConfigService: Environment configuration and connection URL construction
- DatabaseContext: The configure-once database handle shared by all tools
"""

from .config_service import ConfigService
from .database_context import ConnectionSummary, DatabaseContext

__all__ = [
    "ConfigService",
    "ConnectionSummary",
    "DatabaseContext",
]
