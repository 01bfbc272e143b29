"""Process-wide database context.

A `DatabaseContext` is created once at startup and handed to the tool router.
`sql_connect` (or the environment at startup) configures it; every database
tool reads from it. Only one request is ever in flight, so reconfiguration
needs no locking.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastmcp.utilities.logging import get_logger
import sqlalchemy as sa
from sqlalchemy.engine import URL

from sqlguard_mcp.exceptions import NotConfiguredError
from sqlguard_mcp.services.config_service import ConfigService

_logger = get_logger(__name__)


@dataclass(frozen=True)
class ConnectionSummary:
    """What a caller may safely see about the configured connection."""

    dialect: str
    host: str | None
    database: str | None


class DatabaseContext:
    """Configure-once, read-many holder for the active SQLAlchemy engine."""

    def __init__(self, engine: sa.Engine | None = None) -> None:
        self._engine = engine

    @property
    def is_configured(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> sa.Engine:
        """The configured engine.

        Raises:
            NotConfiguredError: If no connection has been configured yet
        """
        if self._engine is None:
            msg = "SQL connection is not configured. Call sql_connect first."
            raise NotConfiguredError(msg)
        return self._engine

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def configure(self, url: str | URL) -> ConnectionSummary:
        """Replace the active connection with one built from ``url``."""
        engine = ConfigService.create_database_engine(url)
        return self.use_engine(engine)

    def use_engine(self, engine: sa.Engine) -> ConnectionSummary:
        """Adopt an already-built engine, disposing of the previous one."""
        previous = self._engine
        self._engine = engine
        if previous is not None and previous is not engine:
            previous.dispose()

        summary = ConnectionSummary(
            dialect=engine.dialect.name,
            host=engine.url.host,
            database=engine.url.database,
        )
        _logger.info("Database context configured (dialect=%s)", summary.dialect)
        return summary

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
