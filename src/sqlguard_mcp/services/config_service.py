"""Configuration service for sqlguard-mcp.

This module centralizes environment variable handling, connection URL
construction for the supported providers, and database engine creation.
"""

from __future__ import annotations

import os
from typing import Final

import sqlalchemy as sa
from sqlalchemy.engine import URL
from sqlalchemy.exc import ArgumentError

from sqlguard_mcp.exceptions import ConnectionConfigError

DEFAULT_ODBC_DRIVER: Final[str] = "ODBC Driver 18 for SQL Server"

# Aliases accepted inside a caller-supplied SQL Server connection string,
# mapped onto the ODBC keywords pyodbc understands.
_ODBC_KEY_ALIASES: Final[dict[str, str]] = {
    "driver": "Driver",
    "server": "Server",
    "data source": "Server",
    "address": "Server",
    "database": "Database",
    "initial catalog": "Database",
    "uid": "UID",
    "user id": "UID",
    "user": "UID",
    "pwd": "PWD",
    "password": "PWD",
    "trusted_connection": "Trusted_Connection",
    "integrated security": "Trusted_Connection",
    "encrypt": "Encrypt",
    "trustservercertificate": "TrustServerCertificate",
    "trust server certificate": "TrustServerCertificate",
    "applicationintent": "ApplicationIntent",
    "application intent": "ApplicationIntent",
}


def _parse_odbc_string(connection_string: str) -> dict[str, str]:
    """Split ``key=value;key=value`` into an ordered dict keyed by ODBC keyword."""
    parts: dict[str, str] = {}
    for chunk in connection_string.split(";"):
        if "=" not in chunk:
            continue
        key, value = chunk.split("=", 1)
        key = key.strip()
        if not key:
            continue
        parts[_ODBC_KEY_ALIASES.get(key.lower(), key)] = value.strip()
    return parts


def _yes_no(flag: bool) -> str:  # noqa: FBT001
    return "yes" if flag else "no"


class ConfigService:
    """Service for managing configuration and database connections."""

    @staticmethod
    def get_database_url() -> str | None:
        """Database URL from the environment, or None when unset."""
        return os.getenv("SQLGUARD_MCP_DATABASE_URL") or None

    @staticmethod
    def log_level() -> str:
        """Diagnostic log level name."""
        return os.getenv("SQLGUARD_MCP_LOG_LEVEL", "INFO").upper()

    @staticmethod
    def odbc_driver() -> str:
        """ODBC driver used for SQL Server connections."""
        return os.getenv("SQLGUARD_MCP_ODBC_DRIVER", DEFAULT_ODBC_DRIVER)

    # ---- connection URLs -------------------------------------------------
    @staticmethod
    def build_sqlserver_url(  # noqa: PLR0913
        *,
        connection_string: str | None = None,
        server: str | None = None,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        trust_server_certificate: bool | None = None,
        integrated_security: bool | None = None,
    ) -> URL:
        """Build a hardened ``mssql+pyodbc`` URL.

        Explicit arguments override values found in ``connection_string``.
        Encryption and read-only application intent are always forced on.
        """
        parts = _parse_odbc_string(connection_string) if connection_string else {}
        parts.setdefault("Driver", "{" + ConfigService.odbc_driver() + "}")

        if server:
            parts["Server"] = server
        if database:
            parts["Database"] = database

        if integrated_security:
            parts["Trusted_Connection"] = "yes"
            parts.pop("UID", None)
            parts.pop("PWD", None)
        elif user:
            parts["UID"] = user
            if password:
                parts["PWD"] = password

        parts["Encrypt"] = "yes"
        parts["ApplicationIntent"] = "ReadOnly"
        if trust_server_certificate is not None:
            parts["TrustServerCertificate"] = _yes_no(trust_server_certificate)

        if not parts.get("Server"):
            msg = "SQL Server connection requires 'server' or a connection string with a Server"
            raise ConnectionConfigError(msg)

        odbc = ";".join(f"{key}={value}" for key, value in parts.items())
        return URL.create("mssql+pyodbc", query={"odbc_connect": odbc})

    @staticmethod
    def build_sqlite_url(file_path: str) -> URL:
        """Build a read-only SQLite URL for an existing database file."""
        if not file_path or not file_path.strip():
            msg = "SQLite connection requires 'sqliteFilePath'"
            raise ConnectionConfigError(msg)
        return URL.create(
            "sqlite",
            database=f"file:{file_path.strip()}",
            query={"mode": "ro", "uri": "true"},
        )

    @staticmethod
    def parse_url(url: str) -> URL:
        """Parse a SQLAlchemy URL string supplied by the caller."""
        try:
            return sa.make_url(url)
        except ArgumentError as exc:
            msg = f"Invalid database URL: {exc}"
            raise ConnectionConfigError(msg) from exc

    # ---- engines ---------------------------------------------------------
    @staticmethod
    def create_database_engine(url: str | URL) -> sa.Engine:
        """Create a SQLAlchemy engine for ``url``.

        Engines connect lazily; a bad host or credentials surface on the first
        tool call rather than here.
        """
        try:
            return sa.create_engine(url)
        except (ArgumentError, ImportError) as exc:
            msg = f"Could not create database engine: {exc}"
            raise ConnectionConfigError(msg) from exc
