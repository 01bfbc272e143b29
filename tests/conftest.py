from __future__ import annotations

from collections.abc import Iterator

import pytest
import sqlalchemy as sa
from sqlalchemy import text
from sqlalchemy.pool import StaticPool

from sqlguard_mcp.catalog import CatalogReader
from sqlguard_mcp.execute import QueryExecutor
from sqlguard_mcp.server import ProtocolEngine
from sqlguard_mcp.services import DatabaseContext
from sqlguard_mcp.tools import ToolRouter


def _mk_engine() -> sa.Engine:
    # One shared in-memory database for every connection the pool hands out.
    return sa.create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def _seed(engine: sa.Engine) -> None:
    with engine.begin() as conn:
        conn.execute(
            text("CREATE TABLE departments (id INTEGER PRIMARY KEY, name VARCHAR(50) NOT NULL)")
        )
        conn.execute(
            text(
                "CREATE TABLE employees ("
                "id INTEGER PRIMARY KEY, "
                "name VARCHAR(100) NOT NULL, "
                "salary INTEGER, "
                "email VARCHAR(120), "
                "dept_id INTEGER REFERENCES departments(id))"
            )
        )
        conn.execute(text("INSERT INTO departments (id, name) VALUES (1, 'Sales'), (2, 'Finance')"))
        conn.execute(
            text(
                "INSERT INTO employees (id, name, salary, email, dept_id) VALUES "
                "(1, 'Alice', 100, 'alice@example.com', 1), "
                "(2, 'Bob', 200, NULL, 1), "
                "(3, 'Charlie', 300, 'charlie@example.com', 2)"
            )
        )


@pytest.fixture
def engine() -> Iterator[sa.Engine]:
    eng = _mk_engine()
    _seed(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def context(engine: sa.Engine) -> DatabaseContext:
    ctx = DatabaseContext()
    ctx.use_engine(engine)
    return ctx


@pytest.fixture
def executor(context: DatabaseContext) -> QueryExecutor:
    return QueryExecutor(context)


@pytest.fixture
def catalog(executor: QueryExecutor) -> CatalogReader:
    return CatalogReader(executor)


@pytest.fixture
def router(context: DatabaseContext) -> ToolRouter:
    return ToolRouter(context)


@pytest.fixture
def protocol(router: ToolRouter) -> ProtocolEngine:
    return ProtocolEngine(router)


@pytest.fixture
def unconfigured_router() -> ToolRouter:
    return ToolRouter(DatabaseContext())
