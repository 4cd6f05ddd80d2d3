"""
tests/conftest.py

Shared fixtures: an isolated in-memory database per test, the default
plugin registry built on top of it, and a deterministic quote provider.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401  registers all ORM models on Base.metadata
from app.connectors.mock_quote_connector import MockQuoteProvider
from app.plugins.defaults import build_default_registry
from app.plugins.manager import PluginManager
from app.plugins.registry import PluginRegistry
from db.base import Base
from db.session import create_session_factory


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """
    Let pysqlite emit SAVEPOINT correctly (SQLAlchemy's documented recipe).
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(connection: Any) -> None:
        connection.exec_driver_sql("BEGIN")


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    _enable_sqlite_savepoints(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return create_session_factory(engine)


@pytest.fixture()
def quote_provider() -> MockQuoteProvider:
    return MockQuoteProvider()


@pytest.fixture()
def registry(session_factory: sessionmaker[Session], quote_provider: MockQuoteProvider) -> PluginRegistry:
    return build_default_registry(
        session_factory=session_factory,
        quote_provider=quote_provider,
        crypto_quote_provider=quote_provider,
    )


@pytest.fixture()
def manager(registry: PluginRegistry) -> PluginManager:
    return PluginManager(registry=registry)
