from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.plugins.manager import PluginManager
from app.services.market_hours import MarketHoursService
from app.services.price_refresh import PriceRefreshService
from app.services.price_staleness import PriceStatusService


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> None:
    """Open a session and run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text
    from sqlalchemy.exc import SQLAlchemyError

    from db.session import SessionLocal

    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema() -> None:
    """
    Compare Base.metadata table names against the live DB schema.

    Every table registered on Base.metadata must exist in the database.
    Does NOT auto-migrate.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401  registers all ORM models on Base.metadata
    from db.base import Base
    from db.session import get_engine

    inspector = sa_inspect(get_engine())
    actual: set[str] = set(inspector.get_table_names())
    expected: set[str] = set(Base.metadata.tables.keys())
    missing = expected - actual

    if missing:
        logging.getLogger(__name__).critical(
            "Schema mismatch: %d table(s) absent from the database: %s. "
            "Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


def _build_services(application: FastAPI) -> None:
    """
    Build the default plugin registry, manager and price services on app state.
    """

    from app.plugins.defaults import build_default_registry
    from app.plugins.manager import CachedPluginManager
    from app.services.market_hours import get_market_hours_service
    from app.services.quote_service import get_crypto_quote_provider, get_quote_provider
    from db.session import SessionLocal

    quote_provider = get_quote_provider()
    registry = build_default_registry(
        session_factory=SessionLocal,
        quote_provider=quote_provider,
        crypto_quote_provider=get_crypto_quote_provider(),
    )
    market_hours = get_market_hours_service()
    manager = CachedPluginManager(registry=registry)
    status_service = PriceStatusService(
        session_factory=SessionLocal,
        market_hours=market_hours,
        provider_name=quote_provider.provider_name,
    )
    application.state.plugin_manager = manager
    application.state.market_hours_service = market_hours
    application.state.price_status_service = status_service
    application.state.price_refresh_service = PriceRefreshService(
        session_factory=SessionLocal,
        quote_provider=quote_provider,
        status_service=status_service,
        market_hours=market_hours,
        on_update=manager.invalidate,
    )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate DB connectivity and schema, then build plugin services unless injected."""
    log = logging.getLogger(__name__)
    if getattr(application.state, "plugin_manager", None) is None:
        _check_db()
        log.info("Database connectivity confirmed")
        _check_schema()
        log.info("Database schema validated")
        _build_services(application)
        log.info("Plugin services initialized")
    yield


def create_app(
    *,
    plugin_manager: PluginManager | None = None,
    price_status_service: PriceStatusService | None = None,
    market_hours_service: MarketHoursService | None = None,
    price_refresh_service: PriceRefreshService | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Services passed in are used as-is (tests pass isolated ones); otherwise
    the lifespan hook builds them against the configured database.
    """

    _configure_logging()

    application = FastAPI(
        title="Networth API",
        version="1.0.0",
        lifespan=_lifespan,
    )
    application.state.plugin_manager = plugin_manager
    application.state.price_status_service = price_status_service
    application.state.market_hours_service = market_hours_service
    application.state.price_refresh_service = price_refresh_service

    from app.api.routers import plugins_router, prices_router

    application.include_router(plugins_router)
    application.include_router(prices_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
