"""
FastAPI Main Application
Entry point for the audit API server
Source: https://fastapi.tiangolo.com/

Run with: uvicorn glosa_audit.api.main:app --port 8000 --reload
"""

from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI

from glosa_audit import __version__
from glosa_audit.api.routes import audit, health
from glosa_audit.core.config import AuditSettings, get_settings
from glosa_audit.db.connection import close_db_connection, create_all, get_session_maker
from glosa_audit.db.seeds import seed_reference_data
from glosa_audit.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def create_app(settings: Optional[AuditSettings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Outside production the lifespan creates missing tables and seeds the
    reference data (tariffs, procedure catalogue, default audit rules).
    """
    settings = settings or get_settings()

    setup_logging(
        level=settings.LOG_LEVEL,
        log_file=settings.LOG_FILE,
        json_logs=settings.JSON_LOGS or settings.is_production,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):  # type: ignore[no-untyped-def]  # noqa: ARG001
        # Startup
        logger.info(f"Starting audit API in {settings.ENVIRONMENT} mode")
        logger.info(f"Debug mode: {settings.DEBUG}")
        if not settings.is_production and not settings.is_testing:
            await create_all()
            async with get_session_maker()() as session:
                await seed_reference_data(session)

        yield

        # Shutdown
        logger.info("Shutting down audit API")
        await close_db_connection()
        logger.info("Database connections closed")

    app = FastAPI(
        title="Glosa Audit API",
        description="Deterministic audit of medical claims: tariff pricing, audit rules and glosas",
        version=__version__,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.include_router(health.router)
    app.include_router(audit.router)

    @app.get("/")
    async def root() -> dict[str, Any]:
        return {
            "name": "Glosa Audit API",
            "version": __version__,
            "environment": settings.ENVIRONMENT,
            "docs": "/docs" if not settings.is_production else "disabled",
        }

    return app


app = create_app()
