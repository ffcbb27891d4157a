"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance and manages the
engine lifecycle: the store, collaborators and workers are created on
startup and torn down on shutdown.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from src.adapters.repository.memory import InMemoryConversationRepository, InMemoryRefundArchive
from src.adapters.repository.postgres import (
    PostgresConversationRepository,
    PostgresRefundArchive,
    run_migrations,
)
from src.api.dependencies import build_engine_config, load_collaborators
from src.api.v1 import router as v1_router
from src.config.settings import Settings, get_settings
from src.domain.engine import Collaborators, Engine

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Operator API v1 - Feed mentions, restart workers and manage refunds",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Opens the database pool and runs migrations when DATABASE_URL is set
    - Loads collaborators and builds the engine
    - Starts both workers
    - Stops the workers and closes the pool on shutdown
    """
    settings: Settings = app.state.settings
    logging.basicConfig(level=settings.log_level)

    logger.info("Starting application...")

    pool = None
    if settings.database_url:
        logger.info("Connecting to database...")
        pool = ConnectionPool(
            conninfo=settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            open=True,
        )
        logger.info("Running database migrations...")
        run_migrations(pool)
        conversations = PostgresConversationRepository(pool)
        archive = PostgresRefundArchive(pool)
    else:
        logger.info("No DATABASE_URL configured, using in-memory state")
        conversations = InMemoryConversationRepository()
        archive = InMemoryRefundArchive()

    collaborators = app.state.collaborators or load_collaborators(settings)
    engine = Engine(collaborators, conversations, archive, build_engine_config(settings))

    app.state.pool = pool
    app.state.engine = engine

    if settings.start_workers:
        engine.start()

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    await engine.stop()
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed")


def create_app(
    settings: Settings | None = None,
    collaborators: Collaborators | None = None,
) -> FastAPI:
    """
    Create the application.

    Args:
        settings: Settings to use, defaults to get_settings()
        collaborators: Pre-built collaborators; loaded from
            COLLABORATORS_FACTORY at startup when omitted
    """
    application = FastAPI(
        title="basenames-bot",
        description="Mention-driven name registration - deposit monitoring and refund engine",
        version="0.1.0",
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )
    application.state.settings = settings or get_settings()
    application.state.collaborators = collaborators

    # Include v1 API routes
    application.include_router(v1_router, prefix="/v1")

    @application.get("/health")
    async def health_check(request: Request) -> dict[str, object]:
        """
        Health check endpoint with queue depths.

        Returns 200 OK with worker liveness. Validates database
        connectivity when Postgres is configured.
        """
        pool = request.app.state.pool
        if pool is not None:
            with pool.connection() as conn:
                conn.execute("SELECT 1")

        snapshot = request.app.state.engine.snapshot()
        return {
            "status": "healthy",
            "pending_deposits": snapshot.pending_deposits,
            "pending_refunds": snapshot.pending_refunds,
            "archived_refunds": snapshot.archived_refunds,
            "workers": snapshot.workers,
        }

    return application


app = create_app()
