"""
dbeval - Items API entry point

FastAPI application serving the items resource from Neon.

Usage:
    uvicorn dbeval.main:app
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, cast

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dbeval import __version__
from dbeval.api import items
from dbeval.config import configure_logging, get_settings
from dbeval.connectors import postgres_pool
from dbeval.errors import ConfigurationError

settings = get_settings()
configure_logging(settings)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager - handles startup and shutdown events.
    """
    logger.info("dbeval items API starting up...")
    logger.info(f"Environment: {'Development' if settings.APP_DEBUG else 'Production'}")

    try:
        pool = postgres_pool.get_default_pool(settings)
        await pool.initialize()
        logger.info("Neon pool initialized")
    except Exception as e:
        logger.error(f"Failed to initialize connection pool: {e}")
        logger.warning("Application starting without database connection")

    yield

    logger.info("dbeval items API shutting down...")
    try:
        await postgres_pool.close_default_pool()
    except Exception as e:
        logger.error(f"Error closing connection pool: {e}")


app = FastAPI(
    title="dbeval",
    description="Items API used alongside the database evaluation harness",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

if settings.APP_DEBUG:
    app.add_middleware(
        cast(Any, CORSMiddleware),
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info(f"CORS enabled for origins: {settings.CORS_ORIGINS}")

app.include_router(items.router)


@app.get("/health")
async def health():
    """Report whether the Neon pool answers `SELECT 1`."""
    try:
        pool = postgres_pool.get_default_pool(settings)
    except ConfigurationError:
        return {"status": "unconfigured", "database": False}
    healthy = await pool.is_healthy()
    return {
        "status": "ok" if healthy else "degraded",
        "database": healthy,
        "pool": await pool.get_pool_stats(),
    }
