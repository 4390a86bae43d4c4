"""
This module configures and initializes the FastAPI application for the querylog server.

Key responsibilities include:
- Opening the persistence backend on startup and closing it on shutdown.
- Configuring middleware for CORS and request logging.
- Including the v1 health and query history routers.
- Providing a root endpoint for basic server information.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .. import __version__
from ..my_logging import setup_debug_logging
from .middleware.cors import add_cors_middleware
from .middleware.logging import add_logging_middleware
from .routes import health, history
from .state import server_state

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle."""
    setup_debug_logging()
    logger.info(f"Starting querylog server {__version__}")
    yield
    # Shutdown: close the persistence backend
    await server_state.shutdown()


# Create FastAPI application
app = FastAPI(
    title="querylog Server",
    description="Per-user query history with repeated run instances and output metrics",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Add middleware
add_cors_middleware(app)
add_logging_middleware(app)

# Include routers
app.include_router(health.router, prefix="/api/v1")
app.include_router(history.router, prefix="/api/v1")


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic server information."""
    return {
        "name": "querylog Server",
        "version": __version__,
        "description": "Per-user query history",
        "docs_url": "/docs",
        "health_url": "/api/v1/health",
    }
