"""
This module configures the Cross-Origin Resource Sharing (CORS) middleware.

The query history API is typically called from a browser dashboard served
from another origin, so cross-origin requests have to be allowed.
"""

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


def add_cors_middleware(app: FastAPI) -> None:
    """
    Adds the CORS middleware to the FastAPI application.

    Allowed origins are read from the comma-separated `QUERYLOG_CORS_ORIGINS`
    environment variable and default to "*".

    Args:
        app: The `FastAPI` application instance.
    """
    origins = [origin.strip() for origin in os.environ.get("QUERYLOG_CORS_ORIGINS", "*").split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
