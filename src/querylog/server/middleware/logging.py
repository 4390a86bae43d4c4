"""
This module provides a standard request logging middleware for FastAPI.

It times each request, logs the method, path, status and duration, and adds
the processing time as a custom `X-Process-Time` header to the response.
"""

import logging
import time
from collections.abc import Callable
from typing import Any, cast

from fastapi import FastAPI, Request, Response

logger = logging.getLogger("querylog.server.requests")


def add_logging_middleware(app: FastAPI) -> None:
    """
    Adds a request logging middleware to the FastAPI application.

    Args:
        app: The `FastAPI` application instance.
    """

    @app.middleware("http")
    async def log_requests(request: Request, call_next: Callable[[Request], Any]) -> Response:
        """
        Middleware function to time and log requests.

        Args:
            request: The incoming `Request` object.
            call_next: The next middleware or endpoint in the processing chain.

        Returns:
            The `Response` object with the added process time header.
        """
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({process_time * 1000:.1f} ms)")

        response.headers["X-Process-Time"] = str(process_time)

        return cast(Response, response)
