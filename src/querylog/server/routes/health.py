"""
This module defines the health check endpoint for the querylog server.

It provides a simple way to verify that the server is running and that its
persistence backend is configured.
"""

import time
from typing import Any

from fastapi import APIRouter, Depends

from ... import __version__
from ...query_history import QueryHistory
from ..dependencies import get_query_history
from ..models.response import HealthResponse

router = APIRouter(tags=["health"])

# Track server start time for uptime calculation
_start_time = time.time()


@router.get("/health", response_model=HealthResponse)
async def health_check(history: QueryHistory = Depends(get_query_history)) -> Any:
    """
    Provides a health check endpoint for monitoring the server's status.

    Returns:
        A `HealthResponse` object containing the server's status, version,
        uptime and storage information.
    """
    uptime = time.time() - _start_time

    return HealthResponse(status="healthy", version=__version__, uptime=uptime, storage=history.backend.get_info())
