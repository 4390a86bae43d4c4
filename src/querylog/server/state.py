"""
This module provides a global state manager for the querylog server.

It defines the `ServerState` class, which holds the single `QueryHistory`
instance shared by all API routes. The history and its persistence backend
are created lazily from the loaded configuration on first access.
"""

import asyncio
import functools
import logging

from ..config import QueryLogConfig, get_config
from ..query_history import QueryHistory
from ..query_history.timestamps import current_timestamp
from ..storage import StorageConfig, create_backend

logger = logging.getLogger(__name__)


def build_query_history(config: QueryLogConfig) -> QueryHistory:
    """
    Creates a `QueryHistory` and its (uninitialized) backend from configuration.

    Args:
        config: The loaded querylog configuration.

    Returns:
        A `QueryHistory` whose backend still needs `initialize()`.
    """
    storage = config.storage
    path = storage.resolved_path() if storage.type.lower() == "duckdb" else storage.db_path
    backend = create_backend(StorageConfig(type=storage.type, path=path, options=storage.options))

    history = config.history
    return QueryHistory(
        backend,
        timeout_seconds=history.persistence_timeout_seconds,
        timestamp_factory=functools.partial(current_timestamp, history.utc_offset_hours),
        consistent_reads=history.consistent_reads,
    )


class ServerState:
    """
    Manages the global state of the server, primarily the query history.

    The history is built on first access so that importing the app does not
    touch the database. Concurrent first accesses share one history: a second
    caller waits for the first to finish initializing.
    """

    def __init__(self) -> None:
        """Initializes the ServerState."""
        self._query_history: QueryHistory | None = None
        self._init_lock = asyncio.Lock()

    async def get_query_history(self) -> QueryHistory:
        """
        Returns the shared `QueryHistory`, initializing it on first call.

        Raises:
            PersistenceError: If the storage backend cannot be opened.
        """
        if self._query_history is not None:
            return self._query_history

        async with self._init_lock:
            if self._query_history is None:
                query_history = build_query_history(get_config())
                await query_history.initialize()
                logger.info(f"Query history storage ready: {query_history.backend.get_info()}")
                self._query_history = query_history
        return self._query_history

    async def shutdown(self) -> None:
        """
        Closes the persistence backend, if one was opened.

        This method should be called during application shutdown.
        """
        if self._query_history is not None:
            await self._query_history.close()
            self._query_history = None


# Global server state instance
server_state = ServerState()
