"""DuckDB persistence backend storing one JSON document per user."""

import asyncio
import json
import logging
import threading
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import duckdb

from ..query_history.models import UserRecord
from .base import PersistenceBackend, RecordExistsError, RecordNotFoundError, StorageConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DuckDBBackend(PersistenceBackend):
    """
    Stores user records and raw metrics in DuckDB tables.

    Each user's `query_history` is kept as a JSON document so a save replaces
    the whole record in one statement. The connection is shared, so every
    statement runs in a worker thread behind a lock.
    """

    SCHEMA_NAME = "__querylog__"

    def __init__(self, config: StorageConfig):
        """Initialize the DuckDB backend."""
        super().__init__(config)
        path = config.path or ":memory:"
        if path != ":memory:":
            path = str(Path(path).expanduser().resolve())
        self.db_path = path
        self._connection: duckdb.DuckDBPyConnection | None = None
        self._lock = threading.Lock()
        logger.info(f"DuckDBBackend initialized with path: {self.db_path}")

    async def initialize(self) -> None:
        """Open the connection and create the schema if needed."""
        if self._connection is not None:
            return
        if self.db_path != ":memory:":
            parent_dir = Path(self.db_path).parent
            if not parent_dir.exists():
                parent_dir.mkdir(parents=True, exist_ok=True)
                logger.info(f"Created directory: {parent_dir}")
        await asyncio.to_thread(self._connect)

    def _connect(self) -> None:
        with self._lock:
            self._connection = duckdb.connect(self.db_path)
            self._init_schema()

    def _init_schema(self) -> None:
        """Initialize the schema and tables."""
        assert self._connection is not None  # For mypy
        schema = self.SCHEMA_NAME

        self._connection.execute(f"CREATE SCHEMA IF NOT EXISTS {schema}")

        self._connection.execute(f"""
            CREATE TABLE IF NOT EXISTS {schema}.users (
                username VARCHAR PRIMARY KEY,
                query_history JSON NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        self._connection.execute(f"""
            CREATE TABLE IF NOT EXISTS {schema}.query_metrics (
                id VARCHAR PRIMARY KEY,
                payload JSON,
                recorded_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    async def _run(self, func: Callable[[duckdb.DuckDBPyConnection], T]) -> T:
        """Run a function against the connection in a worker thread."""
        if self._connection is None:
            raise RuntimeError("DuckDBBackend not initialized. Call initialize() first.")
        connection = self._connection

        def call() -> T:
            with self._lock:
                return func(connection)

        return await asyncio.to_thread(call)

    async def find_user_by_name(self, username: str) -> UserRecord | None:
        def query(connection: duckdb.DuckDBPyConnection) -> Any:
            return connection.execute(f"SELECT query_history FROM {self.SCHEMA_NAME}.users WHERE username = ?", [username]).fetchone()

        row = await self._run(query)
        if row is None:
            return None
        return UserRecord.from_dict({"username": username, "query_history": json.loads(row[0])})

    async def create_user(self, username: str) -> UserRecord:
        def insert(connection: duckdb.DuckDBPyConnection) -> None:
            try:
                connection.execute(f"INSERT INTO {self.SCHEMA_NAME}.users (username, query_history) VALUES (?, ?)", [username, "[]"])
            except duckdb.ConstraintException as e:
                raise RecordExistsError(f"User {username} already exists") from e

        await self._run(insert)
        logger.debug(f"Created user row for {username}")
        return UserRecord(username=username)

    async def save(self, record: UserRecord) -> None:
        document = json.dumps(record.to_dict()["query_history"])

        def update(connection: duckdb.DuckDBPyConnection) -> None:
            exists = connection.execute(f"SELECT 1 FROM {self.SCHEMA_NAME}.users WHERE username = ?", [record.username]).fetchone()
            if exists is None:
                raise RecordNotFoundError(f"User {record.username} not found")
            connection.execute(
                f"UPDATE {self.SCHEMA_NAME}.users SET query_history = ?, updated_at = CURRENT_TIMESTAMP WHERE username = ?",
                [document, record.username],
            )

        await self._run(update)

    async def insert_metrics(self, payload: Any) -> str:
        metrics_id = uuid.uuid4().hex

        def insert(connection: duckdb.DuckDBPyConnection) -> None:
            connection.execute(f"INSERT INTO {self.SCHEMA_NAME}.query_metrics (id, payload) VALUES (?, ?)", [metrics_id, json.dumps(payload)])

        await self._run(insert)
        return metrics_id

    async def delete_metrics_by_id(self, metrics_id: str) -> None:
        def delete(connection: duckdb.DuckDBPyConnection) -> None:
            exists = connection.execute(f"SELECT 1 FROM {self.SCHEMA_NAME}.query_metrics WHERE id = ?", [metrics_id]).fetchone()
            if exists is None:
                raise RecordNotFoundError(f"Metrics record {metrics_id} not found")
            connection.execute(f"DELETE FROM {self.SCHEMA_NAME}.query_metrics WHERE id = ?", [metrics_id])

        await self._run(delete)

    async def get_metrics(self, metrics_id: str) -> Any | None:
        """Load a raw metrics payload, or None if absent."""

        def query(connection: duckdb.DuckDBPyConnection) -> Any:
            return connection.execute(f"SELECT payload FROM {self.SCHEMA_NAME}.query_metrics WHERE id = ?", [metrics_id]).fetchone()

        row = await self._run(query)
        return json.loads(row[0]) if row else None

    async def close(self) -> None:
        """Close the connection."""
        if self._connection is None:
            return
        connection = self._connection
        self._connection = None

        def disconnect() -> None:
            with self._lock:
                connection.close()

        await asyncio.to_thread(disconnect)
        logger.debug(f"Closed DuckDB connection to {self.db_path}")

    def get_info(self) -> dict[str, Any]:
        """Get information about the backend."""
        info: dict[str, Any] = {"type": "duckdb", "path": self.db_path, "connected": self._connection is not None}

        if self.db_path != ":memory:" and Path(self.db_path).exists():
            stat = Path(self.db_path).stat()
            info["size_bytes"] = stat.st_size
            info["size_mb"] = round(stat.st_size / (1024 * 1024), 2)

        return info
