"""querylog - per-user query history with run instances and output metrics."""

__version__ = "0.1.0"

from .query_history import (
    DataIntegrityError,
    Instance,
    InstanceDetail,
    InvalidInputError,
    PersistenceError,
    QueryEntry,
    QueryHistory,
    QueryLogError,
    QuerySummary,
    UserNotFoundError,
    UserRecord,
)
from .storage import DuckDBBackend, InMemoryBackend, PersistenceBackend, StorageConfig, create_backend

__all__ = [
    "QueryHistory",
    "UserRecord",
    "QueryEntry",
    "Instance",
    "QuerySummary",
    "InstanceDetail",
    "QueryLogError",
    "InvalidInputError",
    "UserNotFoundError",
    "DataIntegrityError",
    "PersistenceError",
    "PersistenceBackend",
    "StorageConfig",
    "InMemoryBackend",
    "DuckDBBackend",
    "create_backend",
]
