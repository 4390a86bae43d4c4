"""Persistence backends for query history."""

from .base import PersistenceBackend, RecordExistsError, RecordNotFoundError, StorageConfig
from .duckdb_backend import DuckDBBackend
from .memory import InMemoryBackend


def create_backend(config: StorageConfig) -> PersistenceBackend:
    """
    Creates an (uninitialized) backend for the given configuration.

    Raises:
        ValueError: If the storage type is unsupported.
    """
    storage_type = config.type.lower()
    if storage_type == "memory":
        return InMemoryBackend(config)
    if storage_type == "duckdb":
        return DuckDBBackend(config)
    raise ValueError(f"Unsupported storage type: {config.type}")


__all__ = [
    "PersistenceBackend",
    "StorageConfig",
    "RecordExistsError",
    "RecordNotFoundError",
    "InMemoryBackend",
    "DuckDBBackend",
    "create_backend",
]
