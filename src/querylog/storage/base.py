"""
This module defines the abstract base class and configuration for persistence backends.

A `PersistenceBackend` stores whole `UserRecord` documents keyed by username,
plus a separate collection of raw metrics records addressed by id. The query
history core only ever loads a full record, mutates it in memory and saves it
back, so backends need no field-level update support.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from ..query_history.models import UserRecord


class RecordNotFoundError(LookupError):
    """The addressed record does not exist in the store."""


class RecordExistsError(Exception):
    """A record with the same key already exists in the store."""


@dataclass
class StorageConfig:
    """
    Represents the configuration for a persistence backend.

    Attributes:
        type: The type of the backend ('memory' or 'duckdb').
        path: The database location for file-based backends (a file path or ':memory:').
        options: A dictionary of other backend-specific options.
    """

    type: str  # "memory", "duckdb"
    path: str | None = None
    options: dict[str, Any] | None = None


class PersistenceBackend(ABC):
    """
    An abstract base class for query history persistence.

    Implementations may raise `RecordNotFoundError`, `RecordExistsError` or their
    engine's own exceptions; callers are expected to translate them.
    """

    def __init__(self, config: StorageConfig):
        """
        Initializes the backend with its configuration.

        Args:
            config: A `StorageConfig` object with the backend details.
        """
        self.config = config

    @abstractmethod
    async def initialize(self) -> None:
        """Prepares the store (create files, schema, connections)."""
        pass

    @abstractmethod
    async def find_user_by_name(self, username: str) -> UserRecord | None:
        """Loads a user's full record, or returns None if the user has none."""
        pass

    @abstractmethod
    async def create_user(self, username: str) -> UserRecord:
        """
        Creates an empty record for a user.

        Raises:
            RecordExistsError: If the user already has a record.
        """
        pass

    @abstractmethod
    async def save(self, record: UserRecord) -> None:
        """
        Durably replaces the stored record with `record`.

        Raises:
            RecordNotFoundError: If the user has no stored record.
        """
        pass

    @abstractmethod
    async def insert_metrics(self, payload: Any) -> str:
        """Stores a raw metrics record and returns its generated id."""
        pass

    @abstractmethod
    async def delete_metrics_by_id(self, metrics_id: str) -> None:
        """
        Deletes a raw metrics record.

        Raises:
            RecordNotFoundError: If no record has the given id.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Releases any resources held by the backend."""
        pass

    @abstractmethod
    def get_info(self) -> dict[str, Any]:
        """
        Returns a dictionary with information about the backend.

        This is useful for monitoring and debugging purposes.
        """
        pass
