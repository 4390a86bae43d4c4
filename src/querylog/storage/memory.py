"""In-memory persistence backend for development and testing."""

import asyncio
import copy
import logging
import uuid
from typing import Any

from ..query_history.models import UserRecord
from .base import PersistenceBackend, RecordExistsError, RecordNotFoundError, StorageConfig

logger = logging.getLogger(__name__)


class InMemoryBackend(PersistenceBackend):
    """
    Keeps user documents and raw metrics in process memory.

    Documents are stored in serialized form, so a loaded `UserRecord` is a
    private copy: changes only become visible to other readers after `save`.
    The optional `latency` option (seconds) delays every call, which is handy
    for exercising timeouts and interleaving.
    """

    def __init__(self, config: StorageConfig | None = None):
        """Initialize in-memory backend."""
        super().__init__(config or StorageConfig(type="memory"))
        options = self.config.options or {}
        self.latency = float(options.get("latency", 0.0))
        self._users: dict[str, dict[str, Any]] = {}
        self._metrics: dict[str, Any] = {}
        self.save_count = 0

    async def _wait(self) -> None:
        # Always yield once so concurrent callers interleave as they would against a real store
        await asyncio.sleep(self.latency)

    async def initialize(self) -> None:
        """Nothing to open; the store lives in this object."""
        logger.debug("InMemoryBackend initialized")

    async def find_user_by_name(self, username: str) -> UserRecord | None:
        """Load a private copy of the user's record, or None."""
        await self._wait()
        document = self._users.get(username)
        if document is None:
            return None
        return UserRecord.from_dict(copy.deepcopy(document))

    async def create_user(self, username: str) -> UserRecord:
        """Store an empty record for a new user."""
        await self._wait()
        if username in self._users:
            raise RecordExistsError(f"User {username} already exists")
        record = UserRecord(username=username)
        self._users[username] = record.to_dict()
        logger.debug(f"Created user document for {username}")
        return record

    async def save(self, record: UserRecord) -> None:
        """Replace an existing user's document."""
        await self._wait()
        if record.username not in self._users:
            raise RecordNotFoundError(f"User {record.username} not found")
        self._users[record.username] = copy.deepcopy(record.to_dict())
        self.save_count += 1

    async def insert_metrics(self, payload: Any) -> str:
        """Store a raw metrics payload and return its new id."""
        await self._wait()
        metrics_id = uuid.uuid4().hex
        self._metrics[metrics_id] = copy.deepcopy(payload)
        return metrics_id

    async def delete_metrics_by_id(self, metrics_id: str) -> None:
        """Remove a raw metrics record."""
        await self._wait()
        if metrics_id not in self._metrics:
            raise RecordNotFoundError(f"Metrics record {metrics_id} not found")
        del self._metrics[metrics_id]

    def put_document(self, document: dict[str, Any]) -> None:
        """Stores a raw user document as-is, bypassing model validation."""
        self._users[document["username"]] = copy.deepcopy(document)

    def has_metrics(self, metrics_id: str) -> bool:
        """Checks whether a raw metrics record is stored."""
        return metrics_id in self._metrics

    async def close(self) -> None:
        """Close the backend. Stored documents are kept."""
        logger.debug("InMemoryBackend close (no-op)")

    def get_info(self) -> dict[str, Any]:
        """Get information about the backend."""
        return {"type": "memory", "users": len(self._users), "metrics_records": len(self._metrics), "latency": self.latency}
