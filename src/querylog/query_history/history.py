"""Per-user query history: find-or-create, append, listing, lookup and deletion."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from ..my_logging import debug_log
from .errors import DataIntegrityError, InvalidInputError, PersistenceError, UserNotFoundError
from .locks import KeyedLock
from .models import Instance, InstanceDetail, QueryEntry, QuerySummary, UserRecord, new_instance_id
from .timestamps import current_timestamp

if TYPE_CHECKING:
    from ..storage.base import PersistenceBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _require(**arguments: Any) -> None:
    """Raise InvalidInputError naming every argument that is None or empty."""
    missing = [name for name, value in arguments.items() if value is None or value == ""]
    if missing:
        raise InvalidInputError(f"Missing required parameter(s): {', '.join(missing)}")


class QueryHistory:
    """
    Records and queries per-user query history through a persistence backend.

    Every write is a read-modify-write of the user's whole record, so writes
    for the same username are serialized with a per-username lock. Writes for
    different usernames proceed independently. Reads never hold the lock.
    Without `consistent_reads` a read sees the record as of the last completed
    save; with it, a read first waits for in-flight writes of the same user,
    and reads of one user still overlap each other.
    """

    def __init__(
        self,
        backend: "PersistenceBackend",
        timeout_seconds: float = 5.0,
        timestamp_factory: Callable[[], str] | None = None,
        consistent_reads: bool = False,
    ):
        """
        Initialize query history.

        Args:
            backend: The store holding user records and raw metrics.
            timeout_seconds: Upper bound for every individual persistence call.
            timestamp_factory: Produces the timestamp for a new instance. Defaults
                               to the current local time.
            consistent_reads: If True, reads wait for in-flight writes of the same user.
        """
        self.backend = backend
        self.timeout_seconds = timeout_seconds
        self._timestamp_factory = timestamp_factory or current_timestamp
        self._consistent_reads = consistent_reads
        self._locks = KeyedLock()

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        """Await a persistence call under the timeout, converting storage failures."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)
        except TimeoutError as e:
            logger.error(f"Persistence {operation} timed out after {self.timeout_seconds}s")
            raise PersistenceError(f"Storage timed out during {operation}") from e
        except DataIntegrityError:
            raise
        except Exception as e:
            logger.error(f"Persistence {operation} failed: {type(e).__name__}: {e}")
            raise PersistenceError(f"Storage error during {operation}") from e

    @contextlib.asynccontextmanager
    async def _reading(self, username: str) -> AsyncIterator[None]:
        # Wait out in-flight writes, then read without holding the lock
        if self._consistent_reads:
            async with self._locks.hold(username):
                pass
        yield

    async def initialize(self) -> None:
        """
        Open the persistence backend.

        Raises:
            PersistenceError: If the store cannot be opened or prepared.
        """
        await self._call("initialize", self.backend.initialize())

    async def _load_existing(self, username: str) -> UserRecord:
        record = await self._call("user lookup", self.backend.find_user_by_name(username))
        if record is None:
            raise UserNotFoundError(f"No query history record for user {username}")
        return record

    async def find_or_create_user(self, username: str) -> UserRecord:
        """
        Load a user's record, creating an empty one on first contact.

        Repeated calls for the same username never create a second record.
        """
        _require(username=username)
        async with self._locks.hold(username):
            record = await self._call("user lookup", self.backend.find_user_by_name(username))
            if record is not None:
                return record
            record = await self._call("user creation", self.backend.create_user(username))
            logger.info(f"Created query history record for {username}")
            return record

    async def append_instance(self, username: str, query_string: str, output_metrics: Any) -> Instance:
        """
        Record a run of `query_string` for an existing user.

        A query string seen before gets a new instance on its entry; a new query
        string gets a new entry holding the single instance.

        Returns:
            The recorded instance.

        Raises:
            InvalidInputError: If any argument is missing.
            UserNotFoundError: If the user has no record yet.
            DataIntegrityError: If the stored history already holds the query string twice.
            PersistenceError: If loading or saving fails.
        """
        _require(username=username, query_string=query_string, output_metrics=output_metrics)
        async with self._locks.hold(username):
            record = await self._load_existing(username)
            timestamp = self._timestamp_factory()
            instance = Instance(instance_id=new_instance_id(), output_metrics=output_metrics, timestamp=timestamp)

            matches = record.entries_for(query_string)
            if len(matches) > 1:
                raise DataIntegrityError(f"User {username} has {len(matches)} entries for the same query string")

            if matches:
                matches[0].instances.append(instance)
                debug_log("Appended instance to existing query", username=username, entry_id=matches[0].id, counter=matches[0].counter)
            else:
                entry = QueryEntry(query_string=query_string, instances=[instance])
                record.query_history.append(entry)
                debug_log("Created new query entry", username=username, entry_id=entry.id)

            await self._call("save", self.backend.save(record))
            return instance

    async def list_queries(self, username: str) -> list[QuerySummary] | None:
        """
        Summarize every entry of a user's history, in first-seen order.

        Returns:
            One summary per entry with its latest timestamp and instance count,
            or None if the user has no record.
        """
        _require(username=username)
        async with self._reading(username):
            record = await self._call("user lookup", self.backend.find_user_by_name(username))
        if record is None:
            return None

        summaries = []
        for entry in record.query_history:
            latest = entry.latest()
            summaries.append(
                QuerySummary(
                    query_string=entry.query_string,
                    timestamp=latest.timestamp if latest else None,
                    id=entry.id,
                    counter=entry.counter,
                )
            )
        return summaries

    async def get_query(self, username: str, entry_id: str) -> QueryEntry | None:
        """Return the entry with the given id, or None if the user or entry is absent."""
        _require(username=username, entry_id=entry_id)
        async with self._reading(username):
            record = await self._call("user lookup", self.backend.find_user_by_name(username))
        if record is None:
            return None
        return record.find_entry(entry_id)

    async def get_instance(self, username: str, entry_id: str, instance_id: str) -> InstanceDetail | None:
        """
        Return one instance's query string, metrics and timestamp.

        Every entry with `entry_id` is scanned; if duplicates exist the last match wins.
        Returns None if nothing matches.
        """
        _require(username=username, entry_id=entry_id, instance_id=instance_id)
        async with self._reading(username):
            record = await self._call("user lookup", self.backend.find_user_by_name(username))
        if record is None:
            return None

        detail = None
        for entry in record.query_history:
            if entry.id != entry_id:
                continue
            for instance in entry.instances:
                if instance.instance_id == instance_id:
                    detail = InstanceDetail(query_string=entry.query_string, output_metrics=instance.output_metrics, timestamp=instance.timestamp)
        return detail

    async def delete_instance(self, username: str, entry_id: str, instance_id: str) -> bool:
        """
        Remove one instance from an entry.

        An entry whose last instance is removed is dropped from the history.
        Nothing matching is a no-op and nothing is written.

        Returns:
            True if an instance was removed.

        Raises:
            InvalidInputError: If any argument is missing.
            UserNotFoundError: If the user has no record.
            PersistenceError: If loading or saving fails.
        """
        _require(username=username, entry_id=entry_id, instance_id=instance_id)
        async with self._locks.hold(username):
            record = await self._load_existing(username)

            removed = False
            for entry in record.query_history:
                if entry.id != entry_id:
                    continue
                index = entry.index_of(instance_id)
                if index is None:
                    continue
                del entry.instances[index]
                removed = True

            if not removed:
                debug_log("Instance not found, nothing deleted", username=username, entry_id=entry_id, instance_id=instance_id)
                return False

            remaining = [entry for entry in record.query_history if entry.instances or entry.id != entry_id]
            if len(remaining) != len(record.query_history):
                logger.info(f"Removed empty query entry {entry_id} for {username}")
            record.query_history = remaining

            await self._call("save", self.backend.save(record))
            return True

    async def record_metrics(self, output_metrics: Any) -> str:
        """Store a standalone raw metrics record and return its id."""
        _require(output_metrics=output_metrics)
        return await self._call("metrics insert", self.backend.insert_metrics(output_metrics))

    async def delete_metrics_record(self, metrics_id: str) -> None:
        """
        Delete a standalone raw metrics record.

        Raises:
            InvalidInputError: If `metrics_id` is missing.
            PersistenceError: If the deletion fails, including when no record has that id.
        """
        _require(metrics_id=metrics_id)
        await self._call("metrics deletion", self.backend.delete_metrics_by_id(metrics_id))

    async def close(self) -> None:
        """Close the underlying backend."""
        await self.backend.close()
