"""Data model for per-user query history."""

import uuid
from dataclasses import dataclass, field
from typing import Any

from .errors import DataIntegrityError


def new_instance_id() -> str:
    """Generate a globally unique identifier for one recorded run."""
    return str(uuid.uuid4())


def new_entry_id() -> str:
    """Generate an opaque identifier for a new query entry."""
    return uuid.uuid4().hex


def _first_present(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


@dataclass
class Instance:
    """One recorded run of a query."""

    instance_id: str
    output_metrics: Any
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {"instance_id": self.instance_id, "output_metrics": self.output_metrics, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Instance":
        return cls(instance_id=data["instance_id"], output_metrics=data.get("output_metrics"), timestamp=data["timestamp"])


@dataclass
class QueryEntry:
    """
    The full instance history of one distinct query string.

    Instances are kept as a single list, so the per-instance views
    (`instance_ids`, `output_metrics`, `timestamps`) and `counter` can never
    drift out of alignment.

    Attributes:
        query_string: The distinct query text.
        id: Stable identifier used by callers to address this entry.
        instances: Recorded runs, oldest first.
    """

    query_string: str
    id: str = field(default_factory=new_entry_id)
    instances: list[Instance] = field(default_factory=list)

    @property
    def counter(self) -> int:
        """Number of instances currently recorded."""
        return len(self.instances)

    @property
    def instance_ids(self) -> list[str]:
        return [instance.instance_id for instance in self.instances]

    @property
    def output_metrics(self) -> list[Any]:
        return [instance.output_metrics for instance in self.instances]

    @property
    def timestamps(self) -> list[str]:
        return [instance.timestamp for instance in self.instances]

    def latest(self) -> Instance | None:
        """Return the most recently appended instance, if any."""
        return self.instances[-1] if self.instances else None

    def index_of(self, instance_id: str) -> int | None:
        """Return the position of an instance by id, or None if absent."""
        for index, instance in enumerate(self.instances):
            if instance.instance_id == instance_id:
                return index
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "query_string": self.query_string, "instances": [instance.to_dict() for instance in self.instances]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QueryEntry":
        """
        Build an entry from a stored document.

        Accepts both the `instances` list shape written by `to_dict` and the
        older parallel-array shape (`instance_ids`/`queryIDs`,
        `output_metrics`/`outputMetrics`, `timestamps`/`timeStamp`).

        Raises:
            DataIntegrityError: If the parallel arrays have different lengths
                                or an instance id appears twice.
        """
        entry_id = _first_present(data, "id", "_id")
        query_string = _first_present(data, "query_string", "queryString")
        if entry_id is None or query_string is None:
            raise DataIntegrityError("Stored query entry is missing its id or query string")

        if "instances" in data:
            instances = [Instance.from_dict(item) for item in data["instances"]]
        else:
            ids = _first_present(data, "instance_ids", "queryIDs") or []
            metrics = _first_present(data, "output_metrics", "outputMetrics") or []
            timestamps = _first_present(data, "timestamps", "timeStamp") or []
            if not len(ids) == len(metrics) == len(timestamps):
                raise DataIntegrityError(
                    f"Query entry {entry_id} has misaligned instance data "
                    f"(ids={len(ids)}, metrics={len(metrics)}, timestamps={len(timestamps)})"
                )
            instances = [Instance(instance_id=i, output_metrics=m, timestamp=t) for i, m, t in zip(ids, metrics, timestamps, strict=True)]

        entry = cls(query_string=query_string, id=str(entry_id), instances=instances)
        if len(set(entry.instance_ids)) != entry.counter:
            raise DataIntegrityError(f"Query entry {entry.id} contains duplicate instance ids")
        return entry


@dataclass
class UserRecord:
    """All query history for a single user."""

    username: str
    query_history: list[QueryEntry] = field(default_factory=list)

    def entries_for(self, query_string: str) -> list[QueryEntry]:
        """Return every entry recorded for a query string, in history order."""
        return [entry for entry in self.query_history if entry.query_string == query_string]

    def find_entry(self, entry_id: str) -> QueryEntry | None:
        """Return the first entry with the given id."""
        for entry in self.query_history:
            if entry.id == entry_id:
                return entry
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"username": self.username, "query_history": [entry.to_dict() for entry in self.query_history]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserRecord":
        history = _first_present(data, "query_history", "queryHistory") or []
        return cls(username=data["username"], query_history=[QueryEntry.from_dict(item) for item in history])


@dataclass
class QuerySummary:
    """A one-line view of an entry, as returned by the listing operation."""

    query_string: str
    timestamp: str | None
    id: str
    counter: int

    def to_dict(self) -> dict[str, Any]:
        return {"query_string": self.query_string, "timestamp": self.timestamp, "id": self.id, "counter": self.counter}


@dataclass
class InstanceDetail:
    """The stored data for a single instance, together with its query string."""

    query_string: str
    output_metrics: Any
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {"query_string": self.query_string, "output_metrics": self.output_metrics, "timestamp": self.timestamp}
