"""Per-user query history tracking for querylog."""

from .errors import DataIntegrityError, InvalidInputError, PersistenceError, QueryLogError, UserNotFoundError
from .history import QueryHistory
from .models import Instance, InstanceDetail, QueryEntry, QuerySummary, UserRecord

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
]
