"""
This module defines the error kinds raised by the query history core.

Read operations never raise for a missing user or a missing match; they
return an empty result instead. Only invalid input, an absent user on a
write path, corrupted stored data, or a failing store are errors.
"""


class QueryLogError(Exception):
    """Base class for all query history errors."""

    code = "QUERYLOG_ERROR"


class InvalidInputError(QueryLogError, ValueError):
    """A required argument was missing or empty."""

    code = "INVALID_PARAMS"


class UserNotFoundError(QueryLogError, LookupError):
    """The referenced user has no record although one was expected."""

    code = "USER_NOT_FOUND"


class DataIntegrityError(QueryLogError):
    """A stored record violates the history invariants (duplicate or misaligned data)."""

    code = "DATA_INTEGRITY_ERROR"


class PersistenceError(QueryLogError):
    """The underlying store was unreachable, timed out, or returned an error."""

    code = "PERSISTENCE_ERROR"
