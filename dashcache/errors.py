"""Exception types for dashcache.

Configuration and storage errors are recovered where they occur (logged,
treated as defaults or cache misses). Unknown group/operation errors and
query errors are raised to the caller.
"""


class CacheError(Exception):
    """Base class for dashcache errors.

    Each subclass carries a stable code that ActionResult reports alongside
    the message.
    """

    code = "cache_error"


class ConfigurationError(CacheError):
    """Persisted cache configuration could not be read or validated."""

    code = "configuration_error"


class StorageError(CacheError):
    """The durable key-value substrate could not be read or written."""

    code = "storage_error"


class UnknownServiceGroupError(CacheError, KeyError):
    """A service group name is not in the catalog."""

    code = "unknown_service_group"

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown service group: {self.name}"


class UnknownOperationError(CacheError, KeyError):
    """An operation cannot be identified or is not known to the caller."""

    code = "unknown_operation"

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown operation: {self.name}"


class QueryError(CacheError):
    """The remote query execution failed (transport, HTTP status or GraphQL errors)."""

    code = "query_error"

    def __init__(self, message: str, operation: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code
