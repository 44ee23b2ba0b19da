"""
Error taxonomy for regindex.

The service layer raises these instead of store-library errors so that
callers (HTTP facade, CLI) never depend on sqlite3 exception types.
"""


class IndexServiceError(Exception):
    """Base class for all regindex errors."""


class SchemaError(IndexServiceError):
    """The backing store could not be opened or its schema applied."""


class StoreError(IndexServiceError):
    """A statement against the backing store failed."""


class NotFoundError(IndexServiceError):
    """No row matched the requested key."""

    def __init__(self, message: str = "not found", **key):
        super().__init__(message)
        self.key = key


class EventDecodeError(IndexServiceError):
    """A notification payload could not be decoded into change events."""
