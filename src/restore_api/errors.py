"""Errors raised by the restore request table repository."""

from typing import Optional

from azure.core.exceptions import AzureError

# Explicit exports
__all__ = [
    "RestoreRepositoryError",
    "KeyCollisionError",
    "MalformedLocatorError",
    "StoreUnavailableError",
    "ClaimConflictError",
]


class RestoreRepositoryError(Exception):
    """Base class for all restore repository failures."""


class KeyCollisionError(RestoreRepositoryError):
    """A create-only insert targeted a (partition key, row key) pair that already exists."""

    def __init__(self, partition_key: str, row_key: str):
        self.partition_key = partition_key
        self.row_key = row_key
        super().__init__(f"Restore request {partition_key}/{row_key} already exists")


class MalformedLocatorError(RestoreRepositoryError, ValueError):
    """
    A status location URI does not end in ``/{partition_key}/{row_key}``.

    Raised before any call is made to the table store.
    """

    def __init__(self, locator: Optional[str], reason: str = "expected .../{partition_key}/{row_key}"):
        self.locator = locator
        self.reason = reason
        super().__init__(f"Malformed status location URI {locator!r}: {reason}")


class StoreUnavailableError(RestoreRepositoryError):
    """
    The table store failed (network, auth, throttling, server error).

    The Azure SDK exception is kept on ``original`` and chained as ``__cause__``.
    No retry is attempted at this layer.
    """

    def __init__(self, operation: str, original: AzureError):
        self.operation = operation
        self.original = original
        self.status_code = getattr(original, "status_code", None)
        super().__init__(f"Table store {operation} failed: {type(original).__name__}: {original}")


class ClaimConflictError(RestoreRepositoryError):
    """An etag-guarded claim lost the race: the entity changed after it was read."""

    def __init__(self, partition_key: str, row_key: str):
        self.partition_key = partition_key
        self.row_key = row_key
        super().__init__(f"Restore request {partition_key}/{row_key} was modified by another consumer")
