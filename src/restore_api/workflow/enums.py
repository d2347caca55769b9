"""
Workflow Enums

Values are persisted verbatim in the CurrentStatus table column and in the
serialized request payload.
"""

from enum import Enum


class RestoreStatus(str, Enum):
    """Restore request status."""

    ACCEPTED = "ACCEPTED"  # Queued, waiting for a worker
    CLAIMED = "CLAIMED"  # Taken by a worker, not started yet
    IN_PROGRESS = "IN_PROGRESS"  # Restore running
    COMPLETED = "COMPLETED"  # Restore finished
    FAILED = "FAILED"  # Restore failed, see exception_message


class RestoreType(str, Enum):
    """Granularity of a restore request."""

    CONTAINER = "CONTAINER"  # Restore every blob in a container for the date range
    BLOB = "BLOB"  # Restore a single blob
