"""
Workflow Queue Module

Dequeue-polling over the restore request table.
"""

from restore_api.workflow.queue.restore_poller import is_retryable_error
from restore_api.workflow.queue.restore_poller import poll_restore_requests
from restore_api.workflow.queue.restore_poller import run_once

__all__ = [
    "is_retryable_error",
    "poll_restore_requests",
    "run_once",
]
