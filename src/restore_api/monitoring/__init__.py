"""Monitoring package for logging."""

from restore_api.monitoring.logger import configure_logger

__all__ = [
    "configure_logger",
]
