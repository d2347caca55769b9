"""
Restore worker entry point.

Builds the repository from settings and runs the polling loop. The restore
itself is supplied by the caller as an async handler.

Configuration is loaded from environment variables via pydantic-settings:
- Azure Function / Web App: set variables as Application settings
- Local development: use a .env file in the working directory
"""

import asyncio
from typing import Optional

from loguru import logger

from restore_api.monitoring.logger import configure_logger
from restore_api.settings import Settings
from restore_api.workflow.db.repository_restore import RestoreTableRepository
from restore_api.workflow.queue.restore_poller import RestoreHandler
from restore_api.workflow.queue.restore_poller import poll_restore_requests


def create_repository(settings: Optional[Settings] = None) -> RestoreTableRepository:
    """Configure logging and build the restore repository from settings."""
    settings = settings or Settings()

    configure_logger(level=settings.log_level)

    logger.info(
        "Configuration loaded successfully",
        table_name=settings.storage_restore_table_name,
        status_base_uri=settings.restore_status_base_uri,
        poll_interval_seconds=settings.restore_poll_interval_seconds,
    )
    return RestoreTableRepository.from_settings(settings)


async def run_worker(
    handler: RestoreHandler,
    settings: Optional[Settings] = None,
    stop_event: Optional[asyncio.Event] = None,
) -> None:
    """
    Create the table if needed and poll for restore requests until stop_event is set.

    Args:
        handler: Coroutine performing one restore
        settings: Process settings (read from the environment when omitted)
        stop_event: Set to stop the worker
    """
    settings = settings or Settings()
    repository = create_repository(settings)

    await repository.ensure_table()
    await poll_restore_requests(
        repository,
        handler,
        interval_seconds=settings.restore_poll_interval_seconds,
        stop_event=stop_event,
    )
