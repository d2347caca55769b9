"""
Restore Request Poller

Background task that polls the restore request table and runs the restore
handler for each claimed request.
"""

import asyncio
from datetime import datetime
from datetime import timezone
from typing import Awaitable
from typing import Callable
from typing import Optional

from loguru import logger

from restore_api.errors import StoreUnavailableError
from restore_api.workflow.db.repository_restore import RestoreTableRepository
from restore_api.workflow.enums import RestoreStatus
from restore_api.workflow.models.restore_request import RestoreRequest

RestoreHandler = Callable[[RestoreRequest], Awaitable[Optional[RestoreRequest]]]


def is_retryable_error(error: Exception) -> bool:
    """
    Determine if an error is transient and should be retried.

    Retryable errors (transient failures):
    - Timeout errors (TimeoutError, ServiceResponseTimeoutError, ...)
    - Network errors (ConnectionError, ServiceRequestError, ...)
    - HTTP 429 Too Many Requests, 503 Service Unavailable, 504 Gateway Timeout
    - StoreUnavailableError wrapping any of the above

    Non-retryable errors (permanent failures):
    - ValueError (validation errors, malformed locators)
    - PermissionError, KeyError, TypeError
    - HTTP 4xx errors (except 429)

    Args:
        error: The exception to check

    Returns:
        True if error should be retried, False otherwise
    """
    if isinstance(error, StoreUnavailableError):
        return is_retryable_error(error.original)

    if isinstance(error, (TimeoutError, asyncio.TimeoutError, ConnectionError)):
        return True

    status_code = getattr(error, "status_code", None)
    if status_code in (429, 503, 504):
        return True

    error_str = str(error).lower()
    error_type = type(error).__name__

    # Non-retryable errors - fail immediately
    if isinstance(error, (ValueError, PermissionError, KeyError, TypeError)):
        return False

    # Azure SDK transport errors (ServiceRequestError, ServiceResponseError, ...Timeout...)
    if "timeout" in error_type.lower() or "timeout" in error_str:
        return True
    if error_type in ("ServiceRequestError", "ServiceResponseError"):
        return True
    if "connection" in error_type.lower() or "connection" in error_str:
        return True

    if "service unavailable" in error_str or "too many requests" in error_str or "server busy" in error_str:
        return True

    # Default: don't retry unknown errors
    return False


async def run_once(
    repository: RestoreTableRepository,
    handler: RestoreHandler,
    worker_name: str = "restore-poller",
    max_retries: int = 1,
    retry_delay_seconds: float = 5.0,
    stop_event: Optional[asyncio.Event] = None,
) -> bool:
    """
    Claim and process one pending restore request.

    The claimed request is marked IN_PROGRESS before the handler runs, then
    COMPLETED with the handler's result, or FAILED with the error message.
    Retryable handler errors are retried up to max_retries times.

    If a status write fails after the claim, the request is put back to
    ACCEPTED (best effort) so a later poll can pick it up again, and the
    store error is re-raised.

    Args:
        repository: Restore request repository
        handler: Coroutine performing the restore; may return an updated request
        worker_name: Name recorded with the claim
        max_retries: Extra attempts for retryable handler errors
        retry_delay_seconds: Wait between attempts
        stop_event: Cuts the wait between attempts short when set

    Returns:
        True if a request was processed, False if none was pending

    Raises:
        StoreUnavailableError: if a status write failed after the claim
    """
    claimed = await repository.claim_next_restore_request(claimed_by=worker_name)
    if claimed is None:
        return False

    try:
        await _process_claimed(repository, handler, claimed, worker_name, max_retries, retry_delay_seconds, stop_event)
    except StoreUnavailableError:
        await _release_claim(repository, claimed)
        raise
    return True


async def _process_claimed(
    repository: RestoreTableRepository,
    handler: RestoreHandler,
    claimed: RestoreRequest,
    worker_name: str,
    max_retries: int,
    retry_delay_seconds: float,
    stop_event: Optional[asyncio.Event],
) -> None:
    """Run the handler for a claimed request and record the outcome."""
    location = claimed.status_location_uri
    request = claimed.model_copy(
        update={"status": RestoreStatus.IN_PROGRESS, "start_time": datetime.now(timezone.utc)}
    )
    await repository.update_restore_request(request)
    logger.info(f"Processing restore request {location} on {worker_name}")

    retry_count = 0
    while True:
        try:
            result = await handler(request)
            break
        except Exception as err:  # pylint: disable=broad-except
            if is_retryable_error(err) and retry_count < max_retries:
                retry_count += 1
                logger.warning(
                    f"Restore of {location} failed with retryable error (attempt {retry_count}/{max_retries + 1}): {err}"
                )
                await _idle(retry_delay_seconds, stop_event)
                continue

            logger.exception(f"Restore request {location} failed: {err}")
            failed = request.model_copy(
                update={
                    "status": RestoreStatus.FAILED,
                    "exception_message": str(err),
                    "end_time": datetime.now(timezone.utc),
                }
            )
            await repository.update_restore_request(failed)
            return

    completed = (result or request).model_copy(
        update={
            "status": RestoreStatus.COMPLETED,
            "status_location_uri": location,
            "end_time": datetime.now(timezone.utc),
        }
    )
    await repository.update_restore_request(completed)
    logger.success(f"Restore request {location} completed")


async def _release_claim(repository: RestoreTableRepository, claimed: RestoreRequest) -> None:
    """Put a claimed request back to ACCEPTED; failures are logged, the caller re-raises the original error."""
    location = claimed.status_location_uri
    released = claimed.model_copy(update={"status": RestoreStatus.ACCEPTED})
    try:
        await repository.update_restore_request(released)
    except StoreUnavailableError as err:
        logger.error(f"Could not release restore request {location} back to ACCEPTED: {err}")
        return
    logger.warning(f"Restore request {location} released back to ACCEPTED after a store failure")


async def poll_restore_requests(
    repository: RestoreTableRepository,
    handler: RestoreHandler,
    interval_seconds: float = 30.0,
    stop_event: Optional[asyncio.Event] = None,
    worker_name: str = "restore-poller",
) -> None:
    """
    Poll for pending restore requests until stop_event is set.

    Sleeps interval_seconds whenever the current week's partition has no
    pending request. Errors from one iteration are logged and the loop goes on.

    Args:
        repository: Restore request repository
        handler: Coroutine performing the restore
        interval_seconds: Idle sleep between polls
        stop_event: Set to stop the loop (runs forever when None)
        worker_name: Name recorded with each claim
    """
    logger.info("Restore request poller started", worker=worker_name)

    while stop_event is None or not stop_event.is_set():
        try:
            did_work = await run_once(repository, handler, worker_name=worker_name, stop_event=stop_event)
        except Exception as e:  # pylint: disable=broad-except
            logger.exception(f"Error polling restore requests: {e}")
            did_work = False

        if not did_work:
            await _idle(interval_seconds, stop_event)

    logger.info("Restore request poller stopped", worker=worker_name)


async def _idle(interval_seconds: float, stop_event: Optional[asyncio.Event]) -> None:
    """Sleep for the given interval, waking early if stop_event is set."""
    if stop_event is None:
        await asyncio.sleep(interval_seconds)
        return
    try:
        await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
    except asyncio.TimeoutError:
        pass
