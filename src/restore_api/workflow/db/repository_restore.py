"""
Restore Request Repository

Persists asynchronous restore requests in Azure Table Storage and serves the
single-consumer dequeue-polling protocol on top of it.

Keys:
    PartitionKey  {iso_year}_{iso_week} of the clock at insert time
    RowKey        fresh GUID per request

Known limitations of the polling protocol (kept as-is):
    - get_next_restore_request scans only the partition of the *current* week.
      A request still ACCEPTED when the week rolls over is no longer returned.
    - No ordering beyond the store's natural row-key order; not FIFO.
    - get_next_restore_request is a read-only scan. Concurrent pollers can both
      receive the same request; use claim_next_restore_request for exclusivity.
"""

from contextlib import aclosing
from datetime import datetime
from datetime import timezone
from typing import AsyncContextManager
from typing import Callable
from typing import Optional

from loguru import logger

from restore_api.errors import ClaimConflictError
from restore_api.settings import RestoreTableConfig
from restore_api.settings import Settings
from restore_api.workflow.db.partition_keys import build_status_location
from restore_api.workflow.db.partition_keys import new_row_key
from restore_api.workflow.db.partition_keys import parse_status_location
from restore_api.workflow.db.partition_keys import week_partition_key
from restore_api.workflow.db.table_store import RestoreTableStore
from restore_api.workflow.enums import RestoreStatus
from restore_api.workflow.models.restore_request import RestoreRequest
from restore_api.workflow.models.table_entity import CURRENT_STATUS_PROPERTY
from restore_api.workflow.models.table_entity import record_from_request
from restore_api.workflow.models.table_entity import request_from_record

# Scan page size when looking for pending work ("return only one record at a time")
PENDING_PAGE_SIZE = 1


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


class RestoreTableRepository:
    """Restore request repository backed by one Azure Storage table."""

    def __init__(
        self,
        config: RestoreTableConfig,
        status_base_uri: str = "/api/restore",
        clock: Callable[[], datetime] = utc_now,
        store_factory: Optional[Callable[[RestoreTableConfig], AsyncContextManager[RestoreTableStore]]] = None,
    ):
        """
        Initialize restore repository.

        Args:
            config: Table connection string and table name
            status_base_uri: Prefix of the status location URIs stamped on inserted requests
            clock: Wall-clock source used for week bucketing
            store_factory: Builds a table handle for one operation (default: RestoreTableStore.from_config)
        """
        self.config = config
        self.status_base_uri = status_base_uri
        self._clock = clock
        self._store_factory = store_factory or RestoreTableStore.from_config

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "RestoreTableRepository":
        """Build a repository from process settings (table addressing and status base URI)."""
        return cls(settings.table_config(), status_base_uri=settings.restore_status_base_uri, **kwargs)

    def _open_store(self) -> AsyncContextManager[RestoreTableStore]:
        """Resolve a fresh table handle; no handle is cached between operations."""
        return self._store_factory(self.config)

    def current_partition_key(self) -> str:
        """Week bucket for the current clock reading."""
        return week_partition_key(self._clock())

    async def ensure_table(self) -> None:
        """Create the restore request table if it does not exist."""
        async with self._open_store() as store:
            await store.create_table_if_not_exists()

    async def insert_restore_request(self, restore_request: RestoreRequest) -> RestoreRequest:
        """
        Insert a new restore request.

        Derives the partition key from the current week and a fresh row key,
        stamps the status location URI onto the request and stores it with a
        create-only insert.

        Args:
            restore_request: Request to queue; status must be ACCEPTED

        Returns:
            The stored request, including its status location URI

        Raises:
            ValueError: if the request status is not ACCEPTED
            KeyCollisionError: if the derived key pair already exists
            StoreUnavailableError: on store failure
        """
        if restore_request.status != RestoreStatus.ACCEPTED:
            raise ValueError(f"New restore requests must be ACCEPTED, got {restore_request.status.value}")

        partition_key = self.current_partition_key()
        row_key = new_row_key()
        stored = restore_request.model_copy(
            update={"status_location_uri": build_status_location(self.status_base_uri, partition_key, row_key)}
        )

        async with self._open_store() as store:
            await store.insert(record_from_request(stored, partition_key, row_key))

        logger.info("Restore request accepted", partition_key=partition_key, row_key=row_key)
        return stored

    async def get_restore_request_details(self, partition_key: str, row_key: str) -> Optional[RestoreRequest]:
        """
        Get the current status/details of a restore request.

        Returns:
            The stored request, or None if no entity has this key pair
        """
        async with self._open_store() as store:
            record = await store.point_get(partition_key, row_key)

        if record is None:
            logger.debug("Restore request not found", partition_key=partition_key, row_key=row_key)
            return None
        return request_from_record(record)

    async def get_next_restore_request(self) -> Optional[RestoreRequest]:
        """
        Fetch the next restore request to be processed (status ACCEPTED).

        Scans the current week's partition only, filtered server-side on
        CurrentStatus. Pages are consumed until the first match, since the
        service may return empty pages with a continuation token.

        Returns:
            Some pending request of the current week, or None
        """
        partition_key = self.current_partition_key()

        async with self._open_store() as store, aclosing(
            store.scan(partition_key, CURRENT_STATUS_PROPERTY, RestoreStatus.ACCEPTED.value, page_size=PENDING_PAGE_SIZE)
        ) as pages:
            async for page in pages:
                if page:
                    record = page[0]
                    logger.debug("Pending restore request found", partition_key=partition_key, row_key=record.row_key)
                    return request_from_record(record)

        return None

    async def update_restore_request(self, restore_request: RestoreRequest) -> None:
        """
        Update a restore request entity.

        The key pair is taken from the request's status location URI. Status
        column and payload are written together in a single insert-or-merge,
        so repeating the same update leaves the same stored state.

        Raises:
            MalformedLocatorError: if the status location URI does not end in /{partition}/{row}
            StoreUnavailableError: on store failure
        """
        partition_key, row_key = parse_status_location(restore_request.status_location_uri)
        record = record_from_request(restore_request, partition_key, row_key)

        async with self._open_store() as store:
            await store.upsert(record)

        logger.info(
            "Restore request updated",
            partition_key=partition_key,
            row_key=row_key,
            status=restore_request.status.value,
        )

    async def claim_next_restore_request(self, claimed_by: Optional[str] = None) -> Optional[RestoreRequest]:
        """
        Claim one pending restore request of the current week for exclusive processing.

        Each ACCEPTED candidate is moved to CLAIMED with an etag-guarded
        replace. A candidate changed by another consumer in between is skipped.

        Args:
            claimed_by: Worker name, logged with the claim

        Returns:
            The claimed request (status CLAIMED), or None if nothing could be claimed
        """
        partition_key = self.current_partition_key()

        async with self._open_store() as store, aclosing(
            store.scan(partition_key, CURRENT_STATUS_PROPERTY, RestoreStatus.ACCEPTED.value, page_size=PENDING_PAGE_SIZE)
        ) as pages:
            async for page in pages:
                for candidate in page:
                    claimed = request_from_record(candidate).model_copy(update={"status": RestoreStatus.CLAIMED})
                    record = record_from_request(claimed, candidate.partition_key, candidate.row_key)
                    record.etag = candidate.etag
                    try:
                        await store.replace_if_unchanged(record)
                    except ClaimConflictError:
                        logger.debug(
                            "Restore request claimed elsewhere, trying next",
                            partition_key=candidate.partition_key,
                            row_key=candidate.row_key,
                        )
                        continue

                    logger.info(
                        "Restore request claimed",
                        partition_key=candidate.partition_key,
                        row_key=candidate.row_key,
                        claimed_by=claimed_by,
                    )
                    return claimed

        return None
