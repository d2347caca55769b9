"""
Restore Table Store

Thin async wrapper around the Azure Table Storage client for the restore
request table. Translates Azure SDK failures into the repository error types
and hands back RestoreTableEntity records instead of SDK entities.
"""

from typing import Any
from typing import AsyncIterator
from typing import List
from typing import Optional

from azure.core import MatchConditions
from azure.core.exceptions import AzureError
from azure.core.exceptions import ResourceExistsError
from azure.core.exceptions import ResourceModifiedError
from azure.core.exceptions import ResourceNotFoundError
from azure.data.tables import UpdateMode
from azure.data.tables.aio import TableClient
from loguru import logger

from restore_api.errors import ClaimConflictError
from restore_api.errors import KeyCollisionError
from restore_api.errors import StoreUnavailableError
from restore_api.settings import RestoreTableConfig
from restore_api.workflow.models.table_entity import RestoreTableEntity
from restore_api.workflow.models.table_entity import from_table_entity
from restore_api.workflow.models.table_entity import to_table_entity


def _entity_etag(entity: Any) -> Optional[str]:
    """Read the etag the SDK attaches to returned entities."""
    metadata = getattr(entity, "metadata", None) or {}
    return metadata.get("etag")


class RestoreTableStore:
    """
    Restore request table handle.

    One instance per repository operation; use as an async context manager so
    the underlying HTTP session is closed when the operation finishes.
    """

    def __init__(self, client: TableClient):
        """
        Initialize table store.

        Args:
            client: Async Azure TableClient bound to the restore request table
        """
        self.client = client
        self.table_name = client.table_name

    @classmethod
    def from_config(cls, config: RestoreTableConfig) -> "RestoreTableStore":
        """Resolve the table handle from the connection string and table name."""
        client = TableClient.from_connection_string(config.connection_endpoint, table_name=config.table_name)
        return cls(client)

    async def __aenter__(self) -> "RestoreTableStore":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.client.close()

    async def create_table_if_not_exists(self) -> None:
        """Create the table (idempotent - no error if it already exists)."""
        try:
            await self.client.create_table()
            logger.info(f"Table '{self.table_name}' created")
        except ResourceExistsError:
            logger.debug("Table exists", table=self.table_name)
        except AzureError as err:
            raise StoreUnavailableError("create_table", err) from err

    async def insert(self, record: RestoreTableEntity) -> None:
        """
        Create-only insert.

        Raises:
            KeyCollisionError: if the (partition key, row key) pair already exists
            StoreUnavailableError: on any other store failure
        """
        try:
            await self.client.create_entity(entity=to_table_entity(record))
        except ResourceExistsError as err:
            raise KeyCollisionError(record.partition_key, record.row_key) from err
        except AzureError as err:
            raise StoreUnavailableError("insert", err) from err

    async def upsert(self, record: RestoreTableEntity) -> None:
        """Insert the entity, or merge its properties into the existing one."""
        try:
            await self.client.upsert_entity(entity=to_table_entity(record), mode=UpdateMode.MERGE)
        except AzureError as err:
            raise StoreUnavailableError("upsert", err) from err

    async def point_get(self, partition_key: str, row_key: str) -> Optional[RestoreTableEntity]:
        """Point lookup; None when no entity has this key pair."""
        try:
            entity = await self.client.get_entity(partition_key=partition_key, row_key=row_key)
        except ResourceNotFoundError:
            return None
        except AzureError as err:
            raise StoreUnavailableError("point_get", err) from err
        return from_table_entity(entity, etag=_entity_etag(entity))

    async def scan(
        self,
        partition_key: str,
        property_name: str,
        value: str,
        page_size: int = 1,
    ) -> AsyncIterator[List[RestoreTableEntity]]:
        """
        Scan one partition for entities whose property equals value.

        Yields one list per result page, following continuation tokens until the
        service reports no more pages. Pages can be empty. The sequence is not
        restartable; call scan again to start over.

        Args:
            partition_key: Partition to scan
            property_name: Table property compared for equality (e.g. "CurrentStatus")
            value: Value the property must equal
            page_size: Maximum entities per page (the service "take" count)
        """
        entities = self.client.query_entities(
            query_filter=f"PartitionKey eq @partition_key and {property_name} eq @value",
            parameters={"partition_key": partition_key, "value": value},
            results_per_page=page_size,
        )
        try:
            async for page in entities.by_page():
                yield [from_table_entity(entity, etag=_entity_etag(entity)) async for entity in page]
        except AzureError as err:
            raise StoreUnavailableError("scan", err) from err

    async def replace_if_unchanged(self, record: RestoreTableEntity) -> None:
        """
        Replace the entity only if its etag still matches ``record.etag``.

        Raises:
            ValueError: if the record carries no etag
            ClaimConflictError: if the entity changed or disappeared since it was read
            StoreUnavailableError: on any other store failure
        """
        if not record.etag:
            raise ValueError("replace_if_unchanged requires a record read from the store (missing etag)")

        try:
            await self.client.update_entity(
                entity=to_table_entity(record),
                mode=UpdateMode.REPLACE,
                etag=record.etag,
                match_condition=MatchConditions.IfNotModified,
            )
        except (ResourceModifiedError, ResourceNotFoundError) as err:
            raise ClaimConflictError(record.partition_key, record.row_key) from err
        except AzureError as err:
            raise StoreUnavailableError("replace", err) from err
