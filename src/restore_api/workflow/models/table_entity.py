"""
Restore Table Entity

Stored record for one restore request plus the explicit mapping between the
record, the Azure Table entity dict and the domain request.
"""

from typing import Any
from typing import Dict
from typing import Mapping
from typing import Optional

from pydantic import BaseModel

from restore_api.workflow.models.restore_request import RestoreRequest

# Model field -> Azure Table property. Property names match the tables already
# written by the backup service.
ENTITY_FIELDS: Dict[str, str] = {
    "partition_key": "PartitionKey",
    "row_key": "RowKey",
    "current_status": "CurrentStatus",
    "payload_json": "RestoreReqRespDataJSON",
}

CURRENT_STATUS_PROPERTY = ENTITY_FIELDS["current_status"]


class RestoreTableEntity(BaseModel):
    """Restore request table entity."""

    partition_key: str  # {year}_{week}
    row_key: str  # request GUID
    current_status: str  # mirrors the payload status, used for server-side filtering
    payload_json: str  # full RestoreRequest snapshot
    etag: Optional[str] = None  # set on entities read back from the store, never written


def to_table_entity(record: RestoreTableEntity) -> Dict[str, str]:
    """Map a record onto the property dict sent to the table store."""
    return {prop: getattr(record, field) for field, prop in ENTITY_FIELDS.items()}


def from_table_entity(entity: Mapping[str, Any], etag: Optional[str] = None) -> RestoreTableEntity:
    """
    Map a table store entity back onto a record.

    Raises:
        KeyError: if the entity lacks one of the mapped properties
    """
    values = {field: entity[prop] for field, prop in ENTITY_FIELDS.items()}
    return RestoreTableEntity(etag=etag, **values)


def record_from_request(request: RestoreRequest, partition_key: str, row_key: str) -> RestoreTableEntity:
    """Build the record for a request; status column and payload always come from the same snapshot."""
    return RestoreTableEntity(
        partition_key=partition_key,
        row_key=row_key,
        current_status=request.status.value,
        payload_json=request.to_payload_json(),
    )


def request_from_record(record: RestoreTableEntity) -> RestoreRequest:
    """Deserialize the request snapshot held by a record."""
    return RestoreRequest.from_payload_json(record.payload_json)
