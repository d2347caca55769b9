"""
Workflow Models Module

Pydantic models for the restore workflow:
- Domain request model (serialized payload)
- Table entity model and its mapping to Azure Table properties
"""

from restore_api.workflow.models.restore_request import RestoreRequest
from restore_api.workflow.models.table_entity import (
    CURRENT_STATUS_PROPERTY,
    ENTITY_FIELDS,
    RestoreTableEntity,
    from_table_entity,
    record_from_request,
    request_from_record,
    to_table_entity,
)

__all__ = [
    "RestoreRequest",
    "RestoreTableEntity",
    "ENTITY_FIELDS",
    "CURRENT_STATUS_PROPERTY",
    "to_table_entity",
    "from_table_entity",
    "record_from_request",
    "request_from_record",
]
