"""
Restore Request Model

Domain model for one asynchronous restore operation and its current status.
Serialized with PascalCase property names so payloads stay readable by the
backup service that writes the same table.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic.alias_generators import to_pascal

from restore_api.workflow.enums import RestoreStatus
from restore_api.workflow.enums import RestoreType


class RestoreRequest(BaseModel):
    """Restore request and response data."""

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,  # Allow both 'status_location_uri' and 'StatusLocationUri'
        extra="allow",  # Fields unknown to this service are carried through untouched
    )

    req_type: Optional[RestoreType] = None
    container_name: Optional[str] = None
    blob_name: Optional[str] = None
    start_date: Optional[str] = None  # yyyyMMdd, first day of the restore window
    end_date: Optional[str] = None  # yyyyMMdd, last day of the restore window
    status: RestoreStatus = RestoreStatus.ACCEPTED
    status_location_uri: Optional[str] = None
    exception_message: Optional[str] = None
    total_success_count: int = 0
    total_failure_count: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    current_time: Optional[datetime] = None

    def to_payload_json(self) -> str:
        """Serialize the full request snapshot stored in the table."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_payload_json(cls, payload: str) -> "RestoreRequest":
        """Rebuild a request from a stored payload snapshot."""
        return cls.model_validate_json(payload)
