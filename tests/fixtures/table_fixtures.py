"""Fixtures for an in-memory restore table store."""

from itertools import count
from typing import Dict
from typing import List
from typing import Optional
from typing import Set
from typing import Tuple

import pytest
from azure.core.exceptions import ServiceRequestError

from restore_api.errors import ClaimConflictError
from restore_api.errors import KeyCollisionError
from restore_api.errors import StoreUnavailableError
from restore_api.workflow.db.repository_restore import RestoreTableRepository
from restore_api.workflow.models.table_entity import RestoreTableEntity
from restore_api.workflow.models.table_entity import from_table_entity
from restore_api.workflow.models.table_entity import to_table_entity
from tests.consts import STATUS_BASE_URI
from tests.consts import WEEK_22_2020


class InMemoryTableStore:
    """
    Stand-in for RestoreTableStore.

    Keeps Azure-style property dicts keyed by (PartitionKey, RowKey), hands out
    a new etag on every write and scans in row-key order.
    """

    def __init__(self):
        self.entities: Dict[Tuple[str, str], Dict[str, str]] = {}
        self.etags: Dict[Tuple[str, str], str] = {}
        self.table_created = False
        self.opened = 0
        self.closed = 0
        self.empty_leading_pages = 0  # empty pages returned before real results
        self.conflicting_row_keys: Set[str] = set()  # claims on these lose the race
        self.scans: List[Tuple[str, str, str, int]] = []
        self.open_scans = 0  # scans started and not yet closed
        self.upsert_calls = 0
        self.failing_upsert_calls: Set[int] = set()  # 1-based upsert calls that fail as if the store were down
        self._etag_seq = count(1)

    async def __aenter__(self):
        self.opened += 1
        return self

    async def __aexit__(self, exc_type, exc_value, traceback):
        self.closed += 1

    def _write(self, key: Tuple[str, str], properties: Dict[str, str]) -> None:
        self.entities[key] = properties
        self.etags[key] = f'W/"etag-{next(self._etag_seq)}"'

    async def create_table_if_not_exists(self):
        self.table_created = True

    async def insert(self, record: RestoreTableEntity):
        key = (record.partition_key, record.row_key)
        if key in self.entities:
            raise KeyCollisionError(*key)
        self._write(key, to_table_entity(record))

    async def upsert(self, record: RestoreTableEntity):
        self.upsert_calls += 1
        if self.upsert_calls in self.failing_upsert_calls:
            raise StoreUnavailableError("upsert", ServiceRequestError("Connection refused"))
        key = (record.partition_key, record.row_key)
        merged = dict(self.entities.get(key, {}))
        merged.update(to_table_entity(record))
        self._write(key, merged)

    async def point_get(self, partition_key: str, row_key: str) -> Optional[RestoreTableEntity]:
        key = (partition_key, row_key)
        if key not in self.entities:
            return None
        return from_table_entity(self.entities[key], etag=self.etags[key])

    async def scan(self, partition_key: str, property_name: str, value: str, page_size: int = 1):
        self.scans.append((partition_key, property_name, value, page_size))
        self.open_scans += 1
        try:
            for _ in range(self.empty_leading_pages):
                yield []

            matches = sorted(
                key
                for key, props in self.entities.items()
                if key[0] == partition_key and props.get(property_name) == value
            )
            for start in range(0, len(matches), page_size):
                yield [
                    from_table_entity(self.entities[key], etag=self.etags[key])
                    for key in matches[start : start + page_size]
                ]
        finally:
            self.open_scans -= 1

    async def replace_if_unchanged(self, record: RestoreTableEntity):
        key = (record.partition_key, record.row_key)
        if record.row_key in self.conflicting_row_keys:
            # another consumer got there first
            props = dict(self.entities[key])
            props["CurrentStatus"] = "CLAIMED"
            self._write(key, props)
        if key not in self.entities or self.etags[key] != record.etag:
            raise ClaimConflictError(*key)
        self._write(key, to_table_entity(record))

    def statuses(self) -> Dict[str, str]:
        """RowKey -> CurrentStatus for every stored entity."""
        return {key[1]: props["CurrentStatus"] for key, props in self.entities.items()}


class FrozenClock:
    """Settable wall clock."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def table_store() -> InMemoryTableStore:
    """Empty in-memory table store."""
    return InMemoryTableStore()


@pytest.fixture
def clock() -> FrozenClock:
    """Clock frozen in ISO week 22 of 2020."""
    return FrozenClock(WEEK_22_2020)


@pytest.fixture
def restore_repository(table_config, table_store, clock) -> RestoreTableRepository:
    """Repository wired to the in-memory store and frozen clock."""
    return RestoreTableRepository(
        table_config,
        status_base_uri=STATUS_BASE_URI,
        clock=clock,
        store_factory=lambda config: table_store,
    )
