"""Fixtures for Azure service mocks."""

from typing import Any
from typing import Dict
from typing import List
from unittest.mock import AsyncMock
from unittest.mock import MagicMock

import pytest


class _AsyncList:
    """Async iterator over a fixed list (one result page)."""

    def __init__(self, items: List[Any]):
        self._items = list(items)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._items:
            raise StopAsyncIteration
        return self._items.pop(0)


class FakeEntity(dict):
    """Dict carrying SDK-style metadata, like azure.data.tables.TableEntity."""

    def __init__(self, properties: Dict[str, Any], etag: str):
        super().__init__(properties)
        self.metadata = {"etag": etag}


def make_paged(pages: List[List[Any]], error: Exception = None):
    """Build an object shaped like AsyncItemPaged whose by_page() yields the given pages."""

    class _Pages:
        def __init__(self):
            self._pages = [_AsyncList(page) for page in pages]

        def __aiter__(self):
            return self

        async def __anext__(self):
            if not self._pages:
                if error is not None:
                    raise error
                raise StopAsyncIteration
            return self._pages.pop(0)

    paged = MagicMock()
    paged.by_page.side_effect = lambda *args, **kwargs: _Pages()
    return paged


@pytest.fixture
def mock_table_client():
    """Mock azure.data.tables.aio.TableClient."""
    client = MagicMock()
    client.table_name = "restorerequests"
    client.create_table = AsyncMock(return_value=None)
    client.create_entity = AsyncMock(return_value={})
    client.upsert_entity = AsyncMock(return_value={})
    client.update_entity = AsyncMock(return_value={})
    client.get_entity = AsyncMock()
    client.query_entities = MagicMock(return_value=make_paged([]))
    client.close = AsyncMock(return_value=None)
    return client
