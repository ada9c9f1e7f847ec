"""
Tests for the MongoDB store error mapping
"""
import pytest
from pymongo.errors import ExecutionTimeout, ServerSelectionTimeoutError

from catalog.errors import DeadlineExceeded, StoreUnavailable
from catalog.query import MATCH_ALL, Equals, Filter
from catalog.store import MongoStore


class FakeCollection:
    """Collection stand-in that fails every call with ``error``."""

    def __init__(self, error):
        self.error = error
        self.calls = []

    async def count_documents(self, query, **kwargs):
        self.calls.append((query, kwargs))
        raise self.error


@pytest.mark.asyncio
async def test_server_timeout_becomes_deadline_exceeded():
    store = MongoStore(FakeCollection(ExecutionTimeout("operation exceeded time limit")), max_time_ms=50)
    with pytest.raises(DeadlineExceeded):
        await store.count(MATCH_ALL)


@pytest.mark.asyncio
async def test_unreachable_server_becomes_store_unavailable():
    collection = FakeCollection(ServerSelectionTimeoutError("no servers"))
    store = MongoStore(collection, max_time_ms=50)
    with pytest.raises(StoreUnavailable) as excinfo:
        await store.count(Filter((Equals("category", "x"),)))
    assert excinfo.value.status_code == 503
    query, kwargs = collection.calls[0]
    assert kwargs == {"maxTimeMS": 50}
    assert query == {"category": {"$regex": "^x$", "$options": "i"}}
