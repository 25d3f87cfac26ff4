import asyncio
from datetime import datetime, timezone

import pytest
from mongomock_motor import AsyncMongoMockClient

from app.database.mongo import RecallStore
from app.errors import StoreUnavailableError
from app.services import background


class FakeStore:
    """In-memory stand-in for RecallStore. Filters are recorded, not evaluated."""

    def __init__(self, docs=None, total=None, unavailable=False):
        self.docs = {d["recallId"]: dict(d) for d in (docs or [])}
        self.total = total
        self.unavailable = unavailable
        self.find_calls = []
        self.count_calls = []
        self.upserts = []

    def _check(self):
        if self.unavailable:
            raise StoreUnavailableError("store is down")

    async def find(self, filter, sort=None, skip=0, limit=0):
        self._check()
        self.find_calls.append({"filter": filter, "sort": sort, "skip": skip, "limit": limit})
        docs = list(self.docs.values())
        return docs[skip:skip + limit] if limit else docs[skip:]

    async def find_one(self, recall_id):
        self._check()
        return self.docs.get(recall_id)

    async def count(self, filter):
        self._check()
        self.count_calls.append(filter)
        return self.total if self.total is not None else len(self.docs)

    async def upsert(self, recall_id, doc):
        self._check()
        self.upserts.append(recall_id)
        created = recall_id not in self.docs
        self.docs[recall_id] = dict(doc)
        return created


def make_record(recall_id, **overrides):
    record = {
        "recallId": recall_id,
        "product": "Granola Bar",
        "brand": "Acme Foods",
        "description": "Possible contamination",
        "reason": "Undeclared peanuts",
        "agency": "FDA",
        "recallDate": datetime(2025, 6, 1, tzinfo=timezone.utc),
        "distribution": "Nationwide",
    }
    record.update(overrides)
    return record


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def mongo_store():
    client = AsyncMongoMockClient()
    return RecallStore(client["recall_tests"]["recalls"])


@pytest.fixture(autouse=True)
async def cancel_background_tasks():
    yield
    leftovers = list(background._tasks)
    for task in leftovers:
        task.cancel()
    if leftovers:
        await asyncio.gather(*leftovers, return_exceptions=True)
