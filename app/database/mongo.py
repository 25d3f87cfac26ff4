import functools
import logging

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, DuplicateKeyError

from app.config import settings
from app.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

client = AsyncIOMotorClient(
    settings.MONGO_URI,
    serverSelectionTimeoutMS=settings.MONGO_SERVER_SELECTION_TIMEOUT_MS,
)
db = client[settings.MONGO_DB]


def _store_call(func):
    """Connection-class driver failures become StoreUnavailableError."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except ConnectionFailure as exc:
            raise StoreUnavailableError(f"recall store unreachable: {exc}") from exc

    return wrapper


class RecallStore:
    """The `recalls` collection, keyed logically by recallId."""

    def __init__(self, collection=None):
        self.collection = collection if collection is not None else db.recalls

    @_store_call
    async def ensure_indexes(self):
        await self.collection.create_index([("recallId", ASCENDING)], unique=True)
        await self.collection.create_index([("isActive", ASCENDING), ("recallDate", DESCENDING)])
        await self.collection.create_index([("riskLevel", ASCENDING)])
        await self.collection.create_index([("category", ASCENDING)])

    @_store_call
    async def find(self, filter: dict, sort=None, skip: int = 0, limit: int = 0) -> list[dict]:
        cursor = self.collection.find(filter)
        if sort:
            cursor = cursor.sort(sort)
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return [doc async for doc in cursor]

    @_store_call
    async def find_one(self, recall_id: str) -> dict | None:
        return await self.collection.find_one({"recallId": recall_id})

    @_store_call
    async def count(self, filter: dict) -> int:
        return await self.collection.count_documents(filter)

    @_store_call
    async def upsert(self, recall_id: str, doc: dict) -> bool:
        """Full replace keyed on recallId. Returns True when a new entry was created."""
        doc = dict(doc, recallId=recall_id)
        doc.pop("_id", None)
        try:
            result = await self.collection.replace_one({"recallId": recall_id}, doc, upsert=True)
        except DuplicateKeyError:
            # Another writer inserted the same recallId between our match and insert
            logger.info(f"Duplicate key race on {recall_id}, replacing existing entry")
            await self.collection.replace_one({"recallId": recall_id}, doc)
            return False
        return result.upserted_id is not None

    @_store_call
    async def delete_many(self, filter: dict) -> int:
        result = await self.collection.delete_many(filter)
        return result.deleted_count

    @_store_call
    async def find_batch(self, after_id=None, batch_size: int = 100, filter: dict | None = None) -> list[dict]:
        query = dict(filter or {})
        if after_id is not None:
            query["_id"] = {"$gt": after_id}
        cursor = self.collection.find(query).sort("_id", ASCENDING).limit(batch_size)
        return [doc async for doc in cursor]

    @_store_call
    async def update_by_id(self, doc_id, doc: dict) -> None:
        doc = dict(doc)
        doc.pop("_id", None)
        await self.collection.replace_one({"_id": doc_id}, doc)


recall_store = RecallStore()


async def ensure_indexes():
    await recall_store.ensure_indexes()
