import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import DESCENDING, AsyncMongoClient, ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase

from config import DATABASE_NAME, DATABASE_URL

logger = logging.getLogger(__name__)

JOURNAL_COLLECTION = "journalentries"
ASSESSMENT_COLLECTION = "moodentries"
CHAT_COLLECTION = "chatmessages"

_client: Optional[AsyncMongoClient] = None
db: Optional[AsyncDatabase] = None


def connect() -> AsyncDatabase:
    global _client, db
    _client = AsyncMongoClient(DATABASE_URL, tz_aware=True)
    db = _client[DATABASE_NAME]
    logger.info(f"MongoDB client created for database '{DATABASE_NAME}'")
    return db


async def close() -> None:
    global _client, db
    if _client is not None:
        await _client.close()
        logger.info("MongoDB client closed")
    _client = None
    db = None


class Repository:
    """Async CRUD over one collection.

    Documents keep the API's field names (``createdAt``, ``moodScore``), the
    same names the collections already hold. ``timestamp_field`` is the
    collection's creation time and listings sort on it. When
    ``track_updates`` is set, writes also maintain ``updatedAt``.
    """

    updated_field = "updatedAt"

    def __init__(self, collection: AsyncCollection, timestamp_field: str = "createdAt", track_updates: bool = True):
        self.collection = collection
        self.timestamp_field = timestamp_field
        self.track_updates = track_updates

    async def insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        payload = {**data}
        payload.setdefault(self.timestamp_field, now)
        if self.track_updates:
            payload[self.updated_field] = now
        result = await self.collection.insert_one(payload)
        payload["_id"] = result.inserted_id
        return payload

    async def find_all(self, limit: int = 0) -> List[Dict[str, Any]]:
        cursor = self.collection.find({}).sort(self.timestamp_field, DESCENDING)
        if limit:
            cursor = cursor.limit(limit)
        return await cursor.to_list(length=None)

    async def find_by_id(self, oid: ObjectId) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one({"_id": oid})

    async def update_by_id(self, oid: ObjectId, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        update = {**changes}
        if self.track_updates:
            update[self.updated_field] = datetime.now(timezone.utc)
        if not update:
            return await self.find_by_id(oid)
        return await self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": update},
            return_document=ReturnDocument.AFTER,
        )

    async def delete_by_id(self, oid: ObjectId) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one_and_delete({"_id": oid})

    async def aggregate(self, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        cursor = await self.collection.aggregate(pipeline)
        return await cursor.to_list(length=None)
