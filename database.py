# Example usage:
# from config import load_settings
# from database import SingletonStore
#
# store = SingletonStore(load_settings())
#
# # Overwrite a field on the collection's single document
# result = await store.set_field("StartTime", "timestamp", datetime.now(timezone.utc))
#
# # Atomically add to a numeric field
# result = await store.increment_field("MoneyRaised", "money", 25)
#
# # Read one field back
# doc = await store.get_field("MoneyRaised", "money")   # {"money": 125} or None


import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from pymongo import ASCENDING, AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.results import UpdateResult

from config import ConfigurationError, Settings

logger = logging.getLogger(__name__)

# Each collection holds one document. Reads and writes both pick the oldest
# by createdAt so they address the same record if a duplicate ever appears.
SINGLETON_FILTER: dict = {}
SINGLETON_SORT = [("createdAt", ASCENDING)]


class SingletonStore:
    """Reads and updates the single document kept in each collection.

    A new client is opened for every operation and closed before the
    operation returns, on success and on failure alike.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    @asynccontextmanager
    async def collection(self, collection_name: str) -> AsyncIterator[AsyncCollection]:
        if not self.settings.db_name:
            raise ConfigurationError("Database not available. Check DB_NAME environment variable.")

        client = AsyncMongoClient(self.settings.connection_string())
        try:
            yield client[self.settings.db_name][collection_name]
        finally:
            await client.close()

    async def set_field(self, collection_name: str, field: str, value: Any) -> UpdateResult:
        """Overwrite one field of the singleton document

        Never inserts: an empty collection yields matched_count == 0.
        """
        async with self.collection(collection_name) as collection:
            result = await collection.update_one(
                SINGLETON_FILTER,
                {"$set": {field: value}},
                sort=SINGLETON_SORT,
            )
        logger.info(
            "Set %s.%s: matched=%d modified=%d",
            collection_name, field, result.matched_count, result.modified_count,
        )
        return result

    async def increment_field(self, collection_name: str, field: str, amount: float) -> UpdateResult:
        """Add to a numeric field server-side with $inc"""
        async with self.collection(collection_name) as collection:
            result = await collection.update_one(
                SINGLETON_FILTER,
                {"$inc": {field: amount}},
                sort=SINGLETON_SORT,
            )
        logger.info(
            "Incremented %s.%s by %s: matched=%d modified=%d",
            collection_name, field, amount, result.matched_count, result.modified_count,
        )
        return result

    async def get_field(self, collection_name: str, field: str) -> Optional[dict]:
        """Return {field: value} for the singleton document, or None if the collection is empty"""
        async with self.collection(collection_name) as collection:
            return await collection.find_one(
                SINGLETON_FILTER,
                projection={"_id": 0, field: 1},
                sort=SINGLETON_SORT,
            )

    async def count_documents(self, collection_name: str) -> int:
        async with self.collection(collection_name) as collection:
            return await collection.count_documents({})
