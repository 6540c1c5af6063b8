"""Shared fixtures: an in-memory store and a TestClient wired to it."""

from datetime import datetime, timezone

import bson
import pytest
from fastapi.testclient import TestClient
from pymongo.results import UpdateResult

from config import MONEY_COLLECTION, TIME_COLLECTION, Settings
from main import app, get_store


class FakeStore:
    """In-memory stand-in for SingletonStore with the same update semantics.

    Updates are BSON-encoded first so values pymongo would refuse fail here too.
    """

    def __init__(self, settings, documents=None):
        self.settings = settings
        self.documents = documents if documents is not None else {
            TIME_COLLECTION: [{"timestamp": datetime(2024, 1, 1, tzinfo=timezone.utc)}],
            MONEY_COLLECTION: [{"money": 100}],
        }

    def _first(self, collection_name):
        docs = self.documents.get(collection_name, [])
        return docs[0] if docs else None

    async def set_field(self, collection_name, field, value):
        bson.encode({"$set": {field: value}})
        doc = self._first(collection_name)
        if doc is None:
            return UpdateResult({"n": 0, "nModified": 0}, True)
        modified = 0 if doc.get(field) == value else 1
        doc[field] = value
        return UpdateResult({"n": 1, "nModified": modified}, True)

    async def increment_field(self, collection_name, field, amount):
        bson.encode({"$inc": {field: amount}})
        doc = self._first(collection_name)
        if doc is None:
            return UpdateResult({"n": 0, "nModified": 0}, True)
        doc[field] = doc.get(field, 0) + amount
        return UpdateResult({"n": 1, "nModified": 1 if amount else 0}, True)

    async def get_field(self, collection_name, field):
        doc = self._first(collection_name)
        if doc is None:
            return None
        return {field: doc[field]} if field in doc else {}

    async def count_documents(self, collection_name):
        return len(self.documents.get(collection_name, []))


@pytest.fixture
def settings():
    return Settings(db_name="countdown-test", database_url="mongodb://localhost:27017")


@pytest.fixture
def store(settings):
    return FakeStore(settings)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
