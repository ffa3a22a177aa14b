import copy
import os
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-blogsite-suite")
os.environ.setdefault("METRICS_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import pytest
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from blogsite.managers.admin_manager import AdminManager
from blogsite.managers.blog_manager import BlogContentGateway
from blogsite.managers.identity_manager import IdentityManager
from blogsite.models.blog_models import BlogRecord, CreateBlogRequest
from blogsite.services.invalidation import InvalidationDispatcher


class FakeCursor:
    def __init__(self, collection: "FakeCollection", docs: List[Dict[str, Any]]):
        self._collection = collection
        self._docs = docs

    def sort(self, key, direction=1):
        present = [d for d in self._docs if d.get(key) is not None]
        missing = [d for d in self._docs if d.get(key) is None]
        present.sort(key=lambda d: d[key], reverse=direction == DESCENDING)
        self._docs = present + missing if direction == DESCENDING else missing + present
        return self

    async def to_list(self, length=None):
        self._collection._check()
        docs = self._docs if length is None else self._docs[:length]
        return [copy.deepcopy(d) for d in docs]


class FakeCollection:
    """
    In-memory stand-in for a Motor collection covering the calls the managers make.

    Set `fail_with` to make every operation raise that exception.
    """

    def __init__(self, name: str = "blogs", unique: Iterable[str] = ()):
        self.name = name
        self.unique = tuple(unique)
        self.docs: List[Dict[str, Any]] = []
        self.fail_with: Optional[Exception] = None

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    @staticmethod
    def _matches(doc, query):
        return all(doc.get(k) == v for k, v in (query or {}).items())

    def _find(self, query):
        return [d for d in self.docs if self._matches(d, query)]

    async def insert_one(self, doc):
        self._check()
        doc.setdefault("_id", uuid4().hex)
        for field in ("_id",) + self.unique:
            if any(d.get(field) == doc.get(field) for d in self.docs):
                raise DuplicateKeyError(f"duplicate key: {field}")
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    def find(self, query=None):
        return FakeCursor(self, self._find(query))

    async def find_one(self, query=None):
        self._check()
        found = self._find(query)
        return copy.deepcopy(found[0]) if found else None

    async def update_one(self, query, update, upsert=False):
        self._check()
        found = self._find(query)
        if not found:
            if not upsert:
                return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)
            doc = dict(query)
            doc.update(update.get("$setOnInsert", {}))
            doc.update(update.get("$set", {}))
            await self.insert_one(doc)
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=doc["_id"])

        doc = found[0]
        doc.update(copy.deepcopy(update.get("$set", {})))
        for field, delta in update.get("$inc", {}).items():
            doc[field] = doc.get(field, 0) + delta
        return SimpleNamespace(matched_count=1, modified_count=1, upserted_id=None)

    async def delete_one(self, query):
        self._check()
        found = self._find(query)
        if found:
            self.docs.remove(found[0])
        return SimpleNamespace(deleted_count=len(found[:1]))

    async def distinct(self, key, query=None):
        self._check()
        values = []
        for doc in self._find(query):
            if doc.get(key) not in values:
                values.append(doc.get(key))
        return values


BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_record(index: int = 0, **overrides) -> BlogRecord:
    """A published record whose publication time grows with `index`."""
    data = {
        "id": f"blog-{index}",
        "title": f"Post {index}",
        "slug": f"post-{index}",
        "excerpt": f"Excerpt {index}",
        "content": f"Content {index}",
        "thumbnail": "http://x/a.png",
        "category": "Tech",
        "tags": [],
        "published": True,
        "featured": False,
        "views": 0,
        "likes": 0,
        "author_name": "Bob",
        "author_avatar": "http://x/b.png",
        "created_at": BASE_TIME + timedelta(days=index),
        "updated_at": BASE_TIME + timedelta(days=index),
        "published_at": BASE_TIME + timedelta(days=index),
    }
    data.update(overrides)
    return BlogRecord(**data)


def scenario_payload(**overrides) -> Dict[str, Any]:
    payload = {
        "title": "A",
        "excerpt": "e",
        "content": "c",
        "thumbnail": "http://x/a.png",
        "category": "Tech",
        "author_name": "Bob",
        "author_avatar": "http://x/b.png",
        "published": True,
        "featured": True,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def payload_factory():
    return scenario_payload


@pytest.fixture
def create_request():
    return CreateBlogRequest(**scenario_payload())


@pytest.fixture
def blogs_collection():
    return FakeCollection("blogs")


@pytest.fixture
def dispatcher():
    return InvalidationDispatcher()


@pytest.fixture
def events(dispatcher):
    received = []
    dispatcher.subscribe(received.append)
    return received


@pytest.fixture
def gateway(blogs_collection, dispatcher):
    return BlogContentGateway(collection=blogs_collection, dispatcher=dispatcher)


@pytest.fixture
def users_collection():
    return FakeCollection("users", unique=("email",))


@pytest.fixture
def revoked_collection():
    return FakeCollection("revoked_tokens", unique=("jti",))


@pytest.fixture
def admins_collection():
    return FakeCollection("admins")


@pytest.fixture
def identities(users_collection, revoked_collection):
    return IdentityManager(users=users_collection, revoked_tokens=revoked_collection)


@pytest.fixture
def admins(admins_collection):
    return AdminManager(collection=admins_collection)
