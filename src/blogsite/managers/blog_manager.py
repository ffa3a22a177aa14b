"""
# Blog Content Gateway

This module is the single point of contact between the blog and its **content
store**, the MongoDB `blogs` collection. Every read and write the public site and the
admin panel perform goes through `BlogContentGateway`.

## Domain Overview

- **Read path**: `fetch_all()` returns published records for readers, or every record
  for the admin panel. A store that refuses the read (`Unauthorized`, code 13) is
  treated as "no posts", never as an error banner.
- **Write path**: `create()`, `update()` and `delete()` are admin-only writes.
  `update()` is last-write-wins; there is no version check.
- **Engagement**: `increment_view()` and `adjust_likes()` are atomic `$inc` deltas, so
  concurrent readers never lose an update.

## Invalidation

Each successful write returns a `MutationResult` whose `InvalidationEvent` names the
query groups the write made stale. The same event is published to the process-wide
`InvalidationDispatcher` so that connected clients can refetch.

## Error Mapping

| Store condition | Raised |
|-----------------|--------|
| read refused | `[]` (logged) |
| no matching `_id` | `NotFound` |
| like delta other than +1/-1 | `ValidationFailure` |
| any store failure during a write | `MutationFailure` |

## Usage Example

```python
gateway = BlogContentGateway()
result = await gateway.create(request)
record = await gateway.fetch_by_id(result.blog_id)
```
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, NamedTuple, Optional
from uuid import uuid4

from pymongo import DESCENDING
from pymongo.errors import OperationFailure, PyMongoError

from blogsite.config import settings
from blogsite.database import db_manager
from blogsite.errors import MutationFailure, NotFound, PermissionDenied, ValidationFailure
from blogsite.managers.logging_manager import get_logger
from blogsite.models.blog_models import (
    BlogRecord,
    BlogStats,
    CreateBlogRequest,
    UpdateBlogRequest,
    slugify,
)
from blogsite.services.feed_assembler import compute_stats
from blogsite.services.invalidation import (
    InvalidationDispatcher,
    InvalidationEvent,
    invalidation_dispatcher,
)

logger = get_logger(prefix="[Blog Gateway]")

# MongoDB "Unauthorized"
UNAUTHORIZED_CODE = 13

_STORE_ERRORS = (PyMongoError, ConnectionError)


class MutationResult(NamedTuple):
    blog_id: str
    event: InvalidationEvent


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _url(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


class BlogContentGateway:
    """
    Async gateway over the `blogs` collection.

    Args:
        collection: Collection to use instead of `db_manager`'s `blogs` collection.
        dispatcher: Hub successful mutations are published to.
    """

    def __init__(self, collection=None, dispatcher: Optional[InvalidationDispatcher] = None):
        self._collection_override = collection
        self.dispatcher = dispatcher or invalidation_dispatcher

    @property
    def collection(self):
        if self._collection_override is not None:
            return self._collection_override
        return db_manager.get_collection(settings.BLOGS_COLLECTION)

    # Read path

    async def fetch_all(self, published_only: bool = True) -> List[BlogRecord]:
        """
        Fetch the record set for the public feed or the admin panel.

        Args:
            published_only: `True` for the public path (published records, newest
                publication first); `False` for the admin path (everything, newest
                creation first).

        Returns:
            List[BlogRecord]: Possibly empty. A refused read yields `[]`.
        """
        if published_only:
            query: Dict[str, Any] = {"published": True}
            sort_field = "published_at"
        else:
            query = {}
            sort_field = "created_at"

        try:
            cursor = self.collection.find(query).sort(sort_field, DESCENDING)
            docs = await cursor.to_list(length=None)
        except OperationFailure as e:
            if e.code != UNAUTHORIZED_CODE:
                raise
            logger.warning("Content store refused read, returning empty feed: %s", e)
            return []
        except PermissionDenied as e:
            logger.warning("Content store refused read, returning empty feed: %s", e)
            return []

        records = []
        for doc in docs:
            try:
                records.append(BlogRecord.model_validate(doc))
            except ValueError as e:
                logger.warning("Skipping malformed blog document %s: %s", doc.get("_id"), e)
        return records

    async def fetch_by_id(self, blog_id: str, published_only: bool = False) -> BlogRecord:
        """Fetch one record. Unpublished records are invisible when `published_only` is set."""
        query: Dict[str, Any] = {"_id": blog_id}
        if published_only:
            query["published"] = True

        try:
            doc = await self.collection.find_one(query)
        except OperationFailure as e:
            if e.code == UNAUTHORIZED_CODE:
                raise PermissionDenied() from e
            raise

        if doc is None:
            raise NotFound()
        return BlogRecord.model_validate(doc)

    async def stats(self) -> BlogStats:
        return compute_stats(await self.fetch_all(published_only=False))

    async def list_categories(self) -> List[str]:
        """Distinct categories that currently have at least one published record."""
        try:
            categories = await self.collection.distinct("category", {"published": True})
        except OperationFailure as e:
            if e.code != UNAUTHORIZED_CODE:
                raise
            logger.warning("Content store refused category read, returning none: %s", e)
            return []
        except PermissionDenied as e:
            logger.warning("Content store refused category read, returning none: %s", e)
            return []
        return sorted(c for c in categories if c)

    # Write path

    async def create(self, request: CreateBlogRequest) -> MutationResult:
        now = _now()
        published = bool(request.published)
        doc = {
            "_id": uuid4().hex,
            "title": request.title,
            "slug": slugify(request.title),
            "excerpt": request.excerpt,
            "content": request.content,
            "thumbnail": _url(request.thumbnail),
            "category": request.category,
            "tags": list(request.tags),
            "published": published,
            "featured": bool(request.featured),
            "views": 0,
            "likes": 0,
            "read_time": request.read_time,
            "author_name": request.author_name,
            "author_avatar": _url(request.author_avatar),
            "author_bio": request.author_bio,
            "meta_title": request.meta_title or request.title,
            "meta_description": request.meta_description or request.excerpt,
            "seo_keywords": list(request.seo_keywords),
            "created_at": now,
            "updated_at": now,
            "published_at": now if published else None,
        }

        try:
            await self.collection.insert_one(doc)
        except _STORE_ERRORS as e:
            logger.error("Failed to create blog '%s': %s", request.title, e, exc_info=True)
            raise MutationFailure("Failed to create blog") from e

        logger.info("Created blog %s (published=%s)", doc["_id"], published)
        return await self._committed("create", doc["_id"])

    async def update(self, blog_id: str, request: UpdateBlogRequest) -> MutationResult:
        """
        Apply a partial edit. Only explicitly supplied fields are written.

        Changing the title regenerates the slug. `published=True` stamps
        `published_at` with the update time, including on re-publish.
        """
        changes = request.model_dump(exclude_unset=True)
        for url_field in ("thumbnail", "author_avatar"):
            if url_field in changes:
                changes[url_field] = _url(changes[url_field])
        if changes.get("title"):
            changes["slug"] = slugify(changes["title"])

        now = _now()
        changes["updated_at"] = now
        if changes.get("published") is True:
            changes["published_at"] = now

        try:
            result = await self.collection.update_one({"_id": blog_id}, {"$set": changes})
        except _STORE_ERRORS as e:
            logger.error("Failed to update blog %s: %s", blog_id, e, exc_info=True)
            raise MutationFailure("Failed to update blog") from e

        if result.matched_count == 0:
            raise NotFound()

        logger.info("Updated blog %s fields=%s", blog_id, sorted(changes))
        return await self._committed("update", blog_id)

    async def delete(self, blog_id: str) -> MutationResult:
        try:
            result = await self.collection.delete_one({"_id": blog_id})
        except _STORE_ERRORS as e:
            logger.error("Failed to delete blog %s: %s", blog_id, e, exc_info=True)
            raise MutationFailure("Failed to delete blog") from e

        if result.deleted_count == 0:
            raise NotFound()

        logger.info("Deleted blog %s", blog_id)
        return await self._committed("delete", blog_id)

    # Engagement

    async def increment_view(self, blog_id: str) -> MutationResult:
        await self._increment(blog_id, "views", 1, "Failed to record view")
        return await self._committed("view", blog_id)

    async def adjust_likes(self, blog_id: str, delta: int) -> MutationResult:
        if delta not in (1, -1):
            raise ValidationFailure("Like delta must be +1 or -1")
        await self._increment(blog_id, "likes", delta, "Failed to update like")
        return await self._committed("like", blog_id)

    async def _increment(self, blog_id: str, field: str, delta: int, failure_message: str) -> None:
        try:
            result = await self.collection.update_one({"_id": blog_id}, {"$inc": {field: delta}})
        except _STORE_ERRORS as e:
            logger.error("Failed to adjust %s on %s by %d: %s", field, blog_id, delta, e)
            raise MutationFailure(failure_message) from e

        if result.matched_count == 0:
            raise NotFound()
        logger.debug("Adjusted %s on %s by %d", field, blog_id, delta)

    async def _committed(self, mutation: str, blog_id: str) -> MutationResult:
        event = InvalidationEvent.for_mutation(mutation, blog_id)
        await self.dispatcher.publish(event)
        return MutationResult(blog_id=blog_id, event=event)


blog_gateway = BlogContentGateway()
