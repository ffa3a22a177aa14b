"""
# Query Invalidation Fan-Out

Every successful write to the content store affects one or more **logical query
groups** (the public list, a post's detail view, the admin list, the dashboard stats).
Instead of relying on implicit cache magic, each mutation returns an
`InvalidationEvent` naming exactly the groups it affects, and publishes that event
through the `InvalidationDispatcher` hub.

```
   gateway mutation ──▶ InvalidationEvent ──▶ InvalidationDispatcher
                                                  │
                      ┌───────────────────────────┼────────────────────┐
                      ▼                           ▼                    ▼
              WebSocket clients           in-process caches      test recorders
```

## Group Table

| Mutation | Groups |
|----------|--------|
| create / update / delete | `blogs`, `blog`, `admin-blogs`, `blog-stats` |
| like +1 / -1 | `blogs`, `blog`, `admin-blogs`, `blog-stats` |
| view +1 | `admin-blogs`, `blog-stats` |

## Module Attributes

Attributes:
    invalidation_dispatcher (InvalidationDispatcher): Process-wide hub used by routes.
"""

import asyncio
from enum import Enum
from functools import partial
import inspect
from typing import Awaitable, Callable, Dict, FrozenSet, List, Optional, Set, Union

from pydantic import BaseModel, Field

from blogsite.managers.logging_manager import get_logger

logger = get_logger(prefix="[Invalidation]")


class QueryGroup(str, Enum):
    BLOGS = "blogs"
    BLOG = "blog"
    ADMIN_BLOGS = "admin-blogs"
    BLOG_STATS = "blog-stats"


CONTENT_WRITE_GROUPS: FrozenSet[QueryGroup] = frozenset(
    {QueryGroup.BLOGS, QueryGroup.BLOG, QueryGroup.ADMIN_BLOGS, QueryGroup.BLOG_STATS}
)
LIKE_GROUPS: FrozenSet[QueryGroup] = CONTENT_WRITE_GROUPS
VIEW_GROUPS: FrozenSet[QueryGroup] = frozenset({QueryGroup.ADMIN_BLOGS, QueryGroup.BLOG_STATS})

MUTATION_GROUPS: Dict[str, FrozenSet[QueryGroup]] = {
    "create": CONTENT_WRITE_GROUPS,
    "update": CONTENT_WRITE_GROUPS,
    "delete": CONTENT_WRITE_GROUPS,
    "like": LIKE_GROUPS,
    "view": VIEW_GROUPS,
}


class InvalidationEvent(BaseModel):
    """
    The set of query groups a mutation made stale.

    Attributes:
        mutation: Name of the mutation that produced the event (`create`, `like`, ...).
        groups: Affected query groups, sorted for stable comparison and serialization.
        blog_id: The record the mutation touched, if any.
    """

    mutation: str
    groups: List[QueryGroup] = Field(default_factory=list)
    blog_id: Optional[str] = None

    @classmethod
    def for_mutation(cls, mutation: str, blog_id: Optional[str] = None) -> "InvalidationEvent":
        groups = sorted(MUTATION_GROUPS[mutation], key=lambda g: g.value)
        return cls(mutation=mutation, groups=groups, blog_id=blog_id)

    def affects(self, group: QueryGroup) -> bool:
        return group in self.groups

    @property
    def group_names(self) -> List[str]:
        return [g.value for g in self.groups]


Subscriber = Callable[[InvalidationEvent], Union[None, Awaitable[None]]]


class InvalidationDispatcher:
    """
    Registry of subscribers notified after every successful mutation.

    Subscribers may be plain callables or coroutine functions. Plain callables run inline;
    coroutines are scheduled as tasks, so `publish` never waits on a slow subscriber and
    the write it reports on returns as soon as it is committed. A subscriber that raises
    is logged and skipped.
    """

    def __init__(self):
        self._subscribers: List[Subscriber] = []
        self._pending: Set[asyncio.Task] = set()

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register `subscriber`; returns a callable that removes it again."""
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def pending_count(self) -> int:
        """Async deliveries that have not finished yet."""
        return len(self._pending)

    async def publish(self, event: InvalidationEvent) -> None:
        logger.debug("Publishing %s invalidation for %s: %s", event.mutation, event.blog_id, event.group_names)
        for subscriber in list(self._subscribers):
            try:
                result = subscriber(event)
            except Exception as e:
                logger.warning("Invalidation subscriber %r failed: %s", subscriber, e)
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(partial(self._delivered, subscriber))

    async def drain(self) -> None:
        """Wait until every scheduled delivery has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _delivered(self, subscriber: Subscriber, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning("Invalidation subscriber %r failed: %s", subscriber, error)


invalidation_dispatcher = InvalidationDispatcher()
