"""
# Reader and Admin Client State

Client-side state built on top of `BlogApiClient`:

- **QueryCache**: results keyed by query group (`blogs`, `blog`, `admin-blogs`,
  `blog-stats`) and a per-query key. Every write response names the groups it made
  stale, and the cache drops exactly those. A fetch that was in flight while its group
  got invalidated is returned to its caller but not stored.
- **PostView**: one mounted post detail page. Counts one view on open and owns the
  optimistic like toggle.
- **ReaderSession**: the public feed and post pages.
- **AdminConsole**: admin list, stats and editor writes. Required fields are checked
  before anything is sent.
- **HttpIdentityProvider**: the session stream the `SessionGate` subscribes to.

```python
client = BlogApiClient("http://localhost:8000")
reader = ReaderSession(client)
feed = await reader.feed(search="python")
post = await reader.open_post(feed.featured.id)
await post.toggle_like()
post.close()
```
"""

import inspect
from typing import Any, Awaitable, Callable, Dict, Hashable, Iterable, List, Optional, Tuple, Union

from pydantic import ValidationError

from blogsite.client.api_client import BlogApiClient
from blogsite.errors import ValidationFailure
from blogsite.managers.logging_manager import get_logger
from blogsite.models.admin_models import Identity
from blogsite.models.blog_models import (
    ALL_CATEGORIES,
    BlogRecord,
    BlogStats,
    CreateBlogRequest,
    FeedResponse,
    MutationResponse,
    SortMode,
    UpdateBlogRequest,
)
from blogsite.services.engagement import LikeToggle, ViewTracker
from blogsite.services.invalidation import InvalidationEvent, QueryGroup
from blogsite.services.session_gate import SessionListener

logger = get_logger(prefix="[Reader]")

GroupLike = Union[QueryGroup, str]


class QueryCache:
    def __init__(self):
        self._entries: Dict[Tuple[QueryGroup, Hashable], Any] = {}
        self._generations: Dict[QueryGroup, int] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def has(self, group: GroupLike, key: Hashable) -> bool:
        return (QueryGroup(group), key) in self._entries

    async def fetch(self, group: GroupLike, key: Hashable, loader: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value for `(group, key)`, loading it on a miss."""
        group = QueryGroup(group)
        if (group, key) in self._entries:
            return self._entries[(group, key)]

        generation = self._generations.get(group, 0)
        value = await loader()
        if self._generations.get(group, 0) == generation:
            self._entries[(group, key)] = value
        return value

    def invalidate(self, groups: Iterable[GroupLike]) -> int:
        """Drop every entry of the given groups; returns how many entries were dropped."""
        stale = {QueryGroup(g) for g in groups}
        for group in stale:
            self._generations[group] = self._generations.get(group, 0) + 1
        keys = [k for k in self._entries if k[0] in stale]
        for k in keys:
            del self._entries[k]
        if keys:
            logger.debug("Invalidated %d cached queries in %s", len(keys), sorted(g.value for g in stale))
        return len(keys)

    def apply(self, event: InvalidationEvent) -> int:
        return self.invalidate(event.groups)


class PostView:
    """State of one mounted post detail page."""

    def __init__(self, client: BlogApiClient, blog_id: str, cache: QueryCache):
        self._client = client
        self._cache = cache
        self.blog_id = blog_id
        self.record: Optional[BlogRecord] = None
        self.like: Optional[LikeToggle] = None
        self.views = ViewTracker(self._send_view)

    async def open(self) -> BlogRecord:
        """
        Load the post and count one view in the background.

        Raises:
            NotFound: The post does not exist or is not published.
        """
        self.record = await self._cache.fetch(QueryGroup.BLOG, self.blog_id, lambda: self._client.get_blog(self.blog_id))
        self.like = LikeToggle(self._send_like, liked=False, likes=self.record.likes)
        self.views.mount()
        return self.record

    async def toggle_like(self) -> bool:
        if self.like is None:
            raise RuntimeError("PostView.open() must be awaited first")
        return await self.like.toggle()

    def close(self) -> None:
        self.views.detach()

    async def _send_like(self, delta: int) -> None:
        response = await self._client.set_like(self.blog_id, delta > 0)
        self._cache.invalidate(response.invalidates)

    async def _send_view(self) -> None:
        response = await self._client.record_view(self.blog_id)
        self._cache.invalidate(response.invalidates)


class ReaderSession:
    def __init__(self, client: BlogApiClient, cache: Optional[QueryCache] = None):
        self.client = client
        self.cache = cache or QueryCache()

    async def feed(
        self, category: str = ALL_CATEGORIES, search: str = "", sort: Union[SortMode, str] = SortMode.LATEST
    ) -> FeedResponse:
        sort = SortMode(sort)
        return await self.cache.fetch(
            QueryGroup.BLOGS,
            (category, search, sort.value),
            lambda: self.client.get_feed(category=category, search=search, sort=sort),
        )

    async def open_post(self, blog_id: str) -> PostView:
        view = PostView(self.client, blog_id, self.cache)
        await view.open()
        return view


class AdminConsole:
    """Admin panel data and editor writes."""

    def __init__(self, client: BlogApiClient, cache: Optional[QueryCache] = None):
        self.client = client
        self.cache = cache or QueryCache()

    async def blogs(self) -> List[BlogRecord]:
        return await self.cache.fetch(QueryGroup.ADMIN_BLOGS, "all", self.client.list_all_blogs)

    async def stats(self) -> BlogStats:
        return await self.cache.fetch(QueryGroup.BLOG_STATS, "all", self.client.get_stats)

    async def create(self, fields: Dict[str, Any]) -> MutationResponse:
        """
        Validate the editor form and create the post.

        Raises:
            ValidationFailure: A required field is missing or malformed; nothing was sent.
            MutationFailure: The store rejected the write.
        """
        try:
            request = CreateBlogRequest.model_validate(fields)
        except ValidationError as e:
            raise ValidationFailure() from e
        return self._written(await self.client.create_blog(request))

    async def update(self, blog_id: str, fields: Dict[str, Any]) -> MutationResponse:
        try:
            request = UpdateBlogRequest.model_validate(fields)
        except ValidationError as e:
            raise ValidationFailure() from e
        return self._written(await self.client.update_blog(blog_id, request))

    async def delete(self, blog_id: str) -> MutationResponse:
        return self._written(await self.client.delete_blog(blog_id))

    async def set_published(self, blog_id: str, published: bool) -> MutationResponse:
        return await self.update(blog_id, {"published": published})

    async def set_featured(self, blog_id: str, featured: bool) -> MutationResponse:
        return await self.update(blog_id, {"featured": featured})

    def _written(self, response: MutationResponse) -> MutationResponse:
        self.cache.invalidate(response.invalidates)
        return response


class HttpIdentityProvider:
    """
    Session stream backed by the `/auth` endpoints.

    Listeners receive an `Identity` after sign-in or restore, and `None` after sign-out.
    """

    def __init__(self, client: BlogApiClient):
        self._client = client
        self._listeners: List[SessionListener] = []

    def on_session_change(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _emit(self, identity: Optional[Identity]) -> None:
        for listener in list(self._listeners):
            result = listener(identity)
            if inspect.isawaitable(result):
                await result

    async def sign_in(self, email: str, password: str) -> Identity:
        token = await self._client.login(email, password)
        identity = Identity(uid=token.uid, email=token.email)
        await self._emit(identity)
        return identity

    async def sign_out(self) -> None:
        try:
            await self._client.logout()
        finally:
            await self._emit(None)

    async def restore(self) -> Optional[Identity]:
        """Re-emit the session of an already held token, or `None` without one."""
        identity = None
        if self._client.token:
            session = await self._client.get_session()
            identity = Identity(uid=session.uid, email=session.email)
        await self._emit(identity)
        return identity

    async def is_admin(self, identity: Identity) -> bool:
        session = await self._client.get_session()
        return session.uid == identity.uid and session.is_admin
