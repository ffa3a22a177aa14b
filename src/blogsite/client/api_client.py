"""
# Blog API Client

Async HTTP client for the blog service built on **httpx**. It speaks the same error
vocabulary as the server: a non-2xx answer is raised as the `BlogError` subclass that
matches its status code (`NotFound` for 404, `MutationFailure` for 502, ...).

## Usage Example

```python
async with BlogApiClient("http://localhost:8000") as client:
    feed = await client.get_feed(search="python")
    await client.set_like(feed.featured.id, liked=True)

    await client.login("ada@example.com", "s3cret")
    stats = await client.get_stats()
```
"""

from typing import Any, Dict, List, Optional, Union

import httpx

from blogsite.errors import ERRORS_BY_STATUS, BlogError
from blogsite.managers.logging_manager import get_logger
from blogsite.models.admin_models import SessionResponse, TokenResponse
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

logger = get_logger(prefix="[Blog Client]")


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, str):
        return detail
    # FastAPI request validation errors carry a list of field errors.
    return None


class BlogApiClient:
    """
    Thin async wrapper around the blog REST API.

    Args:
        base_url: Service root, e.g. `http://localhost:8000`.
        token: Bearer token for admin and session endpoints.
        client: Pre-built `httpx.AsyncClient` (tests pass one with a mock transport).
        timeout: Request timeout in seconds when the client is built here.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def __aenter__(self) -> "BlogApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        response = await self._client.request(method, path, headers=self.headers, **kwargs)
        if response.is_success:
            return response.json() if response.content else None

        error_cls = ERRORS_BY_STATUS.get(response.status_code, BlogError)
        message = _error_message(response)
        logger.debug("%s %s failed with %d: %s", method, path, response.status_code, message)
        raise error_cls(message)

    # Public read path

    async def get_feed(
        self,
        category: str = ALL_CATEGORIES,
        search: str = "",
        sort: Union[SortMode, str] = SortMode.LATEST,
    ) -> FeedResponse:
        params = {"category": category, "search": search, "sort": SortMode(sort).value}
        return FeedResponse.model_validate(await self._request("GET", "/blogs", params=params))

    async def get_categories(self) -> List[str]:
        return await self._request("GET", "/blogs/categories")

    async def get_blog(self, blog_id: str) -> BlogRecord:
        return BlogRecord.model_validate(await self._request("GET", f"/blogs/{blog_id}"))

    # Engagement

    async def record_view(self, blog_id: str) -> MutationResponse:
        return MutationResponse.model_validate(await self._request("POST", f"/blogs/{blog_id}/view"))

    async def set_like(self, blog_id: str, liked: bool) -> MutationResponse:
        data = await self._request("POST", f"/blogs/{blog_id}/like", json={"liked": liked})
        return MutationResponse.model_validate(data)

    # Authentication

    async def login(self, email: str, password: str) -> TokenResponse:
        """Sign in and keep the returned token for subsequent calls."""
        data = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        token = TokenResponse.model_validate(data)
        self.token = token.access_token
        return token

    async def logout(self) -> None:
        if not self.token:
            return
        try:
            await self._request("POST", "/auth/logout")
        finally:
            self.token = None

    async def get_session(self) -> SessionResponse:
        return SessionResponse.model_validate(await self._request("GET", "/auth/session"))

    # Admin panel

    async def list_all_blogs(self) -> List[BlogRecord]:
        return [BlogRecord.model_validate(doc) for doc in await self._request("GET", "/admin/blogs")]

    async def get_admin_blog(self, blog_id: str) -> BlogRecord:
        return BlogRecord.model_validate(await self._request("GET", f"/admin/blogs/{blog_id}"))

    async def create_blog(self, request: CreateBlogRequest) -> MutationResponse:
        data = await self._request("POST", "/admin/blogs", json=request.model_dump(mode="json"))
        return MutationResponse.model_validate(data)

    async def update_blog(self, blog_id: str, request: UpdateBlogRequest) -> MutationResponse:
        payload = request.model_dump(mode="json", exclude_unset=True)
        return MutationResponse.model_validate(await self._request("PUT", f"/admin/blogs/{blog_id}", json=payload))

    async def delete_blog(self, blog_id: str) -> MutationResponse:
        return MutationResponse.model_validate(await self._request("DELETE", f"/admin/blogs/{blog_id}"))

    async def get_stats(self) -> BlogStats:
        return BlogStats.model_validate(await self._request("GET", "/admin/stats"))
