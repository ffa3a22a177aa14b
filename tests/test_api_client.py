import json

import httpx
import pytest

from blogsite.client.api_client import BlogApiClient
from blogsite.errors import (
    AuthenticationFailure,
    BlogError,
    MutationFailure,
    NotFound,
    PermissionDenied,
    ValidationFailure,
)
from blogsite.models.blog_models import CreateBlogRequest, SortMode, UpdateBlogRequest
from tests.conftest import make_record, scenario_payload


class Recorder:
    """Mock transport handler that answers from a route table and records requests."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes[(request.method, request.url.path)]
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def make_client(routes, token=None):
    recorder = Recorder(routes)
    transport = httpx.MockTransport(recorder)
    http = httpx.AsyncClient(base_url="http://blog.test", transport=transport)
    return BlogApiClient("http://blog.test", token=token, client=http), recorder


@pytest.mark.asyncio
async def test_get_feed_sends_query_and_parses_response():
    record = make_record(1, featured=True).model_dump(mode="json")
    client, recorder = make_client(
        {("GET", "/blogs"): (200, {"featured": record, "regular": [], "total": 1})}
    )

    feed = await client.get_feed(search="ai", sort="popular")

    assert feed.featured.id == "blog-1"
    assert feed.total == 1
    params = recorder.last.url.params
    assert params["search"] == "ai"
    assert params["sort"] == SortMode.POPULAR.value
    assert params["category"] == "All Posts"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,error_cls",
    [
        (401, AuthenticationFailure),
        (403, PermissionDenied),
        (404, NotFound),
        (422, ValidationFailure),
        (502, MutationFailure),
        (500, BlogError),
    ],
)
async def test_status_codes_map_to_domain_errors(status, error_cls):
    client, _ = make_client({("GET", "/blogs/b1"): (status, {"detail": "server said no"})})

    with pytest.raises(error_cls) as exc_info:
        await client.get_blog("b1")

    assert type(exc_info.value) is error_cls
    assert exc_info.value.message == "server said no"


@pytest.mark.asyncio
async def test_validation_error_list_falls_back_to_default_message():
    detail = [{"loc": ["body", "title"], "msg": "field required", "type": "missing"}]
    client, _ = make_client({("POST", "/admin/blogs"): (422, {"detail": detail})}, token="t")

    with pytest.raises(ValidationFailure) as exc_info:
        await client.create_blog(CreateBlogRequest(**scenario_payload()))

    assert exc_info.value.message == ValidationFailure.default_message


@pytest.mark.asyncio
async def test_like_posts_new_state():
    client, recorder = make_client(
        {("POST", "/blogs/b1/like"): (200, {"id": "b1", "invalidates": ["blog", "blogs"]})}
    )

    response = await client.set_like("b1", liked=False)

    assert json.loads(recorder.last.content) == {"liked": False}
    assert response.invalidates == ["blog", "blogs"]


@pytest.mark.asyncio
async def test_login_keeps_token_and_logout_clears_it():
    client, recorder = make_client(
        {
            ("POST", "/auth/login"): (
                200,
                {"access_token": "jwt-1", "token_type": "bearer", "uid": "u1", "email": "ada@example.com", "is_admin": True},
            ),
            ("GET", "/auth/session"): (200, {"uid": "u1", "email": "ada@example.com", "is_admin": True}),
            ("POST", "/auth/logout"): (200, {"message": "Signed out"}),
        }
    )

    token = await client.login("ada@example.com", "s3cret")
    session = await client.get_session()

    assert token.is_admin
    assert recorder.last.headers["Authorization"] == "Bearer jwt-1"
    assert session.uid == "u1"

    await client.logout()
    assert client.token is None
    assert "Authorization" not in client.headers


@pytest.mark.asyncio
async def test_logout_clears_token_even_when_rejected():
    client, _ = make_client({("POST", "/auth/logout"): (401, {"detail": "Token has been revoked"})}, token="jwt-1")

    with pytest.raises(AuthenticationFailure):
        await client.logout()

    assert client.token is None


@pytest.mark.asyncio
async def test_update_sends_only_supplied_fields():
    client, recorder = make_client(
        {("PUT", "/admin/blogs/b1"): (200, {"id": "b1", "invalidates": ["blogs"]})}, token="t"
    )

    await client.update_blog("b1", UpdateBlogRequest(published=True))

    assert json.loads(recorder.last.content) == {"published": True}


@pytest.mark.asyncio
async def test_admin_list_and_stats():
    records = [make_record(i).model_dump(mode="json") for i in range(2)]
    client, _ = make_client(
        {
            ("GET", "/admin/blogs"): (200, records),
            ("GET", "/admin/stats"): (
                200,
                {"total_blogs": 2, "total_views": 0, "total_likes": 0, "published_blogs": 2},
            ),
        },
        token="t",
    )

    blogs = await client.list_all_blogs()
    stats = await client.get_stats()

    assert [b.id for b in blogs] == ["blog-0", "blog-1"]
    assert stats.published_blogs == 2
