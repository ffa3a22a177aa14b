import asyncio
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from blogsite.errors import MutationFailure, NotFound, ValidationFailure
from blogsite.models.blog_models import CreateBlogRequest, UpdateBlogRequest
from blogsite.services.feed_assembler import assemble
from blogsite.services.invalidation import QueryGroup

ALL_GROUPS = {"blogs", "blog", "admin-blogs", "blog-stats"}


@pytest.mark.asyncio
async def test_create_fills_defaults(gateway, blogs_collection, create_request):
    result = await gateway.create(create_request)

    record = await gateway.fetch_by_id(result.blog_id)
    assert record.id == result.blog_id
    assert record.slug == "a"
    assert record.views == 0 and record.likes == 0
    assert record.read_time == 5
    assert record.meta_title == "A"
    assert record.meta_description == "e"
    assert record.created_at == record.updated_at
    assert record.published_at == record.created_at
    assert record.thumbnail == "http://x/a.png"
    assert blogs_collection.docs[0]["_id"] == result.blog_id


@pytest.mark.asyncio
async def test_create_returns_invalidation_event(gateway, events, create_request):
    result = await gateway.create(create_request)

    assert set(result.event.group_names) == ALL_GROUPS
    assert result.event.mutation == "create"
    assert events == [result.event]


@pytest.mark.asyncio
async def test_unpublished_record_hidden_until_published(gateway, payload_factory):
    result = await gateway.create(CreateBlogRequest(**payload_factory(published=False)))

    created = await gateway.fetch_by_id(result.blog_id)
    assert created.published_at is None
    assert await gateway.fetch_all() == []
    with pytest.raises(NotFound):
        await gateway.fetch_by_id(result.blog_id, published_only=True)

    await gateway.update(result.blog_id, UpdateBlogRequest(published=True))

    public = await gateway.fetch_all()
    assert [r.id for r in public] == [result.blog_id]
    assert public[0].published_at == public[0].updated_at
    assert public[0].published_at >= created.created_at


@pytest.mark.asyncio
async def test_update_writes_only_supplied_fields(gateway, create_request):
    result = await gateway.create(create_request)

    update = await gateway.update(result.blog_id, UpdateBlogRequest(title="Hello, World!", featured=False))
    record = await gateway.fetch_by_id(result.blog_id)

    assert set(update.event.group_names) == ALL_GROUPS
    assert record.title == "Hello, World!"
    assert record.slug == "hello-world"
    assert record.featured is False
    assert record.excerpt == "e"
    assert record.category == "Tech"


@pytest.mark.asyncio
async def test_update_does_not_touch_counters(gateway, create_request):
    result = await gateway.create(create_request)
    await gateway.increment_view(result.blog_id)
    await gateway.update(result.blog_id, UpdateBlogRequest(content="new body"))

    record = await gateway.fetch_by_id(result.blog_id)
    assert record.views == 1
    assert record.content == "new body"


@pytest.mark.asyncio
async def test_update_and_delete_unknown_id_raise_not_found(gateway, events):
    with pytest.raises(NotFound):
        await gateway.update("missing", UpdateBlogRequest(title="x"))
    with pytest.raises(NotFound):
        await gateway.delete("missing")
    with pytest.raises(NotFound):
        await gateway.increment_view("missing")
    assert events == []


@pytest.mark.asyncio
async def test_delete_is_permanent(gateway, create_request):
    result = await gateway.create(create_request)

    deleted = await gateway.delete(result.blog_id)

    assert set(deleted.event.group_names) == ALL_GROUPS
    with pytest.raises(NotFound):
        await gateway.fetch_by_id(result.blog_id)
    with pytest.raises(NotFound):
        await gateway.delete(result.blog_id)


@pytest.mark.asyncio
async def test_increment_view_groups(gateway, create_request):
    result = await gateway.create(create_request)

    view = await gateway.increment_view(result.blog_id)

    assert set(view.event.group_names) == {"admin-blogs", "blog-stats"}
    assert not view.event.affects(QueryGroup.BLOGS)
    assert (await gateway.fetch_by_id(result.blog_id)).views == 1


@pytest.mark.asyncio
async def test_concurrent_view_increments_are_not_lost(gateway, create_request):
    result = await gateway.create(create_request)

    await asyncio.gather(*(gateway.increment_view(result.blog_id) for _ in range(25)))

    assert (await gateway.fetch_by_id(result.blog_id)).views == 25


@pytest.mark.asyncio
async def test_adjust_likes(gateway, create_request):
    result = await gateway.create(create_request)

    liked = await gateway.adjust_likes(result.blog_id, 1)
    await gateway.adjust_likes(result.blog_id, 1)
    await gateway.adjust_likes(result.blog_id, -1)

    assert set(liked.event.group_names) == ALL_GROUPS
    assert (await gateway.fetch_by_id(result.blog_id)).likes == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("delta", [0, 2, -5])
async def test_adjust_likes_rejects_other_deltas(gateway, create_request, events, delta):
    result = await gateway.create(create_request)
    events.clear()

    with pytest.raises(ValidationFailure):
        await gateway.adjust_likes(result.blog_id, delta)
    assert events == []


@pytest.mark.asyncio
async def test_refused_read_returns_empty_list(gateway, blogs_collection, create_request):
    await gateway.create(create_request)
    blogs_collection.fail_with = OperationFailure("not authorized on blogsite", code=13)

    assert await gateway.fetch_all() == []
    assert await gateway.fetch_all(published_only=False) == []


@pytest.mark.asyncio
async def test_other_read_failures_propagate(gateway, blogs_collection):
    blogs_collection.fail_with = OperationFailure("bad query", code=2)

    with pytest.raises(OperationFailure):
        await gateway.fetch_all()


@pytest.mark.asyncio
async def test_store_failure_on_write_is_mutation_failure(gateway, blogs_collection, create_request, events):
    blogs_collection.fail_with = ServerSelectionTimeoutError("store unreachable")

    with pytest.raises(MutationFailure):
        await gateway.create(create_request)
    with pytest.raises(MutationFailure) as exc_info:
        await gateway.adjust_likes("any", 1)
    assert exc_info.value.message == "Failed to update like"
    assert events == []


@pytest.mark.asyncio
async def test_admin_path_sees_everything_newest_first(gateway, payload_factory):
    times = [datetime(2024, 5, 1, tzinfo=timezone.utc), datetime(2024, 5, 2, tzinfo=timezone.utc)]
    with patch("blogsite.managers.blog_manager._now", side_effect=times):
        first = await gateway.create(CreateBlogRequest(**payload_factory(title="First", published=False)))
        second = await gateway.create(CreateBlogRequest(**payload_factory(title="Second")))

    everything = await gateway.fetch_all(published_only=False)

    assert [r.id for r in everything] == [second.blog_id, first.blog_id]


@pytest.mark.asyncio
async def test_stats_and_categories(gateway, payload_factory):
    a = await gateway.create(CreateBlogRequest(**payload_factory(category="Design")))
    await gateway.create(CreateBlogRequest(**payload_factory(category="Tech", published=False)))
    await gateway.increment_view(a.blog_id)
    await gateway.adjust_likes(a.blog_id, 1)

    stats = await gateway.stats()
    assert stats.total_blogs == 2
    assert stats.published_blogs == 1
    assert stats.total_views == 1
    assert stats.total_likes == 1
    assert await gateway.list_categories() == ["Design"]


@pytest.mark.asyncio
async def test_end_to_end_scenario(gateway, create_request):
    result = await gateway.create(create_request)

    public = await gateway.fetch_all()
    assert len(public) == 1

    view = assemble(public)
    assert view.featured is not None
    assert view.featured.id == result.blog_id
    assert view.regular == []

    await gateway.delete(result.blog_id)
    assert await gateway.fetch_all() == []


@pytest.mark.asyncio
async def test_refused_category_read_returns_empty_list(gateway, blogs_collection, create_request):
    await gateway.create(create_request)
    blogs_collection.fail_with = OperationFailure("not authorized", code=13)

    assert await gateway.list_categories() == []


@pytest.mark.asyncio
async def test_null_update_is_rejected_before_the_write(gateway, create_request):
    result = await gateway.create(create_request)

    with pytest.raises(ValueError):
        await gateway.update(result.blog_id, UpdateBlogRequest(title=None))

    assert (await gateway.fetch_by_id(result.blog_id)).title == "A"


@pytest.mark.asyncio
async def test_slow_subscriber_does_not_delay_writes(gateway, dispatcher, create_request):
    release = asyncio.Event()

    async def stalled_socket(event):
        await release.wait()

    dispatcher.subscribe(stalled_socket)

    result = await asyncio.wait_for(gateway.create(create_request), timeout=1)
    await asyncio.wait_for(gateway.adjust_likes(result.blog_id, 1), timeout=1)
    await asyncio.wait_for(gateway.increment_view(result.blog_id), timeout=1)

    assert dispatcher.pending_count == 3
    release.set()
    await dispatcher.drain()
    assert dispatcher.pending_count == 0
