"""
# Public Blog Routes

The reader-facing **read path** and the two engagement endpoints.

## Domain Overview

- **Feed**: published records only, assembled into a featured slot and an ordered
  regular list according to the category, search and sort parameters. A content store
  that refuses the read produces an empty feed, not an error.
- **Detail**: a single published record; unpublished and missing records are both 404.
- **Engagement**: views and likes are atomic counter deltas. There is no per-visitor
  de-duplication; every call counts.

## API Endpoints

- `GET /blogs` - Feed (`category`, `search`, `sort`)
- `GET /blogs/categories` - Category catalogue
- `GET /blogs/{blog_id}` - Post detail
- `POST /blogs/{blog_id}/view` - Count a view
- `POST /blogs/{blog_id}/like` - Add (`liked=true`) or remove (`liked=false`) a like

## Usage Examples

```python
feed = (await client.get("/blogs", params={"search": "ai", "sort": "popular"})).json()
await client.post(f"/blogs/{feed['featured']['id']}/like", json={"liked": True})
```

## Module Attributes

Attributes:
    router (APIRouter): FastAPI router with `/blogs` prefix
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from blogsite.config import settings
from blogsite.errors import BlogError
from blogsite.managers.blog_manager import BlogContentGateway
from blogsite.managers.logging_manager import get_logger
from blogsite.models.blog_models import (
    ALL_CATEGORIES,
    BlogRecord,
    FeedResponse,
    LikeRequest,
    MutationResponse,
    SortMode,
)
from blogsite.routes.blog_dependencies import get_blog_gateway, raise_for_blog_error
from blogsite.services.feed_assembler import assemble

logger = get_logger(prefix="[Blog Routes]")

router = APIRouter(prefix="/blogs", tags=["Blogs"])


@router.get("", response_model=FeedResponse)
async def get_feed(
    category: str = Query(ALL_CATEGORIES, description="Category filter; 'All Posts' disables it"),
    search: str = Query("", description="Case-insensitive text search"),
    sort: SortMode = Query(SortMode.LATEST),
    gateway: BlogContentGateway = Depends(get_blog_gateway),
):
    """
    Return the public feed.

    **Pipeline:**
    1.  Fetches published records (a refused read yields an empty feed).
    2.  Applies search, then the category filter.
    3.  Stable-sorts by `sort` and pulls the first featured record into the featured slot.

    Raises:
        HTTPException(500): If the content store fails for another reason.
    """
    try:
        records = await gateway.fetch_all(published_only=True)
        view = assemble(records, category=category, search=search, sort=sort)
        return FeedResponse(featured=view.featured, regular=view.regular, total=view.total)

    except Exception as e:
        logger.error("Failed to load feed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load blogs")


@router.get("/categories", response_model=List[str])
async def get_categories(gateway: BlogContentGateway = Depends(get_blog_gateway)):
    """The "all" sentinel, the configured catalogue, then any other category in use."""
    try:
        catalogue = settings.blog_categories_list
        extra = [c for c in await gateway.list_categories() if c not in catalogue]
        return [ALL_CATEGORIES] + catalogue + extra

    except Exception as e:
        logger.error("Failed to list categories: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list categories")


@router.get("/{blog_id}", response_model=BlogRecord)
async def get_blog(blog_id: str, gateway: BlogContentGateway = Depends(get_blog_gateway)):
    """
    Read one published post.

    Raises:
        HTTPException(404): Unknown id, or the post is not published.
        HTTPException(500): Unexpected store failure.
    """
    try:
        return await gateway.fetch_by_id(blog_id, published_only=True)

    except BlogError as e:
        raise_for_blog_error(e)
    except Exception as e:
        logger.error("Failed to get blog %s: %s", blog_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get blog")


@router.post("/{blog_id}/view", response_model=MutationResponse)
async def record_view(blog_id: str, gateway: BlogContentGateway = Depends(get_blog_gateway)):
    try:
        result = await gateway.increment_view(blog_id)
        return MutationResponse(id=result.blog_id, invalidates=result.event.group_names)

    except BlogError as e:
        raise_for_blog_error(e)
    except Exception as e:
        logger.error("Failed to record view for %s: %s", blog_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to record view")


@router.post("/{blog_id}/like", response_model=MutationResponse)
async def set_like(
    blog_id: str,
    request: LikeRequest,
    gateway: BlogContentGateway = Depends(get_blog_gateway),
):
    """
    Apply a like delta: `liked=true` adds one like, `liked=false` removes one.

    Raises:
        HTTPException(404): Unknown id.
        HTTPException(502): The store rejected the delta ("Failed to update like").
    """
    try:
        result = await gateway.adjust_likes(blog_id, 1 if request.liked else -1)
        logger.info("Like %s on %s", "added" if request.liked else "removed", blog_id)
        return MutationResponse(id=result.blog_id, invalidates=result.event.group_names)

    except BlogError as e:
        raise_for_blog_error(e)
    except Exception as e:
        logger.error("Failed to update like for %s: %s", blog_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update like")
