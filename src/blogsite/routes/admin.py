"""
# Admin Panel Routes

Content management for signed-in admins. Every endpoint depends on `require_admin`,
so callers without a valid token get 401 and callers without an admin record get 403.

## API Endpoints

- `GET /admin/blogs` - All records, published or not, newest first
- `GET /admin/blogs/{blog_id}` - One record for the editor
- `POST /admin/blogs` - Create a record
- `PUT /admin/blogs/{blog_id}` - Partial update (last write wins)
- `DELETE /admin/blogs/{blog_id}` - Permanent delete
- `GET /admin/stats` - Dashboard totals

Write endpoints answer with `{"id": ..., "invalidates": [...]}` naming the query groups
the write made stale.

## Module Attributes

Attributes:
    router (APIRouter): FastAPI router with `/admin` prefix
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from blogsite.errors import BlogError
from blogsite.managers.blog_manager import BlogContentGateway
from blogsite.managers.logging_manager import get_logger
from blogsite.models.admin_models import AdminUser
from blogsite.models.blog_models import (
    BlogRecord,
    BlogStats,
    CreateBlogRequest,
    MutationResponse,
    UpdateBlogRequest,
)
from blogsite.routes.auth.dependencies import require_admin
from blogsite.routes.blog_dependencies import get_blog_gateway, raise_for_blog_error

logger = get_logger(prefix="[Admin Routes]")

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/blogs", response_model=List[BlogRecord])
async def list_blogs(
    admin: AdminUser = Depends(require_admin),
    gateway: BlogContentGateway = Depends(get_blog_gateway),
):
    try:
        return await gateway.fetch_all(published_only=False)

    except Exception as e:
        logger.error("Failed to list blogs for admin %s: %s", admin.uid, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list blogs")


@router.get("/blogs/{blog_id}", response_model=BlogRecord)
async def get_blog(
    blog_id: str,
    admin: AdminUser = Depends(require_admin),
    gateway: BlogContentGateway = Depends(get_blog_gateway),
):
    try:
        return await gateway.fetch_by_id(blog_id)

    except BlogError as e:
        raise_for_blog_error(e)
    except Exception as e:
        logger.error("Failed to get blog %s: %s", blog_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get blog")


@router.post("/blogs", response_model=MutationResponse, status_code=status.HTTP_201_CREATED)
async def create_blog(
    request: CreateBlogRequest,
    admin: AdminUser = Depends(require_admin),
    gateway: BlogContentGateway = Depends(get_blog_gateway),
):
    """
    Create a blog post.

    **Process:**
    1.  The request model has already rejected blank required fields and malformed URLs (422).
    2.  The gateway assigns the id, timestamps, slug, zeroed counters and SEO defaults.
    3.  `published_at` is set only if the post is created published.

    Raises:
        HTTPException(502): The content store rejected the write.
        HTTPException(500): Unexpected failure.
    """
    try:
        result = await gateway.create(request)
        logger.info("Admin %s created blog %s", admin.uid, result.blog_id)
        return MutationResponse(id=result.blog_id, invalidates=result.event.group_names)

    except BlogError as e:
        raise_for_blog_error(e)
    except Exception as e:
        logger.error("Failed to create blog: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create blog")


@router.put("/blogs/{blog_id}", response_model=MutationResponse)
async def update_blog(
    blog_id: str,
    request: UpdateBlogRequest,
    admin: AdminUser = Depends(require_admin),
    gateway: BlogContentGateway = Depends(get_blog_gateway),
):
    """
    Update the supplied fields of a post. Setting `published=true` stamps
    `published_at` with the update time.

    Raises:
        HTTPException(404): Unknown id.
        HTTPException(502): The content store rejected the write.
    """
    try:
        result = await gateway.update(blog_id, request)
        logger.info("Admin %s updated blog %s", admin.uid, blog_id)
        return MutationResponse(id=result.blog_id, invalidates=result.event.group_names)

    except BlogError as e:
        raise_for_blog_error(e)
    except Exception as e:
        logger.error("Failed to update blog %s: %s", blog_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update blog")


@router.delete("/blogs/{blog_id}", response_model=MutationResponse)
async def delete_blog(
    blog_id: str,
    admin: AdminUser = Depends(require_admin),
    gateway: BlogContentGateway = Depends(get_blog_gateway),
):
    try:
        result = await gateway.delete(blog_id)
        logger.info("Admin %s deleted blog %s", admin.uid, blog_id)
        return MutationResponse(id=result.blog_id, invalidates=result.event.group_names)

    except BlogError as e:
        raise_for_blog_error(e)
    except Exception as e:
        logger.error("Failed to delete blog %s: %s", blog_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete blog")


@router.get("/stats", response_model=BlogStats)
async def get_stats(
    admin: AdminUser = Depends(require_admin),
    gateway: BlogContentGateway = Depends(get_blog_gateway),
):
    """Totals over every record: posts, views, likes and published posts."""
    try:
        return await gateway.stats()

    except Exception as e:
        logger.error("Failed to compute stats: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to compute stats")
