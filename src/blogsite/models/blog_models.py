"""
# Blog Content Models

This module defines the data structures for blog content: the stored **Content
Record**, the admin create/update requests, the aggregate statistics and the
reader-side feed view.

## Domain Model Overview

- **BlogRecord**: A blog post and its metadata as stored in the `blogs` collection.
- **CreateBlogRequest / UpdateBlogRequest**: What the admin editor may write.
  Counters (`views`, `likes`), `id` and `created_at` are not part of either request,
  so they can only change through the engagement operations.
- **BlogStats**: Aggregate numbers derived on demand, never stored.
- **FeedResponse**: The featured slot plus the ordered regular list.

## Content Safety & Validation

- Plain-text fields (`title`, `excerpt`) are stripped of HTML using `bleach`.
- `thumbnail` and `author_avatar` must be well-formed http(s) URLs.
- Required strings must be non-empty after stripping whitespace.

## Usage Example

```python
request = CreateBlogRequest(
    title="Shipping FastAPI services",
    excerpt="Notes from production",
    content="# Hello",
    thumbnail="https://cdn.example.com/t.png",
    category="Tech",
    author_name="Bob",
    author_avatar="https://cdn.example.com/bob.png",
    published=True,
)
```

## Module Attributes

Attributes:
    ALL_CATEGORIES (str): Category sentinel meaning "no category filter".
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

import bleach
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, HttpUrl, field_validator

ALL_CATEGORIES = "All Posts"
DEFAULT_READ_TIME = 5

# Fields every stored record must carry; an update may change them but never clear them.
NON_NULLABLE_UPDATE_FIELDS = (
    "title",
    "excerpt",
    "content",
    "thumbnail",
    "category",
    "tags",
    "published",
    "featured",
    "read_time",
    "author_name",
    "author_avatar",
    "seo_keywords",
)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """Lowercase, collapse non-alphanumerics to hyphens, strip leading/trailing hyphens."""
    return _NON_ALNUM.sub("-", title.lower()).strip("-")


def _clean_text(v: str) -> str:
    return bleach.clean(v, tags=[], strip=True).strip()


class SortMode(str, Enum):
    """Sort orders offered by the public feed.

    Attributes:
        LATEST: Most recently published first.
        OLDEST: Earliest published first.
        POPULAR: Highest `views + likes` first.
        VIEWS: Highest `views` first.
    """

    LATEST = "latest"
    OLDEST = "oldest"
    POPULAR = "popular"
    VIEWS = "views"


class BlogRecord(BaseModel):
    """
    A Content Record as stored and as returned by the API.

    The store keeps the identifier in `_id`; the API exposes it as `id`.
    `published_at` is `None` until the record is first published.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., validation_alias=AliasChoices("id", "_id"), description="Store-assigned identifier")
    title: str
    slug: str
    excerpt: str
    content: str
    thumbnail: str
    category: str
    tags: List[str] = Field(default_factory=list)
    published: bool = False
    featured: bool = False
    views: int = Field(0, ge=0)
    likes: int = Field(0, ge=0)
    read_time: int = Field(DEFAULT_READ_TIME, gt=0)
    author_name: str
    author_avatar: str
    author_bio: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    seo_keywords: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    published_at: Optional[datetime] = None

    @field_validator("views", "likes", mode="before")
    @classmethod
    def clamp_counters(cls, v):
        # Concurrent unlike requests can drive a stored counter below zero.
        return max(0, int(v or 0))


class CreateBlogRequest(BaseModel):
    """
    Request model for creating a blog post from the admin editor.

    **Defaults:**
    *   `published` and `featured` default to `False`.
    *   `read_time` defaults to 5 minutes.
    *   `meta_title` / `meta_description` fall back to `title` / `excerpt` when stored.
    """

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=200)
    excerpt: str = Field(..., min_length=1, max_length=1000)
    content: str = Field(..., min_length=1)
    thumbnail: HttpUrl
    category: str = Field(..., min_length=1, max_length=50)
    tags: List[str] = Field(default_factory=list)
    published: bool = False
    featured: bool = False
    read_time: int = Field(DEFAULT_READ_TIME, gt=0)
    author_name: str = Field(..., min_length=1, max_length=100)
    author_avatar: HttpUrl
    author_bio: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    seo_keywords: List[str] = Field(default_factory=list)

    @field_validator("title", "excerpt")
    @classmethod
    def strip_html(cls, v: str) -> str:
        cleaned = _clean_text(v)
        if not cleaned:
            raise ValueError("must not be empty")
        return cleaned

    @field_validator("category", "author_name")
    @classmethod
    def strip_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("tags", "seo_keywords")
    @classmethod
    def drop_empty_items(cls, v: List[str]) -> List[str]:
        return [item.strip() for item in v if item and item.strip()]


class UpdateBlogRequest(BaseModel):
    """
    Partial update from the admin editor. Only fields that are explicitly set are
    written; `published=True` refreshes `published_at`.
    Only `author_bio`, `meta_title` and `meta_description` may be cleared with `null`.
    """

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    excerpt: Optional[str] = Field(None, min_length=1, max_length=1000)
    content: Optional[str] = Field(None, min_length=1)
    thumbnail: Optional[HttpUrl] = None
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    tags: Optional[List[str]] = None
    published: Optional[bool] = None
    featured: Optional[bool] = None
    read_time: Optional[int] = Field(None, gt=0)
    author_name: Optional[str] = Field(None, min_length=1, max_length=100)
    author_avatar: Optional[HttpUrl] = None
    author_bio: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    seo_keywords: Optional[List[str]] = None

    @field_validator(*NON_NULLABLE_UPDATE_FIELDS, mode="before")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("must not be null")
        return v

    @field_validator("title", "excerpt")
    @classmethod
    def strip_html(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        cleaned = _clean_text(v)
        if not cleaned:
            raise ValueError("must not be empty")
        return cleaned

    @field_validator("content", "category", "author_name")
    @classmethod
    def not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("must not be empty")
        return v


class BlogStats(BaseModel):
    """Aggregate numbers for the admin dashboard, folded over the full record set."""

    total_blogs: int = 0
    total_views: int = 0
    total_likes: int = 0
    published_blogs: int = 0


class FeedResponse(BaseModel):
    featured: Optional[BlogRecord] = None
    regular: List[BlogRecord] = Field(default_factory=list)
    total: int = 0


class LikeRequest(BaseModel):
    liked: bool = Field(..., description="New like state; true adds a like, false removes one")


class MutationResponse(BaseModel):
    """Result of a write: the affected record and the query groups it invalidated."""

    id: str
    invalidates: List[str] = Field(default_factory=list)
