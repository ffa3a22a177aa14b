"""
Shared dependencies for the blog routers.

`get_blog_gateway` hands out the process-wide `BlogContentGateway`; tests replace it via
`app.dependency_overrides`. `raise_for_blog_error` turns a domain error into the
matching `HTTPException`.
"""

from fastapi import HTTPException

from blogsite.errors import BlogError
from blogsite.managers.blog_manager import BlogContentGateway, blog_gateway


def get_blog_gateway() -> BlogContentGateway:
    return blog_gateway


def raise_for_blog_error(error: BlogError) -> None:
    raise HTTPException(status_code=error.status_code, detail=error.message) from error
