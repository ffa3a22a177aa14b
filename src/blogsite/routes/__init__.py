"""
HTTP and WebSocket routers of the blog service.

| Router | Prefix | Purpose |
|--------|--------|---------|
| `blog_router` | `/blogs` | Public feed, detail and engagement |
| `admin_router` | `/admin` | Gated content management and stats |
| `auth_router` | `/auth` | Sign-in, sign-out, session |
| `websockets_router` | `/ws` | Invalidation event stream |
"""

from blogsite.routes.admin import router as admin_router
from blogsite.routes.auth import router as auth_router
from blogsite.routes.blog import router as blog_router
from blogsite.routes.websockets import router as websockets_router

__all__ = ["admin_router", "auth_router", "blog_router", "websockets_router"]
