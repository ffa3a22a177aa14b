"""Authentication routes and the dependencies that guard the admin panel."""

from blogsite.routes.auth.routes import router

__all__ = ["router"]
