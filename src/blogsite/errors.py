"""
# Error Taxonomy

Domain errors raised by the gateway, the engagement tracker and the session gate.
Routes translate them into `HTTPException`s with the mapped `status_code`; the client
SDK maps HTTP statuses back to the same classes, so both sides of the wire speak
one vocabulary.

| Error | Status | Typical resolution |
|-------|--------|--------------------|
| `PermissionDenied` | 403 | read path: silently treated as an empty result |
| `AuthenticationFailure` | 401 | login form error / redirect to public page |
| `NotFound` | 404 | "not found" page state |
| `ValidationFailure` | 422 | form error, nothing is sent to the store |
| `MutationFailure` | 502 | transient notification; like toggle rolls back |
"""

from typing import Optional


class BlogError(Exception):
    """Base class for every error the blog service raises on purpose."""

    status_code: int = 500
    default_message: str = "Blog service error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class PermissionDenied(BlogError):
    status_code = 403
    default_message = "Permission denied"


class AuthenticationFailure(BlogError):
    status_code = 401
    default_message = "Invalid authentication credentials"


class NotFound(BlogError):
    status_code = 404
    default_message = "Blog not found"


class ValidationFailure(BlogError):
    status_code = 422
    default_message = "Please fill in all required fields"


class MutationFailure(BlogError):
    status_code = 502
    default_message = "The content store rejected the change"


ERRORS_BY_STATUS = {
    cls.status_code: cls
    for cls in (PermissionDenied, AuthenticationFailure, NotFound, ValidationFailure, MutationFailure)
}
