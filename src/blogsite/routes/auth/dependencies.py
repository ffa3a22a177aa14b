"""
# Authentication Dependencies

FastAPI dependencies that enforce the admin gate on the server side.

- **`get_current_identity`**: bearer token → `Identity`; 401 when missing, malformed,
  expired or revoked.
- **`require_admin`**: `Identity` → `AdminUser`; 403 unless an admin record exists for
  the uid with `is_admin=True`.

Managers are provided through `get_identity_manager` / `get_admin_manager` so tests can
swap them with `app.dependency_overrides`.

```python
@router.delete("/blogs/{blog_id}")
async def delete_blog(blog_id: str, admin: AdminUser = Depends(require_admin)):
    ...
```

## Module Attributes

Attributes:
    oauth2_scheme (OAuth2PasswordBearer): Bearer token extraction scheme.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from blogsite.errors import AuthenticationFailure
from blogsite.managers.admin_manager import AdminManager, admin_manager
from blogsite.managers.identity_manager import IdentityManager, identity_manager
from blogsite.managers.logging_manager import get_logger
from blogsite.models.admin_models import AdminUser, Identity

logger = get_logger(prefix="[Auth Dependencies]")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_identity_manager() -> IdentityManager:
    return identity_manager


def get_admin_manager() -> AdminManager:
    return admin_manager


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_bearer_token(token: str = Depends(oauth2_scheme)) -> str:
    if not token:
        raise _unauthorized("Not authenticated")
    return token


async def get_current_identity(
    token: str = Depends(get_bearer_token),
    identities: IdentityManager = Depends(get_identity_manager),
) -> Identity:
    try:
        return await identities.verify_token(token)
    except AuthenticationFailure as e:
        raise _unauthorized(e.message)


async def require_admin(
    identity: Identity = Depends(get_current_identity),
    admins: AdminManager = Depends(get_admin_manager),
) -> AdminUser:
    """
    Resolve the admin record of the caller.

    Raises:
        HTTPException(403): No admin record, or the record has `is_admin=False`.
    """
    admin = await admins.get_admin(identity.uid)
    if admin is None or not admin.is_admin:
        logger.warning("Admin access denied for %s (%s)", identity.uid, identity.email)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return admin
