"""
# Authentication Routes

Sign-in, sign-out and session lookup for the admin panel.

## API Endpoints

- `POST /auth/login` - Email/password sign-in; provisions the admin record on first login
- `POST /auth/logout` - Revoke the presented token
- `GET /auth/session` - Current identity and its admin capability

## Usage Example

```python
response = await client.post("/auth/login", json={"email": "ada@example.com", "password": "s3cret"})
token = response.json()["access_token"]
session = await client.get("/auth/session", headers={"Authorization": f"Bearer {token}"})
```
"""

from fastapi import APIRouter, Depends, HTTPException, status

from blogsite.errors import AuthenticationFailure
from blogsite.managers.admin_manager import AdminManager
from blogsite.managers.identity_manager import IdentityManager
from blogsite.managers.logging_manager import get_logger
from blogsite.models.admin_models import Identity, LoginRequest, SessionResponse, TokenResponse
from blogsite.routes.auth.dependencies import (
    get_admin_manager,
    get_bearer_token,
    get_current_identity,
    get_identity_manager,
)

logger = get_logger(prefix="[Auth Routes]")

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    identities: IdentityManager = Depends(get_identity_manager),
    admins: AdminManager = Depends(get_admin_manager),
):
    """
    Sign in with email and password.

    **Process:**
    1.  Verifies the credentials against the identity provider.
    2.  Issues a JWT access token.
    3.  Ensures the admin record exists (subject to the auto-provisioning policy).

    Raises:
        HTTPException(401): Invalid email or password.
        HTTPException(500): Unexpected failure.
    """
    try:
        identity, token = await identities.sign_in(request.email, request.password)
        admin = await admins.ensure_admin(identity)
        return TokenResponse(
            access_token=token,
            uid=identity.uid,
            email=identity.email,
            is_admin=bool(admin and admin.is_admin),
        )

    except AuthenticationFailure as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    except Exception as e:
        logger.error("Sign-in failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to sign in")


@router.post("/logout")
async def logout(
    token: str = Depends(get_bearer_token),
    identities: IdentityManager = Depends(get_identity_manager),
):
    try:
        await identities.sign_out(token)
        return {"message": "Signed out"}

    except AuthenticationFailure as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)
    except Exception as e:
        logger.error("Sign-out failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to sign out")


@router.get("/session", response_model=SessionResponse)
async def get_session(
    identity: Identity = Depends(get_current_identity),
    admins: AdminManager = Depends(get_admin_manager),
):
    """Return the signed-in identity and whether it may open the admin panel."""
    try:
        admin = await admins.get_admin(identity.uid)
        return SessionResponse(
            uid=identity.uid,
            email=identity.email,
            display_name=admin.display_name if admin else None,
            is_admin=bool(admin and admin.is_admin),
        )

    except Exception as e:
        logger.error("Failed to resolve session for %s: %s", identity.uid, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to resolve session")
