"""
# Identity Provider

A minimal email/password identity provider backing the admin sign-in flow.

## Domain Overview

- **Accounts** live in the `users` collection with a unique `email` and a bcrypt
  `hashed_password`. They are created out-of-band with the `blogsite-admin` CLI; the
  blog itself has no sign-up page.
- **Sessions** are stateless JWT access tokens (python-jose, `settings.ALGORITHM`)
  carrying `sub` (uid), `email`, `jti` and `exp`.
- **Sign-out** records the token's `jti` in `revoked_tokens`; a TTL index on
  `expires_at` drops the entry once the token would have expired anyway.

## Usage Example

```python
identity, token = await identity_manager.sign_in("ada@example.com", "s3cret")
identity = await identity_manager.verify_token(token)
await identity_manager.sign_out(token)
```
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple
from uuid import uuid4

import bcrypt
from jose import JWTError, jwt
from pymongo.errors import DuplicateKeyError

from blogsite.config import settings
from blogsite.database import db_manager
from blogsite.errors import AuthenticationFailure, ValidationFailure
from blogsite.managers.logging_manager import get_logger
from blogsite.models.admin_models import Identity, UserAccount

logger = get_logger(prefix="[Identity]")

# bcrypt only looks at the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def check_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        return False


def _secret_key() -> str:
    return settings.SECRET_KEY.get_secret_value()


class IdentityManager:
    """Email/password accounts and JWT sessions."""

    def __init__(self, users=None, revoked_tokens=None):
        self._users = users
        self._revoked_tokens = revoked_tokens

    @property
    def users(self):
        if self._users is not None:
            return self._users
        return db_manager.get_collection(settings.USERS_COLLECTION)

    @property
    def revoked_tokens(self):
        if self._revoked_tokens is not None:
            return self._revoked_tokens
        return db_manager.get_collection(settings.REVOKED_TOKENS_COLLECTION)

    async def create_account(self, email: str, password: str, display_name: Optional[str] = None) -> UserAccount:
        """
        Register a new account.

        Raises:
            ValidationFailure: Empty or over-long password, or the email is taken.
        """
        email = email.strip().lower()
        if not email or not password:
            raise ValidationFailure()
        if len(password.encode()) > MAX_PASSWORD_BYTES:
            raise ValidationFailure(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

        account = UserAccount(
            uid=uuid4().hex,
            email=email,
            hashed_password=hash_password(password),
            display_name=display_name,
            created_at=datetime.now(timezone.utc),
        )
        doc = account.model_dump(exclude={"uid"})
        doc["_id"] = account.uid
        try:
            await self.users.insert_one(doc)
        except DuplicateKeyError as e:
            raise ValidationFailure("An account with this email already exists") from e

        logger.info("Created account %s for %s", account.uid, email)
        return account

    async def find_account(self, email: str) -> Optional[UserAccount]:
        doc = await self.users.find_one({"email": email.strip().lower()})
        return UserAccount.model_validate(doc) if doc else None

    async def sign_in(self, email: str, password: str) -> Tuple[Identity, str]:
        """
        Check credentials and issue an access token.

        Raises:
            AuthenticationFailure: Unknown email or wrong password (same message for both).
        """
        doc = await self.users.find_one({"email": email.strip().lower()})
        if doc is None or not check_password(password, doc.get("hashed_password", "")):
            logger.info("Failed sign-in attempt for %s", email)
            raise AuthenticationFailure("Invalid email or password")

        account = UserAccount.model_validate(doc)
        identity = Identity(uid=account.uid, email=account.email)
        token = self.issue_token(identity)
        logger.info("Signed in %s", account.uid)
        return identity, token

    def issue_token(self, identity: Identity, expires_delta: Optional[timedelta] = None) -> str:
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
        claims = {
            "sub": identity.uid,
            "email": identity.email,
            "jti": uuid4().hex,
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
        }
        return jwt.encode(claims, _secret_key(), algorithm=settings.ALGORITHM)

    def decode_token(self, token: str) -> Dict[str, Any]:
        try:
            payload = jwt.decode(token, _secret_key(), algorithms=[settings.ALGORITHM])
        except JWTError as e:
            raise AuthenticationFailure() from e
        if not payload.get("sub") or not payload.get("jti"):
            raise AuthenticationFailure()
        return payload

    async def verify_token(self, token: str) -> Identity:
        """
        Resolve a bearer token to its identity.

        Raises:
            AuthenticationFailure: Malformed, expired or revoked token.
        """
        payload = self.decode_token(token)
        if await self.revoked_tokens.find_one({"jti": payload["jti"]}) is not None:
            raise AuthenticationFailure("Token has been revoked")
        return Identity(uid=payload["sub"], email=payload.get("email", ""))

    async def sign_out(self, token: str) -> None:
        payload = self.decode_token(token)
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        try:
            await self.revoked_tokens.insert_one(
                {"jti": payload["jti"], "uid": payload["sub"], "expires_at": expires_at}
            )
        except DuplicateKeyError:
            logger.debug("Token %s already revoked", payload["jti"])
            return
        logger.info("Signed out %s", payload["sub"])


identity_manager = IdentityManager()
