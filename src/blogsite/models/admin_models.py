"""
# Admin & Identity Models

Data structures for the identity provider and the admin panel gate.

- **Identity**: who signed in (`uid`, `email`), as issued by the identity provider.
- **AdminUser**: the admin record keyed by `uid`. `is_admin` defaults to `True` once a
  record exists.
- **UserAccount**: an email/password account stored by the identity provider.
"""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field


class Identity(BaseModel):
    uid: str
    email: str


class AdminUser(BaseModel):
    """Admin Identity record from the `admins` collection (`_id` is the uid)."""

    model_config = ConfigDict(populate_by_name=True)

    uid: str = Field(..., validation_alias=AliasChoices("uid", "_id"))
    email: str
    display_name: Optional[str] = None
    is_admin: bool = True
    created_at: Optional[datetime] = None


class UserAccount(BaseModel):
    """Identity provider account. `hashed_password` is a bcrypt hash, never plain text."""

    model_config = ConfigDict(populate_by_name=True)

    uid: str = Field(..., validation_alias=AliasChoices("uid", "_id"))
    email: str
    hashed_password: str
    display_name: Optional[str] = None
    created_at: datetime


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    uid: str
    email: str
    is_admin: bool = False


class SessionResponse(BaseModel):
    uid: str
    email: str
    display_name: Optional[str] = None
    is_admin: bool = False
