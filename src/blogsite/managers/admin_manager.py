"""
# Admin Manager

Looks up and provisions **Admin Identity** records in the `admins` collection. A record
is keyed by the identity provider's uid; the admin panel is open to a signed-in
identity only when its record exists with `is_admin=True`.

## Provisioning Policy

On successful sign-in, `ensure_admin()` creates the missing record for the identity
(trust on first login). Because that turns every identity-provider account into an
admin, the policy is explicit and configurable:

- `ADMIN_AUTO_PROVISION` (default `True`) switches provisioning on or off.
- `ADMIN_ALLOWED_EMAILS`, when set, restricts provisioning to the listed emails.
- Every auto-provisioned record is logged at WARNING level.

Existing records are never modified by sign-in, so an admin demoted by hand
(`is_admin=False`) stays demoted.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pymongo.errors import DuplicateKeyError

from blogsite.config import settings
from blogsite.database import db_manager
from blogsite.managers.logging_manager import get_logger
from blogsite.models.admin_models import AdminUser, Identity

logger = get_logger(prefix="[Admin Manager]")


class AdminManager:
    def __init__(self, collection=None):
        self._collection_override = collection

    @property
    def collection(self):
        if self._collection_override is not None:
            return self._collection_override
        return db_manager.get_collection(settings.ADMINS_COLLECTION)

    async def get_admin(self, uid: str) -> Optional[AdminUser]:
        doc = await self.collection.find_one({"_id": uid})
        return AdminUser.model_validate(doc) if doc else None

    async def is_admin(self, uid: str) -> bool:
        admin = await self.get_admin(uid)
        return bool(admin and admin.is_admin)

    async def list_admins(self) -> List[AdminUser]:
        docs = await self.collection.find({}).to_list(length=None)
        return [AdminUser.model_validate(doc) for doc in docs]

    def may_provision(self, identity: Identity) -> bool:
        if not settings.ADMIN_AUTO_PROVISION:
            return False
        allowed = settings.admin_allowed_emails_list
        return not allowed or identity.email.lower() in allowed

    async def ensure_admin(self, identity: Identity, display_name: Optional[str] = None) -> Optional[AdminUser]:
        """
        Return the admin record for `identity`, creating it when policy allows.

        Args:
            identity: The freshly signed-in identity.
            display_name: Optional name stored on a newly created record.

        Returns:
            Optional[AdminUser]: The existing or new record, or `None` when no record
            exists and provisioning is disabled or the email is not allow-listed.
        """
        existing = await self.get_admin(identity.uid)
        if existing is not None:
            return existing

        if not self.may_provision(identity):
            logger.info("Not provisioning admin record for %s (%s)", identity.uid, identity.email)
            return None

        admin = AdminUser(
            uid=identity.uid,
            email=identity.email,
            display_name=display_name or identity.email.split("@")[0],
            is_admin=True,
            created_at=datetime.now(timezone.utc),
        )
        doc = admin.model_dump(exclude={"uid"})
        doc["_id"] = admin.uid
        try:
            await self.collection.insert_one(doc)
        except DuplicateKeyError:
            # Concurrent first sign-in of the same identity.
            return await self.get_admin(identity.uid)

        logger.warning("Auto-provisioned admin record for %s (%s)", identity.uid, identity.email)
        return admin

    async def set_admin(self, identity: Identity, is_admin: bool) -> AdminUser:
        """Create or overwrite the admin flag of `identity` (used by the admin CLI)."""
        await self.collection.update_one(
            {"_id": identity.uid},
            {
                "$set": {"email": identity.email, "is_admin": is_admin},
                "$setOnInsert": {"created_at": datetime.now(timezone.utc)},
            },
            upsert=True,
        )
        logger.info("Set is_admin=%s for %s (%s)", is_admin, identity.uid, identity.email)
        return await self.get_admin(identity.uid)


admin_manager = AdminManager()
