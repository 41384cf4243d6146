import logging
from typing import Optional

from app.core.errors import ConflictError
from app.db.key_mapper import from_profile_item, profile_key, to_profile_item, utc_now
from app.db.tables import Table
from app.schemas.profile import PersonalInfo, Profile

logger = logging.getLogger(__name__)


class ProfileStore:
    def __init__(self, table: Table):
        self.table = table

    async def get(self, user_id: str) -> Optional[Profile]:
        item = await self.table.get_item(profile_key(user_id))
        return from_profile_item(item) if item else None

    async def create(self, profile: Profile) -> Profile:
        """Conditional create. An existing profile is returned unchanged rather than treated as an error."""
        try:
            await self.table.put_item(to_profile_item(profile), if_not_exists=True)
        except ConflictError:
            logger.info("Profile for user %s already exists", profile.userId)
            existing = await self.get(profile.userId)
            return existing or profile
        return profile

    async def upsert(self, user_id: str, personal_info: PersonalInfo, email: Optional[str] = None) -> Profile:
        now = utc_now()
        existing = await self.get(user_id)
        if existing is None:
            profile = Profile(
                userId=user_id,
                email=email or personal_info.email or "",
                personalInfo=personal_info,
                createdAt=now,
                updatedAt=now,
            )
            await self.table.put_item(to_profile_item(profile))
            return profile

        updates = {"personalInfo": personal_info.model_dump(), "updatedAt": now}
        if email:
            updates["email"] = email
        item = await self.table.update_item(profile_key(user_id), updates)
        return from_profile_item(item) if item else existing
