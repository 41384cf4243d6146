from typing import Optional

from app.core.errors import NotFoundError
from app.core.messages import ErrorMessages
from app.crud.crud_profile import ProfileStore
from app.db.key_mapper import utc_now
from app.schemas.profile import PersonalInfo, Profile


class ProfileService:
    def __init__(self, profiles: ProfileStore):
        self.profiles = profiles

    async def get_profile(self, user_id: str) -> Profile:
        profile = await self.profiles.get(user_id)
        if profile is None:
            raise NotFoundError(ErrorMessages.USER_NOT_FOUND)
        return profile

    async def ensure_profile(self, user_id: str, email: Optional[str] = None,
                             name: Optional[str] = None) -> Profile:
        """Create the profile on first sign-in; calling it again returns the stored one."""
        now = utc_now()
        profile = Profile(
            userId=user_id,
            email=email or "",
            personalInfo=PersonalInfo(name=name, email=email),
            createdAt=now,
            updatedAt=now,
        )
        return await self.profiles.create(profile)

    async def update_profile(self, user_id: str, personal_info: PersonalInfo) -> Profile:
        return await self.profiles.upsert(user_id, personal_info)
