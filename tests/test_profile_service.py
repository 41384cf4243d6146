"""
Tests for user profiles
"""
import pytest

from app.core.errors import NotFoundError
from app.schemas.profile import PersonalInfo
from tests.helpers import USER_ID


@pytest.mark.asyncio
async def test_get_missing_profile(profile_service):
    with pytest.raises(NotFoundError):
        await profile_service.get_profile(USER_ID)


@pytest.mark.asyncio
async def test_ensure_profile_is_idempotent(profile_service):
    created = await profile_service.ensure_profile(USER_ID, email="jane@example.com", name="Jane")
    again = await profile_service.ensure_profile(USER_ID, email="other@example.com", name="Other")

    assert again == created
    assert again.personalInfo.name == "Jane"
    assert (await profile_service.get_profile(USER_ID)).email == "jane@example.com"


@pytest.mark.asyncio
async def test_update_profile_creates_then_replaces_personal_info(profile_service):
    created = await profile_service.update_profile(USER_ID, PersonalInfo(name="Jane", phone="555"))
    assert created.personalInfo.phone == "555"

    updated = await profile_service.update_profile(
        USER_ID, PersonalInfo(name="Jane Doe", customFields={"pronouns": "she/her"})
    )
    assert updated.personalInfo.name == "Jane Doe"
    assert updated.personalInfo.phone is None
    assert updated.personalInfo.customFields == {"pronouns": "she/her"}
    assert updated.createdAt == created.createdAt
