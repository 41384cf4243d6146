from fastapi import APIRouter, Depends, status

from app.api.deps import get_current_user_id, get_profile_service
from app.core.messages import SuccessMessages
from app.schemas.profile import CreateProfileRequest, Profile, UpdateProfileRequest
from app.schemas.responses import Envelope
from app.services.profile_service import ProfileService

router = APIRouter()


@router.get("/me", response_model=Envelope[Profile])
async def read_profile(
    user_id: str = Depends(get_current_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    profile = await service.get_profile(user_id)
    return {"status": 200, "message": SuccessMessages.PROFILE_RETURNED, "data": profile}


@router.post("/me", status_code=status.HTTP_201_CREATED, response_model=Envelope[Profile])
async def create_profile(
    body: CreateProfileRequest,
    user_id: str = Depends(get_current_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    """Create the caller's profile. Repeating the call returns the existing profile."""
    profile = await service.ensure_profile(user_id, email=body.email, name=body.name)
    return {"status": 201, "message": SuccessMessages.PROFILE_CREATED, "data": profile}


@router.put("/me", response_model=Envelope[Profile])
async def update_profile(
    body: UpdateProfileRequest,
    user_id: str = Depends(get_current_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    profile = await service.update_profile(user_id, body.personalInfo)
    return {"status": 200, "message": SuccessMessages.PROFILE_UPDATED, "data": profile}
