from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_current_user_id, get_resume_service
from app.core.messages import SuccessMessages
from app.schemas.resume import (
    CreateResumeRequest,
    FullResume,
    Resume,
    ResumeList,
    UpdateResumeRequest,
)
from app.schemas.responses import Envelope
from app.services.resume_service import ResumeService

router = APIRouter()


@router.get("/", response_model=Envelope[ResumeList])
async def read_resumes(
    limit: Optional[int] = Query(None, ge=1),
    lastKey: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    service: ResumeService = Depends(get_resume_service),
):
    resumes = await service.list_resumes(user_id, limit=limit, last_key=lastKey)
    return {"status": 200, "message": SuccessMessages.RESUMES_RETURNED, "data": resumes}


@router.get("/{resume_id}", response_model=Envelope[Resume])
async def read_resume(
    resume_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ResumeService = Depends(get_resume_service),
):
    resume = await service.get_resume(user_id, resume_id)
    return {"status": 200, "message": SuccessMessages.RESUME_RETURNED, "data": resume}


@router.get("/{resume_id}/full", response_model=Envelope[FullResume])
async def read_full_resume(
    resume_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ResumeService = Depends(get_resume_service),
):
    """Resume metadata with personal info and all referenced sections grouped by type."""
    resume = await service.compose_full(user_id, resume_id)
    return {"status": 200, "message": SuccessMessages.RESUME_RETURNED, "data": resume}


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=Envelope[Resume])
async def create_resume(
    body: CreateResumeRequest,
    user_id: str = Depends(get_current_user_id),
    service: ResumeService = Depends(get_resume_service),
):
    resume = await service.create_resume(user_id, body)
    return {"status": 201, "message": SuccessMessages.RESUME_CREATED, "data": resume}


@router.put("/{resume_id}", response_model=Envelope[Resume])
async def update_resume(
    resume_id: str,
    body: UpdateResumeRequest,
    user_id: str = Depends(get_current_user_id),
    service: ResumeService = Depends(get_resume_service),
):
    """
    Update resume fields and, optionally, its sections.

    Each entry of ``sections[type]`` either carries a ``sectionId`` (update,
    or re-key when that section belongs to another type or resume) or not
    (create). The stored list of every type present in the body is replaced.
    """
    resume = await service.update_resume(user_id, resume_id, body)
    return {"status": 200, "message": SuccessMessages.RESUME_UPDATED, "data": resume}


@router.delete("/{resume_id}", response_model=Envelope[None])
async def delete_resume(
    resume_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ResumeService = Depends(get_resume_service),
):
    await service.delete_resume(user_id, resume_id)
    return {"status": 200, "message": SuccessMessages.RESUME_DELETED, "data": None}
