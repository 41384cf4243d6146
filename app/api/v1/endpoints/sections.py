from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_current_user_id, get_section_service
from app.core.messages import SuccessMessages
from app.schemas.responses import Envelope
from app.schemas.section import (
    CreateSectionRequest,
    Section,
    SectionList,
    UpdateSectionRequest,
    normalize_tags,
)
from app.services.section_service import SectionService

router = APIRouter()


@router.get("/", response_model=Envelope[SectionList])
async def read_sections(
    resumeId: Optional[str] = None,
    type: Optional[str] = None,
    tags: Optional[str] = Query(None, description="Comma separated tag list"),
    limit: Optional[int] = Query(None, ge=1),
    lastKey: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    service: SectionService = Depends(get_section_service),
):
    tag_list = normalize_tags(tags.split(",")) if tags else None
    sections = await service.list_sections(
        user_id,
        resume_id=resumeId,
        section_type=type,
        tags=tag_list,
        limit=limit,
        last_key=lastKey,
    )
    return {"status": 200, "message": SuccessMessages.SECTIONS_RETURNED, "data": sections}


@router.get("/{section_id}", response_model=Envelope[Section])
async def read_section(
    section_id: str,
    type: Optional[str] = None,
    resumeId: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    service: SectionService = Depends(get_section_service),
):
    """Fetch one section. Passing both ``type`` and ``resumeId`` allows a direct key lookup."""
    section = await service.get_section(user_id, section_id, section_type=type, resume_id=resumeId)
    return {"status": 200, "message": SuccessMessages.SECTION_RETURNED, "data": section}


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=Envelope[Section])
async def create_section(
    body: CreateSectionRequest,
    user_id: str = Depends(get_current_user_id),
    service: SectionService = Depends(get_section_service),
):
    section = await service.create_section(user_id, body)
    return {"status": 201, "message": SuccessMessages.SECTION_CREATED, "data": section}


@router.put("/{section_id}", response_model=Envelope[Section])
async def update_section(
    section_id: str,
    body: UpdateSectionRequest,
    user_id: str = Depends(get_current_user_id),
    service: SectionService = Depends(get_section_service),
):
    # A new sectionType re-keys the section: the returned sectionId differs from the path
    section = await service.update_section(user_id, section_id, body)
    return {"status": 200, "message": SuccessMessages.SECTION_UPDATED, "data": section}


@router.delete("/{section_id}", response_model=Envelope[None])
async def delete_section(
    section_id: str,
    user_id: str = Depends(get_current_user_id),
    service: SectionService = Depends(get_section_service),
):
    await service.delete_section(user_id, section_id)
    return {"status": 200, "message": SuccessMessages.SECTION_DELETED, "data": None}
