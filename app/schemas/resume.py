from datetime import datetime
from typing import Any, Dict, List, Optional

import pydantic
from pydantic import BaseModel, Field

from app.core.config import settings
from app.schemas.section import ResumeSectionInput, SectionUpsert


class Resume(BaseModel):
    resumeId: str
    userId: str
    name: str
    templateId: str
    # sectionType -> ordered section ids; the resume never stores section content
    sections: Dict[str, List[str]] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    styling: Dict[str, Any] = Field(default_factory=dict)
    createdAt: datetime
    updatedAt: datetime

    model_config = pydantic.ConfigDict(extra="ignore")


class ResumeSummary(BaseModel):
    resumeId: str
    name: str
    templateId: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    styling: Dict[str, Any] = Field(default_factory=dict)
    createdAt: datetime
    updatedAt: datetime

    model_config = pydantic.ConfigDict(extra="ignore")


class FullResume(BaseModel):
    """Resume metadata merged with resolved, type-grouped section content and the owner's profile."""

    resumeId: str
    userId: str
    name: str
    templateId: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    styling: Dict[str, Any] = Field(default_factory=dict)
    createdAt: datetime
    updatedAt: datetime
    data: Dict[str, Any] = Field(default_factory=dict)


class CreateResumeRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=settings.MAX_NAME_LENGTH)
    templateId: str = Field(..., min_length=1)
    sections: Optional[Dict[str, List[ResumeSectionInput]]] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    styling: Dict[str, Any] = Field(default_factory=dict)


class UpdateResumeRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=settings.MAX_NAME_LENGTH)
    # Accepted only so an attempt to change it can be rejected explicitly
    templateId: Optional[str] = None
    sections: Optional[Dict[str, List[SectionUpsert]]] = None
    metadata: Optional[Dict[str, Any]] = None
    styling: Optional[Dict[str, Any]] = None


class ResumeList(BaseModel):
    resumes: List[ResumeSummary] = Field(default_factory=list)
    count: int = 0
    lastKey: Optional[str] = None
