from datetime import datetime
from typing import Dict, Optional

import pydantic
from pydantic import BaseModel, Field


class PersonalInfo(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    portfolio: Optional[str] = None
    summary: Optional[str] = None
    customFields: Dict[str, str] = Field(default_factory=dict)

    model_config = pydantic.ConfigDict(extra="allow")


class Profile(BaseModel):
    """One per user; supplies ``personalInfo`` to every composed resume."""

    userId: str
    email: str = ""
    personalInfo: PersonalInfo = Field(default_factory=PersonalInfo)
    createdAt: datetime
    updatedAt: datetime

    model_config = pydantic.ConfigDict(extra="ignore")


class UpdateProfileRequest(BaseModel):
    personalInfo: PersonalInfo


class CreateProfileRequest(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
