from datetime import datetime
from typing import List, Optional

import pydantic
from pydantic import BaseModel, Field

from app.schemas.section_schema import InputDataSchema


class Template(BaseModel):
    """Catalog entry. ``inputDataSchema`` declares the section types the template renders."""

    templateId: str
    name: str
    category: str
    templateFileUrl: str = ""
    previewImageUrl: str = ""
    inputDataSchema: InputDataSchema = Field(default_factory=dict)
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    model_config = pydantic.ConfigDict(extra="ignore")


class TemplateSummary(BaseModel):
    templateId: str
    name: str
    category: str
    previewImageUrl: str = ""
    createdAt: Optional[datetime] = None

    model_config = pydantic.ConfigDict(extra="ignore")


class TemplateList(BaseModel):
    templates: List[TemplateSummary] = Field(default_factory=list)
    count: int = 0
