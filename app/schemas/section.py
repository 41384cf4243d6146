from datetime import datetime
from typing import Any, Dict, List, Optional

import pydantic
from pydantic import BaseModel, Field

from app.core.config import settings


def normalize_tags(tags: List[str]) -> List[str]:
    """Strip, drop empties and de-duplicate while keeping the caller's order."""
    seen = set()
    out = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.add(tag)
            out.append(tag)
    return out


def _check_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    tags = normalize_tags(tags)
    if len(tags) > settings.MAX_TAGS_PER_SECTION:
        raise ValueError(f"Cannot have more than {settings.MAX_TAGS_PER_SECTION} tags")
    # '#' is the key delimiter of the tag index
    bad = [t for t in tags if "#" in t]
    if bad:
        raise ValueError(f"Tags may not contain '#': {bad}")
    return tags


def _check_section_type(section_type: Optional[str]) -> Optional[str]:
    if section_type is None:
        return None
    section_type = section_type.strip()
    if not section_type:
        raise ValueError("Section type is required")
    if len(section_type) > settings.MAX_SECTION_TYPE_LENGTH:
        raise ValueError(
            f"Section type must be less than {settings.MAX_SECTION_TYPE_LENGTH} characters"
        )
    if "#" in section_type:
        raise ValueError("Section type may not contain '#'")
    return section_type


class Section(BaseModel):
    """One reusable block of resume content, e.g. a single job entry."""

    sectionId: str
    userId: str
    # None while the section is not attached to any resume
    resumeId: Optional[str] = None
    sectionType: str
    title: str = ""
    tags: List[str] = Field(default_factory=list)
    data: Dict[str, Any] = Field(default_factory=dict)
    createdAt: datetime
    updatedAt: datetime

    model_config = pydantic.ConfigDict(extra="ignore")


class CreateSectionRequest(BaseModel):
    resumeId: Optional[str] = None
    sectionType: str
    title: str = ""
    tags: List[str] = Field(default_factory=list)
    data: Dict[str, Any] = Field(default_factory=dict)

    check_tags = pydantic.field_validator("tags")(_check_tags)
    check_section_type = pydantic.field_validator("sectionType")(_check_section_type)


class UpdateSectionRequest(BaseModel):
    """Partial update. A different ``sectionType`` re-keys the section."""

    title: Optional[str] = None
    sectionType: Optional[str] = None
    tags: Optional[List[str]] = None
    data: Optional[Dict[str, Any]] = None

    check_tags = pydantic.field_validator("tags")(_check_tags)
    check_section_type = pydantic.field_validator("sectionType")(_check_section_type)


class ResumeSectionInput(BaseModel):
    """A section embedded in a create-resume request; its type is the map key."""

    title: str = ""
    tags: List[str] = Field(default_factory=list)
    data: Dict[str, Any] = Field(default_factory=dict)

    check_tags = pydantic.field_validator("tags")(_check_tags)


class SectionUpsert(BaseModel):
    """Embedded in an update-resume request: with ``sectionId`` it updates, without it creates."""

    sectionId: Optional[str] = None
    title: Optional[str] = None
    tags: Optional[List[str]] = None
    data: Optional[Dict[str, Any]] = None

    check_tags = pydantic.field_validator("tags")(_check_tags)


class SectionList(BaseModel):
    sections: List[Section] = Field(default_factory=list)
    count: int = 0
    lastKey: Optional[str] = None
