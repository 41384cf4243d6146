"""
Storage key construction.

Every partition/sort key the stores use is built here, so the physical layout
of each table is readable in one place:

    sections   PK=USER#<user>          SK=SECTION#<resume>#<type>#<id>
               GSI1PK=SECTION#<user>   GSI1SK=TAGS#<tag>#<tag>#...
               GSI2PK=SECTION#<user>#<resume>#<type>   GSI2SK=CREATED#<ms>
    resumes    PK=USER#<user>          SK=RESUME#<id>
               GSI1PK=USER#<user>      GSI1SK=UPDATED#<ms>
    profiles   PK=USER#<user>          SK=PROFILE
    templates  PK=TEMPLATE#<id>        SK=METADATA
               GSI1PK=CATEGORY#<cat>   GSI1SK=NAME#<name>
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from app.schemas.profile import Profile
from app.schemas.resume import Resume
from app.schemas.section import Section
from app.schemas.template import Template

DELIMITER = "#"
UNASSIGNED = "UNASSIGNED"

KEY_FIELDS = ("PK", "SK", "GSI1PK", "GSI1SK", "GSI2PK", "GSI2SK")

# index name -> (partition field, sort field); None is the primary key
INDEX_FIELDS = {
    None: ("PK", "SK"),
    "GSI1": ("GSI1PK", "GSI1SK"),
    "GSI2": ("GSI2PK", "GSI2SK"),
}


@dataclass(frozen=True)
class Key:
    PK: str
    SK: str

    def as_dict(self) -> Dict[str, str]:
        return {"PK": self.PK, "SK": self.SK}


@dataclass(frozen=True)
class IndexKey:
    index: str
    partition: str
    sort: str


@dataclass(frozen=True)
class StorageKeys:
    primary: Key
    secondary: List[IndexKey] = field(default_factory=list)

    def as_item_fields(self) -> Dict[str, str]:
        fields = self.primary.as_dict()
        for idx in self.secondary:
            pk_field, sk_field = INDEX_FIELDS[idx.index]
            fields[pk_field] = idx.partition
            fields[sk_field] = idx.sort
        return fields


def _join(*parts: str) -> str:
    return DELIMITER.join(parts)


def utc_now() -> datetime:
    """Current UTC time at millisecond precision, the resolution every backend keeps."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def epoch_millis(ts: datetime) -> str:
    # Zero padded so lexical order of the sort key equals time order
    return f"{int(ts.timestamp() * 1000):013d}"


def canonical_tags(tags: Iterable[str]) -> str:
    """Order-insensitive tag string: sorted, de-duplicated, each tag followed by the delimiter.

    The trailing delimiter makes ``a#`` a prefix of ``a#b#`` but not of ``ab#``.
    """
    return "".join(f"{tag}{DELIMITER}" for tag in sorted(set(tags)))


def user_partition(user_id: str) -> str:
    return _join("USER", user_id)


# Sections

def section_prefix(resume_id: Optional[str] = None, section_type: Optional[str] = None) -> str:
    """Sort-key prefix covering all sections, one resume's sections, or one resume+type."""
    if resume_id is None and section_type is None:
        return "SECTION" + DELIMITER
    prefix = _join("SECTION", resume_id or UNASSIGNED) + DELIMITER
    if section_type is not None:
        prefix += section_type + DELIMITER
    return prefix


def section_key(user_id: str, resume_id: Optional[str], section_type: str, section_id: str) -> Key:
    return Key(
        PK=user_partition(user_id),
        SK=_join("SECTION", resume_id or UNASSIGNED, section_type, section_id),
    )


def tag_index_partition(user_id: str) -> str:
    return _join("SECTION", user_id)


def tag_index_sort(tags: Iterable[str]) -> str:
    return "TAGS" + DELIMITER + canonical_tags(tags)


def type_index_partition(user_id: str, resume_id: Optional[str], section_type: str) -> str:
    return _join("SECTION", user_id, resume_id or UNASSIGNED, section_type)


def created_index_sort(created_at: datetime) -> str:
    return _join("CREATED", epoch_millis(created_at))


def section_storage_keys(section: Section) -> StorageKeys:
    return StorageKeys(
        primary=section_key(section.userId, section.resumeId, section.sectionType, section.sectionId),
        secondary=[
            IndexKey("GSI1", tag_index_partition(section.userId), tag_index_sort(section.tags)),
            IndexKey(
                "GSI2",
                type_index_partition(section.userId, section.resumeId, section.sectionType),
                created_index_sort(section.createdAt),
            ),
        ],
    )


def to_section_item(section: Section) -> Dict[str, Any]:
    return {**section.model_dump(), **section_storage_keys(section).as_item_fields()}


def from_section_item(item: Dict[str, Any]) -> Section:
    return Section.model_validate(strip_keys(item))


# Resumes

def resume_key(user_id: str, resume_id: str) -> Key:
    return Key(PK=user_partition(user_id), SK=_join("RESUME", resume_id))


def resume_prefix() -> str:
    return "RESUME" + DELIMITER


def updated_index_sort(updated_at: datetime) -> str:
    return _join("UPDATED", epoch_millis(updated_at))


def resume_storage_keys(resume: Resume) -> StorageKeys:
    return StorageKeys(
        primary=resume_key(resume.userId, resume.resumeId),
        secondary=[IndexKey("GSI1", user_partition(resume.userId), updated_index_sort(resume.updatedAt))],
    )


def to_resume_item(resume: Resume) -> Dict[str, Any]:
    return {**resume.model_dump(), **resume_storage_keys(resume).as_item_fields()}


def from_resume_item(item: Dict[str, Any]) -> Resume:
    return Resume.model_validate(strip_keys(item))


# Profiles

def profile_key(user_id: str) -> Key:
    return Key(PK=user_partition(user_id), SK="PROFILE")


def to_profile_item(profile: Profile) -> Dict[str, Any]:
    return {**profile.model_dump(), **profile_key(profile.userId).as_dict()}


def from_profile_item(item: Dict[str, Any]) -> Profile:
    return Profile.model_validate(strip_keys(item))


# Templates

def template_key(template_id: str) -> Key:
    return Key(PK=_join("TEMPLATE", template_id), SK="METADATA")


def category_partition(category: str) -> str:
    return _join("CATEGORY", category)


def template_storage_keys(template: Template) -> StorageKeys:
    return StorageKeys(
        primary=template_key(template.templateId),
        secondary=[IndexKey("GSI1", category_partition(template.category), _join("NAME", template.name))],
    )


def to_template_item(template: Template) -> Dict[str, Any]:
    return {**template.model_dump(), **template_storage_keys(template).as_item_fields()}


def from_template_item(item: Dict[str, Any]) -> Template:
    return Template.model_validate(strip_keys(item))


def storage_keys(entity: Any) -> StorageKeys:
    """Primary and secondary keys for any stored entity."""
    if isinstance(entity, Section):
        return section_storage_keys(entity)
    if isinstance(entity, Resume):
        return resume_storage_keys(entity)
    if isinstance(entity, Profile):
        return StorageKeys(primary=profile_key(entity.userId))
    if isinstance(entity, Template):
        return template_storage_keys(entity)
    raise TypeError(f"No storage keys defined for {type(entity).__name__}")


def strip_keys(item: Dict[str, Any]) -> Dict[str, Any]:
    """Drop storage-only fields so they never leak to callers."""
    return {k: v for k, v in item.items() if k not in KEY_FIELDS}


def key_of(item: Dict[str, Any]) -> Key:
    return Key(PK=item["PK"], SK=item["SK"])
