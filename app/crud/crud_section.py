"""
Section Store

CRUD and query access to sections. Every method returns ``Section`` models;
storage key fields are stripped by ``app.db.key_mapper`` before anything
leaves this module.
"""
import asyncio
import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from app.core.errors import ConflictError, NotFoundError
from app.core.messages import ErrorMessages
from app.db.key_mapper import (
    KEY_FIELDS,
    UNASSIGNED,
    from_section_item,
    section_key,
    section_prefix,
    section_storage_keys,
    tag_index_partition,
    tag_index_sort,
    to_section_item,
    type_index_partition,
    user_partition,
    utc_now,
)
from app.db.tables import Table
from app.schemas.section import Section

logger = logging.getLogger(__name__)

Cursor = Optional[Dict[str, Any]]

# Only these fields change on an in-place update; anything else re-keys the record
MUTABLE_FIELDS = ("title", "tags", "data")


def new_id() -> str:
    return str(uuid.uuid4()).split("-")[0]


def _changes(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Stored attributes to set for a partial update, including derived index keys."""
    changes = {k: v for k, v in fields.items() if k in MUTABLE_FIELDS and v is not None}
    if "tags" in changes:
        changes["GSI1SK"] = tag_index_sort(changes["tags"])
    changes["updatedAt"] = utc_now()
    return changes


class SectionStore:
    def __init__(self, table: Table):
        self.table = table

    @staticmethod
    def new_section(
        user_id: str,
        section_type: str,
        resume_id: Optional[str] = None,
        title: str = "",
        tags: Optional[List[str]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Section:
        now = utc_now()
        return Section(
            sectionId=new_id(),
            userId=user_id,
            resumeId=resume_id,
            sectionType=section_type,
            title=title,
            tags=list(tags or []),
            data=dict(data or {}),
            createdAt=now,
            updatedAt=now,
        )

    async def create(self, section: Section) -> Section:
        try:
            await self.table.put_item(to_section_item(section), if_not_exists=True)
        except ConflictError as exc:
            raise ConflictError(ErrorMessages.SECTION_ALREADY_EXISTS) from exc
        return section

    async def get(
        self,
        user_id: str,
        section_id: str,
        section_type: Optional[str] = None,
        resume_id: Optional[str] = None,
    ) -> Optional[Section]:
        if section_type and resume_id:
            item = await self.table.get_item(section_key(user_id, resume_id, section_type, section_id))
            return from_section_item(item) if item else None

        # Without type and resume the key cannot be built: scan the owner's
        # sections and filter by id. Cost grows with the owner's section count.
        for section in await self.list_all(user_id):
            if section.sectionId == section_id:
                return section
        return None

    async def require(self, user_id: str, section_id: str, **lookup) -> Section:
        section = await self.get(user_id, section_id, **lookup)
        if section is None:
            raise NotFoundError(ErrorMessages.SECTION_NOT_FOUND)
        return section

    async def update(self, user_id: str, section_id: str, fields: Dict[str, Any],
                     existing: Optional[Section] = None) -> Section:
        """Merge ``title``/``tags``/``data`` into the stored section."""
        existing = existing or await self.require(user_id, section_id)
        item = await self.table.update_item(section_storage_keys(existing).primary, _changes(fields))
        if item is None:
            raise NotFoundError(ErrorMessages.SECTION_NOT_FOUND)
        return from_section_item(item)

    async def delete(self, user_id: str, section_id: str, existing: Optional[Section] = None) -> Section:
        """Remove the section and its index entries.

        Resume reference lists are left untouched; callers pull the id out
        afterwards.
        """
        existing = existing or await self.require(user_id, section_id)
        await self.table.delete_item(section_storage_keys(existing).primary)
        return existing

    async def bulk_create(self, sections: Sequence[Section]) -> List[Section]:
        await self.table.batch_write(puts=[to_section_item(s) for s in sections])
        return list(sections)

    async def bulk_update(self, updates: Sequence[Tuple[Section, Dict[str, Any]]]) -> List[Section]:
        """Apply partial updates to existing sections as grouped transactional writes."""
        writes = []
        merged = []
        for section, fields in updates:
            changes = _changes(fields)
            writes.append((section_storage_keys(section).primary, changes))
            model_changes = {k: v for k, v in changes.items() if k not in KEY_FIELDS}
            merged.append(section.model_copy(update=model_changes))
        await self.table.transact_update(writes)
        return merged

    async def bulk_delete(self, sections: Iterable[Section]) -> None:
        await self.table.batch_write(deletes=[section_storage_keys(s).primary for s in sections])

    async def move(self, section: Section, section_type: str, resume_id: Optional[str]) -> Section:
        """Re-key ``section`` under a new type and/or resume.

        The record is copied under a fresh id and the old one deleted. The two
        writes are not atomic: if the delete fails both records remain until
        cleaned up.
        """
        moved = section.model_copy(update={
            "sectionId": new_id(),
            "sectionType": section_type,
            "resumeId": resume_id,
            "updatedAt": utc_now(),
        })
        await self.create(moved)
        await self.table.delete_item(section_storage_keys(section).primary)
        logger.info(
            "Moved section %s (%s) to %s (%s, resume=%s)",
            section.sectionId, section.sectionType, moved.sectionId, section_type, resume_id,
        )
        return moved

    async def change_type(self, section: Section, section_type: str) -> Section:
        return await self.move(section, section_type, section.resumeId)

    async def batch_get(self, user_id: str, resume_id: Optional[str],
                        refs: Sequence[Tuple[str, str]]) -> List[Section]:
        """Resolve ``(sectionId, sectionType)`` pairs in one batched read; unknown ids are skipped."""
        keys = [section_key(user_id, resume_id, section_type, section_id) for section_id, section_type in refs]
        return [from_section_item(item) for item in await self.table.batch_get(keys)]

    async def list_by_resume(self, user_id: str, resume_id: Optional[str],
                             section_types: Optional[Sequence[str]] = None) -> List[Section]:
        if section_types:
            pages = await asyncio.gather(*(
                self.table.query(type_index_partition(user_id, resume_id, t), index="GSI2", descending=True)
                for t in section_types
            ))
            return [from_section_item(item) for page in pages for item in page.items]

        page = await self.table.query(user_partition(user_id), prefix=section_prefix(resume_id or UNASSIGNED))
        return [from_section_item(item) for item in page.items]

    async def list_by_type(self, user_id: str, resume_id: Optional[str], section_type: str,
                           limit: Optional[int] = None, start_after: Cursor = None) -> Tuple[List[Section], Cursor]:
        """Sections of one type within one resume, newest first."""
        page = await self.table.query(
            type_index_partition(user_id, resume_id, section_type),
            index="GSI2",
            descending=True,
            limit=limit,
            start_after=start_after,
        )
        return [from_section_item(item) for item in page.items], page.last_key

    async def list_by_tags(self, user_id: str, tags: Iterable[str],
                           limit: Optional[int] = None, start_after: Cursor = None) -> Tuple[List[Section], Cursor]:
        page = await self.table.query(
            tag_index_partition(user_id),
            prefix=tag_index_sort(tags),
            index="GSI1",
            limit=limit,
            start_after=start_after,
        )
        return [from_section_item(item) for item in page.items], page.last_key

    async def list_sections(self, user_id: str, limit: Optional[int] = None,
                            start_after: Cursor = None) -> Tuple[List[Section], Cursor]:
        page = await self.table.query(
            user_partition(user_id), prefix=section_prefix(), limit=limit, start_after=start_after
        )
        return [from_section_item(item) for item in page.items], page.last_key

    async def list_all(self, user_id: str) -> List[Section]:
        sections, _ = await self.list_sections(user_id)
        return sections
