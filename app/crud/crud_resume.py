import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from app.core.errors import ConflictError, NotFoundError
from app.core.messages import ErrorMessages
from app.db.key_mapper import (
    from_resume_item,
    resume_key,
    resume_prefix,
    to_resume_item,
    updated_index_sort,
    user_partition,
    utc_now,
)
from app.db.tables import Table
from app.schemas.resume import Resume

logger = logging.getLogger(__name__)

Cursor = Optional[Dict[str, Any]]


def new_resume(user_id: str, name: str, template_id: str,
               metadata: Optional[Dict[str, Any]] = None,
               styling: Optional[Dict[str, Any]] = None) -> Resume:
    now = utc_now()
    return Resume(
        resumeId=str(uuid.uuid4()).split("-")[0],
        userId=user_id,
        name=name,
        templateId=template_id,
        metadata=dict(metadata or {}),
        styling=dict(styling or {}),
        createdAt=now,
        updatedAt=now,
    )


class ResumeStore:
    def __init__(self, table: Table):
        self.table = table

    async def get(self, user_id: str, resume_id: str) -> Optional[Resume]:
        item = await self.table.get_item(resume_key(user_id, resume_id))
        return from_resume_item(item) if item else None

    async def require(self, user_id: str, resume_id: str) -> Resume:
        resume = await self.get(user_id, resume_id)
        if resume is None:
            raise NotFoundError(ErrorMessages.RESUME_NOT_FOUND)
        return resume

    async def create(self, resume: Resume) -> Resume:
        try:
            await self.table.put_item(to_resume_item(resume), if_not_exists=True)
        except ConflictError as exc:
            raise ConflictError(f"Resume {resume.resumeId} already exists") from exc
        return resume

    async def update(self, user_id: str, resume_id: str, fields: Dict[str, Any]) -> Resume:
        """Set ``fields`` on the resume and bump its position in the recency index."""
        now = utc_now()
        updates = {**fields, "updatedAt": now, "GSI1SK": updated_index_sort(now)}
        item = await self.table.update_item(resume_key(user_id, resume_id), updates)
        if item is None:
            raise NotFoundError(ErrorMessages.RESUME_NOT_FOUND)
        return from_resume_item(item)

    async def delete(self, user_id: str, resume_id: str) -> None:
        await self.table.delete_item(resume_key(user_id, resume_id))

    async def list(self, user_id: str, limit: Optional[int] = None,
                   start_after: Cursor = None) -> Tuple[List[Resume], Cursor]:
        page = await self.table.query(
            user_partition(user_id), prefix=resume_prefix(), limit=limit, start_after=start_after
        )
        return [from_resume_item(item) for item in page.items], page.last_key

    # Reference list maintenance. Plain read-modify-write: two concurrent
    # edits of the same resume race and the last writer wins.

    async def append_section_reference(self, user_id: str, resume_id: str,
                                       section_type: str, section_id: str) -> Resume:
        resume = await self.require(user_id, resume_id)
        sections = {t: list(ids) for t, ids in resume.sections.items()}
        ids = sections.setdefault(section_type, [])
        if section_id not in ids:
            ids.append(section_id)
        return await self.update(user_id, resume_id, {"sections": sections})

    async def replace_section_reference(self, user_id: str, resume_id: str, old_id: str,
                                        section_type: str, new_id: str) -> Resume:
        """Swap ``old_id`` for ``new_id`` after a re-key, moving it to ``section_type``'s list."""
        resume = await self.require(user_id, resume_id)
        sections = {t: [i for i in ids if i != old_id] for t, ids in resume.sections.items()}
        sections.setdefault(section_type, []).append(new_id)
        return await self.update(user_id, resume_id, {"sections": sections})

    async def remove_section_reference(self, user_id: str, resume_id: str,
                                       section_id: str) -> Optional[Resume]:
        """Pull ``section_id`` out of every type list. A missing resume is not an error."""
        resume = await self.get(user_id, resume_id)
        if resume is None:
            logger.warning("Resume %s vanished before reference %s was removed", resume_id, section_id)
            return None
        if not any(section_id in ids for ids in resume.sections.values()):
            return resume
        sections = {t: [i for i in ids if i != section_id] for t, ids in resume.sections.items()}
        return await self.update(user_id, resume_id, {"sections": sections})
