import logging
from typing import List, Optional

from app.core.config import settings
from app.core.errors import ValidationFailedError
from app.crud.crud_resume import ResumeStore
from app.crud.crud_section import SectionStore
from app.crud.crud_template import TemplateStore
from app.db.tables import decode_cursor, encode_cursor
from app.schemas.resume import Resume
from app.schemas.section import (
    CreateSectionRequest,
    Section,
    SectionList,
    UpdateSectionRequest,
)
from app.services.schema_validator import SchemaValidator

logger = logging.getLogger(__name__)


def page_limit(limit: Optional[int]) -> int:
    return min(limit or settings.DEFAULT_PAGE_LIMIT, settings.MAX_PAGE_LIMIT)


class SectionService:
    def __init__(self, sections: SectionStore, resumes: ResumeStore,
                 templates: TemplateStore, validator: SchemaValidator):
        self.sections = sections
        self.resumes = resumes
        self.templates = templates
        self.validator = validator

    async def _check_data(self, resume: Optional[Resume], section_type: str, data: dict) -> None:
        """Validate ``data`` against the schema the resume's template declares for ``section_type``.

        Unattached sections, unknown templates and undeclared types are free-form.
        """
        if resume is None:
            return
        template = await self.templates.get(resume.templateId)
        if template is None:
            logger.warning("Resume %s references missing template %s", resume.resumeId, resume.templateId)
            return
        schema = template.inputDataSchema.get(section_type)
        if schema is None:
            return
        result = self.validator.validate_entry(data, schema, path="data")
        if not result.valid:
            raise ValidationFailedError(result.errors)

    async def get_section(self, user_id: str, section_id: str,
                          section_type: Optional[str] = None, resume_id: Optional[str] = None) -> Section:
        return await self.sections.require(
            user_id, section_id, section_type=section_type, resume_id=resume_id
        )

    async def create_section(self, user_id: str, request: CreateSectionRequest) -> Section:
        resume = await self.resumes.require(user_id, request.resumeId) if request.resumeId else None
        await self._check_data(resume, request.sectionType, request.data)

        section = self.sections.new_section(
            user_id,
            request.sectionType,
            resume_id=request.resumeId,
            title=request.title,
            tags=request.tags,
            data=request.data,
        )
        await self.sections.create(section)
        if resume is not None:
            await self.resumes.append_section_reference(
                user_id, resume.resumeId, section.sectionType, section.sectionId
            )
        logger.info("Created section %s (%s) for user %s", section.sectionId, section.sectionType, user_id)
        return section

    async def update_section(self, user_id: str, section_id: str, request: UpdateSectionRequest) -> Section:
        existing = await self.sections.require(user_id, section_id)
        resume = await self.resumes.get(user_id, existing.resumeId) if existing.resumeId else None

        new_type = request.sectionType if request.sectionType not in (None, existing.sectionType) else None
        fields = request.model_dump(include={"title", "tags", "data"}, exclude_none=True)
        if "data" in fields or new_type:
            await self._check_data(resume, new_type or existing.sectionType, fields.get("data", existing.data))

        if new_type is None:
            return await self.sections.update(user_id, section_id, fields, existing=existing)

        # The type is part of the key, so the section is re-keyed under a new id
        moved = await self.sections.change_type(existing, new_type)
        if fields:
            moved = await self.sections.update(user_id, moved.sectionId, fields, existing=moved)
        if resume is not None:
            await self.resumes.replace_section_reference(
                user_id, resume.resumeId, existing.sectionId, new_type, moved.sectionId
            )
        return moved

    async def delete_section(self, user_id: str, section_id: str) -> None:
        deleted = await self.sections.delete(user_id, section_id)
        if deleted.resumeId:
            await self.resumes.remove_section_reference(user_id, deleted.resumeId, section_id)

    async def list_sections(
        self,
        user_id: str,
        resume_id: Optional[str] = None,
        section_type: Optional[str] = None,
        tags: Optional[List[str]] = None,
        limit: Optional[int] = None,
        last_key: Optional[str] = None,
    ) -> SectionList:
        limit = page_limit(limit)
        start_after = decode_cursor(last_key)
        cursor = None

        if resume_id and section_type:
            sections, cursor = await self.sections.list_by_type(
                user_id, resume_id, section_type, limit=limit, start_after=start_after
            )
        elif tags:
            sections, cursor = await self.sections.list_by_tags(
                user_id, tags, limit=limit, start_after=start_after
            )
            sections = [
                s for s in sections
                if (resume_id is None or s.resumeId == resume_id)
                and (section_type is None or s.sectionType == section_type)
            ]
        elif resume_id:
            sections = await self.sections.list_by_resume(user_id, resume_id)
        elif section_type:
            sections = [s for s in await self.sections.list_all(user_id) if s.sectionType == section_type]
        else:
            sections, cursor = await self.sections.list_sections(user_id, limit=limit, start_after=start_after)

        return SectionList(sections=sections, count=len(sections), lastKey=encode_cursor(cursor))
