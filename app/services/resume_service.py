"""
Resume Service

Resume lifecycle plus the two operations that span stores: composing a full
resume (metadata + profile + resolved sections) and updating a resume together
with the sections embedded in the request.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from app.core.errors import NotFoundError, ValidationFailedError
from app.core.messages import ErrorMessages
from app.crud.crud_profile import ProfileStore
from app.crud.crud_resume import ResumeStore, new_resume
from app.crud.crud_section import SectionStore
from app.crud.crud_template import TemplateStore
from app.db.tables import decode_cursor, encode_cursor
from app.schemas.resume import (
    CreateResumeRequest,
    FullResume,
    Resume,
    ResumeList,
    ResumeSummary,
    UpdateResumeRequest,
)
from app.schemas.section import Section, SectionUpsert
from app.services.schema_validator import SchemaValidator
from app.services.section_service import page_limit

logger = logging.getLogger(__name__)


class ResumeService:
    def __init__(self, resumes: ResumeStore, sections: SectionStore, templates: TemplateStore,
                 profiles: ProfileStore, validator: SchemaValidator):
        self.resumes = resumes
        self.sections = sections
        self.templates = templates
        self.profiles = profiles
        self.validator = validator

    async def get_resume(self, user_id: str, resume_id: str) -> Resume:
        return await self.resumes.require(user_id, resume_id)

    async def list_resumes(self, user_id: str, limit: Optional[int] = None,
                           last_key: Optional[str] = None) -> ResumeList:
        resumes, cursor = await self.resumes.list(
            user_id, limit=page_limit(limit), start_after=decode_cursor(last_key)
        )
        summaries = [ResumeSummary.model_validate(r.model_dump()) for r in resumes]
        return ResumeList(resumes=summaries, count=len(summaries), lastKey=encode_cursor(cursor))

    async def compose_full(self, user_id: str, resume_id: str) -> FullResume:
        """Resume metadata merged with the owner's personal info and every referenced section.

        Sections come back grouped by type in reference order. Ids that no
        longer resolve (deleted, or re-keyed by a type change still in flight)
        are dropped.
        """
        resume = await self.resumes.require(user_id, resume_id)
        profile = await self.profiles.get(user_id)

        refs = [(section_id, section_type)
                for section_type, ids in resume.sections.items()
                for section_id in ids]
        resolved = {s.sectionId: s for s in await self.sections.batch_get(user_id, resume_id, refs)}

        data: Dict[str, Any] = {"personalInfo": profile.personalInfo.model_dump() if profile else {}}
        for section_type, ids in resume.sections.items():
            data[section_type] = [
                resolved[i].model_dump() for i in ids
                if i in resolved and resolved[i].sectionType == section_type
            ]

        dropped = len(refs) - sum(len(v) for k, v in data.items() if k in resume.sections)
        if dropped:
            logger.info("Resume %s: dropped %d stale section reference(s)", resume_id, dropped)
        return FullResume(**resume.model_dump(exclude={"sections"}), data=data)

    def _check_payloads(self, input_schema, payloads: Dict[str, List[Any]]) -> None:
        result = self.validator.validate_payloads(payloads, input_schema)
        if not result.valid:
            raise ValidationFailedError(result.errors)

    async def create_resume(self, user_id: str, request: CreateResumeRequest) -> Resume:
        template = await self.templates.require(request.templateId)
        embedded = request.sections or {}
        self._check_payloads(
            template.inputDataSchema,
            {t: [entry.data for entry in entries] for t, entries in embedded.items()},
        )

        resume = new_resume(user_id, request.name, request.templateId, request.metadata, request.styling)
        sections = [
            self.sections.new_section(
                user_id, section_type, resume.resumeId, title=entry.title, tags=entry.tags, data=entry.data
            )
            for section_type, entries in embedded.items()
            for entry in entries
        ]
        await self.sections.bulk_create(sections)

        resume.sections = {t: [] for t in embedded}
        for section in sections:
            resume.sections[section.sectionType].append(section.sectionId)
        await self.resumes.create(resume)
        logger.info("Created resume %s with %d section(s) for user %s", resume.resumeId, len(sections), user_id)
        return resume

    async def update_resume(self, user_id: str, resume_id: str, request: UpdateResumeRequest) -> Resume:
        resume = await self.resumes.require(user_id, resume_id)
        if request.templateId is not None and request.templateId != resume.templateId:
            raise ValidationFailedError(
                [f"templateId: {ErrorMessages.TEMPLATE_ID_IMMUTABLE}"], ErrorMessages.TEMPLATE_ID_IMMUTABLE
            )

        fields = request.model_dump(include={"name", "metadata", "styling"}, exclude_none=True)
        if request.sections is not None:
            fields["sections"] = await self._upsert_sections(user_id, resume, request.sections)
        return await self.resumes.update(user_id, resume_id, fields)

    @staticmethod
    def _check_unique_ids(requested: Dict[str, List[SectionUpsert]]) -> None:
        seen = set()
        duplicates = []
        for entries in requested.values():
            for entry in entries:
                if entry.sectionId is None:
                    continue
                if entry.sectionId in seen and entry.sectionId not in duplicates:
                    duplicates.append(entry.sectionId)
                seen.add(entry.sectionId)
        if duplicates:
            raise ValidationFailedError([f"sections: duplicate sectionId {i}" for i in duplicates])

    async def _resolve_existing(self, user_id: str, resume: Resume,
                                requested: Dict[str, List[SectionUpsert]]) -> Dict[str, Section]:
        """Load every section the request refers to by id."""
        wanted = {entry.sectionId for entries in requested.values() for entry in entries if entry.sectionId}
        if not wanted:
            return {}
        found = {s.sectionId: s for s in await self.sections.list_by_resume(user_id, resume.resumeId)
                 if s.sectionId in wanted}
        # Sections attached elsewhere (or unattached) are only reachable by an owner scan
        for section_id in wanted - found.keys():
            section = await self.sections.get(user_id, section_id)
            if section is None:
                raise NotFoundError(ErrorMessages.SECTION_NOT_FOUND, errors=[f"sectionId: {section_id}"])
            found[section_id] = section
        return found

    async def _upsert_sections(self, user_id: str, resume: Resume,
                               requested: Dict[str, List[SectionUpsert]]) -> Dict[str, List[str]]:
        """Apply the embedded section list and return the resume's new type -> ids map.

        Entries with an id of a section already stored under the same type and
        resume are updated in place; entries whose section lives under another
        type or resume are re-keyed; entries without an id are created. Creates
        and in-place updates touch disjoint keys and run concurrently; re-keys
        run one by one afterwards.
        """
        self._check_unique_ids(requested)
        existing = await self._resolve_existing(user_id, resume, requested)

        template = await self.templates.get(resume.templateId)
        if template is not None:
            self._check_payloads(template.inputDataSchema, {
                section_type: [
                    entry.data if entry.data is not None
                    else (existing[entry.sectionId].data if entry.sectionId else {})
                    for entry in entries
                ]
                for section_type, entries in requested.items()
            })

        slots: Dict[str, List[Optional[str]]] = {t: [None] * len(entries) for t, entries in requested.items()}
        creates: List[Section] = []
        updates: List[Tuple[Section, Dict[str, Any]]] = []
        moves: List[Tuple[str, int, Section, Dict[str, Any]]] = []

        for section_type, entries in requested.items():
            for pos, entry in enumerate(entries):
                fields = entry.model_dump(exclude={"sectionId"}, exclude_none=True)
                if entry.sectionId is None:
                    section = self.sections.new_section(user_id, section_type, resume.resumeId, **fields)
                    creates.append(section)
                    slots[section_type][pos] = section.sectionId
                    continue
                current = existing[entry.sectionId]
                if current.sectionType == section_type and current.resumeId == resume.resumeId:
                    updates.append((current, fields))
                    slots[section_type][pos] = current.sectionId
                else:
                    moves.append((section_type, pos, current, fields))

        await asyncio.gather(self.sections.bulk_create(creates), self.sections.bulk_update(updates))

        moved_ids = set()
        for section_type, pos, current, fields in moves:
            moved = await self.sections.move(current, section_type, resume.resumeId)
            if fields:
                await self.sections.update(user_id, moved.sectionId, fields, existing=moved)
            slots[section_type][pos] = moved.sectionId
            moved_ids.add(current.sectionId)
            if current.resumeId and current.resumeId != resume.resumeId:
                await self.resumes.remove_section_reference(user_id, current.resumeId, current.sectionId)

        logger.info(
            "Resume %s: %d created, %d updated, %d re-keyed",
            resume.resumeId, len(creates), len(updates), len(moves),
        )
        merged = {t: [i for i in ids if i not in moved_ids] for t, ids in resume.sections.items()}
        merged.update({t: [i for i in ids if i is not None] for t, ids in slots.items()})
        return merged

    async def delete_resume(self, user_id: str, resume_id: str) -> None:
        await self.resumes.require(user_id, resume_id)
        sections = await self.sections.list_by_resume(user_id, resume_id)
        await self.sections.bulk_delete(sections)
        await self.resumes.delete(user_id, resume_id)
        logger.info("Deleted resume %s and %d section(s)", resume_id, len(sections))
