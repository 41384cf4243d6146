"""FastAPI dependencies: the calling user and the stores/services bound to the shared tables."""
from functools import lru_cache
from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException, Request, status

from app.core.config import settings
from app.core.messages import ErrorMessages
from app.crud.crud_profile import ProfileStore
from app.crud.crud_resume import ResumeStore
from app.crud.crud_section import SectionStore
from app.crud.crud_template import TemplateStore
from app.db.database import get_table
from app.services.profile_service import ProfileService
from app.services.recommendation_service import RecommendationService
from app.services.resume_service import ResumeService
from app.services.schema_validator import SchemaValidator
from app.services.section_service import SectionService

UserResolver = Callable[[str], Optional[str]]


def token_as_user_id(token: str) -> Optional[str]:
    """Default resolver: the bearer token is the user id. Deployments install a real one on ``app.state``."""
    return token or None


def get_current_user_id(request: Request, authorization: Optional[str] = Header(None)) -> str:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=ErrorMessages.UNAUTHORIZED)

    resolve: UserResolver = getattr(request.app.state, "resolve_user", token_as_user_id)
    user_id = resolve(token.strip())
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=ErrorMessages.UNAUTHORIZED)
    return user_id


@lru_cache
def get_validator() -> SchemaValidator:
    return SchemaValidator()


def get_section_store() -> SectionStore:
    return SectionStore(get_table(settings.SECTIONS_TABLE))


def get_resume_store() -> ResumeStore:
    return ResumeStore(get_table(settings.RESUMES_TABLE))


def get_template_store() -> TemplateStore:
    return TemplateStore(get_table(settings.TEMPLATES_TABLE))


def get_profile_store() -> ProfileStore:
    return ProfileStore(get_table(settings.PROFILES_TABLE))


def get_section_service(
    sections: SectionStore = Depends(get_section_store),
    resumes: ResumeStore = Depends(get_resume_store),
    templates: TemplateStore = Depends(get_template_store),
    validator: SchemaValidator = Depends(get_validator),
) -> SectionService:
    return SectionService(sections, resumes, templates, validator)


def get_resume_service(
    resumes: ResumeStore = Depends(get_resume_store),
    sections: SectionStore = Depends(get_section_store),
    templates: TemplateStore = Depends(get_template_store),
    profiles: ProfileStore = Depends(get_profile_store),
    validator: SchemaValidator = Depends(get_validator),
) -> ResumeService:
    return ResumeService(resumes, sections, templates, profiles, validator)


def get_profile_service(profiles: ProfileStore = Depends(get_profile_store)) -> ProfileService:
    return ProfileService(profiles)


def get_recommendation_service(
    sections: SectionStore = Depends(get_section_store),
    resumes: ResumeStore = Depends(get_resume_store),
) -> RecommendationService:
    return RecommendationService(sections, resumes)
