import os

# Must be set before app modules read settings
os.environ.setdefault("STORAGE_BACKEND", "memory")

import pytest
import pytest_asyncio

from app.crud.crud_profile import ProfileStore
from app.crud.crud_resume import ResumeStore
from app.crud.crud_section import SectionStore
from app.crud.crud_template import TemplateStore
from app.db.memory import InMemoryTable
from app.services.profile_service import ProfileService
from app.services.resume_service import ResumeService
from app.services.schema_validator import SchemaValidator
from app.services.section_service import SectionService
from tests.helpers import IMAGE_PATTERN, make_template


@pytest.fixture
def section_table():
    return InMemoryTable("sections")


@pytest.fixture
def resume_table():
    return InMemoryTable("resumes")


@pytest.fixture
def template_table():
    return InMemoryTable("templates")


@pytest.fixture
def profile_table():
    return InMemoryTable("profiles")


@pytest.fixture
def section_store(section_table):
    return SectionStore(section_table)


@pytest.fixture
def resume_store(resume_table):
    return ResumeStore(resume_table)


@pytest_asyncio.fixture
async def template_store(template_table):
    store = TemplateStore(template_table)
    await store.create(make_template())
    return store


@pytest.fixture
def profile_store(profile_table):
    return ProfileStore(profile_table)


@pytest.fixture
def validator():
    return SchemaValidator(image_url_pattern=IMAGE_PATTERN)


@pytest.fixture
def section_service(section_store, resume_store, template_store, validator):
    return SectionService(section_store, resume_store, template_store, validator)


@pytest.fixture
def resume_service(resume_store, section_store, template_store, profile_store, validator):
    return ResumeService(resume_store, section_store, template_store, profile_store, validator)


@pytest.fixture
def profile_service(profile_store):
    return ProfileService(profile_store)
