from .section_schema import FieldDefinition, FieldType, InputDataSchema, SectionSchema
from .section import (
	Section,
	CreateSectionRequest,
	UpdateSectionRequest,
	ResumeSectionInput,
	SectionUpsert,
	SectionList,
)
from .resume import Resume, ResumeSummary, FullResume, CreateResumeRequest, UpdateResumeRequest, ResumeList
from .profile import PersonalInfo, Profile
from .template import Template, TemplateSummary, TemplateList
from .recommendation import RecommendationRequest, RecommendationResponse
from .responses import Envelope, ErrorEnvelope, ImageUpload

__all__ = [
	"FieldDefinition",
	"FieldType",
	"InputDataSchema",
	"SectionSchema",
	"Section",
	"CreateSectionRequest",
	"UpdateSectionRequest",
	"ResumeSectionInput",
	"SectionUpsert",
	"SectionList",
	"Resume",
	"ResumeSummary",
	"FullResume",
	"CreateResumeRequest",
	"UpdateResumeRequest",
	"ResumeList",
	"PersonalInfo",
	"Profile",
	"Template",
	"TemplateSummary",
	"TemplateList",
	"RecommendationRequest",
	"RecommendationResponse",
	"Envelope",
	"ErrorEnvelope",
	"ImageUpload",
]
