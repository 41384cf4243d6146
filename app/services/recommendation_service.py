"""
Recommendation Service

Ranks the user's stored sections against a job description with a hosted
Gemini model. The model answers in free text; the JSON payload is pulled out
of it leniently (bare JSON, a fenced code block, or the outermost braces).
"""
import json
import logging
import re
from collections import defaultdict
from typing import Any, Dict, List, Optional

import google.generativeai as genai
from pydantic import ValidationError

from app.core.config import settings
from app.core.errors import UpstreamFailure, ValidationFailedError
from app.core.messages import ErrorMessages
from app.crud.crud_resume import ResumeStore
from app.crud.crud_section import SectionStore
from app.schemas.recommendation import RecommendationRequest, RecommendationResponse
from app.schemas.section import Section

logger = logging.getLogger(__name__)

FENCED_JSON = (
    re.compile(r"```json\s*\n([\s\S]*?)\n\s*```"),
    re.compile(r"```\s*\n([\s\S]*?)\n\s*```"),
)

PROMPT_TEMPLATE = """You are a professional resume consultant. Analyze the following job description and recommend which resume sections to include.

Job Description:
{job_description}

Available Resume Sections:
{sections}

For each section type, rank the available sections by relevance to the job and give each a match score (0-100).

Return your analysis in the following JSON format:
{{
  "recommendations": {{
    "<sectionType>": [
      {{
        "sectionId": "<id of the section>",
        "matchScore": 95,
        "matchedKeywords": ["backend", "cloud"],
        "reason": "Brief explanation of why this section is relevant"
      }}
    ]
  }},
  "overallMatchScore": 87,
  "suggestedResumeName": "Suggested resume name based on job title",
  "analysis": {{
    "strengths": ["Candidate strengths matching the job"],
    "gaps": ["Missing qualifications or skills"],
    "recommendations": ["Suggestions to improve the resume"]
  }}
}}

Important:
- Only include sections with a matchScore of {min_score} or higher
- Sort sections within each type by matchScore (highest first)
- matchedKeywords must be keywords taken from the job description
- Keep reasons to 1-2 sentences
- Return ONLY the JSON, no additional text before or after"""


def extract_json(text: str) -> Dict[str, Any]:
    """Parse the JSON object embedded in a model response."""
    candidates = [text]
    for pattern in FENCED_JSON:
        match = pattern.search(text)
        if match:
            candidates.append(match.group(1))
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    raise UpstreamFailure(ErrorMessages.JSON_NOT_FOUND)


def group_by_type(sections: List[Section]) -> Dict[str, List[Dict[str, Any]]]:
    grouped: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
    for section in sections:
        grouped[section.sectionType].append(
            section.model_dump(include={"sectionId", "title", "tags", "data"})
        )
    return dict(grouped)


def build_prompt(job_description: str, grouped: Dict[str, List[Dict[str, Any]]]) -> str:
    return PROMPT_TEMPLATE.format(
        job_description=job_description,
        sections=json.dumps(grouped, indent=2, default=str),
        min_score=settings.MIN_MATCH_SCORE,
    )


class RecommendationService:
    def __init__(self, sections: SectionStore, resumes: ResumeStore, model: Optional[Any] = None):
        self.sections = sections
        self.resumes = resumes
        self._model = model

    @property
    def model(self):
        if self._model is None:
            if settings.GOOGLE_API_KEY:
                genai.configure(api_key=settings.GOOGLE_API_KEY)
            self._model = genai.GenerativeModel(settings.RECOMMENDATION_MODEL)
        return self._model

    async def recommend(self, user_id: str, request: RecommendationRequest) -> RecommendationResponse:
        if request.resumeId:
            await self.resumes.require(user_id, request.resumeId)

        sections = await self.sections.list_all(user_id)
        if not sections:
            raise ValidationFailedError([ErrorMessages.NO_SECTIONS_FOUND], ErrorMessages.NO_SECTIONS_FOUND)

        prompt = build_prompt(request.jobDescription, group_by_type(sections))
        text = await self._generate(prompt)
        payload = extract_json(text)
        try:
            return RecommendationResponse.model_validate(payload)
        except ValidationError as e:
            logger.error("Model returned an unexpected recommendation shape: %s", e)
            raise UpstreamFailure(ErrorMessages.AI_FAILED, errors=[str(err["msg"]) for err in e.errors()]) from e

    async def _generate(self, prompt: str) -> str:
        logger.info("Calling %s for section recommendations", settings.RECOMMENDATION_MODEL)
        try:
            response = await self.model.generate_content_async(
                prompt,
                generation_config={
                    "temperature": settings.RECOMMENDATION_TEMPERATURE,
                    "max_output_tokens": settings.RECOMMENDATION_MAX_TOKENS,
                },
            )
            return response.text.strip()
        except Exception as e:
            logger.exception("Recommendation model call failed")
            raise UpstreamFailure(ErrorMessages.AI_FAILED) from e
