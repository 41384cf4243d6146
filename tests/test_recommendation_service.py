"""
Tests for AI section recommendations, with the Gemini model mocked out
"""
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.errors import NotFoundError, UpstreamFailure, ValidationFailedError
from app.schemas.recommendation import RecommendationRequest
from app.services.recommendation_service import RecommendationService, build_prompt, extract_json, group_by_type
from tests.helpers import USER_ID

PAYLOAD = {
    "recommendations": {
        "experience": [
            {"sectionId": "s1", "matchScore": 92, "matchedKeywords": ["python"], "reason": "Backend work"}
        ]
    },
    "overallMatchScore": 85,
    "suggestedResumeName": "Backend Engineer",
    "analysis": {"strengths": ["APIs"], "gaps": ["Kubernetes"], "recommendations": ["Mention cloud"]},
}


def mock_model(text=None, error=None):
    model = MagicMock()
    if error is not None:
        model.generate_content_async = AsyncMock(side_effect=error)
    else:
        model.generate_content_async = AsyncMock(return_value=MagicMock(text=text))
    return model


@pytest.mark.parametrize("text", [
    json.dumps(PAYLOAD),
    "```json\n" + json.dumps(PAYLOAD, indent=2) + "\n```",
    "Here you go:\n```\n" + json.dumps(PAYLOAD) + "\n```\nGood luck!",
    "Sure! " + json.dumps(PAYLOAD) + " Let me know if you need more.",
])
def test_extract_json_variants(text):
    assert extract_json(text) == PAYLOAD


@pytest.mark.parametrize("text", ["no json here", "{not: valid}", "[1, 2, 3]"])
def test_extract_json_failure(text):
    with pytest.raises(UpstreamFailure):
        extract_json(text)


def test_prompt_lists_sections_by_type(section_store):
    sections = [
        section_store.new_section(USER_ID, "experience", title="Acme", data={"company": "Acme"}),
        section_store.new_section(USER_ID, "skills", tags=["python"]),
    ]
    grouped = group_by_type(sections)
    assert set(grouped) == {"experience", "skills"}
    assert set(grouped["experience"][0]) == {"sectionId", "title", "tags", "data"}

    prompt = build_prompt("Senior Python engineer", grouped)
    assert "Senior Python engineer" in prompt
    assert sections[0].sectionId in prompt
    assert "matchScore of 60 or higher" in prompt


@pytest.mark.asyncio
async def test_recommend(section_store, resume_store):
    await section_store.create(section_store.new_section(USER_ID, "experience", data={"company": "Acme"}))
    model = mock_model(text="```json\n" + json.dumps(PAYLOAD) + "\n```")
    service = RecommendationService(section_store, resume_store, model=model)

    result = await service.recommend(USER_ID, RecommendationRequest(jobDescription="Python backend role"))

    assert result.overallMatchScore == 85
    assert result.recommendations["experience"][0].sectionId == "s1"
    assert result.analysis.gaps == ["Kubernetes"]
    model.generate_content_async.assert_awaited_once()
    prompt = model.generate_content_async.call_args.args[0]
    assert "Python backend role" in prompt


@pytest.mark.asyncio
async def test_recommend_without_sections(section_store, resume_store):
    model = mock_model(text="{}")
    service = RecommendationService(section_store, resume_store, model=model)
    with pytest.raises(ValidationFailedError):
        await service.recommend(USER_ID, RecommendationRequest(jobDescription="anything"))
    model.generate_content_async.assert_not_awaited()


@pytest.mark.asyncio
async def test_recommend_for_unknown_resume(section_store, resume_store):
    service = RecommendationService(section_store, resume_store, model=mock_model(text="{}"))
    with pytest.raises(NotFoundError):
        await service.recommend(USER_ID, RecommendationRequest(jobDescription="anything", resumeId="missing"))


@pytest.mark.asyncio
@pytest.mark.parametrize("model", [
    mock_model(text="I cannot help with that."),
    mock_model(text=json.dumps({"recommendations": {"experience": [{"reason": "no id or score"}]}})),
    mock_model(error=RuntimeError("quota exceeded")),
])
async def test_recommend_upstream_failures(section_store, resume_store, model):
    await section_store.create(section_store.new_section(USER_ID, "experience"))
    service = RecommendationService(section_store, resume_store, model=model)
    with pytest.raises(UpstreamFailure) as exc:
        await service.recommend(USER_ID, RecommendationRequest(jobDescription="anything"))
    assert exc.value.status_code == 502
