"""
HTTP-level tests: routing, authentication, the response envelope and error mapping.

Stores are swapped for in-memory fixtures through FastAPI dependency overrides;
the client is used without a context manager so the storage lifespan never runs.
"""
import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, patch

from app.api.deps import (
    get_profile_store,
    get_resume_store,
    get_section_store,
    get_template_store,
    get_validator,
)
from app.core.messages import ErrorMessages, SuccessMessages
from main import app
from tests.helpers import TEMPLATE_ID, USER_ID

AUTH = {"Authorization": f"Bearer {USER_ID}"}


@pytest.fixture
def client(section_store, resume_store, template_store, profile_store, validator):
    app.dependency_overrides.update({
        get_section_store: lambda: section_store,
        get_resume_store: lambda: resume_store,
        get_template_store: lambda: template_store,
        get_profile_store: lambda: profile_store,
        get_validator: lambda: validator,
    })
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.parametrize("headers", [{}, {"Authorization": "Basic abc"}, {"Authorization": "Bearer "}])
def test_missing_credentials(client, headers):
    response = client.get("/api/v1/resumes/", headers=headers)
    assert response.status_code == 401
    assert response.json() == {"status": 401, "message": ErrorMessages.UNAUTHORIZED, "data": None, "errors": []}


def test_profile_endpoints(client):
    assert client.get("/api/v1/users/me", headers=AUTH).status_code == 404

    created = client.post("/api/v1/users/me", json={"email": "jane@example.com", "name": "Jane"}, headers=AUTH)
    assert created.status_code == 201
    assert created.json()["data"]["personalInfo"]["name"] == "Jane"

    updated = client.put("/api/v1/users/me", json={"personalInfo": {"name": "Jane Doe"}}, headers=AUTH)
    assert updated.json()["data"]["personalInfo"]["name"] == "Jane Doe"


def test_resume_and_section_flow(client):
    """Test create -> attach section -> compose -> delete over HTTP"""
    created = client.post("/api/v1/resumes/", json={
        "name": "Backend",
        "templateId": TEMPLATE_ID,
        "sections": {"experience": [{"data": {"company": "Acme", "title": "Eng"}}]},
    }, headers=AUTH)
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == 201
    assert body["message"] == SuccessMessages.RESUME_CREATED
    resume_id = body["data"]["resumeId"]

    section = client.post("/api/v1/sections/", json={
        "resumeId": resume_id,
        "sectionType": "education",
        "tags": ["cs", " cs ", "ml"],
        "data": {"school": "MIT"},
    }, headers=AUTH)
    assert section.status_code == 201
    assert section.json()["data"]["tags"] == ["cs", "ml"]

    listed = client.get("/api/v1/sections/", params={"tags": "ml,cs"}, headers=AUTH).json()["data"]
    assert listed["count"] == 1

    full = client.get(f"/api/v1/resumes/{resume_id}/full", headers=AUTH).json()["data"]
    assert full["data"]["personalInfo"] == {}
    assert [s["data"]["company"] for s in full["data"]["experience"]] == ["Acme"]
    assert [s["data"]["school"] for s in full["data"]["education"]] == ["MIT"]

    summaries = client.get("/api/v1/resumes/", headers=AUTH).json()["data"]
    assert summaries["count"] == 1
    assert "sections" not in summaries["resumes"][0]

    deleted = client.delete(f"/api/v1/resumes/{resume_id}", headers=AUTH)
    assert deleted.json() == {"status": 200, "message": SuccessMessages.RESUME_DELETED, "data": None}
    assert client.get(f"/api/v1/resumes/{resume_id}", headers=AUTH).status_code == 404


def test_not_found_envelope(client):
    response = client.get("/api/v1/sections/missing", headers=AUTH)
    assert response.status_code == 404
    assert response.json() == {
        "status": 404, "message": ErrorMessages.SECTION_NOT_FOUND, "data": None, "errors": []
    }


def test_validation_failure_lists_every_error(client):
    response = client.post("/api/v1/resumes/", json={
        "name": "Backend",
        "templateId": TEMPLATE_ID,
        "sections": {"experience": [{"data": {}}]},
    }, headers=AUTH)
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == ErrorMessages.VALIDATION_FAILED
    assert body["errors"] == ["experience.0.company: Field required", "experience.0.title: Field required"]


def test_malformed_request_body(client):
    response = client.post("/api/v1/sections/", json={"tags": "not-a-list"}, headers=AUTH)
    assert response.status_code == 400
    errors = response.json()["errors"]
    assert any(e.startswith("sectionType:") for e in errors)
    assert any(e.startswith("tags:") for e in errors)


def test_template_id_change_is_rejected(client):
    resume_id = client.post(
        "/api/v1/resumes/", json={"name": "Backend", "templateId": TEMPLATE_ID}, headers=AUTH
    ).json()["data"]["resumeId"]
    response = client.put(f"/api/v1/resumes/{resume_id}", json={"templateId": "modern"}, headers=AUTH)
    assert response.status_code == 400
    assert response.json()["message"] == ErrorMessages.TEMPLATE_ID_IMMUTABLE


def test_templates(client):
    listed = client.get("/api/v1/templates/", headers=AUTH).json()["data"]
    assert listed["count"] == 1
    assert "inputDataSchema" not in listed["templates"][0]
    assert client.get("/api/v1/templates/", params={"category": "creative"}, headers=AUTH).json()["data"]["count"] == 0

    template = client.get(f"/api/v1/templates/{TEMPLATE_ID}", headers=AUTH).json()["data"]
    assert set(template["inputDataSchema"]) == {"summary", "experience", "education"}
    assert client.get("/api/v1/templates/nope", headers=AUTH).status_code == 404
    assert client.get("/api/v1/templates/").status_code == 200
    assert client.get(f"/api/v1/templates/{TEMPLATE_ID}").json()["data"]["templateId"] == TEMPLATE_ID


def test_image_upload(client):
    url = "https://res.cloudinary.com/demo/image/upload/v1/me.png"
    with patch("app.tools.file_uploader.cloudinary.uploader.upload", return_value={"secure_url": url}):
        response = client.post(
            "/api/v1/uploads/images", files={"file": ("me.png", b"\x89PNG", "image/png")}, headers=AUTH
        )
    assert response.status_code == 201
    assert response.json()["data"] == {"url": url}

    rejected = client.post(
        "/api/v1/uploads/images", files={"file": ("cv.pdf", b"%PDF", "application/pdf")}, headers=AUTH
    )
    assert rejected.status_code == 400


def test_upstream_failure_keeps_its_message(client, section_store):
    with patch(
        "app.services.recommendation_service.RecommendationService._generate",
        new=AsyncMock(return_value="no json at all"),
    ):
        client.post("/api/v1/sections/", json={"sectionType": "skills"}, headers=AUTH)
        response = client.post("/api/v1/recommendations/sections", json={"jobDescription": "Python"}, headers=AUTH)
    assert response.status_code == 502
    assert response.json()["message"] == ErrorMessages.JSON_NOT_FOUND


def test_unexpected_error_is_masked(client):
    with patch(
        "app.services.section_service.SectionService.list_sections",
        new=AsyncMock(side_effect=RuntimeError("connection pool exhausted")),
    ):
        response = client.get("/api/v1/sections/", headers=AUTH)
    assert response.status_code == 500
    assert response.json() == {
        "status": 500, "message": ErrorMessages.INTERNAL_SERVER_ERROR, "data": None, "errors": []
    }
