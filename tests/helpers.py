"""Shared test data."""
from app.schemas.template import Template

USER_ID = "user-1"
OTHER_USER_ID = "user-2"
TEMPLATE_ID = "classic"
IMAGE_PATTERN = r"^https://res\.cloudinary\.com/demo/image/upload/"

SAMPLE_INPUT_SCHEMA = {
    "summary": {
        "kind": "singleton",
        "fields": {
            "headline": {"type": "string", "required": True},
            "photo": {"type": "image"},
        },
    },
    "experience": {
        "kind": "repeatable",
        "maxItems": 5,
        "fields": {
            "company": {"type": "string", "required": True},
            "title": {"type": "string", "required": True},
            "startDate": {"type": "date"},
            "highlights": {"type": "stringArray"},
        },
    },
    "education": {
        "kind": "repeatable",
        "fields": {
            "school": {"type": "string", "required": True},
            "degree": {"type": "string"},
            "gpa": {"type": "number"},
        },
    },
}


def make_template(template_id: str = TEMPLATE_ID, category: str = "professional", name: str = "Classic") -> Template:
    return Template(
        templateId=template_id,
        name=name,
        category=category,
        templateFileUrl=f"https://example.com/templates/{template_id}.html",
        inputDataSchema=SAMPLE_INPUT_SCHEMA,
    )

