"""
Schema Validator

Checks a section payload against the ``SectionSchema`` its template declares
for the section type. The declarative schema is turned into a pydantic model
on the fly, so every violation is collected in one pass and reported with the
dotted path of the offending field.
"""
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import (
    AfterValidator,
    AnyUrl,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictStr,
    TypeAdapter,
    ValidationError,
    conlist,
    create_model,
)
from typing_extensions import Annotated

from app.core.config import settings
from app.schemas.section_schema import FieldDefinition, FieldType, SectionSchema

DATE_PATTERN = re.compile(r"\d{4}-\d{2}(-\d{2})?", re.ASCII)


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)


def default_image_pattern() -> str:
    """Delivery URLs of the configured Cloudinary cloud (any cloud when unconfigured)."""
    cloud = re.escape(settings.CLOUDINARY_CLOUD_NAME) if settings.CLOUDINARY_CLOUD_NAME else "[^/]+"
    return rf"^https://res\.cloudinary\.com/{cloud}/image/upload/"


def _check_date(value: str) -> str:
    if not DATE_PATTERN.fullmatch(value):
        raise ValueError("Date must be in YYYY-MM-DD or YYYY-MM format")
    return value


def _reject_unknown(type_name: str):
    def check(value: Any) -> Any:
        raise ValueError(f"Unknown field type '{type_name}' in schema")
    return check


def format_error(err: Dict[str, Any], path: str = "") -> str:
    parts = [str(part) for part in err.get("loc", ())]
    if path:
        parts.insert(0, path)
    loc = ".".join(parts)
    return f"{loc}: {err['msg']}" if loc else err["msg"]


class SchemaValidator:
    def __init__(self, image_url_pattern: Optional[str] = None):
        self.image_url_pattern = re.compile(image_url_pattern or default_image_pattern())

    def validate(self, data: Any, schema: SectionSchema, path: str = "") -> ValidationResult:
        """Validate a whole section-type payload.

        Singleton schemas expect one object; repeatable schemas expect the full
        list of entries and also enforce ``minItems``/``maxItems``. ``path``
        prefixes every reported location.
        """
        entry = self._entry_model(schema)
        if schema.is_repeatable:
            annotation = conlist(entry, min_length=schema.minItems, max_length=schema.maxItems)
        elif schema.required:
            annotation = entry
        else:
            annotation = Optional[entry]
        return self._run(annotation, data, path)

    def validate_entry(self, data: Any, schema: SectionSchema, path: str = "") -> ValidationResult:
        """Validate one stored section: the object itself, or a single entry of a repeatable type."""
        return self._run(self._entry_model(schema), data, path)

    def validate_payloads(self, payloads: Dict[str, List[Any]],
                          input_schema: Dict[str, SectionSchema]) -> ValidationResult:
        """Validate per-type lists of section payloads against a template's ``inputDataSchema``.

        Types the template does not declare are free-form and skipped. A
        singleton type takes at most one entry.
        """
        errors: List[str] = []
        for section_type, items in payloads.items():
            schema = input_schema.get(section_type)
            if schema is None:
                continue
            if schema.is_repeatable:
                result = self.validate(items, schema, path=section_type)
            elif len(items) > 1:
                result = ValidationResult(
                    valid=False, errors=[f"{section_type}: Only one entry is allowed for this section"]
                )
            else:
                result = self.validate(items[0] if items else None, schema, path=section_type)
            errors.extend(result.errors)
        return ValidationResult(valid=not errors, errors=errors)

    def _run(self, annotation: Any, data: Any, path: str = "") -> ValidationResult:
        try:
            TypeAdapter(annotation).validate_python(data)
        except ValidationError as e:
            return ValidationResult(valid=False, errors=[format_error(err, path) for err in e.errors()])
        return ValidationResult(valid=True)

    def _entry_model(self, schema: SectionSchema):
        return self._build_model("SectionEntry", schema.fields)

    def _build_model(self, model_name: str, fields: Dict[str, FieldDefinition]):
        definitions = {}
        # Internal attribute names avoid clashes with BaseModel members; the
        # alias keeps the payload's own key in inputs and error locations.
        for i, (name, fdef) in enumerate(fields.items()):
            definitions[f"field_{i}"] = self._field_definition(name, fdef)
        return create_model(model_name, __config__=ConfigDict(extra="forbid"), **definitions)

    def _field_definition(self, name: str, fdef: FieldDefinition) -> Tuple[Any, Any]:
        if not fdef.is_known_type:
            # Fails closed: the default is validated too, so even an absent value errors
            annotation = Annotated[Any, AfterValidator(_reject_unknown(fdef.type))]
            return annotation, Field(None, alias=name, validate_default=True)

        annotation = self._annotation_for(name, fdef)
        if fdef.required:
            return annotation, Field(..., alias=name)
        return Optional[annotation], Field(None, alias=name)

    def _annotation_for(self, name: str, fdef: FieldDefinition) -> Any:
        kind = FieldType(fdef.type)
        if kind in (FieldType.STRING, FieldType.LONG_TEXT):
            return StrictStr
        if kind == FieldType.URL:
            return AnyUrl
        if kind == FieldType.DATE:
            return Annotated[StrictStr, AfterValidator(_check_date)]
        if kind == FieldType.NUMBER:
            # ints pass, bools and numeric strings do not
            return StrictFloat
        if kind == FieldType.BOOLEAN:
            return StrictBool
        if kind == FieldType.STRING_ARRAY:
            return List[StrictStr]
        if kind == FieldType.IMAGE:
            return Annotated[StrictStr, AfterValidator(self._check_image)]
        # nestedObject
        if fdef.fields:
            return self._build_model(f"{name}Object", fdef.fields)
        return Dict[str, Any]

    def _check_image(self, value: str) -> str:
        if not self.image_url_pattern.match(value):
            raise ValueError("Image must be a URL from the configured image storage")
        return value
