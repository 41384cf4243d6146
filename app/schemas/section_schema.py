"""
Declarative section-type schemas.

A template's ``inputDataSchema`` maps every section type it renders
(``experience``, ``education``, ...) to a ``SectionSchema``. Templates stored
before the singleton/repeatable vocabulary existed use the older shape
``{"type": "object", "fields": ...}`` / ``{"type": "array", "itemSchema": ...}``
and are normalized on load.
"""
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class FieldType(str, Enum):
    STRING = "string"
    LONG_TEXT = "longText"
    URL = "url"
    DATE = "date"
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING_ARRAY = "stringArray"
    NESTED_OBJECT = "nestedObject"
    IMAGE = "image"


KNOWN_FIELD_TYPES = frozenset(t.value for t in FieldType)

LEGACY_FIELD_TYPES = {
    "text": FieldType.LONG_TEXT.value,
    "link": FieldType.URL.value,
    "object": FieldType.NESTED_OBJECT.value,
}


class SchemaKind(str, Enum):
    SINGLETON = "singleton"
    REPEATABLE = "repeatable"


class FieldDefinition(BaseModel):
    # Kept as a plain string: an unknown type must survive loading so the
    # validator can reject values for it instead of the template failing to load.
    type: str
    title: str = ""
    required: bool = False
    fields: Dict[str, "FieldDefinition"] = Field(default_factory=dict)
    items: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _normalize_legacy_array(cls, values: Any):
        # Legacy "array" only ever described lists of strings
        if isinstance(values, dict) and values.get("type") == "array":
            item_type = (values.get("items") or {}).get("type", "string")
            if item_type == "string":
                values = {**values, "type": FieldType.STRING_ARRAY.value}
        return values

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_legacy_type(cls, v: Any):
        return LEGACY_FIELD_TYPES.get(v, v)

    @property
    def is_known_type(self) -> bool:
        return self.type in KNOWN_FIELD_TYPES


class SectionSchema(BaseModel):
    kind: SchemaKind
    title: str = ""
    required: bool = False
    # Singleton: the object's fields. Repeatable: the fields of each entry.
    fields: Dict[str, FieldDefinition] = Field(default_factory=dict)
    minItems: int = 0
    maxItems: Optional[int] = None

    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    @model_validator(mode="before")
    @classmethod
    def _accept_template_shape(cls, values: Any):
        if not isinstance(values, dict):
            return values
        if "kind" not in values:
            legacy = values.get("type")
            if legacy == "object":
                values = {**values, "kind": SchemaKind.SINGLETON.value}
            elif legacy == "array":
                values = {**values, "kind": SchemaKind.REPEATABLE.value}
        if "itemSchema" in values and "fields" not in values:
            values = {**values, "fields": values["itemSchema"]}
        return values

    @property
    def is_repeatable(self) -> bool:
        return self.kind == SchemaKind.REPEATABLE


InputDataSchema = Dict[str, SectionSchema]
