from typing import Generic, List, Optional, TypeVar

import pydantic
from pydantic import BaseModel, Field

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Stable response shape for the frontend: { status, message, data }."""

    status: int = 200
    message: str = ""
    data: Optional[T] = None

    model_config = pydantic.ConfigDict(from_attributes=True)


class ErrorEnvelope(BaseModel):
    status: int
    message: str
    data: None = None
    errors: List[str] = Field(default_factory=list)


class ImageUpload(BaseModel):
    url: str
