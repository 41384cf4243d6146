"""
Error taxonomy shared by the stores and services.

The core raises these; ``main.py`` maps them onto HTTP responses. Lower-level
I/O errors (pymongo, network) are not wrapped and propagate unchanged.
"""
from typing import List, Optional

from app.core.messages import ErrorMessages


class ResumeBuilderError(Exception):
    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])


class NotFoundError(ResumeBuilderError):
    status_code = 404
    error = "Not Found"


class ValidationFailedError(ResumeBuilderError):
    """Carries every violation, never just the first one."""

    status_code = 400
    error = "Validation Error"

    def __init__(self, errors: List[str], message: str = ErrorMessages.VALIDATION_FAILED):
        super().__init__(message, errors)


class ConflictError(ResumeBuilderError):
    status_code = 409
    error = "Conflict"


class PartialBatchFailure(ResumeBuilderError):
    """A chunk of a bulk write failed. Earlier chunks may already be written."""

    def __init__(self, message: str = ErrorMessages.BATCH_FAILED):
        super().__init__(message)


class UpstreamFailure(ResumeBuilderError):
    status_code = 502
    error = "Bad Gateway"
