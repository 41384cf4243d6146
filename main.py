from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.api.v1.endpoints import recommendations, resumes, sections, templates, uploads, users
from app.core.config import settings
from app.core.errors import ResumeBuilderError
from app.core.messages import ErrorMessages
from app.db.database import connect_storage, close_storage
from app.schemas.responses import ErrorEnvelope
from contextlib import asynccontextmanager
import logging

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_storage()
    yield
    await close_storage()

app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan)
app.include_router(users.router, prefix="/api/v1/users", tags=["users"])
app.include_router(resumes.router, prefix="/api/v1/resumes", tags=["resumes"])
app.include_router(sections.router, prefix="/api/v1/sections", tags=["sections"])
app.include_router(templates.router, prefix="/api/v1/templates", tags=["templates"])
app.include_router(recommendations.router, prefix="/api/v1/recommendations", tags=["recommendations"])
app.include_router(uploads.router, prefix="/api/v1/uploads", tags=["uploads"])


def error_response(status: int, message: str, errors=None) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content=ErrorEnvelope(status=status, message=message, errors=list(errors or [])).model_dump(),
    )


@app.exception_handler(ResumeBuilderError)
async def resume_builder_error_handler(request: Request, exc: ResumeBuilderError):
    if exc.status_code >= 500:
        # Detail stays in the log; clients get the generic message
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
        if exc.status_code == 500:
            return error_response(500, ErrorMessages.INTERNAL_SERVER_ERROR)
    return error_response(exc.status_code, exc.message, exc.errors)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        # Drop the leading "body"/"query"/"path" marker
        loc = ".".join(str(part) for part in err["loc"][1:]) or str(err["loc"][0])
        errors.append(f"{loc}: {err['msg']}")
    return error_response(400, ErrorMessages.VALIDATION_FAILED, errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(500, ErrorMessages.INTERNAL_SERVER_ERROR)


@app.get("/health", tags=["health"])
async def health():
    """Health check endpoint returning service status."""
    return {"status": "ok"}
