import asyncio
import logging
import uuid

import cloudinary
import cloudinary.uploader

from app.core.config import settings
from app.core.errors import UpstreamFailure, ValidationFailedError
from app.core.messages import ErrorMessages

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp")


def configure_cloudinary():
    """Configures the Cloudinary client from settings (CLOUDINARY_CLOUD_NAME / _API_KEY / _API_SECRET)."""
    missing = [
        name for name, value in {
            "CLOUDINARY_CLOUD_NAME": settings.CLOUDINARY_CLOUD_NAME,
            "CLOUDINARY_API_KEY": settings.CLOUDINARY_API_KEY,
            "CLOUDINARY_API_SECRET": settings.CLOUDINARY_API_SECRET,
        }.items() if not value
    ]
    if missing:
        logger.warning("Cloudinary config missing vars: %s. Uploads will likely fail.", missing)

    cloudinary.config(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        secure=True,
    )


def check_image(content_type: str, size: int) -> None:
    errors = []
    if content_type not in ALLOWED_IMAGE_TYPES:
        errors.append(f"file: {ErrorMessages.INVALID_IMAGE_TYPE}")
    if size > settings.MAX_IMAGE_BYTES:
        errors.append(f"file: {ErrorMessages.IMAGE_TOO_LARGE}")
    if errors:
        raise ValidationFailedError(errors)


def upload_image(content: bytes, content_type: str, user_id: str) -> str:
    """Uploads an image to Cloudinary under ``<folder>/<user>/<uuid>`` and returns its secure URL."""
    check_image(content_type, len(content))
    public_id = f"{settings.CLOUDINARY_FOLDER}/{user_id}/{uuid.uuid4()}"
    try:
        configure_cloudinary()
        upload_result = cloudinary.uploader.upload(
            content,
            public_id=public_id,
            resource_type="image",
            overwrite=False,
        )
    except Exception as e:
        logger.exception("Cloudinary upload failed for %s", public_id)
        raise UpstreamFailure(ErrorMessages.UPLOAD_FAILED) from e

    url = upload_result.get("secure_url")
    if not url:
        raise UpstreamFailure(ErrorMessages.UPLOAD_FAILED)
    logger.info("Uploaded image %s", public_id)
    return url


async def upload_image_async(content: bytes, content_type: str, user_id: str) -> str:
    # The Cloudinary SDK is blocking
    return await asyncio.to_thread(upload_image, content, content_type, user_id)
