"""
Tests for image uploads, with the Cloudinary SDK patched out
"""
from unittest.mock import patch

import pytest

from app.core.config import settings
from app.core.errors import UpstreamFailure, ValidationFailedError
from app.tools.file_uploader import check_image, upload_image, upload_image_async
from tests.helpers import USER_ID

SECURE_URL = "https://res.cloudinary.com/demo/image/upload/v1/resume-builder/user-1/photo.png"


def test_upload_image_returns_secure_url():
    with patch("app.tools.file_uploader.cloudinary.uploader.upload", return_value={"secure_url": SECURE_URL}) as upload:
        assert upload_image(b"\x89PNG", "image/png", USER_ID) == SECURE_URL

    upload.assert_called_once()
    kwargs = upload.call_args.kwargs
    assert kwargs["public_id"].startswith(f"{settings.CLOUDINARY_FOLDER}/{USER_ID}/")
    assert kwargs["resource_type"] == "image"
    assert kwargs["overwrite"] is False


def test_check_image_rejects_type_and_size():
    check_image("image/jpeg", 10)
    with pytest.raises(ValidationFailedError) as exc:
        check_image("application/pdf", settings.MAX_IMAGE_BYTES + 1)
    assert len(exc.value.errors) == 2
    assert all(e.startswith("file:") for e in exc.value.errors)


def test_invalid_image_is_never_uploaded():
    with patch("app.tools.file_uploader.cloudinary.uploader.upload") as upload:
        with pytest.raises(ValidationFailedError):
            upload_image(b"%PDF", "application/pdf", USER_ID)
    upload.assert_not_called()


@pytest.mark.parametrize("outcome", [{"side_effect": Exception("Invalid API key")}, {"return_value": {}}])
def test_upload_failure(outcome):
    with patch("app.tools.file_uploader.cloudinary.uploader.upload", **outcome):
        with pytest.raises(UpstreamFailure):
            upload_image(b"\x89PNG", "image/png", USER_ID)


@pytest.mark.asyncio
async def test_upload_image_async():
    with patch("app.tools.file_uploader.cloudinary.uploader.upload", return_value={"secure_url": SECURE_URL}):
        assert await upload_image_async(b"\xff\xd8", "image/jpeg", USER_ID) == SECURE_URL
