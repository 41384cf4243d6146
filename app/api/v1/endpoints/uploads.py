from fastapi import APIRouter, Depends, File, UploadFile, status

from app.api.deps import get_current_user_id
from app.core.messages import SuccessMessages
from app.schemas.responses import Envelope, ImageUpload
from app.tools.file_uploader import upload_image_async

router = APIRouter()


@router.post("/images", status_code=status.HTTP_201_CREATED, response_model=Envelope[ImageUpload])
async def upload_image(
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
):
    """Store an image and return the URL to put into ``image`` fields of section data."""
    content = await file.read()
    url = await upload_image_async(content, file.content_type or "", user_id)
    return {"status": 201, "message": SuccessMessages.IMAGE_UPLOADED, "data": ImageUpload(url=url)}
