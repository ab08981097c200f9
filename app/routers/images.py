"""
Image upload API endpoint for listing photos.
"""

from fastapi import APIRouter, Depends, File, UploadFile, status
from typing import List

from app.schemas.listing import ImageUploadResponse
from app.services.auth import CurrentUser
from app.services.error_handler import error_responses
from app.services.image import ImageService
from app.utils.dependencies import get_current_user, get_image_service


router = APIRouter(prefix="/images", tags=["Images"])


@router.post(
    "",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload listing images",
    description="Upload one or more images (JPEG, PNG, WebP) under the user's storage prefix. "
                "Returns their public URLs in upload order.",
    responses=error_responses(400, 401)
)
async def upload_images(
    files: List[UploadFile] = File(..., description="Image files to upload"),
    current_user: CurrentUser = Depends(get_current_user),
    image_service: ImageService = Depends(get_image_service)
) -> ImageUploadResponse:
    """
    Upload images for a listing that is being written.

    Raises:
        ValidationError: If a file is not a valid image
        FileSizeExceededError: If a file is too large
    """
    urls = await image_service.upload_images(current_user.id, files)
    return ImageUploadResponse(urls=urls, count=len(urls))
