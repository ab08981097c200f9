"""
Image upload service for listing photos.
Uploads run one file after another; while a user's upload is running their
listing submissions are refused.
"""

from collections import Counter
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Tuple
from fastapi import UploadFile
from app.utils.exceptions import UploadInProgressError, ValidationError
from app.utils.file_utils import ImageValidator, ObjectStorage
import logging

logger = logging.getLogger(__name__)


class UploadTracker:
    """Per-user count of image uploads in flight."""

    def __init__(self):
        self._in_flight: Counter = Counter()

    @asynccontextmanager
    async def track(self, user_id: str) -> AsyncIterator[None]:
        """Mark an upload for ``user_id`` as running for the duration of the block."""
        self._in_flight[user_id] += 1
        try:
            yield
        finally:
            self._in_flight[user_id] -= 1
            if self._in_flight[user_id] <= 0:
                del self._in_flight[user_id]

    def is_uploading(self, user_id: str) -> bool:
        return self._in_flight.get(user_id, 0) > 0

    def ensure_idle(self, user_id: str) -> None:
        """
        Raises:
            UploadInProgressError: If the user has an upload running
        """
        if self.is_uploading(user_id):
            raise UploadInProgressError()


upload_tracker = UploadTracker()


class ImageService:
    """
    Service for validating and storing listing images.
    """

    def __init__(self, storage: ObjectStorage, tracker: UploadTracker = upload_tracker):
        self.storage = storage
        self.tracker = tracker

    async def upload_images(self, user_id: str, files: List[UploadFile]) -> List[str]:
        """
        Validate and store images under the user's storage prefix.

        Every file is validated before the first one is stored. Files are then
        stored in order, one at a time.

        Args:
            user_id: Id of the uploading user
            files: Uploaded files

        Returns:
            Public URLs in upload order

        Raises:
            ValidationError: If no file was sent or any file is invalid
            StorageError: If storing a file fails
        """
        if not files:
            raise ValidationError("At least one image is required")

        async with self.tracker.track(user_id):
            validated: List[Tuple[str, bytes]] = []
            for file in files:
                content = await file.read()
                ImageValidator.validate(content, file.filename, file.content_type)
                validated.append((self.storage.build_path(user_id, file.filename), content))

            urls = []
            for path, content in validated:
                url = await self.storage.upload(path, content)
                logger.info(f"Image stored for user {user_id}: {path} ({len(content)} bytes)")
                urls.append(url)

        return urls
