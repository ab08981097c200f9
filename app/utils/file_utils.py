"""
Object storage utilities for listing images.
Provides image validation with Pillow and a disk-backed object store whose
objects are served under a public URL prefix.
"""

import io
import re
from pathlib import Path, PurePosixPath
from typing import Optional, Tuple
from PIL import Image
import aiofiles
import aiofiles.os

from app.config import settings
from app.utils.exceptions import (
    FileSizeExceededError,
    StorageError,
    UnsupportedFileTypeError,
    ValidationError,
)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class ImageValidator:
    """Utility class for image validation operations."""

    # Supported image formats and their extensions
    SUPPORTED_FORMATS = {
        'image/jpeg': ['.jpg', '.jpeg'],
        'image/png': ['.png'],
        'image/webp': ['.webp']
    }

    # Pillow format names per MIME type
    PIL_FORMATS = {
        'image/jpeg': 'jpeg',
        'image/png': 'png',
        'image/webp': 'webp'
    }

    # Image dimension constraints
    MIN_WIDTH = 100
    MIN_HEIGHT = 100
    MAX_WIDTH = 10000
    MAX_HEIGHT = 10000

    @classmethod
    def supported_types(cls) -> list:
        """MIME types that are both configured and understood."""
        return [t for t in settings.allowed_file_types if t in cls.SUPPORTED_FORMATS]

    @classmethod
    def validate_file_extension(cls, filename: str, mime_type: str) -> str:
        """
        Validate that the file extension matches its MIME type.

        Args:
            filename: Name of the file
            mime_type: Declared MIME type

        Returns:
            Lowercase file extension

        Raises:
            ValidationError: If the extension is missing or does not match
        """
        extension = PurePosixPath(filename).suffix.lower()
        if not extension:
            raise ValidationError("File must have an extension")

        expected = cls.SUPPORTED_FORMATS.get(mime_type, [])
        if extension not in expected:
            raise ValidationError(
                f"File extension '{extension}' doesn't match MIME type '{mime_type}'"
            )
        return extension

    @classmethod
    def validate_image_dimensions(cls, width: int, height: int) -> Tuple[int, int]:
        """
        Validate image dimensions.

        Raises:
            ValidationError: If dimensions are out of range
        """
        if width < cls.MIN_WIDTH or height < cls.MIN_HEIGHT:
            raise ValidationError(
                f"Image {width}x{height}px is below minimum {cls.MIN_WIDTH}x{cls.MIN_HEIGHT}px"
            )
        if width > cls.MAX_WIDTH or height > cls.MAX_HEIGHT:
            raise ValidationError(
                f"Image {width}x{height}px exceeds maximum {cls.MAX_WIDTH}x{cls.MAX_HEIGHT}px"
            )
        return width, height

    @classmethod
    def validate(cls, content: bytes, filename: Optional[str], mime_type: Optional[str]) -> Tuple[int, int]:
        """
        Comprehensive validation of uploaded image bytes.

        Args:
            content: Raw file content
            filename: Uploaded file name
            mime_type: Declared content type

        Returns:
            Tuple of (width, height)

        Raises:
            ValidationError: If any validation fails
        """
        if not filename:
            raise ValidationError("Filename is required")

        supported = cls.supported_types()
        if mime_type not in supported:
            raise UnsupportedFileTypeError(mime_type or "unknown", supported)

        cls.validate_file_extension(filename, mime_type)

        if not content:
            raise ValidationError("File is empty")
        if len(content) > settings.max_file_size:
            raise FileSizeExceededError(len(content), settings.max_file_size)

        try:
            with Image.open(io.BytesIO(content)) as img:
                width, height = img.size
                pil_format = img.format.lower() if img.format else ""
        except Exception as e:
            raise ValidationError(f"Invalid image file: {str(e)}")

        if pil_format != cls.PIL_FORMATS[mime_type]:
            raise ValidationError(
                f"Image format '{pil_format}' doesn't match MIME type '{mime_type}'"
            )

        return cls.validate_image_dimensions(width, height)


def sanitize_filename(filename: str) -> str:
    """
    Reduce an uploaded file name to a safe base name.

    Directory components are dropped and characters outside ``[A-Za-z0-9._-]``
    become underscores.
    """
    name = PurePosixPath(filename.replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("_", name).lstrip(".")
    if not name:
        raise ValidationError("Filename is required")
    return name


class ObjectStorage:
    """
    Disk-backed object store.

    Objects are addressed by a relative path such as
    ``properties/{owner_id}/{filename}`` and served at
    ``{public base url}/{path}``.
    """

    def __init__(self, base_dir: Optional[str] = None, public_base_url: Optional[str] = None):
        self.base_dir = Path(base_dir or settings.upload_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.public_base_url = (public_base_url or settings.media_base_url).rstrip("/")

    def build_path(self, owner_id: str, filename: str) -> str:
        """
        Storage path for an owner's upload.

        Args:
            owner_id: Id of the uploading user
            filename: Original file name

        Returns:
            Relative object path
        """
        return f"{self.owner_prefix(owner_id)}{sanitize_filename(filename)}"

    @staticmethod
    def owner_prefix(owner_id: str) -> str:
        """Path prefix under which an owner's uploads are stored."""
        return f"properties/{_UNSAFE_CHARS.sub('_', owner_id)}/"

    def is_owned_by(self, path: str, owner_id: str) -> bool:
        """
        Check that an object path lies inside the owner's prefix.

        Paths with ``..`` segments never qualify, even when they start with
        the prefix.
        """
        return path.startswith(self.owner_prefix(owner_id)) and ".." not in PurePosixPath(path).parts

    def _full_path(self, path: str) -> Path:
        full_path = (self.base_dir / path).resolve()
        if self.base_dir not in full_path.parents:
            raise ValidationError(f"Invalid object path: {path}")
        return full_path

    def public_url(self, path: str) -> str:
        """Public URL for an object path."""
        return f"{self.public_base_url}/{path}"

    def path_from_url(self, url: str) -> Optional[str]:
        """
        Object path for a public URL, or None if the URL is not served by this store.
        """
        prefix = f"{self.public_base_url}/"
        if not url.startswith(prefix):
            return None
        return url[len(prefix):] or None

    async def upload(self, path: str, content: bytes) -> str:
        """
        Write an object, replacing any existing object at the same path.

        Args:
            path: Relative object path
            content: Object bytes

        Returns:
            Public URL of the stored object

        Raises:
            StorageError: If the object cannot be written
        """
        full_path = self._full_path(path)
        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(full_path, 'wb') as f:
                await f.write(content)
        except OSError as e:
            raise StorageError(f"Failed to store {path}: {e}")

        return self.public_url(path)

    async def delete(self, path: str) -> bool:
        """
        Delete an object.

        Args:
            path: Relative object path

        Returns:
            True if the object was deleted, False if it did not exist
        """
        try:
            await aiofiles.os.remove(self._full_path(path))
            return True
        except FileNotFoundError:
            return False

    def exists(self, path: str) -> bool:
        """Check whether an object exists."""
        return self._full_path(path).is_file()

    def is_available(self) -> bool:
        """Check that the storage root is usable."""
        return self.base_dir.is_dir()


def get_object_storage() -> ObjectStorage:
    """Dependency returning object storage backed by the configured upload directory."""
    return ObjectStorage()
