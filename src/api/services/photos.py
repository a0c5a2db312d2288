"""Profile photo processing.

Uploaded images are center-cropped to a square, resized and re-encoded as
JPEG before they are written to the public user photo directory.
"""

from __future__ import annotations

import asyncio
import io
import logging
import time
from pathlib import Path
from uuid import UUID

from PIL import Image, ImageOps, UnidentifiedImageError

from src.core.exceptions import ValidationFailure

logger = logging.getLogger(__name__)

NOT_AN_IMAGE_MESSAGE = "Not an image! Please upload only images."
JPEG_QUALITY = 90


class PhotoService:
    """Stores resized profile photos on disk."""

    def __init__(self, directory: Path, size: int = 500) -> None:
        """Initialize photo service.

        Args:
            directory: Where processed photos are written.
            size: Edge length of the square output image in pixels.
        """
        self.directory = directory
        self.size = size

    async def store_user_photo(self, user_id: UUID, data: bytes, content_type: str | None) -> str:
        """Resize an uploaded image and save it as the user's photo.

        Args:
            user_id: Owner of the photo.
            data: Raw upload bytes.
            content_type: Declared media type of the upload.

        Returns:
            Filename of the stored JPEG, relative to the photo directory.

        Raises:
            ValidationFailure: If the upload is not a readable image.
        """
        if not content_type or not content_type.startswith("image/"):
            raise ValidationFailure(NOT_AN_IMAGE_MESSAGE)

        filename = f"user-{user_id}-{int(time.time() * 1000)}.jpeg"
        await asyncio.to_thread(self._write_jpeg, data, self.directory / filename)
        logger.info(f"Stored profile photo {filename}")
        return filename

    def _write_jpeg(self, data: bytes, target: Path) -> None:
        try:
            with Image.open(io.BytesIO(data)) as image:
                square = ImageOps.fit(image.convert("RGB"), (self.size, self.size))
        except (UnidentifiedImageError, OSError) as e:
            raise ValidationFailure(NOT_AN_IMAGE_MESSAGE) from e

        target.parent.mkdir(parents=True, exist_ok=True)
        square.save(target, format="JPEG", quality=JPEG_QUALITY)
