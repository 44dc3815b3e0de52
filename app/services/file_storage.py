"""
Local file storage for uploaded avatars
Files are written under UPLOAD_DIR and served from /uploads
"""

import logging
import os
import uuid

from fastapi import UploadFile

from app.utils.error_handler import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
UPLOADS_URL_PREFIX = "/uploads"


class FileStorage:
    def __init__(self, upload_dir: str, max_size: int):
        self.upload_dir = upload_dir
        self.max_size = max_size

    async def save_avatar(self, upload: UploadFile) -> str:
        """Persist an avatar image and return its public URL"""
        extension = os.path.splitext(upload.filename or "")[1].lower()
        if extension not in ALLOWED_IMAGE_EXTENSIONS:
            raise ValidationError("Avatar must be an image file")
        if upload.content_type and not upload.content_type.startswith("image/"):
            raise ValidationError("Avatar must be an image file")

        content = await upload.read()
        if not content:
            raise ValidationError("No file uploaded")
        if len(content) > self.max_size:
            raise ValidationError("Avatar file is too large")

        filename = f"{uuid.uuid4()}{extension}"
        target_dir = os.path.join(self.upload_dir, "avatars")
        os.makedirs(target_dir, exist_ok=True)
        with open(os.path.join(target_dir, filename), "wb") as f:
            f.write(content)

        logger.info(f"Stored avatar {filename} ({len(content)} bytes)")
        return f"{UPLOADS_URL_PREFIX}/avatars/{filename}"
