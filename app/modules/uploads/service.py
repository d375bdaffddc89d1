from supabase import Client
from app.config import settings
from app.modules.uploads.cloudinary_storage import CloudinaryStorage
from typing import Optional
from fastapi import HTTPException
import os
import re
import time
import logging

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"]


def validate_image(content_type: Optional[str], size: int) -> Optional[str]:
    """Return an error message when the file is not an acceptable image, else None"""
    if content_type not in ALLOWED_IMAGE_TYPES:
        return "Please upload a valid image file (JPEG, PNG, GIF, or WebP)"
    if size > settings.max_image_size_bytes:
        return f"Image size must be less than {settings.max_image_size_mb}MB"
    return None


def _safe_filename(filename: str) -> str:
    base = os.path.basename(filename or "image")
    return re.sub(r"[^A-Za-z0-9._-]", "_", base) or "image"


class ImageStorage:
    """Stores game images on Cloudinary when configured, otherwise in a Supabase Storage bucket"""

    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.bucket = settings.storage_bucket
        self.folder = settings.cloudinary_folder

        self.cloudinary = None
        if settings.cloudinary_cloud_name:
            try:
                self.cloudinary = CloudinaryStorage()
            except Exception as e:
                logger.warning(f"Cloudinary initialization failed ({str(e)}), will use Supabase Storage")
                self.cloudinary = None

    def upload_image(self, file_content: bytes, filename: str, content_type: Optional[str]) -> str:
        """Validate and upload an image; returns its durable URL"""
        error = validate_image(content_type, len(file_content))
        if error:
            raise HTTPException(status_code=400, detail=error)

        if self.cloudinary:
            try:
                url = self.cloudinary.upload_file(file_content, _safe_filename(filename), content_type)
                logger.info(f"Uploaded image to Cloudinary: {url}")
                return url
            except Exception as e:
                logger.error(f"Cloudinary upload failed: {str(e)}")
                raise HTTPException(status_code=500, detail=f"Failed to upload image: {str(e)}")

        path = f"{self.folder}/{int(time.time() * 1000)}_{_safe_filename(filename)}"
        try:
            bucket = self.supabase.storage.from_(self.bucket)
            bucket.upload(path, file_content, {"content-type": content_type})
            url = bucket.get_public_url(path)
            logger.info(f"Uploaded image to Supabase Storage: {path}")
            return url
        except Exception as e:
            logger.error(f"Supabase Storage upload failed: {str(e)}")
            raise HTTPException(status_code=500, detail=f"Failed to upload image: {str(e)}")

    def _storage_path_from_url(self, url: str) -> Optional[str]:
        marker = f"/object/public/{self.bucket}/"
        if marker not in url:
            return None
        return url.split(marker, 1)[1].split("?", 1)[0] or None

    def delete_image(self, url: Optional[str]) -> bool:
        """Best-effort removal of a previously uploaded image; never raises"""
        if not url:
            return False
        path = self._storage_path_from_url(url)
        if path:
            try:
                self.supabase.storage.from_(self.bucket).remove([path])
                logger.info(f"Deleted image from Supabase Storage: {path}")
                return True
            except Exception as e:
                logger.warning(f"Failed to delete image from Supabase Storage ({path}): {e}")
                return False
        if self.cloudinary and "res.cloudinary.com" in url:
            return self.cloudinary.delete_file(url)
        return False
