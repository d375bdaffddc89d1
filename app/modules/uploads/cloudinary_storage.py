"""Cloudinary unsigned uploads for game images."""
import logging

import requests

from app.config import settings

logger = logging.getLogger(__name__)

CLOUDINARY_UPLOAD_URL = "https://api.cloudinary.com/v1_1/{cloud_name}/image/upload"


class CloudinaryStorage:
    def __init__(self, timeout: float = 30.0):
        if not settings.cloudinary_cloud_name:
            raise ValueError("Cloudinary cloud name must be configured")
        self.upload_url = CLOUDINARY_UPLOAD_URL.format(cloud_name=settings.cloudinary_cloud_name)
        self.upload_preset = settings.cloudinary_upload_preset
        self.folder = settings.cloudinary_folder
        self.timeout = timeout

    def upload_file(self, file_content: bytes, filename: str, content_type: str) -> str:
        """Upload an image with the unsigned preset and return its secure URL"""
        try:
            resp = requests.post(
                self.upload_url,
                data={"upload_preset": self.upload_preset, "folder": self.folder},
                files={"file": (filename, file_content, content_type)},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error(f"Cloudinary upload request failed: {exc}")
            raise

        if not resp.ok:
            try:
                message = resp.json().get("error", {}).get("message")
            except ValueError:
                message = None
            logger.error(f"Cloudinary error response ({resp.status_code}): {resp.text}")
            raise RuntimeError(message or "Upload failed")

        return resp.json()["secure_url"]

    def delete_file(self, url: str) -> bool:
        """Deletion needs a signed Admin API call; the reference is dropped and the asset stays"""
        logger.info(f"Image URL removed from database (Cloudinary asset kept): {url}")
        return False
