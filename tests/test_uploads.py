"""
Tests for image validation and the two storage backends (Cloudinary via
requests, Supabase Storage as the fallback).
"""
from unittest.mock import MagicMock, patch

import pytest
import requests
from fastapi import HTTPException

from app.config import settings
from app.modules.uploads.cloudinary_storage import CloudinaryStorage
from app.modules.uploads.service import ImageStorage, validate_image

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class TestValidateImage:

    @pytest.mark.parametrize("content_type", ["image/jpeg", "image/png", "image/gif", "image/webp"])
    def test_accepts_images(self, content_type):
        assert validate_image(content_type, 1024) is None

    @pytest.mark.parametrize("content_type", ["application/pdf", "text/plain", None])
    def test_rejects_other_types(self, content_type):
        assert validate_image(content_type, 1024) == "Please upload a valid image file (JPEG, PNG, GIF, or WebP)"

    def test_rejects_oversized(self):
        message = validate_image("image/png", settings.max_image_size_bytes + 1)
        assert message == f"Image size must be less than {settings.max_image_size_mb}MB"

    def test_limit_is_inclusive(self):
        assert validate_image("image/png", settings.max_image_size_bytes) is None


@pytest.fixture
def no_cloudinary(monkeypatch):
    monkeypatch.setattr(settings, "cloudinary_cloud_name", None)


@pytest.fixture
def with_cloudinary(monkeypatch):
    monkeypatch.setattr(settings, "cloudinary_cloud_name", "demo")


def cloudinary_response(ok=True, status_code=200, payload=None):
    resp = MagicMock()
    resp.ok = ok
    resp.status_code = status_code
    resp.json.return_value = payload or {}
    resp.text = str(payload)
    return resp


class TestSupabaseStorage:

    def test_upload_returns_public_url(self, fake_db, no_cloudinary):
        storage = ImageStorage(fake_db)
        url = storage.upload_image(PNG, "my cover.png", "image/png")

        assert url.startswith(f"https://fake.supabase.co/storage/v1/object/public/{settings.storage_bucket}/games/")
        assert url.endswith("_my_cover.png")
        (bucket, path), = fake_db.storage.objects.keys()
        assert bucket == settings.storage_bucket
        assert fake_db.storage.objects[(bucket, path)][1] == {"content-type": "image/png"}

    def test_invalid_file_is_not_uploaded(self, fake_db, no_cloudinary):
        storage = ImageStorage(fake_db)
        with pytest.raises(HTTPException) as exc:
            storage.upload_image(b"%PDF", "doc.pdf", "application/pdf")
        assert exc.value.status_code == 400
        assert fake_db.storage.objects == {}

    def test_delete_removes_object(self, fake_db, no_cloudinary):
        storage = ImageStorage(fake_db)
        url = storage.upload_image(PNG, "cover.png", "image/png")
        assert storage.delete_image(url) is True
        assert fake_db.storage.objects == {}

    def test_delete_foreign_url_is_noop(self, fake_db, no_cloudinary):
        storage = ImageStorage(fake_db)
        assert storage.delete_image("https://images.example.com/a.png") is False
        assert storage.delete_image(None) is False


class TestCloudinaryStorage:

    def test_requires_cloud_name(self, no_cloudinary):
        with pytest.raises(ValueError):
            CloudinaryStorage()

    def test_upload_posts_unsigned_preset(self, with_cloudinary):
        payload = {"secure_url": "https://res.cloudinary.com/demo/image/upload/v1/games/cover.png"}
        with patch("app.modules.uploads.cloudinary_storage.requests.post",
                   return_value=cloudinary_response(payload=payload)) as post:
            url = CloudinaryStorage().upload_file(PNG, "cover.png", "image/png")

        assert url == payload["secure_url"]
        args, kwargs = post.call_args
        assert args[0] == "https://api.cloudinary.com/v1_1/demo/image/upload"
        assert kwargs["data"] == {
            "upload_preset": settings.cloudinary_upload_preset,
            "folder": settings.cloudinary_folder,
        }
        assert kwargs["files"]["file"] == ("cover.png", PNG, "image/png")

    def test_error_message_is_surfaced(self, with_cloudinary):
        payload = {"error": {"message": "Upload preset not found"}}
        with patch("app.modules.uploads.cloudinary_storage.requests.post",
                   return_value=cloudinary_response(ok=False, status_code=400, payload=payload)):
            with pytest.raises(RuntimeError, match="Upload preset not found"):
                CloudinaryStorage().upload_file(PNG, "cover.png", "image/png")

    def test_image_storage_prefers_cloudinary(self, fake_db, with_cloudinary):
        payload = {"secure_url": "https://res.cloudinary.com/demo/image/upload/v1/games/cover.png"}
        with patch("app.modules.uploads.cloudinary_storage.requests.post",
                   return_value=cloudinary_response(payload=payload)):
            url = ImageStorage(fake_db).upload_image(PNG, "cover.png", "image/png")
        assert url == payload["secure_url"]
        assert fake_db.storage.objects == {}

    def test_network_failure_is_500(self, fake_db, with_cloudinary):
        with patch("app.modules.uploads.cloudinary_storage.requests.post",
                   side_effect=requests.ConnectionError("offline")):
            with pytest.raises(HTTPException) as exc:
                ImageStorage(fake_db).upload_image(PNG, "cover.png", "image/png")
        assert exc.value.status_code == 500

    def test_cloudinary_delete_keeps_asset(self, fake_db, with_cloudinary):
        storage = ImageStorage(fake_db)
        assert storage.delete_image("https://res.cloudinary.com/demo/image/upload/v1/games/cover.png") is False
