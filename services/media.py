"""Cloudinary upload client.

Only the returned secure_url is kept; the file itself never touches the
database. Signing and the HTTP round trip are left to the cloudinary SDK,
whose blocking upload call runs in the thread pool.
"""
from __future__ import annotations
import io
from typing import Optional
import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
from starlette.concurrency import run_in_threadpool
from config import settings
from services.errors import MediaUploadError


class MediaUploader:
    def __init__(
        self,
        cloud_name: Optional[str],
        api_key: Optional[str],
        api_secret: Optional[str],
        resource_type: str = "raw",
        timeout: float = 30.0,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.resource_type = resource_type
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def _upload(self, filename: str, content: bytes) -> dict:
        cloudinary.config(
            cloud_name=self.cloud_name,
            api_key=self.api_key,
            api_secret=self.api_secret,
            secure=True,
        )
        stream = io.BytesIO(content)
        stream.name = filename
        return cloudinary.uploader.upload(stream, resource_type=self.resource_type, timeout=self.timeout)

    async def upload(self, filename: str, content: bytes, content_type: Optional[str] = None) -> str:
        # content_type is inferred by the media host for raw uploads
        if not self.configured:
            raise MediaUploadError("Media host credentials are not configured")
        try:
            result = await run_in_threadpool(self._upload, filename, content)
        except cloudinary.exceptions.Error as e:
            raise MediaUploadError(f"Media host rejected upload: {e}") from e
        except OSError as e:
            raise MediaUploadError(f"Media host unavailable: {e}") from e
        url = (result or {}).get("secure_url")
        if not url:
            raise MediaUploadError("Media host response has no secure_url")
        return url


def get_media_uploader() -> MediaUploader:
    return MediaUploader(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        resource_type=settings.CLOUDINARY_RESOURCE_TYPE,
        timeout=settings.MEDIA_UPLOAD_TIMEOUT,
    )
