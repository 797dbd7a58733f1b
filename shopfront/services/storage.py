"""
Image uploads to the object storage REST API

Objects live at {tenant_id}/{folder}/{filename}; public URLs are derived
from the bucket and path rather than stored.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
import secrets
import uuid

import httpx
import structlog

from shopfront.core.config import Settings
from shopfront.core.exceptions import UpstreamError, ValidationError

logger = structlog.get_logger(__name__)

IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif")
THEME_IMAGE_TYPES = IMAGE_TYPES + ("image/svg+xml",)

EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/svg+xml": "svg",
}

_TIMEOUT_SECONDS = 30.0
MB = 1024 * 1024


@dataclass(frozen=True)
class UploadCategory:
    bucket: str
    folder: str
    prefix: str
    content_types: tuple = IMAGE_TYPES
    # None means the configured STORAGE_MAX_UPLOAD_BYTES
    max_bytes: Optional[int] = None


UPLOAD_CATEGORIES = {
    "products": UploadCategory(bucket="product-images", folder="products", prefix="product"),
    "categories": UploadCategory(bucket="product-images", folder="categories", prefix="category"),
    "brands": UploadCategory(bucket="product-images", folder="brands", prefix="brand"),
    "logo": UploadCategory(bucket="public-assets", folder="logo_url", prefix="logo", content_types=THEME_IMAGE_TYPES, max_bytes=5 * MB),
    "favicon": UploadCategory(bucket="public-assets", folder="favicon_url", prefix="favicon", content_types=THEME_IMAGE_TYPES, max_bytes=5 * MB),
    "hero": UploadCategory(bucket="public-assets", folder="hero-background", prefix="hero", content_types=THEME_IMAGE_TYPES, max_bytes=10 * MB),
}


@dataclass(frozen=True)
class StoredObject:
    bucket: str
    path: str
    url: str


def generate_filename(prefix: str, filename: Optional[str], content_type: str, now: Optional[datetime] = None) -> str:
    """{prefix}_{epoch millis}_{random suffix}.{extension}"""
    now = now or datetime.now(timezone.utc)
    extension = None
    if filename and "." in filename:
        extension = filename.rsplit(".", 1)[-1].lower()
    extension = extension or EXTENSIONS.get(content_type, "bin")
    millis = int(now.timestamp() * 1000)
    return f"{prefix}_{millis}_{secrets.token_hex(3)}.{extension}"


def object_path(tenant_id: uuid.UUID, folder: str, filename: str) -> str:
    return f"{tenant_id}/{folder}/{filename}"


def public_url(settings: Settings, bucket: str, path: str) -> str:
    return f"{(settings.STORAGE_URL or '').rstrip('/')}/storage/v1/object/public/{bucket}/{path}"


class StorageClient:
    """Thin client over the storage REST endpoints"""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._client = http_client
        self._owns_client = http_client is None

    async def __aenter__(self) -> "StorageClient":
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=_TIMEOUT_SECONDS)
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _headers(self, content_type: str) -> dict:
        return {
            "Authorization": f"Bearer {self.settings.STORAGE_SERVICE_KEY}",
            "apikey": self.settings.STORAGE_SERVICE_KEY or "",
            "Content-Type": content_type,
            "cache-control": "3600",
            "x-upsert": "false",
        }

    def validate(self, category: str, content_type: Optional[str], size: int) -> UploadCategory:
        config = UPLOAD_CATEGORIES.get(category)
        if config is None:
            raise ValidationError(f"Unknown upload category: {category}")
        if content_type not in config.content_types:
            raise ValidationError("Invalid file type. Please upload a JPEG, PNG, WebP, or GIF image.")

        max_bytes = config.max_bytes or self.settings.STORAGE_MAX_UPLOAD_BYTES
        if size > max_bytes:
            raise ValidationError(f"File too large. Maximum size is {max_bytes // MB}MB.")
        if size == 0:
            raise ValidationError("File is empty")
        return config

    async def upload_image(
        self,
        tenant_id: uuid.UUID,
        category: str,
        content: bytes,
        content_type: Optional[str],
        filename: Optional[str] = None,
        prefix: Optional[str] = None,
    ) -> StoredObject:
        config = self.validate(category, content_type, len(content))
        if not self.settings.STORAGE_URL or not self.settings.STORAGE_SERVICE_KEY:
            raise UpstreamError("Storage is not configured")

        name = generate_filename(prefix or config.prefix, filename, content_type)
        path = object_path(tenant_id, config.folder, name)
        endpoint = f"{self.settings.STORAGE_URL.rstrip('/')}/storage/v1/object/{config.bucket}/{path}"

        try:
            response = await self._client.post(endpoint, content=content, headers=self._headers(content_type))
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("Storage upload rejected", path=path, status_code=exc.response.status_code)
            raise UpstreamError("Storage upload failed")
        except httpx.RequestError as exc:
            logger.error("Storage upload error", path=path, error=str(exc))
            raise UpstreamError("Storage upload failed")

        logger.info("Image uploaded", tenant_id=str(tenant_id), bucket=config.bucket, path=path)
        return StoredObject(bucket=config.bucket, path=path, url=public_url(self.settings, config.bucket, path))

    async def delete_object(self, bucket: str, path: str) -> None:
        endpoint = f"{(self.settings.STORAGE_URL or '').rstrip('/')}/storage/v1/object/{bucket}"
        try:
            response = await self._client.request(
                "DELETE",
                endpoint,
                json={"prefixes": [path]},
                headers=self._headers("application/json"),
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Storage delete failed", path=path, error=str(exc))
            raise UpstreamError("Storage delete failed")
