"""
Tests for image uploads to object storage
"""

from datetime import datetime, timezone
import json
import uuid

import httpx
import pytest

from shopfront.core.exceptions import UpstreamError, ValidationError
from shopfront.services.storage import StorageClient, generate_filename, object_path, public_url

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def recording_transport(requests, status_code=200):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code, json={"Key": "ok"})

    return httpx.MockTransport(handler)


class TestNaming:
    """Test object naming"""

    def test_generate_filename(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        name = generate_filename("product", "Photo.JPG", "image/jpeg", now=now)

        prefix, millis, rest = name.split("_")
        assert prefix == "product"
        assert millis == str(int(now.timestamp() * 1000))
        assert rest.endswith(".jpg")

    def test_extension_from_content_type(self):
        assert generate_filename("logo", None, "image/svg+xml").endswith(".svg")

    def test_object_path_and_url(self, settings):
        tenant_id = uuid.uuid4()
        path = object_path(tenant_id, "products", "a.png")

        assert path == f"{tenant_id}/products/a.png"
        assert public_url(settings, "product-images", path) == (
            f"https://storage.example.test/storage/v1/object/public/product-images/{path}"
        )


class TestValidation:
    """Test upload validation"""

    def test_unknown_category(self, settings):
        with pytest.raises(ValidationError):
            StorageClient(settings).validate("videos", "image/png", 10)

    def test_wrong_type(self, settings):
        with pytest.raises(ValidationError, match="Invalid file type"):
            StorageClient(settings).validate("products", "application/pdf", 10)

    def test_svg_only_for_theme_assets(self, settings):
        client = StorageClient(settings)

        assert client.validate("logo", "image/svg+xml", 10).bucket == "public-assets"
        with pytest.raises(ValidationError):
            client.validate("products", "image/svg+xml", 10)

    def test_size_limit(self, settings):
        with pytest.raises(ValidationError, match="Maximum size is 5MB"):
            StorageClient(settings).validate("logo", "image/png", 6 * 1024 * 1024)

    def test_empty_file(self, settings):
        with pytest.raises(ValidationError, match="empty"):
            StorageClient(settings).validate("products", "image/png", 0)


class TestStorageClient:
    """Test calls to the storage REST API"""

    @pytest.mark.asyncio
    async def test_upload(self, settings):
        requests = []
        tenant_id = uuid.uuid4()
        async with httpx.AsyncClient(transport=recording_transport(requests)) as http:
            stored = await StorageClient(settings, http_client=http).upload_image(
                tenant_id, "products", PNG, "image/png", filename="shirt.png"
            )

        assert stored.bucket == "product-images"
        assert stored.path.startswith(f"{tenant_id}/products/product_")
        assert stored.url.endswith(stored.path)
        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == f"/storage/v1/object/product-images/{stored.path}"
        assert request.headers["authorization"] == "Bearer service-key"
        assert request.headers["x-upsert"] == "false"

    @pytest.mark.asyncio
    async def test_upload_rejected_by_storage(self, settings):
        async with httpx.AsyncClient(transport=recording_transport([], status_code=403)) as http:
            with pytest.raises(UpstreamError):
                await StorageClient(settings, http_client=http).upload_image(
                    uuid.uuid4(), "products", PNG, "image/png"
                )

    @pytest.mark.asyncio
    async def test_delete(self, settings):
        requests = []
        async with httpx.AsyncClient(transport=recording_transport(requests)) as http:
            await StorageClient(settings, http_client=http).delete_object("product-images", "t/products/a.png")

        assert requests[0].method == "DELETE"
        assert json.loads(requests[0].content) == {"prefixes": ["t/products/a.png"]}


class TestUploadsAPI:
    """Test the upload endpoints"""

    def test_upload_endpoint(self, client, tenant, auth_headers, monkeypatch):
        requests = []
        transport = recording_transport(requests)
        real_client = httpx.AsyncClient
        monkeypatch.setattr(
            httpx,
            "AsyncClient",
            lambda **kwargs: real_client(transport=transport, **kwargs),
        )

        response = client.post(
            "/api/uploads/categories",
            files={"file": ("mugs.webp", PNG, "image/webp")},
            headers=auth_headers(tenant, "staff"),
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["bucket"] == "product-images"
        assert data["path"].startswith(f"{tenant.id}/categories/category_")
        assert data["path"].endswith(".webp")
        assert len(requests) == 1

    def test_upload_invalid_type(self, client, tenant, auth_headers):
        response = client.post(
            "/api/uploads/products",
            files={"file": ("doc.pdf", b"%PDF", "application/pdf")},
            headers=auth_headers(tenant),
        )

        assert response.status_code == 400

    def test_delete_other_tenant_object(self, client, tenant, auth_headers):
        response = client.request(
            "DELETE",
            "/api/uploads",
            json={"bucket": "product-images", "path": f"{uuid.uuid4()}/products/a.png"},
            headers=auth_headers(tenant),
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Object belongs to another store"}

    def test_viewer_cannot_upload(self, client, tenant, auth_headers):
        response = client.post(
            "/api/uploads/products",
            files={"file": ("a.png", PNG, "image/png")},
            headers=auth_headers(tenant, "viewer"),
        )

        assert response.status_code == 403
