"""
Image upload API endpoints
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from pydantic import BaseModel
from typing import Optional

from shopfront.core.config import get_settings
from shopfront.core.dependencies import get_tenant_context, require_permission
from shopfront.core.exceptions import AuthorizationError, ValidationError
from shopfront.core.permissions import Permission
from shopfront.core.tenant_context import TenantContext
from shopfront.models import TenantUser
from shopfront.services.storage import UPLOAD_CATEGORIES, StorageClient

router = APIRouter()


class ObjectDelete(BaseModel):
    bucket: str
    path: str


@router.post("/{category}", status_code=status.HTTP_201_CREATED)
async def upload_image(
    category: str,
    file: UploadFile = File(...),
    prefix: Optional[str] = Form(default=None),
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.PRODUCTS_EDIT)),
):
    """Store an image under {tenant_id}/{folder}/ and return its public URL"""
    content = await file.read()
    async with StorageClient(get_settings()) as storage:
        stored = await storage.upload_image(
            context.tenant_id,
            category,
            content,
            file.content_type,
            filename=file.filename,
            prefix=prefix,
        )
    return {"data": {"bucket": stored.bucket, "path": stored.path, "url": stored.url}}


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_image(
    target: ObjectDelete,
    context: TenantContext = Depends(get_tenant_context),
    membership: TenantUser = Depends(require_permission(Permission.PRODUCTS_EDIT)),
):
    """Remove an object; only paths inside the caller's tenant folder are accepted"""
    if target.bucket not in {config.bucket for config in UPLOAD_CATEGORIES.values()}:
        raise ValidationError("Unknown bucket")
    if not target.path.startswith(f"{context.tenant_id}/"):
        raise AuthorizationError("Object belongs to another store")
    async with StorageClient(get_settings()) as storage:
        await storage.delete_object(target.bucket, target.path)
