from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies.auth import require_brand_member
from storefront.api.dependencies.database import get_db
from storefront.audit.service import audit_context, write_audit_log
from storefront.models.dto.common import CountResponse
from storefront.models.dto.media import MediaBulkDelete, MediaItemResponse, MediaItemUpdate
from storefront.models.orm.user import User
from storefront.services import media_service

router = APIRouter(prefix="/media", tags=["admin-media"])


@router.get("", response_model=list[MediaItemResponse])
async def list_media(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_brand_member),
):
    return await media_service.list_media(db, user.brand_id)


@router.post("", response_model=MediaItemResponse, status_code=201)
async def upload_media(
    request: Request,
    file: UploadFile = File(...),
    alt_text: str | None = Form(None, max_length=255),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_brand_member),
):
    content = await file.read()
    item = await media_service.upload_media(
        db, user.brand_id, user.id,
        filename=file.filename or "upload",
        content_type=file.content_type,
        content=content,
        alt_text=alt_text,
    )
    ip, ua = audit_context(request)
    await write_audit_log(
        db, user_id=user.id, action="media.uploaded",
        resource_type="media", resource_id=item.id,
        details={"filename": file.filename, "size": item.size, "content_type": item.content_type},
        ip_address=ip, user_agent=ua,
    )
    return item


@router.patch("/{media_id}", response_model=MediaItemResponse)
async def update_media(
    media_id: UUID,
    body: MediaItemUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_brand_member),
):
    return await media_service.update_media(db, user.brand_id, media_id, body)


@router.post("/delete", response_model=CountResponse)
async def delete_media(
    body: MediaBulkDelete,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_brand_member),
):
    count = await media_service.delete_media(db, user.brand_id, body.ids)
    ip, ua = audit_context(request)
    await write_audit_log(
        db, user_id=user.id, action="media.deleted",
        resource_type="media",
        details={"ids": [str(i) for i in body.ids], "deleted": count},
        ip_address=ip, user_agent=ua,
    )
    return {"count": count}
