import asyncio
import logging
import uuid
from pathlib import Path
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.cache.listing import media_cache
from storefront.core.config import settings
from storefront.core.exceptions import BadRequestError, NotFoundError
from storefront.core.file_validation import (
    ALLOWED_MEDIA_EXTENSIONS,
    ALLOWED_MEDIA_TYPES,
    validate_file_magic,
)
from storefront.models.dto.media import MediaItemResponse, MediaItemUpdate
from storefront.models.orm.media_item import BrandMediaItem

logger = logging.getLogger(__name__)

MEDIA_URL_PREFIX = "/uploads/media"


def media_dir(brand_id: UUID) -> Path:
    return settings.upload_dir / "media" / str(brand_id)


def validate_upload(filename: str, content_type: str | None, content: bytes) -> str:
    """Check an uploaded image and return its normalized extension."""
    if content_type not in ALLOWED_MEDIA_TYPES:
        raise BadRequestError("Invalid file type. Allowed: JPEG, PNG, WEBP, GIF")

    ext = Path(filename).suffix.lower()
    if ext not in ALLOWED_MEDIA_EXTENSIONS:
        raise BadRequestError(
            f"Invalid file extension. Allowed: {', '.join(sorted(ALLOWED_MEDIA_EXTENSIONS))}"
        )

    max_bytes = settings.max_media_size_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise BadRequestError(f"File too large. Maximum size is {settings.max_media_size_mb} MB")
    if not content:
        raise BadRequestError("File is empty")

    if not validate_file_magic(content, content_type):
        raise BadRequestError("File content does not match its type")
    return ext


async def list_media(db: AsyncSession, brand_id: UUID) -> list[MediaItemResponse]:
    cached = await media_cache.get(brand_id)
    if cached is not None:
        return cached

    result = await db.execute(
        select(BrandMediaItem)
        .where(BrandMediaItem.brand_id == brand_id)
        .order_by(BrandMediaItem.created_at.desc())
    )
    items = [MediaItemResponse.model_validate(m) for m in result.scalars().all()]
    await media_cache.set(brand_id, items)
    return items


async def upload_media(
    db: AsyncSession,
    brand_id: UUID,
    uploaded_by: UUID,
    *,
    filename: str,
    content_type: str | None,
    content: bytes,
    alt_text: str | None = None,
) -> BrandMediaItem:
    ext = validate_upload(filename, content_type, content)

    target_dir = media_dir(brand_id)
    target_dir.mkdir(parents=True, exist_ok=True)
    stored_name = f"{uuid.uuid4()}{ext}"
    file_path = target_dir / stored_name

    await asyncio.to_thread(file_path.write_bytes, content)

    item = BrandMediaItem(
        brand_id=brand_id,
        name=Path(filename).stem[:255] or stored_name,
        alt_text=alt_text,
        url=f"{MEDIA_URL_PREFIX}/{brand_id}/{stored_name}",
        file_path=str(file_path),
        content_type=content_type,
        size=len(content),
        uploaded_by=uploaded_by,
    )
    db.add(item)
    await db.flush()
    await media_cache.invalidate(brand_id)
    return item


async def _get_owned(db: AsyncSession, brand_id: UUID, media_id: UUID) -> BrandMediaItem:
    item = await db.get(BrandMediaItem, media_id)
    if not item or item.brand_id != brand_id:
        raise NotFoundError("Media item not found")
    return item


async def update_media(
    db: AsyncSession, brand_id: UUID, media_id: UUID, data: MediaItemUpdate
) -> BrandMediaItem:
    item = await _get_owned(db, brand_id, media_id)
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise BadRequestError("No changes were made to the media item")
    for field, value in changes.items():
        setattr(item, field, value)
    await db.flush()
    await media_cache.invalidate(brand_id)
    return item


def _unlink(path: str) -> None:
    try:
        Path(path).unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove media file %s", path)


async def delete_media(db: AsyncSession, brand_id: UUID, ids: list[UUID]) -> int:
    result = await db.execute(
        select(BrandMediaItem).where(
            BrandMediaItem.brand_id == brand_id, BrandMediaItem.id.in_(ids)
        )
    )
    items = list(result.scalars().all())
    if not items:
        raise NotFoundError("Media item not found")

    for item in items:
        await db.delete(item)
    await db.flush()

    for item in items:
        await asyncio.to_thread(_unlink, item.file_path)
    await media_cache.invalidate(brand_id)
    return len(items)
