from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class MediaItemResponse(BaseModel):
    id: UUID
    brand_id: UUID
    name: str
    alt_text: str | None = None
    url: str
    content_type: str
    size: int
    uploaded_by: UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class MediaItemUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    alt_text: str | None = Field(default=None, max_length=255)


class MediaBulkDelete(BaseModel):
    ids: list[UUID] = Field(min_length=1, max_length=100)
