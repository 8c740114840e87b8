from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies.auth import require_admin
from storefront.api.dependencies.database import get_db
from storefront.core.exceptions import BadRequestError
from storefront.models.dto.user import UserListResponse
from storefront.models.orm.user import USER_ROLES, User
from storefront.services import user_service

router = APIRouter(prefix="/users", tags=["admin-users"])


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    q: str | None = Query(None, max_length=200),
    role: str | None = Query(None),
    brand: UUID | None = None,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    if role and role not in USER_ROLES:
        raise BadRequestError(f"Invalid role. Must be one of: {', '.join(USER_ROLES)}")
    users, total = await user_service.list_users(
        db, page=page, per_page=per_page, q=q, role=role, brand_id=brand
    )
    return {"items": users, "total": total, "page": page, "per_page": per_page}
