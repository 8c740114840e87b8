import hmac
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies.database import get_db
from storefront.core.config import settings
from storefront.core.exceptions import ForbiddenError, UnauthorizedError
from storefront.core.security import verify_access_token
from storefront.models.orm.user import User
from storefront.repositories import user_repo

security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    if not credentials:
        raise UnauthorizedError("Missing authentication token")

    payload = verify_access_token(credentials.credentials)
    if not payload:
        raise UnauthorizedError("Invalid or expired token")

    try:
        user_id = UUID(payload["sub"])
    except (KeyError, ValueError):
        raise UnauthorizedError("Invalid or expired token") from None

    user = await user_repo.get_by_id(db, user_id)
    if not user or not user.is_active:
        raise UnauthorizedError("User not found or inactive")

    request.state.user = user
    return user


async def require_admin(
    user: User = Depends(get_current_user),
) -> User:
    if user.role != "admin":
        raise ForbiddenError("Admin access required")
    return user


async def require_brand_member(
    user: User = Depends(get_current_user),
) -> User:
    """Dashboard access for brand staff. Their brand scopes every query."""
    if user.role != "brand" or user.brand_id is None:
        raise ForbiddenError("Brand access required")
    return user


async def require_dashboard_user(
    user: User = Depends(get_current_user),
) -> User:
    if user.role == "admin" or (user.role == "brand" and user.brand_id is not None):
        return user
    raise ForbiddenError("Dashboard access required")


async def verify_cron_secret(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> None:
    if not credentials or not hmac.compare_digest(
        credentials.credentials.encode(), settings.cron_secret.encode()
    ):
        raise UnauthorizedError("Invalid cron secret")
