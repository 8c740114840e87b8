import logging
from uuid import UUID

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.middleware.request_id import current_request_id
from storefront.audit.models import AuditLog

logger = logging.getLogger(__name__)


def audit_context(request: Request) -> tuple[str | None, str | None]:
    """Extract client IP (proxy-aware) and User-Agent from a request.

    Returns (ip_address, user_agent).
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        ip = forwarded_for.split(",")[0].strip()
    elif request.client:
        ip = request.client.host
    else:
        ip = None

    user_agent = request.headers.get("user-agent")
    return ip, user_agent


async def write_audit_log(
    db: AsyncSession,
    *,
    user_id: UUID | None,
    action: str,
    resource_type: str,
    resource_id: UUID | str | None = None,
    details: dict | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    correlation_id: str | None = None,
) -> None:
    entry = AuditLog(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        details=details,
        ip_address=ip_address,
        user_agent=user_agent,
        correlation_id=correlation_id or current_request_id(),
    )
    db.add(entry)
