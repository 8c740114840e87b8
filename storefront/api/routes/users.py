from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies.auth import get_current_user
from storefront.api.dependencies.database import get_db
from storefront.audit.service import audit_context, write_audit_log
from storefront.core.exceptions import ensure_owner
from storefront.models.dto.address import AddressCreate, AddressResponse, AddressUpdate
from storefront.models.dto.user import UserProfile
from storefront.models.orm.user import User
from storefront.services import address_service, user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserProfile)
async def get_current_user_profile(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await user_service.get_profile(db, user.id)


@router.get("/{user_id}/addresses", response_model=list[AddressResponse])
async def list_addresses(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    ensure_owner(user.id, user_id)
    profile = await user_service.get_profile(db, user_id)
    return profile.addresses


@router.post("/{user_id}/addresses", response_model=AddressResponse, status_code=201)
async def add_address(
    user_id: UUID,
    body: AddressCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    address = await address_service.add_address(db, user.id, user_id, body)
    ip, ua = audit_context(request)
    await write_audit_log(
        db, user_id=user.id, action="address.created",
        resource_type="address", resource_id=address.id,
        details={"type": address.type, "alias": address.alias, "is_primary": address.is_primary},
        ip_address=ip, user_agent=ua,
    )
    return address


@router.put("/{user_id}/addresses/{address_id}", response_model=AddressResponse)
async def update_address(
    user_id: UUID,
    address_id: UUID,
    body: AddressUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    address = await address_service.update_address(db, user.id, user_id, address_id, body)
    ip, ua = audit_context(request)
    await write_audit_log(
        db, user_id=user.id, action="address.updated",
        resource_type="address", resource_id=address.id,
        details={"type": address.type, "alias": address.alias, "is_primary": address.is_primary},
        ip_address=ip, user_agent=ua,
    )
    return address


@router.delete("/{user_id}/addresses/{address_id}", status_code=204)
async def delete_address(
    user_id: UUID,
    address_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await address_service.delete_address(db, user.id, user_id, address_id)
    ip, ua = audit_context(request)
    await write_audit_log(
        db, user_id=user.id, action="address.deleted",
        resource_type="address", resource_id=address_id,
        ip_address=ip, user_agent=ua,
    )
