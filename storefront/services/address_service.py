import logging
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.cache.user import user_cache
from storefront.core.exceptions import BadRequestError, ConflictError, NotFoundError, ensure_owner
from storefront.core.text import slugify
from storefront.models.dto.address import AddressCreate, AddressUpdate
from storefront.models.orm.address import Address

logger = logging.getLogger(__name__)


async def list_addresses(db: AsyncSession, user_id: UUID) -> list[Address]:
    result = await db.execute(
        select(Address)
        .where(Address.user_id == user_id)
        .order_by(Address.is_primary.desc(), Address.created_at)
    )
    return list(result.scalars().all())


async def _alias_taken(
    db: AsyncSession,
    user_id: UUID,
    address_type: str,
    alias_slug: str,
    exclude_id: UUID | None = None,
) -> bool:
    stmt = select(Address.id).where(
        Address.user_id == user_id,
        Address.type == address_type,
        Address.alias_slug == alias_slug,
    )
    if exclude_id is not None:
        stmt = stmt.where(Address.id != exclude_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none() is not None


async def _demote_primary(db: AsyncSession, user_id: UUID) -> None:
    await db.execute(
        update(Address)
        .where(Address.user_id == user_id, Address.is_primary.is_(True))
        .values(is_primary=False)
    )


async def add_address(
    db: AsyncSession, caller_id: UUID, user_id: UUID, data: AddressCreate
) -> Address:
    ensure_owner(caller_id, user_id)

    alias_slug = slugify(data.alias)
    if await _alias_taken(db, user_id, data.type, alias_slug):
        raise ConflictError("Another address of this type with this alias exists")

    existing = await list_addresses(db, user_id)
    # The first address always becomes the primary one
    is_primary = data.is_primary or not existing

    if is_primary and any(a.is_primary for a in existing):
        await _demote_primary(db, user_id)

    address = Address(
        user_id=user_id,
        alias=data.alias,
        alias_slug=alias_slug,
        type=data.type,
        is_primary=is_primary,
        full_name=data.full_name,
        street=data.street,
        city=data.city,
        state=data.state,
        zip=data.zip,
        phone=data.phone,
    )
    db.add(address)
    await db.flush()
    await user_cache.remove(user_id)
    return address


async def update_address(
    db: AsyncSession,
    caller_id: UUID,
    user_id: UUID,
    address_id: UUID,
    data: AddressUpdate,
) -> Address:
    ensure_owner(caller_id, user_id)

    addresses = await list_addresses(db, user_id)
    address = next((a for a in addresses if a.id == address_id), None)
    if not address:
        raise NotFoundError("Address not found")

    if address.is_primary and not data.is_primary:
        raise BadRequestError("User must have at least one primary address")

    alias_slug = slugify(data.alias)
    if await _alias_taken(db, user_id, data.type, alias_slug, exclude_id=address_id):
        raise ConflictError("Another address of this type with this alias exists")

    if data.is_primary and not address.is_primary:
        await _demote_primary(db, user_id)

    address.alias = data.alias
    address.alias_slug = alias_slug
    address.type = data.type
    address.is_primary = data.is_primary
    address.full_name = data.full_name
    address.street = data.street
    address.city = data.city
    address.state = data.state
    address.zip = data.zip
    address.phone = data.phone

    await db.flush()
    await user_cache.remove(user_id)
    return address


async def delete_address(
    db: AsyncSession, caller_id: UUID, user_id: UUID, address_id: UUID
) -> None:
    ensure_owner(caller_id, user_id)

    addresses = await list_addresses(db, user_id)
    if len(addresses) <= 1:
        raise BadRequestError("User must have at least one address")

    address = next((a for a in addresses if a.id == address_id), None)
    if not address:
        raise NotFoundError("Address not found")
    if not any(a.is_primary for a in addresses):
        raise BadRequestError("User must have a primary address")
    if address.is_primary:
        raise BadRequestError("Primary address cannot be deleted")

    await db.delete(address)
    await db.flush()
    await user_cache.remove(user_id)
