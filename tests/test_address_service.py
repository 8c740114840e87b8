"""Tests for address book rules: aliases, the primary address and deletion guards."""
import uuid
from unittest.mock import AsyncMock, patch

import pytest

from storefront.core.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from storefront.models.dto.address import AddressCreate, AddressUpdate
from storefront.services.address_service import add_address, delete_address, update_address
from tests.conftest import result_of
from tests.factories import make_address

ADDRESS = {
    "alias": "Office",
    "type": "work",
    "full_name": "Test User",
    "street": "4 Residency Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "zip": "560025",
    "phone": "+919876543210",
}


@pytest.fixture(autouse=True)
def user_cache():
    with patch("storefront.services.address_service.user_cache") as cache:
        cache.remove = AsyncMock()
        yield cache


class TestAddAddress:
    async def test_first_address_becomes_primary(self, mock_db, user_cache):
        user_id = uuid.uuid4()
        mock_db.execute.side_effect = [result_of(scalar=None), result_of(scalars=[])]

        address = await add_address(mock_db, user_id, user_id, AddressCreate(**ADDRESS))
        assert address.is_primary is True
        assert address.alias_slug == "office"
        user_cache.remove.assert_awaited_once_with(user_id)

    async def test_new_primary_demotes_old_one(self, mock_db, user_cache):
        user_id = uuid.uuid4()
        existing = make_address(user_id=user_id)
        mock_db.execute.side_effect = [
            result_of(scalar=None),
            result_of(scalars=[existing]),
            result_of(),
        ]

        address = await add_address(
            mock_db, user_id, user_id, AddressCreate(**ADDRESS, is_primary=True)
        )
        assert address.is_primary is True
        assert mock_db.execute.await_count == 3

    async def test_secondary_address_keeps_primary(self, mock_db, user_cache):
        user_id = uuid.uuid4()
        existing = make_address(user_id=user_id)
        mock_db.execute.side_effect = [result_of(scalar=None), result_of(scalars=[existing])]

        address = await add_address(mock_db, user_id, user_id, AddressCreate(**ADDRESS))
        assert address.is_primary is False

    async def test_alias_clash_is_conflict(self, mock_db, user_cache):
        user_id = uuid.uuid4()
        mock_db.execute.return_value = result_of(scalar=uuid.uuid4())

        with pytest.raises(ConflictError, match="alias"):
            await add_address(mock_db, user_id, user_id, AddressCreate(**ADDRESS))

    async def test_other_user(self, mock_db, user_cache):
        with pytest.raises(ForbiddenError):
            await add_address(mock_db, uuid.uuid4(), uuid.uuid4(), AddressCreate(**ADDRESS))


class TestUpdateAddress:
    async def test_primary_cannot_be_unset(self, mock_db, user_cache):
        user_id = uuid.uuid4()
        primary = make_address(user_id=user_id)
        mock_db.execute.return_value = result_of(scalars=[primary])

        with pytest.raises(BadRequestError, match="at least one primary"):
            await update_address(
                mock_db, user_id, user_id, primary.id, AddressUpdate(**ADDRESS, is_primary=False)
            )

    async def test_updates_fields(self, mock_db, user_cache):
        user_id = uuid.uuid4()
        secondary = make_address(user_id=user_id, alias="Parents", is_primary=False)
        mock_db.execute.side_effect = [result_of(scalars=[secondary]), result_of(scalar=None)]

        updated = await update_address(
            mock_db, user_id, user_id, secondary.id, AddressUpdate(**ADDRESS)
        )
        assert updated.alias == "Office"
        assert updated.type == "work"
        assert updated.city == "Bengaluru"

    async def test_unknown_address(self, mock_db, user_cache):
        user_id = uuid.uuid4()
        mock_db.execute.return_value = result_of(scalars=[make_address(user_id=user_id)])

        with pytest.raises(NotFoundError):
            await update_address(mock_db, user_id, user_id, uuid.uuid4(), AddressUpdate(**ADDRESS))


class TestDeleteAddress:
    async def test_last_address_cannot_be_deleted(self, mock_db, user_cache):
        user_id = uuid.uuid4()
        only = make_address(user_id=user_id)
        mock_db.execute.return_value = result_of(scalars=[only])

        with pytest.raises(BadRequestError, match="at least one address"):
            await delete_address(mock_db, user_id, user_id, only.id)

    async def test_primary_cannot_be_deleted(self, mock_db, user_cache):
        user_id = uuid.uuid4()
        primary = make_address(user_id=user_id)
        other = make_address(user_id=user_id, alias="Work", is_primary=False)
        mock_db.execute.return_value = result_of(scalars=[primary, other])

        with pytest.raises(BadRequestError, match="Primary address"):
            await delete_address(mock_db, user_id, user_id, primary.id)

    async def test_deletes_secondary(self, mock_db, user_cache):
        user_id = uuid.uuid4()
        primary = make_address(user_id=user_id)
        other = make_address(user_id=user_id, alias="Work", is_primary=False)
        mock_db.execute.return_value = result_of(scalars=[primary, other])

        await delete_address(mock_db, user_id, user_id, other.id)
        mock_db.delete.assert_awaited_once_with(other)
        user_cache.remove.assert_awaited_once_with(user_id)
