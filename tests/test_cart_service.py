"""Tests for the cart service: stock checks, ownership and cache upkeep."""
import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from storefront.cache.cart import build_cart_item
from storefront.core.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from storefront.models.dto.cart import CartItemAdd, CartItemRef
from storefront.services.cart_service import (
    add_to_cart,
    get_cart,
    merge_guest_cart,
    remove_from_cart,
    remove_items,
    update_quantity,
    update_status,
)
from tests.conftest import result_of
from tests.factories import make_cart_item, make_product, make_variant


@pytest.fixture
def cart_cache():
    cache = MagicMock()
    cache.get = AsyncMock(return_value=[])
    cache.get_product = AsyncMock(return_value=None)
    cache.remove = AsyncMock()
    cache.drop = AsyncMock()
    with patch("storefront.services.cart_service.cart_cache", cache):
        yield cache


def _cached(user_id, product, *, quantity=1, status=True, variant=None):
    item = make_cart_item(
        user_id=user_id, product_id=product.id, quantity=quantity, status=status,
        size=variant.size if variant else None, color=variant.color if variant else None,
    )
    return build_cart_item(item, product, variant)


class TestGetCart:
    async def test_totals_only_count_active_lines(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        shirt = make_product(price=100000)
        scarf = make_product(title="Silk Scarf", price=50000)
        cart_cache.get.return_value = [
            _cached(user_id, shirt, quantity=2),
            _cached(user_id, scarf, quantity=1, status=False),
        ]

        cart = await get_cart(mock_db, user_id, user_id)
        assert len(cart["items"]) == 2
        assert cart["total_items"] == 2
        assert cart["total_amount"] == 200000

    async def test_variant_price_wins_over_product_price(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        product = make_product(price=100000, has_variants=True)
        variant = make_variant(product=product, price=120000)
        cart_cache.get.return_value = [_cached(user_id, product, variant=variant)]

        cart = await get_cart(mock_db, user_id, user_id)
        assert cart["total_amount"] == 120000

    async def test_other_users_cart_is_forbidden(self, mock_db, cart_cache):
        with pytest.raises(ForbiddenError):
            await get_cart(mock_db, uuid.uuid4(), uuid.uuid4())
        cart_cache.get.assert_not_awaited()


class TestAddToCart:
    async def test_new_line_is_inserted(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        product = make_product(quantity=5)
        mock_db.get.return_value = product

        outcome = await add_to_cart(mock_db, user_id, user_id, product.id, quantity=2)
        assert outcome == "add"
        added = mock_db.add.call_args[0][0]
        assert added.quantity == 2
        assert added.status is True
        mock_db.flush.assert_awaited()

    async def test_existing_line_is_incremented(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        product = make_product(quantity=5)
        mock_db.get.return_value = product
        cart_cache.get_product.return_value = _cached(user_id, product, quantity=2)

        outcome = await add_to_cart(mock_db, user_id, user_id, product.id, quantity=3)
        assert outcome == "update"
        mock_db.add.assert_not_called()
        cart_cache.remove.assert_awaited_once_with(user_id, product.id, None, None)

    async def test_increment_beyond_stock_is_rejected(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        product = make_product(quantity=5)
        mock_db.get.return_value = product
        cart_cache.get_product.return_value = _cached(user_id, product, quantity=4)

        with pytest.raises(BadRequestError, match="Not enough stock"):
            await add_to_cart(mock_db, user_id, user_id, product.id, quantity=2)

    async def test_quantity_equal_to_stock_is_accepted(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        product = make_product(quantity=3)
        mock_db.get.return_value = product

        assert await add_to_cart(mock_db, user_id, user_id, product.id, quantity=3) == "add"

    async def test_variant_stock_is_checked(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        product = make_product(has_variants=True, quantity=None)
        variant = make_variant(product=product, quantity=1)
        mock_db.get.return_value = product
        mock_db.execute.return_value = result_of(scalar=variant)

        with pytest.raises(BadRequestError, match="Not enough stock"):
            await add_to_cart(
                mock_db, user_id, user_id, product.id, size="M", color="Blue", quantity=2
            )

    async def test_variant_product_requires_selection(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        product = make_product(has_variants=True)
        mock_db.get.return_value = product

        with pytest.raises(BadRequestError, match="select a size or color"):
            await add_to_cart(mock_db, user_id, user_id, product.id)

    async def test_unknown_variant(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        product = make_product(has_variants=True)
        mock_db.get.return_value = product
        mock_db.execute.return_value = result_of(scalar=None)

        with pytest.raises(NotFoundError, match="Variant not found"):
            await add_to_cart(mock_db, user_id, user_id, product.id, size="XXL")

    async def test_unpublished_product_is_rejected(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        product = make_product(is_published=False)
        mock_db.get.return_value = product

        with pytest.raises(BadRequestError, match="not available"):
            await add_to_cart(mock_db, user_id, user_id, product.id)

    async def test_missing_product(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        with pytest.raises(NotFoundError):
            await add_to_cart(mock_db, user_id, user_id, uuid.uuid4())

    async def test_zero_quantity(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        with pytest.raises(BadRequestError, match="greater than zero"):
            await add_to_cart(mock_db, user_id, user_id, uuid.uuid4(), quantity=0)

    async def test_concurrent_insert_maps_to_conflict(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        product = make_product()
        mock_db.get.return_value = product
        mock_db.flush.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

        with pytest.raises(ConflictError):
            await add_to_cart(mock_db, user_id, user_id, product.id)


class TestUpdateQuantity:
    async def test_same_quantity_is_a_no_op_error(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        product = make_product()
        cart_cache.get_product.return_value = _cached(user_id, product, quantity=2)

        with pytest.raises(BadRequestError, match="No changes"):
            await update_quantity(mock_db, user_id, user_id, product.id, quantity=2)

    async def test_updates_and_invalidates(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        product = make_product(quantity=10)
        mock_db.get.return_value = product
        cart_cache.get_product.return_value = _cached(user_id, product, quantity=2)

        updated = await update_quantity(mock_db, user_id, user_id, product.id, quantity=4)
        assert updated.quantity == 4
        cart_cache.remove.assert_awaited_once()

    async def test_missing_line(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        with pytest.raises(NotFoundError, match="not in your cart"):
            await update_quantity(mock_db, user_id, user_id, uuid.uuid4(), quantity=1)


class TestUpdateStatus:
    async def test_bulk_status_returns_rowcount(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        mock_db.execute.return_value = result_of(rowcount=3)

        assert await update_status(mock_db, user_id, user_id, False) == 3
        cart_cache.drop.assert_awaited_once_with(user_id)

    async def test_single_line_must_exist(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        with pytest.raises(NotFoundError):
            await update_status(mock_db, user_id, user_id, True, product_id=uuid.uuid4())

    async def test_single_line_toggle(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        product = make_product()
        cart_cache.get_product.return_value = _cached(user_id, product)
        mock_db.execute.return_value = result_of(rowcount=1)

        assert await update_status(mock_db, user_id, user_id, False, product_id=product.id) == 1
        cart_cache.drop.assert_awaited_once_with(user_id)

    async def test_unpublished_product_cannot_be_toggled(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        product = make_product(is_published=False)
        cart_cache.get_product.return_value = _cached(user_id, product)

        with pytest.raises(BadRequestError, match="not available"):
            await update_status(mock_db, user_id, user_id, True, product_id=product.id)
        mock_db.execute.assert_not_awaited()

    async def test_deleted_variant_cannot_be_toggled(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        product = make_product(has_variants=True)
        item = make_cart_item(user_id=user_id, product_id=product.id, size="M", color="Blue")
        # The cart join finds no live variant for the selection
        cart_cache.get_product.return_value = build_cart_item(item, product, None)

        with pytest.raises(BadRequestError, match="not available"):
            await update_status(
                mock_db, user_id, user_id, True, product_id=product.id, size="M", color="Blue",
            )
        cart_cache.drop.assert_not_awaited()


class TestRemoval:
    async def test_remove_single_line(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        product = make_product()
        cart_cache.get_product.return_value = _cached(user_id, product)

        await remove_from_cart(mock_db, user_id, user_id, product.id)
        mock_db.execute.assert_awaited_once()
        cart_cache.remove.assert_awaited_once_with(user_id, product.id, None, None)

    async def test_remove_items_counts_matches(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        shirt, scarf = make_product(), make_product(title="Silk Scarf")
        cart_cache.get.return_value = [_cached(user_id, shirt), _cached(user_id, scarf)]

        count = await remove_items(mock_db, user_id, user_id, [
            CartItemRef(product_id=shirt.id),
            CartItemRef(product_id=uuid.uuid4()),
        ])
        assert count == 1
        cart_cache.drop.assert_awaited_once_with(user_id)

    async def test_remove_items_without_matches(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        with pytest.raises(NotFoundError, match="not in your cart"):
            await remove_items(mock_db, user_id, user_id, [CartItemRef(product_id=uuid.uuid4())])


class TestMergeGuestCart:
    async def test_skips_unsellable_lines(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        sellable = make_product()
        hidden = make_product(is_published=False)
        products = {sellable.id: sellable, hidden.id: hidden}
        mock_db.get.side_effect = lambda model, pid, **kw: products.get(pid)

        merged = await merge_guest_cart(mock_db, user_id, user_id, [
            CartItemAdd(product_id=sellable.id, quantity=2),
            CartItemAdd(product_id=hidden.id),
            CartItemAdd(product_id=uuid.uuid4()),
        ])
        assert merged == 1
        assert mock_db.add.call_count == 1
        cart_cache.drop.assert_awaited_once_with(user_id)

    async def test_existing_line_is_summed(self, mock_db, cart_cache):
        user_id = uuid.uuid4()
        product = make_product()
        mock_db.get.return_value = product
        cart_cache.get_product.return_value = _cached(user_id, product, quantity=1)

        merged = await merge_guest_cart(
            mock_db, user_id, user_id, [CartItemAdd(product_id=product.id, quantity=2)]
        )
        assert merged == 1
        mock_db.add.assert_not_called()
        mock_db.execute.assert_awaited()

    async def test_merge_into_other_users_cart_is_forbidden(self, mock_db, cart_cache):
        with pytest.raises(ForbiddenError):
            await merge_guest_cart(mock_db, uuid.uuid4(), uuid.uuid4(), [])
