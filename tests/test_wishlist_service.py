"""Tests for the wishlist service and moving lines between wishlist and cart."""
import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from storefront.cache.cart import build_cart_item
from storefront.cache.wishlist import build_wishlist_item
from storefront.core.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from storefront.models.orm.wishlist_item import WishlistItem
from storefront.services.cart_service import move_to_wishlist
from storefront.services.wishlist_service import add_to_wishlist, move_to_cart, remove_from_wishlist
from tests.factories import NOW, make_cart_item, make_product, make_user


def _cache_double():
    cache = MagicMock()
    cache.get = AsyncMock(return_value=[])
    cache.get_product = AsyncMock(return_value=None)
    cache.remove = AsyncMock()
    cache.drop = AsyncMock()
    return cache


@pytest.fixture
def caches():
    wishlist, cart = _cache_double(), _cache_double()
    with patch("storefront.services.wishlist_service.wishlist_cache", wishlist), \
         patch("storefront.services.wishlist_service.cart_cache", cart), \
         patch("storefront.services.cart_service.wishlist_cache", wishlist), \
         patch("storefront.services.cart_service.cart_cache", cart):
        yield wishlist, cart


def _wishlisted(user_id, product):
    item = WishlistItem(id=uuid.uuid4(), user_id=user_id, product_id=product.id, created_at=NOW)
    return build_wishlist_item(item, product)


class TestAddToWishlist:
    async def test_adds_product(self, mock_db, caches):
        user = make_user()
        product = make_product()
        mock_db.get.return_value = product

        await add_to_wishlist(mock_db, user, user.id, product.id)
        added = mock_db.add.call_args[0][0]
        assert added.product_id == product.id
        assert added.user_id == user.id

    async def test_duplicate_is_conflict(self, mock_db, caches):
        wishlist, _ = caches
        user = make_user()
        product = make_product()
        wishlist.get_product.return_value = _wishlisted(user.id, product)

        with pytest.raises(ConflictError):
            await add_to_wishlist(mock_db, user, user.id, product.id)

    async def test_only_customers_keep_wishlists(self, mock_db, caches):
        user = make_user(role="brand", brand_id=uuid.uuid4())
        with pytest.raises(ForbiddenError, match="Only customers"):
            await add_to_wishlist(mock_db, user, user.id, uuid.uuid4())

    async def test_unpurchasable_product_is_not_found(self, mock_db, caches):
        user = make_user()
        mock_db.get.return_value = make_product(verification_status="pending")
        with pytest.raises(NotFoundError):
            await add_to_wishlist(mock_db, user, user.id, uuid.uuid4())


class TestRemoveFromWishlist:
    async def test_removes_and_invalidates(self, mock_db, caches):
        wishlist, _ = caches
        user_id = uuid.uuid4()
        product = make_product()
        wishlist.get_product.return_value = _wishlisted(user_id, product)

        await remove_from_wishlist(mock_db, user_id, user_id, product.id)
        wishlist.remove.assert_awaited_once_with(user_id, product.id)

    async def test_missing(self, mock_db, caches):
        user_id = uuid.uuid4()
        with pytest.raises(NotFoundError):
            await remove_from_wishlist(mock_db, user_id, user_id, uuid.uuid4())


class TestMoveToCart:
    async def test_new_cart_line(self, mock_db, caches):
        wishlist, cart = caches
        user_id = uuid.uuid4()
        product = make_product(quantity=4)
        mock_db.get.return_value = product
        wishlist.get_product.return_value = _wishlisted(user_id, product)

        assert await move_to_cart(mock_db, user_id, user_id, product.id, quantity=2) == "add"
        wishlist.remove.assert_awaited_once_with(user_id, product.id)
        cart.remove.assert_awaited_once_with(user_id, product.id, None, None)

    async def test_existing_cart_line_is_incremented(self, mock_db, caches):
        wishlist, cart = caches
        user_id = uuid.uuid4()
        product = make_product(quantity=4)
        mock_db.get.return_value = product
        wishlist.get_product.return_value = _wishlisted(user_id, product)
        cart.get_product.return_value = build_cart_item(
            make_cart_item(user_id=user_id, product_id=product.id, quantity=1), product, None
        )

        assert await move_to_cart(mock_db, user_id, user_id, product.id) == "update"
        mock_db.add.assert_not_called()

    async def test_stock_is_checked(self, mock_db, caches):
        wishlist, _ = caches
        user_id = uuid.uuid4()
        product = make_product(quantity=1)
        mock_db.get.return_value = product
        wishlist.get_product.return_value = _wishlisted(user_id, product)

        with pytest.raises(BadRequestError, match="Not enough stock"):
            await move_to_cart(mock_db, user_id, user_id, product.id, quantity=2)

    async def test_not_in_wishlist(self, mock_db, caches):
        user_id = uuid.uuid4()
        with pytest.raises(NotFoundError, match="not in your wishlist"):
            await move_to_cart(mock_db, user_id, user_id, uuid.uuid4())


class TestMoveToWishlist:
    async def test_moves_line(self, mock_db, caches):
        wishlist, cart = caches
        user_id = uuid.uuid4()
        product = make_product()
        mock_db.get.return_value = product
        cart.get_product.return_value = build_cart_item(
            make_cart_item(user_id=user_id, product_id=product.id), product, None
        )

        await move_to_wishlist(mock_db, user_id, user_id, product.id)
        assert isinstance(mock_db.add.call_args[0][0], WishlistItem)
        cart.remove.assert_awaited_once()
        wishlist.remove.assert_awaited_once_with(user_id, product.id)

    async def test_already_wishlisted(self, mock_db, caches):
        wishlist, cart = caches
        user_id = uuid.uuid4()
        product = make_product()
        cart.get_product.return_value = build_cart_item(
            make_cart_item(user_id=user_id, product_id=product.id), product, None
        )
        wishlist.get_product.return_value = _wishlisted(user_id, product)

        with pytest.raises(BadRequestError, match="already in your wishlist"):
            await move_to_wishlist(mock_db, user_id, user_id, product.id)
