"""Tests for storefront section curation."""
import uuid
from unittest.mock import AsyncMock, patch

import pytest

from storefront.core.exceptions import ConflictError, NotFoundError
from storefront.models.orm.featured import WomenFeaturedProduct
from storefront.services.featured_service import FEATURED_SECTIONS, list_featured, toggle_featured
from tests.conftest import result_of
from tests.factories import make_product


@pytest.fixture(autouse=True)
def featured_cache():
    with patch("storefront.services.featured_service.featured_cache") as cache:
        cache.get = AsyncMock(return_value=None)
        cache.set = AsyncMock()
        cache.invalidate = AsyncMock()
        yield cache


def test_every_section_maps_to_a_product_flag():
    from storefront.models.orm.product import Product

    for section, (model, flag) in FEATURED_SECTIONS.items():
        assert hasattr(Product, flag), section
        assert model.__tablename__.startswith("featured_")


class TestToggleFeatured:
    async def test_adds_new_row_and_sets_flag(self, mock_db, featured_cache):
        product = make_product()
        mock_db.get.return_value = product
        mock_db.execute.return_value = result_of(scalar=None)

        assert await toggle_featured(mock_db, "women", product.id, False) is True
        added = mock_db.add.call_args[0][0]
        assert isinstance(added, WomenFeaturedProduct)
        assert product.is_featured_women is True
        featured_cache.invalidate.assert_awaited_once_with("women")

    async def test_restores_soft_deleted_row(self, mock_db, featured_cache):
        product = make_product()
        row = WomenFeaturedProduct(product_id=product.id, is_deleted=True)
        mock_db.get.return_value = product
        mock_db.execute.return_value = result_of(scalar=row)

        assert await toggle_featured(mock_db, "women", product.id, False) is True
        assert row.is_deleted is False
        assert row.deleted_at is None
        mock_db.add.assert_not_called()

    async def test_removal_soft_deletes_and_clears_flag(self, mock_db, featured_cache):
        product = make_product()
        product.is_featured_women = True
        row = WomenFeaturedProduct(product_id=product.id, is_deleted=False)
        mock_db.get.return_value = product
        mock_db.execute.return_value = result_of(scalar=row)

        assert await toggle_featured(mock_db, "women", product.id, True) is False
        assert row.is_deleted is True
        assert row.deleted_at is not None
        assert product.is_featured_women is False

    async def test_already_featured_is_conflict(self, mock_db, featured_cache):
        product = make_product()
        mock_db.get.return_value = product
        mock_db.execute.return_value = result_of(
            scalar=WomenFeaturedProduct(product_id=product.id, is_deleted=False)
        )

        with pytest.raises(ConflictError):
            await toggle_featured(mock_db, "women", product.id, False)

    async def test_removing_unfeatured_product(self, mock_db, featured_cache):
        product = make_product()
        mock_db.get.return_value = product
        mock_db.execute.return_value = result_of(scalar=None)

        with pytest.raises(NotFoundError, match="Featured product not found"):
            await toggle_featured(mock_db, "women", product.id, True)

    async def test_unknown_section(self, mock_db, featured_cache):
        with pytest.raises(NotFoundError, match="Unknown section"):
            await toggle_featured(mock_db, "pets", uuid.uuid4(), False)


class TestListFeatured:
    async def test_served_from_cache(self, mock_db, featured_cache):
        featured_cache.get.return_value = []
        assert await list_featured(mock_db, "men") == []
        mock_db.execute.assert_not_awaited()

    async def test_cache_miss_loads_and_stores(self, mock_db, featured_cache):
        product = make_product()
        mock_db.execute.return_value = result_of(scalars=[product])

        items = await list_featured(mock_db, "men")
        assert [i.id for i in items] == [product.id]
        featured_cache.set.assert_awaited_once()
