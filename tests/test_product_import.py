"""Tests for the brand CSV product import."""
import uuid

import pytest

from storefront.core.exceptions import BadRequestError
from storefront.models.dto.product import ProductCreate
from storefront.services.product_import import (
    MAX_IMPORT_PRODUCTS,
    bulk_create_products,
    parse_product_csv,
)
from tests.conftest import result_of

HEADER = (
    "Product Title,Product Description (HTML),Category,Has Variants,"
    "Option1 Name,Option1 Value,Option2 Name,Option2 Value,SKU,"
    "Price (in Paise),Compare At Price (in Paise),Quantity\n"
)


def _csv(*rows: str) -> str:
    return HEADER + "\n".join(rows) + "\n"


class TestParseProductCsv:
    def test_simple_product(self):
        batch = parse_product_csv(_csv(
            "Linen Shirt,<p>Breathable</p>,Shirts,false,,,,,LS-01,149900,199900,12",
        ))
        assert len(batch) == 1
        product = batch[0]
        assert product.title == "Linen Shirt"
        assert product.has_variants is False
        assert product.price == 149900
        assert product.compare_at_price == 199900
        assert product.quantity == 12
        assert product.sku == "LS-01"
        assert product.category == "Shirts"
        assert product.variants == []

    def test_variant_rows_are_grouped_by_title(self):
        batch = parse_product_csv(_csv(
            "Denim Jacket,,Jackets,TRUE,Size,M,Colour,Indigo,DJ-M,349900,,4",
            "Denim Jacket,,Jackets,TRUE,Size,L,Colour,Indigo,DJ-L,359900,,0",
        ))
        assert len(batch) == 1
        jacket = batch[0]
        assert jacket.has_variants is True
        assert jacket.price is None
        assert [(v.size, v.color, v.price, v.quantity) for v in jacket.variants] == [
            ("M", "Indigo", 349900, 4),
            ("L", "Indigo", 359900, 0),
        ]

    def test_byte_order_mark_is_ignored(self):
        batch = parse_product_csv("﻿" + _csv("Linen Shirt,,,false,,,,,,149900,,1"))
        assert batch[0].title == "Linen Shirt"

    def test_missing_required_columns(self):
        with pytest.raises(BadRequestError, match="Missing columns: Has Variants"):
            parse_product_csv("Product Title,Price (in Paise)\nShirt,100\n")

    def test_non_integer_price_names_the_row(self):
        with pytest.raises(BadRequestError, match="Row 3: 'Price \\(in Paise\\)'"):
            parse_product_csv(_csv(
                "Linen Shirt,,,false,,,,,,149900,,1",
                "Silk Scarf,,,false,,,,,,12.50,,1",
            ))

    def test_simple_product_without_price(self):
        with pytest.raises(BadRequestError, match="Row 2: .*Price is required"):
            parse_product_csv(_csv("Linen Shirt,,,false,,,,,,,,1"))

    def test_variant_without_price(self):
        with pytest.raises(BadRequestError, match="Row 2: price"):
            parse_product_csv(_csv("Denim Jacket,,,true,Size,M,,,,,,4"))

    def test_negative_quantity(self):
        with pytest.raises(BadRequestError, match="Row 2"):
            parse_product_csv(_csv("Linen Shirt,,,false,,,,,,100,,-1"))

    def test_empty_file(self):
        with pytest.raises(BadRequestError, match="does not contain any products"):
            parse_product_csv(HEADER)

    def test_product_limit(self):
        rows = [f"Product {i},,,false,,,,,,100,,1" for i in range(MAX_IMPORT_PRODUCTS + 1)]
        with pytest.raises(BadRequestError, match="limited to"):
            parse_product_csv(_csv(*rows))


class TestBulkCreateProducts:
    async def test_creates_pending_unpublished_products(self, mock_db):
        brand_id = uuid.uuid4()
        category_id = uuid.uuid4()
        mock_db.execute.return_value = result_of(rows=[(category_id, "Shirts")])
        batch = parse_product_csv(_csv(
            "Linen Shirt,,shirts,false,,,,,,149900,,12",
            "Denim Jacket,,,true,Size,M,,,,349900,,4",
        ))

        products = await bulk_create_products(mock_db, brand_id, batch)
        assert len(products) == 2
        shirt, jacket = products
        assert shirt.brand_id == brand_id
        assert shirt.category_id == category_id
        assert shirt.verification_status == "pending"
        assert shirt.is_published is False
        assert shirt.slug.startswith("linen-shirt-")
        assert shirt.native_sku.startswith("SF-")
        assert jacket.category_id is None
        assert len(jacket.variants) == 1
        assert jacket.variants[0].native_sku != jacket.native_sku
        assert mock_db.add.call_count == 2
        mock_db.flush.assert_awaited_once()

    async def test_unknown_category(self, mock_db):
        mock_db.execute.return_value = result_of(rows=[])
        batch = [ProductCreate(title="Linen Shirt", category="Capes", price=100)]

        with pytest.raises(BadRequestError, match="Unknown categories: Capes"):
            await bulk_create_products(mock_db, uuid.uuid4(), batch)
        mock_db.add.assert_not_called()
