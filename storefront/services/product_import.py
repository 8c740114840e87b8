"""Bulk product import from the brand dashboard's CSV template.

Rows are grouped by "Product Title". A product with "Has Variants" set to
true produces one variant per row, taking its size and color from the
OptionN Name/Value columns. Otherwise the first row of the group describes
the product.
"""

import csv
import io
import logging
import secrets
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import BadRequestError
from storefront.core.text import generate_native_sku, slugify
from storefront.models.dto.product import ProductCreate, VariantCreate
from storefront.models.orm.category import Category
from storefront.models.orm.product import Product, ProductVariant

logger = logging.getLogger(__name__)

TITLE = "Product Title"
REQUIRED_COLUMNS = {TITLE, "Has Variants"}
OPTION_SLOTS = (1, 2, 3)
MAX_IMPORT_PRODUCTS = 500


def _text(row: dict, column: str) -> str | None:
    value = (row.get(column) or "").strip()
    return value or None


def _int(row: dict, column: str, line: int) -> int | None:
    value = _text(row, column)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise BadRequestError(f"Row {line}: '{column}' must be a whole number") from None


def _options(row: dict) -> dict[str, str]:
    options = {}
    for slot in OPTION_SLOTS:
        name = _text(row, f"Option{slot} Name")
        value = _text(row, f"Option{slot} Value")
        if name and value:
            options[name.lower()] = value
    return options


def _validation_message(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}" if location else first["msg"]


def parse_product_csv(content: str) -> list[ProductCreate]:
    reader = csv.DictReader(io.StringIO(content.lstrip("﻿")))
    missing = REQUIRED_COLUMNS - set(reader.fieldnames or [])
    if missing:
        raise BadRequestError(f"Missing columns: {', '.join(sorted(missing))}")

    groups: dict[str, list[tuple[int, dict]]] = {}
    for line, row in enumerate(reader, start=2):
        title = _text(row, TITLE)
        if not title:
            continue
        groups.setdefault(title, []).append((line, row))

    if not groups:
        raise BadRequestError("The file does not contain any products")
    if len(groups) > MAX_IMPORT_PRODUCTS:
        raise BadRequestError(f"A single import is limited to {MAX_IMPORT_PRODUCTS} products")

    batch: list[ProductCreate] = []
    for title, rows in groups.items():
        first_line, first = rows[0]
        has_variants = (_text(first, "Has Variants") or "").lower() == "true"

        variants: list[VariantCreate] = []
        if has_variants:
            for line, row in rows:
                options = _options(row)
                try:
                    variants.append(VariantCreate(
                        size=options.get("size"),
                        color=options.get("color") or options.get("colour"),
                        sku=_text(row, "SKU"),
                        price=_int(row, "Price (in Paise)", line),
                        compare_at_price=_int(row, "Compare At Price (in Paise)", line),
                        quantity=_int(row, "Quantity", line) or 0,
                    ))
                except ValidationError as exc:
                    raise BadRequestError(f"Row {line}: {_validation_message(exc)}") from None

        try:
            batch.append(ProductCreate(
                title=title,
                description=_text(first, "Product Description (HTML)"),
                meta_title=_text(first, "Meta Title"),
                meta_description=_text(first, "Meta Description"),
                meta_keywords=_text(first, "Meta Keywords"),
                category=_text(first, "Category"),
                has_variants=has_variants,
                sku=None if has_variants else _text(first, "SKU"),
                price=None if has_variants else _int(first, "Price (in Paise)", first_line),
                compare_at_price=(
                    None if has_variants
                    else _int(first, "Compare At Price (in Paise)", first_line)
                ),
                quantity=None if has_variants else _int(first, "Quantity", first_line),
                variants=variants,
            ))
        except ValidationError as exc:
            raise BadRequestError(f"Row {first_line}: {_validation_message(exc)}") from None

    return batch


async def _resolve_categories(db: AsyncSession, names: set[str]) -> dict[str, UUID]:
    if not names:
        return {}
    result = await db.execute(
        select(Category.id, Category.name).where(
            func.lower(Category.name).in_([n.lower() for n in names])
        )
    )
    found = {name.lower(): cid for cid, name in result.all()}
    unknown = sorted(n for n in names if n.lower() not in found)
    if unknown:
        raise BadRequestError(f"Unknown categories: {', '.join(unknown)}")
    return found


async def bulk_create_products(
    db: AsyncSession, brand_id: UUID, batch: list[ProductCreate]
) -> list[Product]:
    categories = await _resolve_categories(db, {p.category for p in batch if p.category})

    products = []
    for item in batch:
        product = Product(
            brand_id=brand_id,
            category_id=categories.get(item.category.lower()) if item.category else None,
            title=item.title,
            slug=f"{slugify(item.title)}-{secrets.token_hex(3)}",
            description=item.description,
            meta_title=item.meta_title,
            meta_description=item.meta_description,
            meta_keywords=item.meta_keywords,
            has_variants=item.has_variants,
            sku=item.sku,
            native_sku=generate_native_sku(),
            price=item.price,
            compare_at_price=item.compare_at_price,
            quantity=item.quantity,
            verification_status="pending",
            is_published=False,
            variants=[
                ProductVariant(
                    size=v.size,
                    color=v.color,
                    sku=v.sku,
                    native_sku=generate_native_sku(),
                    price=v.price,
                    compare_at_price=v.compare_at_price,
                    quantity=v.quantity,
                )
                for v in item.variants
            ],
        )
        db.add(product)
        products.append(product)

    await db.flush()
    logger.info("Imported %d products for brand %s", len(products), brand_id)
    return products
