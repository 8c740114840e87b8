import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies.auth import require_admin, require_brand_member, require_dashboard_user
from storefront.api.dependencies.database import get_db
from storefront.audit.service import audit_context, write_audit_log
from storefront.core.exceptions import BadRequestError, NotFoundError
from storefront.core.file_validation import ALLOWED_CSV_TYPES, MAX_CSV_SIZE
from storefront.models.dto.featured import FeaturedSection, FeatureToggle
from storefront.models.dto.product import (
    FeatureToggleResult,
    ProductImportResult,
    ProductListResponse,
    ProductResponse,
    PublishUpdate,
    VerificationUpdate,
)
from storefront.models.orm.user import User
from storefront.services import featured_service, product_service
from storefront.services.product_import import bulk_create_products, parse_product_csv

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["admin-products"])


@router.get("", response_model=ProductListResponse)
async def list_products(
    q: str | None = Query(None, max_length=200),
    brand: UUID | None = None,
    category: UUID | None = None,
    verification_status: str | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_dashboard_user),
):
    # Brand staff only ever see their own catalog
    brand_id = user.brand_id if user.role == "brand" else brand
    return await product_service.search_products(
        db,
        q=q,
        brand_id=brand_id,
        category_id=category,
        verification_status=verification_status,
        storefront_only=False,
        page=page,
        per_page=per_page,
    )


@router.post("/import", response_model=ProductImportResult, status_code=201)
async def import_products(
    request: Request,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_brand_member),
):
    if file.content_type not in ALLOWED_CSV_TYPES:
        raise BadRequestError("Invalid file type. Upload a CSV file")

    content = await file.read()
    if len(content) > MAX_CSV_SIZE:
        raise BadRequestError(f"File too large. Maximum size is {MAX_CSV_SIZE // (1024 * 1024)} MB")
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        raise BadRequestError("The file must be UTF-8 encoded") from None

    batch = parse_product_csv(text)
    products = await bulk_create_products(db, user.brand_id, batch)

    ip, ua = audit_context(request)
    await write_audit_log(
        db, user_id=user.id, action="product.imported",
        resource_type="brand", resource_id=user.brand_id,
        details={"filename": file.filename, "created": len(products)},
        ip_address=ip, user_agent=ua,
    )
    return {"created": len(products), "product_ids": [p.id for p in products]}


@router.put("/{product_id}/verification", response_model=ProductResponse)
async def update_verification(
    product_id: UUID,
    body: VerificationUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    product = await product_service.set_verification_status(
        db, product_id, body.verification_status
    )
    ip, ua = audit_context(request)
    await write_audit_log(
        db, user_id=admin.id, action="admin.product.verification_changed",
        resource_type="product", resource_id=product_id,
        details={"verification_status": body.verification_status},
        ip_address=ip, user_agent=ua,
    )
    return await product_service.get_with_variants(db, product.id)


@router.put("/{product_id}/publish", response_model=ProductResponse)
async def update_published(
    product_id: UUID,
    body: PublishUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_dashboard_user),
):
    product = await product_service.get_by_id(db, product_id)
    if user.role == "brand" and product.brand_id != user.brand_id:
        raise NotFoundError("Product not found")

    await product_service.set_published(db, product_id, body.is_published)
    ip, ua = audit_context(request)
    await write_audit_log(
        db, user_id=user.id, action="product.publish_changed",
        resource_type="product", resource_id=product_id,
        details={"is_published": body.is_published},
        ip_address=ip, user_agent=ua,
    )
    return await product_service.get_with_variants(db, product_id)


@router.post("/{product_id}/featured/{section}", response_model=FeatureToggleResult)
async def toggle_featured(
    product_id: UUID,
    section: FeaturedSection,
    body: FeatureToggle,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    is_featured = await featured_service.toggle_featured(
        db, section, product_id, body.is_featured
    )
    ip, ua = audit_context(request)
    await write_audit_log(
        db, user_id=admin.id, action="admin.product.featured_changed",
        resource_type="product", resource_id=product_id,
        details={"section": section, "is_featured": is_featured},
        ip_address=ip, user_agent=ua,
    )
    return {"section": section, "product_id": product_id, "is_featured": is_featured}
