"""Initial storefront schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB, INET

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_FEATURED_TABLES = [
    "featured_women_products",
    "featured_men_products",
    "featured_kids_products",
    "featured_home_living_products",
    "featured_beauty_top_picks",
    "featured_beauty_new_arrivals",
    "featured_beauty_best_sellers",
    "featured_home_new_arrivals",
    "featured_home_best_sellers",
    "featured_kids_new_arrivals",
    "featured_men_new_arrivals",
]

_FEATURED_FLAGS = [
    "is_featured_women",
    "is_featured_men",
    "is_featured_kids",
    "is_featured_home_living",
    "is_beauty_top_pick",
    "is_beauty_new_arrival",
    "is_beauty_best_seller",
    "is_home_new_arrival",
    "is_home_best_seller",
    "is_kids_new_arrival",
    "is_men_new_arrival",
]

_UPDATED_AT_TABLES = [
    "users",
    "addresses",
    "products",
    "cart_items",
    "coupons",
    "orders",
    "order_shipments",
    *_FEATURED_TABLES,
]


def _timestamps(updated: bool = True) -> list[sa.Column]:
    cols = [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]
    if updated:
        cols.append(
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))
        )
    return cols


def _pk() -> sa.Column:
    return sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()"))


def upgrade() -> None:
    # --- Brands ---
    op.create_table(
        "brands",
        _pk(),
        sa.Column("name", sa.String(255), unique=True, nullable=False),
        sa.Column("slug", sa.String(255), unique=True, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("logo_url", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        *_timestamps(updated=False),
    )

    # --- Categories ---
    op.create_table(
        "categories",
        _pk(),
        sa.Column("name", sa.String(255), unique=True, nullable=False),
        sa.Column("slug", sa.String(255), unique=True, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        *_timestamps(updated=False),
    )

    # --- Users ---
    op.create_table(
        "users",
        _pk(),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("first_name", sa.String(255), nullable=False),
        sa.Column("last_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("avatar_url", sa.String(512), nullable=True),
        sa.Column("role", sa.String(50), nullable=False, server_default="customer"),
        sa.Column("brand_id", UUID(as_uuid=True), sa.ForeignKey("brands.id"), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        *_timestamps(),
        sa.CheckConstraint("role IN ('customer', 'brand', 'admin')", name="ck_users_role"),
        sa.CheckConstraint("role <> 'brand' OR brand_id IS NOT NULL", name="ck_users_brand_member"),
    )
    op.create_index("idx_users_brand", "users", ["brand_id"], postgresql_where=sa.text("brand_id IS NOT NULL"))

    # --- Addresses ---
    op.create_table(
        "addresses",
        _pk(),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("alias", sa.String(255), nullable=False),
        sa.Column("alias_slug", sa.String(255), nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default="home"),
        sa.Column("is_primary", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("street", sa.String(512), nullable=False),
        sa.Column("city", sa.String(255), nullable=False),
        sa.Column("state", sa.String(255), nullable=False),
        sa.Column("zip", sa.String(20), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "type", "alias_slug", name="uq_address_user_type_alias"),
        sa.CheckConstraint("type IN ('home', 'work', 'other')", name="ck_addresses_type"),
    )
    op.create_index("idx_addresses_user", "addresses", ["user_id"])
    # At most one primary address per user
    op.create_index(
        "uq_addresses_user_primary", "addresses", ["user_id"],
        unique=True, postgresql_where=sa.text("is_primary"),
    )

    # --- Products ---
    op.create_table(
        "products",
        _pk(),
        sa.Column("brand_id", UUID(as_uuid=True), sa.ForeignKey("brands.id"), nullable=False),
        sa.Column("category_id", UUID(as_uuid=True), sa.ForeignKey("categories.id"), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), unique=True, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("image_url", sa.Text, nullable=True),
        sa.Column("price", sa.Integer, nullable=True),
        sa.Column("compare_at_price", sa.Integer, nullable=True),
        sa.Column("sku", sa.String(100), nullable=True),
        sa.Column("native_sku", sa.String(100), unique=True, nullable=False),
        sa.Column("quantity", sa.Integer, nullable=True),
        sa.Column("has_variants", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("meta_title", sa.String(255), nullable=True),
        sa.Column("meta_description", sa.Text, nullable=True),
        sa.Column("meta_keywords", sa.Text, nullable=True),
        sa.Column("is_available", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("is_published", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("is_deleted", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("verification_status", sa.String(20), nullable=False, server_default="pending"),
        *[sa.Column(flag, sa.Boolean, nullable=False, server_default="false") for flag in _FEATURED_FLAGS],
        *_timestamps(),
        sa.CheckConstraint(
            "verification_status IN ('pending', 'approved', 'rejected')",
            name="ck_products_verification_status",
        ),
        sa.CheckConstraint("quantity IS NULL OR quantity >= 0", name="ck_products_quantity"),
    )
    op.create_index("idx_products_brand", "products", ["brand_id"])
    op.create_index("idx_products_category", "products", ["category_id"])
    op.create_index(
        "idx_products_storefront", "products", ["created_at"],
        postgresql_where=sa.text(
            "is_published AND is_active AND NOT is_deleted AND verification_status = 'approved'"
        ),
    )

    # --- Product variants ---
    op.create_table(
        "product_variants",
        _pk(),
        sa.Column("product_id", UUID(as_uuid=True), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("size", sa.String(50), nullable=True),
        sa.Column("color", sa.String(50), nullable=True),
        sa.Column("sku", sa.String(100), nullable=True),
        sa.Column("native_sku", sa.String(100), unique=True, nullable=False),
        sa.Column("price", sa.Integer, nullable=False),
        sa.Column("compare_at_price", sa.Integer, nullable=True),
        sa.Column("quantity", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_deleted", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("product_id", "size", "color", name="uq_variant_product_size_color"),
        sa.CheckConstraint("quantity >= 0", name="ck_product_variants_quantity"),
    )
    op.create_index("idx_variants_product", "product_variants", ["product_id"])

    # --- Cart ---
    op.create_table(
        "cart_items",
        _pk(),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", UUID(as_uuid=True), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("size", sa.String(50), nullable=True),
        sa.Column("color", sa.String(50), nullable=True),
        sa.Column("quantity", sa.Integer, nullable=False, server_default="1"),
        sa.Column("status", sa.Boolean, nullable=False, server_default="true"),
        *_timestamps(),
        sa.UniqueConstraint(
            "user_id", "product_id", "size", "color",
            name="uq_cart_user_product_variant",
            postgresql_nulls_not_distinct=True,
        ),
        sa.CheckConstraint("quantity > 0", name="ck_cart_items_quantity"),
    )
    op.create_index("idx_cart_items_user", "cart_items", ["user_id"])

    # --- Wishlist ---
    op.create_table(
        "wishlist_items",
        _pk(),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", UUID(as_uuid=True), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(updated=False),
        sa.UniqueConstraint("user_id", "product_id", name="uq_wishlist_user_product"),
    )

    # --- Coupons ---
    op.create_table(
        "coupons",
        sa.Column("code", sa.String(50), primary_key=True),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("discount_type", sa.String(20), nullable=False),
        sa.Column("discount_value", sa.Integer, nullable=False),
        sa.Column("min_order_amount", sa.Integer, nullable=False, server_default="0"),
        sa.Column("max_discount_amount", sa.Integer, nullable=True),
        sa.Column(
            "category_id", UUID(as_uuid=True),
            sa.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("max_uses", sa.Integer, nullable=False, server_default="0"),
        sa.Column("uses", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("discount_type IN ('percentage', 'fixed')", name="ck_coupons_discount_type"),
        sa.CheckConstraint(
            "discount_type <> 'percentage' OR discount_value <= 100",
            name="ck_coupons_percentage_range",
        ),
    )

    # --- Orders ---
    op.create_table(
        "orders",
        _pk(),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("address_id", UUID(as_uuid=True), sa.ForeignKey("addresses.id"), nullable=False),
        sa.Column("receipt_id", sa.String(64), unique=True, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("payment_id", sa.String(100), nullable=True),
        sa.Column("gateway_order_id", sa.String(100), unique=True, nullable=True),
        sa.Column("refund_id", sa.String(100), nullable=True),
        sa.Column(
            "coupon_code", sa.String(50),
            sa.ForeignKey("coupons.code", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("total_items", sa.Integer, nullable=False),
        sa.Column("item_amount", sa.Integer, nullable=False),
        sa.Column("delivery_amount", sa.Integer, nullable=False, server_default="0"),
        sa.Column("discount_amount", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Integer, nullable=False),
        sa.Column("payment_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.Text, nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'processing', 'shipped', 'delivered', 'cancelled')",
            name="ck_orders_status",
        ),
        sa.CheckConstraint(
            "payment_status IN ('pending', 'paid', 'failed', 'refund_pending', 'refunded', 'refund_failed')",
            name="ck_orders_payment_status",
        ),
    )
    op.create_index("idx_orders_user_created", "orders", ["user_id", sa.text("created_at DESC")])
    op.create_index("idx_orders_status", "orders", ["status"])
    op.create_index(
        "idx_orders_payment_expiry", "orders", ["payment_expires_at"],
        postgresql_where=sa.text("payment_status = 'pending'"),
    )

    op.create_table(
        "order_items",
        _pk(),
        sa.Column("order_id", UUID(as_uuid=True), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", UUID(as_uuid=True), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("brand_id", UUID(as_uuid=True), sa.ForeignKey("brands.id"), nullable=False),
        sa.Column("size", sa.String(50), nullable=True),
        sa.Column("color", sa.String(50), nullable=True),
        sa.Column("quantity", sa.Integer, nullable=False, server_default="1"),
        sa.Column("price", sa.Integer, nullable=False),
    )
    op.create_index("idx_order_items_order", "order_items", ["order_id"])
    op.create_index("idx_order_items_brand", "order_items", ["brand_id"])

    op.create_table(
        "order_shipments",
        _pk(),
        sa.Column(
            "order_id", UUID(as_uuid=True),
            sa.ForeignKey("orders.id", ondelete="CASCADE"), unique=True, nullable=False,
        ),
        sa.Column("awb_number", sa.String(100), nullable=True),
        sa.Column("courier_name", sa.String(100), nullable=True),
        sa.Column("status", sa.String(30), nullable=False, server_default="pending"),
        sa.Column("tracking_payload", JSONB, nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "idx_shipments_active", "order_shipments", ["status"],
        postgresql_where=sa.text(
            "awb_number IS NOT NULL AND status NOT IN ('delivered', 'rto_delivered', 'cancelled')"
        ),
    )

    # --- Brand media library ---
    op.create_table(
        "brand_media_items",
        _pk(),
        sa.Column("brand_id", UUID(as_uuid=True), sa.ForeignKey("brands.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("alt_text", sa.String(255), nullable=True),
        sa.Column("url", sa.Text, nullable=False),
        sa.Column("file_path", sa.Text, nullable=False),
        sa.Column("content_type", sa.String(50), nullable=False),
        sa.Column("size", sa.Integer, nullable=False),
        sa.Column("uploaded_by", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("idx_media_brand_created", "brand_media_items", ["brand_id", sa.text("created_at DESC")])

    # --- Featured sections, one table per storefront section ---
    for table in _FEATURED_TABLES:
        op.create_table(
            table,
            _pk(),
            sa.Column(
                "product_id", UUID(as_uuid=True),
                sa.ForeignKey("products.id", ondelete="CASCADE"), unique=True, nullable=False,
            ),
            sa.Column("is_deleted", sa.Boolean, nullable=False, server_default="false"),
            sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
            *_timestamps(),
        )

    # --- Audit log ---
    op.create_table(
        "audit_log",
        _pk(),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("action", sa.String(255), nullable=False),
        sa.Column("resource_type", sa.String(100), nullable=False),
        sa.Column("resource_id", sa.String(255), nullable=True),
        sa.Column("details", JSONB, nullable=True),
        sa.Column("ip_address", INET, nullable=True),
        sa.Column("user_agent", sa.Text, nullable=True),
        sa.Column("correlation_id", sa.String(255), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("idx_audit_created", "audit_log", ["created_at"])
    op.create_index("idx_audit_resource", "audit_log", ["resource_type", "resource_id"])
    op.create_index("idx_audit_user", "audit_log", ["user_id"])

    # Keep updated_at current for raw SQL writes too
    op.execute("""
        CREATE OR REPLACE FUNCTION set_updated_at()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = now();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql
    """)
    for table in _UPDATED_AT_TABLES:
        op.execute(f"""
            CREATE TRIGGER trg_{table}_updated_at
            BEFORE UPDATE ON {table}
            FOR EACH ROW
            EXECUTE FUNCTION set_updated_at()
        """)


def downgrade() -> None:
    for table in _UPDATED_AT_TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS trg_{table}_updated_at ON {table}")
    op.execute("DROP FUNCTION IF EXISTS set_updated_at()")

    op.drop_table("audit_log")
    for table in reversed(_FEATURED_TABLES):
        op.drop_table(table)
    op.drop_table("brand_media_items")
    op.drop_table("order_shipments")
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("coupons")
    op.drop_table("wishlist_items")
    op.drop_table("cart_items")
    op.drop_table("product_variants")
    op.drop_table("products")
    op.drop_table("addresses")
    op.drop_table("users")
    op.drop_table("categories")
    op.drop_table("brands")
