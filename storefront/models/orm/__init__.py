from storefront.models.orm.base import Base
from storefront.models.orm.brand import Brand
from storefront.models.orm.category import Category
from storefront.models.orm.user import User
from storefront.models.orm.address import Address
from storefront.models.orm.product import Product, ProductVariant
from storefront.models.orm.cart_item import CartItem
from storefront.models.orm.wishlist_item import WishlistItem
from storefront.models.orm.coupon import Coupon
from storefront.models.orm.order import Order, OrderItem, OrderShipment
from storefront.models.orm.media_item import BrandMediaItem
from storefront.models.orm.featured import (
    BeautyBestSellerProduct,
    BeautyNewArrivalProduct,
    BeautyTopPickProduct,
    HomeBestSellerProduct,
    HomeLivingFeaturedProduct,
    HomeNewArrivalProduct,
    KidsFeaturedProduct,
    KidsNewArrivalProduct,
    MenFeaturedProduct,
    MenNewArrivalProduct,
    WomenFeaturedProduct,
)

__all__ = [
    "Base",
    "Brand",
    "Category",
    "User",
    "Address",
    "Product",
    "ProductVariant",
    "CartItem",
    "WishlistItem",
    "Coupon",
    "Order",
    "OrderItem",
    "OrderShipment",
    "BrandMediaItem",
    "WomenFeaturedProduct",
    "MenFeaturedProduct",
    "KidsFeaturedProduct",
    "HomeLivingFeaturedProduct",
    "BeautyTopPickProduct",
    "BeautyNewArrivalProduct",
    "BeautyBestSellerProduct",
    "HomeNewArrivalProduct",
    "HomeBestSellerProduct",
    "KidsNewArrivalProduct",
    "MenNewArrivalProduct",
]
