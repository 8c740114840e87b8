from typing import Literal

from pydantic import BaseModel

from storefront.models.dto.product import ProductSnapshot

FeaturedSection = Literal[
    "women",
    "men",
    "kids",
    "home_living",
    "beauty_top_picks",
    "beauty_new_arrivals",
    "beauty_best_sellers",
    "home_new_arrivals",
    "home_best_sellers",
    "kids_new_arrivals",
    "men_new_arrivals",
]


class FeatureToggle(BaseModel):
    # Current flag value; True means the caller is removing the product
    is_featured: bool


class FeaturedListResponse(BaseModel):
    section: str
    items: list[ProductSnapshot]
