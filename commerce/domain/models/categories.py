"""
Catalog categories and their display metadata.

Categories are plain enums; anything presentational lives in the lookup
tables below so business rules never branch on display data.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class ProductCategory(str, Enum):
    CLOTHING = "CLOTHING"
    ELECTRONICS = "ELECTRONICS"
    BOOKS = "BOOKS"
    FOOD = "FOOD"
    HEALTH = "HEALTH"
    ART = "ART"
    SPORTS = "SPORTS"
    BEAUTY = "BEAUTY"
    HOME = "HOME"
    OTHER = "OTHER"


class ServiceCategory(str, Enum):
    PHOTO_VIDEO = "PHOTO/VIDEO"
    HAIR_STYLIST = "HAIR STYLIST"
    BARBER = "BARBER"
    LASH_TECH = "LASH TECH"
    NAIL_TECH = "NAIL TECH"
    TUTOR = "TUTOR"
    FOOD = "FOOD"
    CLEANING = "CLEANING"
    EVENT_PLANNING = "EVENT PLANNING"
    OTHER = "OTHER"


@dataclass(frozen=True)
class CategoryMetadata:
    display_name: str
    icon: str


PRODUCT_CATEGORY_METADATA: Dict[ProductCategory, CategoryMetadata] = {
    ProductCategory.CLOTHING: CategoryMetadata("Clothing", "tshirt.fill"),
    ProductCategory.ELECTRONICS: CategoryMetadata("Electronics", "laptopcomputer"),
    ProductCategory.BOOKS: CategoryMetadata("Books", "book.fill"),
    ProductCategory.FOOD: CategoryMetadata("Food & Beverages", "fork.knife"),
    ProductCategory.HEALTH: CategoryMetadata("Health & Wellness", "heart.fill"),
    ProductCategory.ART: CategoryMetadata("Art & Crafts", "paintbrush.fill"),
    ProductCategory.SPORTS: CategoryMetadata("Sports & Recreation", "figure.run"),
    ProductCategory.BEAUTY: CategoryMetadata("Beauty", "sparkles"),
    ProductCategory.HOME: CategoryMetadata("Home & Garden", "house.fill"),
    ProductCategory.OTHER: CategoryMetadata("Other", "bag.fill"),
}

SERVICE_CATEGORY_METADATA: Dict[ServiceCategory, CategoryMetadata] = {
    ServiceCategory.PHOTO_VIDEO: CategoryMetadata("Photo/Video", "camera.fill"),
    ServiceCategory.HAIR_STYLIST: CategoryMetadata("Hair Stylist", "scissors"),
    ServiceCategory.BARBER: CategoryMetadata("Barber", "mustache.fill"),
    ServiceCategory.LASH_TECH: CategoryMetadata("Lash Tech", "eye.fill"),
    ServiceCategory.NAIL_TECH: CategoryMetadata("Nail Tech", "hand.raised.fill"),
    ServiceCategory.TUTOR: CategoryMetadata("Tutor", "book.fill"),
    ServiceCategory.FOOD: CategoryMetadata("Food", "takeoutbag.and.cup.and.straw.fill"),
    ServiceCategory.CLEANING: CategoryMetadata("Cleaning", "sparkles"),
    ServiceCategory.EVENT_PLANNING: CategoryMetadata("Event Planning", "party.popper.fill"),
    ServiceCategory.OTHER: CategoryMetadata("Other Services", "star.fill"),
}


def category_display_name(category) -> str:
    """Display name for a product or service category, falling back to the raw value."""
    # FOOD and OTHER exist in both enums and compare equal as strings
    if isinstance(category, ProductCategory):
        return PRODUCT_CATEGORY_METADATA[category].display_name
    if isinstance(category, ServiceCategory):
        return SERVICE_CATEGORY_METADATA[category].display_name
    return str(getattr(category, "value", category))
