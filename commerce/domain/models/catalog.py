"""
Catalog entities: bookable services, products, variants and their inventory.

Services, products and variants are frozen values so that bookings and cart
lines can hold them as snapshots. Inventory is the one mutable record and is
only changed through InventoryService.commit().
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

from ..exceptions import DuplicateVariantError, InvalidAmount, InvalidDepositConfiguration, InvalidQuantity
from ..money import Money, to_decimal
from .categories import ProductCategory, ServiceCategory


def _new_id() -> str:
    return str(uuid.uuid4())


class StockStatus(str, Enum):
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


class DepositType(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


def classify_stock(available: int, low_stock_threshold: int, track_inventory: bool = True) -> StockStatus:
    """Stock status for an available quantity; untracked stock is always in stock."""
    if not track_inventory:
        return StockStatus.IN_STOCK
    if available <= 0:
        return StockStatus.OUT_OF_STOCK
    if available <= low_stock_threshold:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def _require_money(value, label: str) -> None:
    if not isinstance(value, Money):
        raise InvalidAmount(f"{label} must be Money, got {type(value).__name__}")
    if value.is_negative:
        raise InvalidAmount(f"{label} cannot be negative: {value}")


# ==============================================================================
# Inventory
# ==============================================================================


@dataclass(eq=False)
class Inventory:
    """
    Stock record for a product without variants, or for a single variant.

    Attributes:
        quantity: Units on hand
        low_stock_threshold: At or below this many available units the record is low stock
        track_inventory: When False the record is never decremented and always in stock
        reserved_quantity: Units held elsewhere and not available for sale
        last_restocked: When stock was last received
    """

    quantity: int = 0
    low_stock_threshold: int = 5
    track_inventory: bool = True
    reserved_quantity: int = 0
    last_restocked: Optional[datetime] = None

    def __post_init__(self):
        for label in ("quantity", "low_stock_threshold", "reserved_quantity"):
            value = getattr(self, label)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidQuantity(f"{label} must be a non-negative integer, got {value!r}")

    @property
    def available(self) -> int:
        return max(0, self.quantity - self.reserved_quantity)

    @property
    def stock_status(self) -> StockStatus:
        return classify_stock(self.available, self.low_stock_threshold, self.track_inventory)

    @property
    def is_in_stock(self) -> bool:
        return self.stock_status != StockStatus.OUT_OF_STOCK


# ==============================================================================
# Services
# ==============================================================================


@dataclass(frozen=True)
class Service:
    """
    A bookable service offered by a business.

    `deposit_amount` is read according to `deposit_type`: minor units for a
    fixed deposit, a 0-100 percentage of the price for a percentage deposit.
    Deposit fields are ignored when `requires_deposit` is False.

    Raises:
        InvalidAmount: If the price is not a non-negative Money
        InvalidDepositConfiguration: If a required deposit is out of range
    """

    name: str
    price: Money
    description: str = ""
    duration: str = ""
    duration_minutes: int = 60
    category: ServiceCategory = ServiceCategory.OTHER
    business_id: str = ""
    requires_deposit: bool = False
    deposit_type: DepositType = DepositType.FIXED
    deposit_amount: Union[int, Decimal] = 0
    deposit_policy_text: str = ""
    cancellation_policy: str = ""
    is_available: bool = True
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        _require_money(self.price, "Service price")
        object.__setattr__(self, "deposit_type", DepositType(self.deposit_type))

        if not self.requires_deposit:
            return

        if self.deposit_type == DepositType.PERCENTAGE:
            try:
                percent = to_decimal(self.deposit_amount)
            except InvalidAmount as e:
                raise InvalidDepositConfiguration(str(e)) from e
            if percent < 0 or percent > 100:
                raise InvalidDepositConfiguration(
                    f"Deposit percentage must be between 0 and 100, got {self.deposit_amount}"
                )
            object.__setattr__(self, "deposit_amount", percent)
        else:
            amount = self.deposit_amount
            if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
                raise InvalidDepositConfiguration(
                    f"Fixed deposit must be a non-negative number of minor units, got {amount!r}"
                )

    @property
    def currency(self) -> str:
        return self.price.currency


# ==============================================================================
# Products and variants
# ==============================================================================


def _normalize_attributes(attributes) -> FrozenSet[Tuple[str, str]]:
    if isinstance(attributes, dict):
        attributes = attributes.items()
    return frozenset((str(name).strip(), str(value).strip()) for name, value in attributes)


@dataclass(frozen=True)
class ProductVariant:
    """
    A purchasable variant of a product (e.g. Size=M, Color=Blue).

    The variant's price overrides the product's base price and the variant
    carries its own inventory.
    """

    name: str
    price: Money
    sku: str = ""
    attributes: FrozenSet[Tuple[str, str]] = frozenset()
    inventory: Inventory = field(default_factory=Inventory)
    is_active: bool = True
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        _require_money(self.price, "Variant price")
        object.__setattr__(self, "attributes", _normalize_attributes(self.attributes))

    @property
    def signature(self) -> FrozenSet[Tuple[str, str]]:
        """Case-insensitive attribute signature used for duplicate detection."""
        return frozenset((name.casefold(), value.casefold()) for name, value in self.attributes)

    def attribute(self, name: str) -> Optional[str]:
        for attr_name, value in self.attributes:
            if attr_name.casefold() == name.casefold():
                return value
        return None

    @property
    def display_name(self) -> str:
        values = ", ".join(value for _, value in sorted(self.attributes))
        return f"{self.name} - {values}" if values else self.name

    @property
    def is_in_stock(self) -> bool:
        return self.is_active and self.inventory.is_in_stock


@dataclass(frozen=True)
class Product:
    """
    A product listed by a business.

    When `variants` is non-empty the product's own inventory is not
    authoritative; each variant carries its own stock.

    Raises:
        InvalidAmount: If the base price is not a non-negative Money
        DuplicateVariantError: If two variants share an attribute signature
    """

    name: str
    base_price: Money
    description: str = ""
    category: ProductCategory = ProductCategory.OTHER
    variants: Tuple[ProductVariant, ...] = ()
    inventory: Inventory = field(default_factory=Inventory)
    tags: Tuple[str, ...] = ()
    business_id: str = ""
    business_name: str = ""
    is_active: bool = True
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        _require_money(self.base_price, "Product base price")
        object.__setattr__(self, "variants", tuple(self.variants))
        object.__setattr__(self, "tags", tuple(self.tags))

        seen: Dict[FrozenSet[Tuple[str, str]], str] = {}
        for variant in self.variants:
            if variant.signature in seen:
                raise DuplicateVariantError(
                    f"Variants '{seen[variant.signature]}' and '{variant.name}' of {self.name} "
                    f"have the same attributes"
                )
            seen[variant.signature] = variant.name

    @property
    def has_variants(self) -> bool:
        return bool(self.variants)

    def get_variant(self, variant_id: str) -> Optional[ProductVariant]:
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None

    def owns_variant(self, variant: ProductVariant) -> bool:
        return any(v is variant or v.id == variant.id for v in self.variants)

    @property
    def total_inventory(self) -> int:
        """Units available to customers, summed across variants when present."""
        if self.has_variants:
            return sum(v.inventory.available for v in self.variants)
        return self.inventory.available

    @property
    def min_price(self) -> Money:
        if self.has_variants:
            return min(v.price for v in self.variants)
        return self.base_price

    @property
    def max_price(self) -> Money:
        if self.has_variants:
            return max(v.price for v in self.variants)
        return self.base_price

    @property
    def price_range_display(self) -> str:
        low, high = self.min_price, self.max_price
        return str(low) if low == high else f"{low} - {high}"

    @property
    def available_variants(self) -> List[ProductVariant]:
        return [v for v in self.variants if v.is_in_stock]

    def _attribute_values(self, name: str) -> List[str]:
        values = {v.attribute(name) for v in self.variants}
        values.discard(None)
        return sorted(values)

    @property
    def available_sizes(self) -> List[str]:
        return self._attribute_values("size")

    @property
    def available_colors(self) -> List[str]:
        return self._attribute_values("color")

    @property
    def is_in_stock(self) -> bool:
        if not self.is_active:
            return False
        if self.has_variants:
            return any(v.is_in_stock for v in self.variants)
        return self.inventory.is_in_stock

    @property
    def stock_status(self) -> StockStatus:
        """Aggregate status; for variant products it reflects how many variants can still be bought."""
        if not self.has_variants:
            return self.inventory.stock_status
        in_stock = self.available_variants
        if not in_stock:
            return StockStatus.OUT_OF_STOCK
        if len(in_stock) < len(self.variants):
            return StockStatus.LOW_STOCK
        return StockStatus.IN_STOCK
