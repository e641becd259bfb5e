import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from django.utils import timezone

from ..money import Money, sum_money
from .catalog import Inventory, Product, ProductVariant, StockStatus
from .settlement import Settlement
from .shipping import ShippingOption


@dataclass(frozen=True)
class CartItem:
    """
    One cart line. `unit_price` is captured when the line is added and is
    not recomputed from the catalog afterwards.
    """

    product: Product
    quantity: int
    unit_price: Money
    variant: Optional[ProductVariant] = None
    business_id: str = ""
    added_at: datetime = field(default_factory=timezone.now)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity

    @property
    def display_name(self) -> str:
        if self.variant is not None:
            return f"{self.product.name} - {self.variant.display_name}"
        return self.product.name

    @property
    def inventory(self) -> Inventory:
        return self.variant.inventory if self.variant is not None else self.product.inventory

    @property
    def stock_status(self) -> StockStatus:
        return self.inventory.stock_status

    def matches(self, product: Product, variant: Optional[ProductVariant]) -> bool:
        variant_id = variant.id if variant is not None else None
        own_variant_id = self.variant.id if self.variant is not None else None
        return self.product.id == product.id and own_variant_id == variant_id


@dataclass(frozen=True)
class CheckoutGroup:
    """Cart lines belonging to one business."""

    business_id: str
    business_name: str
    items: Tuple[CartItem, ...]

    @property
    def subtotal(self) -> Money:
        currency = self.items[0].unit_price.currency if self.items else "USD"
        return sum_money((item.line_total for item in self.items), currency)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)


@dataclass(frozen=True)
class CheckoutReceipt:
    """Outcome of a successful checkout charge."""

    transaction_id: str
    items: Tuple[CartItem, ...]
    subtotal: Money
    shipping_option: ShippingOption
    total: Money
    settlement: Settlement
    created_at: datetime = field(default_factory=timezone.now)
