"""
Domain models for the commerce rules engine.

These are plain dataclasses, not Django models; nothing here touches the
database.
"""

from .booking import (
    Booking,
    BookingStatus,
    BusinessRef,
    CustomerIdentity,
    PaymentKind,
    PaymentRecord,
    PaymentStatus,
    TimeSlot,
)
from .cart import CartItem, CheckoutGroup, CheckoutReceipt
from .catalog import DepositType, Inventory, Product, ProductVariant, Service, StockStatus, classify_stock
from .categories import ProductCategory, ServiceCategory, category_display_name
from .settlement import PaymentSummary, Settlement
from .shipping import DEFAULT_SHIPPING_OPTIONS, ShippingOption

__all__ = [
    "Booking",
    "BookingStatus",
    "BusinessRef",
    "CartItem",
    "CheckoutGroup",
    "CheckoutReceipt",
    "CustomerIdentity",
    "DEFAULT_SHIPPING_OPTIONS",
    "DepositType",
    "Inventory",
    "PaymentKind",
    "PaymentRecord",
    "PaymentStatus",
    "PaymentSummary",
    "Product",
    "ProductCategory",
    "ProductVariant",
    "Service",
    "ServiceCategory",
    "Settlement",
    "ShippingOption",
    "StockStatus",
    "TimeSlot",
    "category_display_name",
    "classify_stock",
]
