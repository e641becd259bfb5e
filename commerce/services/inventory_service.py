"""
InventoryService - Stock Tracking

Answers availability questions for products and variants and applies the
stock decrement after a successful purchase. commit() is the only operation
that changes a quantity; it holds a per-record lock so that two commits
against the same product/variant cannot both pass the stock check.
"""

import threading
import weakref
from typing import Iterable, List, Optional, Tuple

from django.conf import settings
from django.utils import timezone

from commerce.domain.models.catalog import Inventory, Product, ProductVariant, StockStatus
from commerce.infra.observability.metrics import stock_commit_failures, stock_low_alert

from .base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok

DEFAULT_MAX_ORDER_QUANTITY = 10


class InventoryService(BaseService):
    """
    Service for checking and committing product stock.

    Responsibilities:
    - Resolve the authoritative inventory record for a product/variant
    - Report the maximum orderable quantity (cart stepper ceiling)
    - Decrement stock after payment, atomically per record
    - Report low-stock records
    """

    def __init__(self, max_order_quantity: Optional[int] = None):
        """
        Initialize InventoryService.

        Args:
            max_order_quantity: Per-order ceiling; defaults to
                settings.INVENTORY_MAX_ORDER_QUANTITY (10)
        """
        super().__init__()
        if max_order_quantity is None:
            max_order_quantity = getattr(settings, "INVENTORY_MAX_ORDER_QUANTITY", DEFAULT_MAX_ORDER_QUANTITY)
        self.max_order_quantity = max_order_quantity
        # Entries disappear once no commit holds the lock
        self._locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def _lock_for(self, product: Product, variant: Optional[ProductVariant]) -> threading.Lock:
        key = (product.id, variant.id if variant is not None else None)
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def resolve_inventory(
        self, product: Product, variant: Optional[ProductVariant] = None
    ) -> ServiceResult[Inventory]:
        """
        Find the inventory record that governs a purchase.

        Products with variants must be bought through a variant that belongs
        to them; products without variants use their own inventory.

        Returns:
            ServiceResult with the Inventory, or variant_required / variant_not_found
        """
        if product.has_variants:
            if variant is None:
                return service_err(
                    ErrorCodes.VARIANT_REQUIRED, f"Product {product.name} must be purchased through a variant"
                )
            if not product.owns_variant(variant):
                return service_err(
                    ErrorCodes.VARIANT_NOT_FOUND, f"Variant {variant.name} does not belong to {product.name}"
                )
            return service_ok(variant.inventory)

        if variant is not None:
            return service_err(ErrorCodes.VARIANT_NOT_FOUND, f"Product {product.name} has no variants")
        return service_ok(product.inventory)

    def max_orderable(self, inventory: Inventory) -> int:
        """Largest quantity a single order may request against this record."""
        if not inventory.track_inventory:
            return self.max_order_quantity
        return min(inventory.available, self.max_order_quantity)

    @BaseService.log_performance
    def reserve(self, product: Product, variant: Optional[ProductVariant], quantity: int) -> ServiceResult[int]:
        """
        Check whether `quantity` units could be bought right now.

        Advisory only: nothing is held and no quantity changes.

        Args:
            product: Product being bought
            variant: Selected variant (required when the product has variants)
            quantity: Units requested

        Returns:
            ServiceResult with the maximum orderable quantity, or
            insufficient_stock / invalid_quantity / variant errors

        Example:
            >>> result = inventory_service.reserve(product, None, 2)
            >>> if result.ok:
            ...     stepper_max = result.value
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            return service_err(ErrorCodes.INVALID_QUANTITY, f"Quantity must be a positive integer, got {quantity!r}")

        resolved = self.resolve_inventory(product, variant)
        if not resolved.ok:
            return resolved
        inventory = resolved.value

        if inventory.track_inventory and inventory.available < quantity:
            return service_err(
                ErrorCodes.INSUFFICIENT_STOCK,
                f"Insufficient stock for {product.name}. Available: {inventory.available}, Requested: {quantity}",
            )

        return service_ok(self.max_orderable(inventory))

    @BaseService.log_performance
    def commit(
        self,
        product: Product,
        variant: Optional[ProductVariant],
        quantity: int,
        reference_id: Optional[str] = None,
    ) -> ServiceResult[dict]:
        """
        Decrement stock after a successful purchase.

        Untracked inventory is never decremented. On failure the quantity is
        left unchanged.

        Args:
            product: Product bought
            variant: Variant bought (required when the product has variants)
            quantity: Units bought
            reference_id: Order or checkout reference for the log trail

        Returns:
            ServiceResult with commit details:
            - quantity_committed: Units decremented
            - old_stock / new_stock: Quantity before and after
            - committed_at: Timestamp
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            return service_err(ErrorCodes.INVALID_QUANTITY, f"Quantity must be a positive integer, got {quantity!r}")

        resolved = self.resolve_inventory(product, variant)
        if not resolved.ok:
            return resolved
        inventory = resolved.value

        with self._lock_for(product, variant):
            old_quantity = inventory.quantity

            if inventory.track_inventory:
                if inventory.available < quantity:
                    stock_commit_failures.inc()
                    return service_err(
                        ErrorCodes.INSUFFICIENT_STOCK,
                        f"Insufficient stock for {product.name}. "
                        f"Available: {inventory.available}, Requested: {quantity}",
                    )
                inventory.quantity -= quantity

            new_quantity = inventory.quantity

        self.logger.info(
            f"Stock committed: product={product.name}, variant={variant.name if variant else None}, "
            f"quantity={quantity}, reference={reference_id}, stock: {old_quantity} -> {new_quantity}"
        )

        return service_ok(
            {
                "product_id": product.id,
                "variant_id": variant.id if variant is not None else None,
                "quantity_committed": quantity,
                "old_stock": old_quantity,
                "new_stock": new_quantity,
                "tracked": inventory.track_inventory,
                "reference_id": reference_id,
                "committed_at": timezone.now().isoformat(),
            }
        )

    def stock_status(self, product: Product, variant: Optional[ProductVariant] = None) -> ServiceResult[StockStatus]:
        """Stock status of one record, or the aggregate status of a variant product when no variant is given."""
        if variant is None and product.has_variants:
            return service_ok(product.stock_status)
        return self.resolve_inventory(product, variant).map(lambda inventory: inventory.stock_status)

    def total_inventory(self, product: Product) -> int:
        """Available units across all variants, or the product's own available units."""
        return product.total_inventory

    @BaseService.log_performance
    def low_stock_items(self, products: Iterable[Product]) -> List[Tuple[Product, Optional[ProductVariant]]]:
        """
        List tracked records at or below their low-stock threshold.

        Out-of-stock records are included. Also updates the low-stock gauge.

        Returns:
            (product, variant) pairs; variant is None for products without variants
        """
        low: List[Tuple[Product, Optional[ProductVariant]]] = []
        for product in products:
            records = [(v, v.inventory) for v in product.variants] or [(None, product.inventory)]
            for variant, inventory in records:
                if inventory.stock_status != StockStatus.IN_STOCK:
                    low.append((product, variant))

        stock_low_alert.set(len(low))
        if low:
            self.logger.warning(f"{len(low)} inventory record(s) at or below low stock threshold")
        return low
