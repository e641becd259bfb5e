"""
CartService - Shopping Cart Operations

Holds one customer's in-memory cart: add, update, remove and clear lines,
compute totals, group lines by business and take payment at checkout.

Unit prices are snapshotted when a line is added. Stock is checked through
InventoryService but never decremented here; after a successful checkout
the caller commits each line with InventoryService.commit().
"""

import threading
from dataclasses import replace
from typing import Dict, List, Optional

from commerce.domain.models.cart import CartItem, CheckoutGroup, CheckoutReceipt
from commerce.domain.models.catalog import Product, ProductVariant
from commerce.domain.models.shipping import ShippingOption
from commerce.domain.money import Money, sum_money
from commerce.infra.observability.metrics import checkout_value, payment_attempts_total
from infrastructure.payments import FailureKind, PaymentProviderInterface

from .base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from .fee_calculator import FeeCalculator
from .inventory_service import InventoryService


class CartService(BaseService):
    """
    Service for one shopping cart.

    Responsibilities:
    - Add items (merging repeats, snapshotting unit price, checking stock)
    - Update quantities within the stock ceiling
    - Compute subtotal, total and per-business groups
    - Charge the cart total once at checkout

    Dependencies:
    - InventoryService: Stock checks and order ceilings
    - FeeCalculator: Settlement for the checkout charge
    - PaymentProviderInterface: Charges the customer
    """

    def __init__(
        self,
        payment_provider: PaymentProviderInterface,
        inventory_service: Optional[InventoryService] = None,
        fee_calculator: Optional[FeeCalculator] = None,
    ):
        """
        Initialize CartService.

        Args:
            payment_provider: Collaborator that charges the customer (injected)
            inventory_service: Service for stock checks (injected)
            fee_calculator: Service for fee settlement (injected)
        """
        super().__init__()
        self.payment_provider = payment_provider
        self.inventory_service = inventory_service or InventoryService()
        self.fee_calculator = fee_calculator or FeeCalculator()

        self._items: List[CartItem] = []
        self._lock = threading.RLock()
        self._checkout_in_flight = False

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def items(self) -> List[CartItem]:
        with self._lock:
            return list(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def currency(self) -> str:
        items = self.items
        return items[0].unit_price.currency if items else self.fee_calculator.config.currency

    @property
    def item_count(self) -> int:
        """Total units across all lines."""
        return sum(item.quantity for item in self.items)

    @property
    def unique_item_count(self) -> int:
        return len(self.items)

    def subtotal(self) -> Money:
        return sum_money((item.line_total for item in self.items), self.currency)

    def total(self, shipping_option: Optional[ShippingOption] = None) -> Money:
        subtotal = self.subtotal()
        if shipping_option is None:
            return subtotal
        return subtotal + shipping_option.price

    def get_item(self, item_id: str) -> Optional[CartItem]:
        with self._lock:
            return next((item for item in self._items if item.id == item_id), None)

    def find_item(self, product: Product, variant: Optional[ProductVariant] = None) -> Optional[CartItem]:
        with self._lock:
            return next((item for item in self._items if item.matches(product, variant)), None)

    def contains(self, product: Product, variant: Optional[ProductVariant] = None) -> bool:
        return self.find_item(product, variant) is not None

    def quantity_of(self, product: Product, variant: Optional[ProductVariant] = None) -> int:
        """Units of this product/variant in the cart (0 when absent)."""
        item = self.find_item(product, variant)
        return item.quantity if item is not None else 0

    def _replace_line(self, item: CartItem) -> None:
        # Caller holds self._lock
        self._items = [item if line.id == item.id else line for line in self._items]

    def _remove_line(self, item: CartItem) -> None:
        # Caller holds self._lock
        self._items = [line for line in self._items if line.id != item.id]

    def _checkout_busy(self) -> Optional[ServiceResult]:
        # Caller holds self._lock
        if self._checkout_in_flight:
            return service_err(ErrorCodes.PAYMENT_IN_PROGRESS, "Cart cannot change while checkout is in progress")
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @BaseService.log_performance
    def add_item(
        self, product: Product, variant: Optional[ProductVariant] = None, quantity: int = 1
    ) -> ServiceResult[CartItem]:
        """
        Add a product (or one of its variants) to the cart.

        Adding a product/variant already in the cart increases that line's
        quantity; the unit price captured on the first add is kept.

        Args:
            product: Product to add
            variant: Selected variant (required when the product has variants)
            quantity: Units to add (default: 1)

        Returns:
            ServiceResult with the new or updated CartItem, or
            invalid_quantity / product_inactive / variant errors / insufficient_stock /
            payment_in_progress

        Example:
            >>> result = cart_service.add_item(hoodie, hoodie.variants[0], quantity=2)
            >>> if result.ok:
            ...     print(result.value.line_total)
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            return service_err(ErrorCodes.INVALID_QUANTITY, f"Quantity must be at least 1, got {quantity!r}")
        if not product.is_active:
            return service_err(ErrorCodes.PRODUCT_INACTIVE, f"Product {product.name} is not available")
        if variant is not None and not variant.is_active:
            return service_err(ErrorCodes.PRODUCT_INACTIVE, f"Variant {variant.display_name} is not available")

        resolved = self.inventory_service.resolve_inventory(product, variant)
        if not resolved.ok:
            return resolved

        with self._lock:
            busy = self._checkout_busy()
            if busy is not None:
                return busy

            existing = self.find_item(product, variant)
            new_quantity = quantity + (existing.quantity if existing else 0)

            stock = self.inventory_service.reserve(product, variant, new_quantity)
            if not stock.ok:
                return stock
            if new_quantity > self.inventory_service.max_order_quantity:
                return service_err(
                    ErrorCodes.INVALID_QUANTITY,
                    f"At most {self.inventory_service.max_order_quantity} of {product.name} per order",
                )

            if existing is not None:
                item = replace(existing, quantity=new_quantity)
                self._replace_line(item)
                self.logger.info(f"Updated cart line {item.display_name}: {existing.quantity} -> {new_quantity}")
            else:
                item = CartItem(
                    product=product,
                    variant=variant,
                    quantity=quantity,
                    unit_price=variant.price if variant is not None else product.base_price,
                    business_id=product.business_id,
                )
                self._items.append(item)
                self.logger.info(f"Added to cart: {quantity}x {item.display_name} at {item.unit_price}")

        return service_ok(item)

    @BaseService.log_performance
    def update_quantity(self, item_id: str, new_quantity: int) -> ServiceResult[Optional[CartItem]]:
        """
        Set a line's quantity.

        A quantity of zero or less removes the line (the result value is None).
        Otherwise the quantity is clamped to the most that can currently be
        ordered; an out-of-stock line is left unchanged.

        Returns:
            ServiceResult with the updated CartItem (or None if removed), or
            item_not_in_cart / insufficient_stock / payment_in_progress
        """
        if isinstance(new_quantity, bool) or not isinstance(new_quantity, int):
            return service_err(ErrorCodes.INVALID_QUANTITY, f"Quantity must be an integer, got {new_quantity!r}")

        with self._lock:
            busy = self._checkout_busy()
            if busy is not None:
                return busy

            item = self.get_item(item_id)
            if item is None:
                return service_err(ErrorCodes.ITEM_NOT_IN_CART, f"Cart line {item_id} not found")

            if new_quantity <= 0:
                self._remove_line(item)
                self.logger.info(f"Removed cart line {item.display_name}")
                return service_ok(None)

            ceiling = self.inventory_service.reserve(item.product, item.variant, 1)
            if not ceiling.ok:
                return ceiling

            clamped = min(new_quantity, ceiling.value)
            updated = replace(item, quantity=clamped)
            self._replace_line(updated)

        if clamped < new_quantity:
            self.logger.info(f"Cart line {item.display_name} clamped to {clamped} (requested {new_quantity})")
        return service_ok(updated)

    def increment(self, item_id: str) -> ServiceResult[Optional[CartItem]]:
        """Add one unit to a line, never past the reserve ceiling."""
        item = self.get_item(item_id)
        if item is None:
            return service_err(ErrorCodes.ITEM_NOT_IN_CART, f"Cart line {item_id} not found")
        return self.update_quantity(item_id, item.quantity + 1)

    def decrement(self, item_id: str) -> ServiceResult[Optional[CartItem]]:
        """Take one unit off a line; the last unit removes it."""
        item = self.get_item(item_id)
        if item is None:
            return service_err(ErrorCodes.ITEM_NOT_IN_CART, f"Cart line {item_id} not found")
        return self.update_quantity(item_id, item.quantity - 1)

    def remove_item(self, item_id: str) -> ServiceResult[CartItem]:
        with self._lock:
            busy = self._checkout_busy()
            if busy is not None:
                return busy
            item = self.get_item(item_id)
            if item is None:
                return service_err(ErrorCodes.ITEM_NOT_IN_CART, f"Cart line {item_id} not found")
            self._remove_line(item)
        self.logger.info(f"Removed cart line {item.display_name}")
        return service_ok(item)

    def clear_business(self, business_id: str) -> ServiceResult[int]:
        """Remove every line sold by one business; the value is the number of lines removed."""
        with self._lock:
            busy = self._checkout_busy()
            if busy is not None:
                return busy
            kept = [item for item in self._items if item.business_id != business_id]
            removed = len(self._items) - len(kept)
            self._items = kept
        if removed:
            self.logger.info(f"Removed {removed} cart line(s) from business {business_id}")
        return service_ok(removed)

    def clear(self) -> ServiceResult[int]:
        with self._lock:
            busy = self._checkout_busy()
            if busy is not None:
                return busy
            removed = len(self._items)
            self._items = []
        return service_ok(removed)

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def group_by_business(self) -> List[CheckoutGroup]:
        """Cart lines grouped per business, ordered by business name."""
        groups: Dict[str, List[CartItem]] = {}
        names: Dict[str, str] = {}
        for item in self.items:
            groups.setdefault(item.business_id, []).append(item)
            names.setdefault(item.business_id, item.product.business_name or item.business_id)

        checkout_groups = [
            CheckoutGroup(business_id=bid, business_name=names[bid], items=tuple(lines))
            for bid, lines in groups.items()
        ]
        return sorted(checkout_groups, key=lambda group: (group.business_name.lower(), group.business_id))

    def validate(self) -> List[CartItem]:
        """Lines that can no longer be bought as they stand (inactive, or more than current stock)."""
        invalid = []
        for item in self.items:
            if not item.product.is_active or (item.variant is not None and not item.variant.is_active):
                invalid.append(item)
                continue
            inventory = item.inventory
            if inventory.track_inventory and item.quantity > inventory.available:
                invalid.append(item)
        return invalid

    @BaseService.log_performance
    def checkout(
        self, shipping_option: ShippingOption, description: str = "ServU order"
    ) -> ServiceResult[CheckoutReceipt]:
        """
        Charge the cart total (subtotal plus shipping) once.

        Stock is re-checked before charging but not decremented; commit each
        receipt line through InventoryService once this succeeds. The cart
        is emptied on success and left untouched on failure.

        Args:
            shipping_option: Selected shipping option
            description: Statement description for the charge

        Returns:
            ServiceResult with a CheckoutReceipt, or cart_empty /
            payment_in_progress / insufficient_stock / a payment failure code
        """
        with self._lock:
            if self._checkout_in_flight:
                return service_err(ErrorCodes.PAYMENT_IN_PROGRESS, "Checkout is already in progress for this cart")
            if not self._items:
                return service_err(ErrorCodes.CART_EMPTY, "Cannot check out an empty cart")

            invalid = self.validate()
            if invalid:
                names = ", ".join(item.display_name for item in invalid)
                return service_err(ErrorCodes.INSUFFICIENT_STOCK, f"Not enough stock for: {names}")

            items = tuple(self._items)
            subtotal = self.subtotal()
            total = self.total(shipping_option)
            settlement = self.fee_calculator.compute_settlement(total)
            if not settlement.ok:
                return settlement

            self._checkout_in_flight = True

        try:
            try:
                result = self.payment_provider.charge(
                    amount_minor=total.amount,
                    currency=total.currency,
                    description=description,
                    metadata={"item_count": str(sum(item.quantity for item in items))},
                )
            except Exception as e:
                self.logger.error(f"Payment provider raised during checkout: {e}", exc_info=True)
                payment_attempts_total.labels(kind="checkout", outcome="network_error").inc()
                return service_err(ErrorCodes.NETWORK_OR_CONFIGURATION_ERROR, str(e))

            if not result.success:
                if result.failure_kind == FailureKind.DECLINED:
                    outcome, code = "declined", ErrorCodes.DECLINED_BY_PROCESSOR
                else:
                    outcome, code = "network_error", ErrorCodes.NETWORK_OR_CONFIGURATION_ERROR
                payment_attempts_total.labels(kind="checkout", outcome=outcome).inc()
                self.logger.warning(f"Checkout of {total} failed ({outcome}): {result.failure_reason}")
                return service_err(code, result.failure_reason or outcome)

            receipt = CheckoutReceipt(
                transaction_id=result.transaction_id,
                items=items,
                subtotal=subtotal,
                shipping_option=shipping_option,
                total=total,
                settlement=settlement.value,
            )
            charged_ids = {item.id for item in items}
            with self._lock:
                self._items = [item for item in self._items if item.id not in charged_ids]
        finally:
            with self._lock:
                self._checkout_in_flight = False

        payment_attempts_total.labels(kind="checkout", outcome="succeeded").inc()
        checkout_value.observe(float(total.to_decimal()))
        self.logger.info(f"Checkout charged {total} ({receipt.transaction_id}) for {len(items)} line(s)")
        return service_ok(receipt)
