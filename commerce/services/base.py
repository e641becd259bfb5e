"""
Base classes and utilities for the commerce service layer.

This module provides the ServiceResult pattern (inspired by Rust's Result type)
and the BaseService class shared by fee, deposit, inventory, booking and cart
services.
"""

import logging
import time
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    A result type that encapsulates success or failure from service operations.

    Expected business failures (insufficient stock, a declined card, an illegal
    booking transition) are returned as values instead of being raised.

    Attributes:
        ok: True if operation succeeded, False otherwise
        value: The success value (present if ok=True)
        error: Error code from ErrorCodes (present if ok=False)
        error_detail: Human-readable error message (present if ok=False)

    Examples:
        >>> result = inventory_service.commit(product, variant, 2, reference_id="order-1")
        >>> if not result.ok:
        ...     print(result.error)  # "insufficient_stock"

        >>> result = service_err("slot_unavailable", "Slot overlaps booking 42")
        >>> print(result.error_detail)  # "Slot overlaps booking 42"
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_detail: Optional[str] = None

    def map(self, func: Callable[[T], Any]) -> "ServiceResult":
        """
        Transform the success value if ok=True, otherwise pass through error.

        Args:
            func: Function to apply to the value

        Returns:
            ServiceResult with transformed value or original error
        """
        if self.ok and self.value is not None:
            try:
                return service_ok(func(self.value))
            except Exception as e:
                return service_err(ErrorCodes.INTERNAL_ERROR, str(e))
        return self


def service_ok(value: T) -> ServiceResult[T]:
    """
    Create a successful ServiceResult.

    Args:
        value: The success value

    Returns:
        ServiceResult with ok=True and the value
    """
    return ServiceResult(ok=True, value=value)


def service_err(error: str, error_detail: str = "") -> ServiceResult:
    """
    Create a failed ServiceResult.

    Args:
        error: Error code (e.g., "insufficient_stock", "slot_unavailable")
        error_detail: Human-readable error message

    Returns:
        ServiceResult with ok=False and error information

    Example:
        >>> return service_err(ErrorCodes.BOOKING_NOT_FOUND, f"Booking {booking_id} does not exist")
    """
    return ServiceResult(ok=False, error=error, error_detail=error_detail or error)


class BaseService:
    """
    Base class for all commerce services providing common functionality.

    Provides:
    - Logging with class name
    - Performance timing decorator

    Usage:
        class InventoryService(BaseService):
            def __init__(self, max_order_quantity=None):
                super().__init__()
                self.max_order_quantity = max_order_quantity or 10

            @BaseService.log_performance
            def reserve(self, product, variant, quantity):
                self.logger.info(f"Reserving {quantity} of {product.name}")
                # ... implementation
    """

    def __init__(self):
        """Initialize base service with logger."""
        self.logger = logging.getLogger(self.__class__.__module__ + "." + self.__class__.__name__)

    @staticmethod
    def log_performance(func: Callable) -> Callable:
        """
        Decorator to log performance of service methods.

        Logs execution time and any errors that occur.

        Args:
            func: The service method to wrap

        Returns:
            Wrapped function with performance logging
        """

        @wraps(func)
        def wrapper(self, *args, **kwargs):
            start_time = time.time()
            method_name = f"{self.__class__.__name__}.{func.__name__}"

            try:
                self.logger.debug(f"{method_name} started")
                result = func(self, *args, **kwargs)
                elapsed_time = (time.time() - start_time) * 1000  # Convert to ms

                if isinstance(result, ServiceResult):
                    if result.ok:
                        self.logger.info(f"{method_name} completed successfully in {elapsed_time:.2f}ms")
                    else:
                        self.logger.warning(
                            f"{method_name} failed with error '{result.error}' in {elapsed_time:.2f}ms"
                        )
                else:
                    self.logger.info(f"{method_name} completed in {elapsed_time:.2f}ms")

                return result

            except Exception as e:
                elapsed_time = (time.time() - start_time) * 1000
                self.logger.error(
                    f"{method_name} raised exception after {elapsed_time:.2f}ms: {str(e)}",
                    exc_info=True,
                )
                raise

        return wrapper


class ErrorCodes:
    """Standard error codes returned by commerce services."""

    # Validation errors
    INVALID_AMOUNT = "invalid_amount"
    INVALID_QUANTITY = "invalid_quantity"
    INVALID_INPUT = "invalid_input"
    INVALID_DEPOSIT_CONFIGURATION = "invalid_deposit_configuration"

    # Inventory errors
    INSUFFICIENT_STOCK = "insufficient_stock"
    VARIANT_REQUIRED = "variant_required"
    VARIANT_NOT_FOUND = "variant_not_found"
    PRODUCT_INACTIVE = "product_inactive"

    # Cart errors
    ITEM_NOT_IN_CART = "item_not_in_cart"
    CART_EMPTY = "cart_empty"

    # Booking errors
    SERVICE_UNAVAILABLE = "service_unavailable"
    SLOT_UNAVAILABLE = "slot_unavailable"
    BOOKING_NOT_FOUND = "booking_not_found"
    INVALID_STATE_TRANSITION = "invalid_state_transition"

    # Payment errors
    PAYMENT_IN_PROGRESS = "payment_in_progress"
    DECLINED_BY_PROCESSOR = "declined_by_processor"
    NETWORK_OR_CONFIGURATION_ERROR = "network_or_configuration_error"

    # Internal errors
    INTERNAL_ERROR = "internal_error"
