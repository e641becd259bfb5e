"""
Commerce Service Layer

This package contains the business rules of the ServU marketplace, organized
into services that return ServiceResult values for expected failures.

Services:
- FeeCalculator: Platform/processor fees and net payouts
- DepositPolicy: Deposits and remaining balances for services
- InventoryService: Stock checks and commits
- BookingService: Booking lifecycle and payments
- CartService: Cart aggregation and checkout

Usage:
    from infrastructure.container import container

    booking_service = container.booking_service()
    result = booking_service.create_booking(service, business, slot)

    if result.ok:
        booking = result.value
    else:
        error = result.error
"""

from .base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from .booking_service import BookingService
from .cart_service import CartService
from .deposit_policy import DepositPolicy
from .fee_calculator import FeeCalculator, PlatformFeeConfig
from .inventory_service import InventoryService

__all__ = [
    # Base classes
    "BaseService",
    "ServiceResult",
    "service_ok",
    "service_err",
    "ErrorCodes",
    # Services
    "BookingService",
    "CartService",
    "DepositPolicy",
    "FeeCalculator",
    "InventoryService",
    "PlatformFeeConfig",
]
