"""
Dependency Injection Container
================================

Simple service locator pattern for managing infrastructure dependencies and
the commerce services built on them.

Usage:
    from infrastructure.container import container

    payment = container.payment()
    booking_service = container.booking_service()
    cart = container.new_cart()
"""

import logging
from typing import Optional

from .identity import IdentityProviderInterface, StaticIdentityProvider
from .payments import PaymentFactory, PaymentProviderInterface

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Service container for infrastructure dependencies and commerce services.

    Implements lazy initialization and caching of service instances.
    Singleton pattern.
    """

    _instance: Optional["ServiceContainer"] = None
    _initialized: bool = False

    def __new__(cls):
        """Ensure only one instance exists (singleton pattern)."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize container (only once)."""
        if not self._initialized:
            self._payment: Optional[PaymentProviderInterface] = None
            self._identity: Optional[IdentityProviderInterface] = None

            # Domain Services
            self._fee_calculator = None
            self._deposit_policy = None
            self._inventory_service = None
            self._booking_service = None

            self._initialized = True
            logger.info("Service container initialized")

    def payment(self, backend: Optional[str] = None) -> PaymentProviderInterface:
        """
        Get payment provider instance.

        Args:
            backend: Payment backend type ('stripe' or 'mock')
                    If None, uses configuration from settings

        Returns:
            PaymentProviderInterface implementation (cached)
        """
        if self._payment is None or backend is not None:
            self._payment = PaymentFactory.create(backend)
            logger.debug(f"Created payment service: {type(self._payment).__name__}")

        return self._payment

    def identity(self) -> IdentityProviderInterface:
        """Get identity provider instance (cached)."""
        if self._identity is None:
            self._identity = StaticIdentityProvider()
            logger.debug(f"Created identity provider: {type(self._identity).__name__}")
        return self._identity

    def fee_calculator(self):
        """Get FeeCalculator instance, configured from settings."""
        if self._fee_calculator is None:
            from commerce.services import FeeCalculator

            self._fee_calculator = FeeCalculator()
            logger.debug("Created FeeCalculator")
        return self._fee_calculator

    def deposit_policy(self):
        """Get DepositPolicy instance."""
        if self._deposit_policy is None:
            from commerce.services import DepositPolicy

            self._deposit_policy = DepositPolicy()
            logger.debug("Created DepositPolicy")
        return self._deposit_policy

    def inventory_service(self):
        """Get InventoryService instance."""
        if self._inventory_service is None:
            from commerce.services import InventoryService

            self._inventory_service = InventoryService()
            logger.debug("Created InventoryService")
        return self._inventory_service

    def booking_service(self):
        """Get BookingService instance (owns the booking ledger)."""
        if self._booking_service is None:
            from commerce.services import BookingService

            self._booking_service = BookingService(
                payment_provider=self.payment(),
                identity_provider=self.identity(),
                deposit_policy=self.deposit_policy(),
            )
            logger.debug("Created BookingService")
        return self._booking_service

    def new_cart(self):
        """Create a CartService for a new cart; carts are not cached."""
        from commerce.services import CartService

        return CartService(
            payment_provider=self.payment(),
            inventory_service=self.inventory_service(),
            fee_calculator=self.fee_calculator(),
        )

    def reset(self):
        """
        Reset all cached service instances.

        Useful for testing or when switching between environments.
        """
        self._payment = None
        self._identity = None
        self._fee_calculator = None
        self._deposit_policy = None
        self._inventory_service = None
        self._booking_service = None
        logger.info("Service container reset")

    def configure_for_testing(self):
        """
        Configure container with mock services for testing.

        Sets up:
            - Mock payment provider (instead of Stripe)
            - Static identity provider from settings
        """
        self.reset()
        self._payment = PaymentFactory.create("mock")
        self._identity = StaticIdentityProvider()
        logger.info("Service container configured for testing")


# Global singleton instance
container = ServiceContainer()


# Convenience functions for quick access
def get_payment() -> PaymentProviderInterface:
    """Get payment provider from global container."""
    return container.payment()


def get_identity() -> IdentityProviderInterface:
    """Get identity provider from global container."""
    return container.identity()
