"""
Service Container Tests
========================

Unit tests for dependency injection container.
"""

from django.test import TestCase, override_settings

from commerce.services import BookingService, CartService, FeeCalculator, InventoryService
from infrastructure.container import ServiceContainer, container, get_identity, get_payment
from infrastructure.identity import IdentityProviderInterface, StaticIdentityProvider
from infrastructure.payments import MockPaymentProvider, PaymentProviderInterface, StripeProvider


class ServiceContainerTest(TestCase):
    """Test ServiceContainer implementation."""

    def setUp(self):
        """Set up test fixtures."""
        # Reset container before each test
        container.reset()

    def tearDown(self):
        container.reset()

    def test_container_is_singleton(self):
        """Test that ServiceContainer is a singleton."""
        container1 = ServiceContainer()
        container2 = ServiceContainer()

        self.assertIs(container1, container2)
        self.assertIs(container1, container)

    @override_settings(PAYMENT_PROVIDER="stripe", STRIPE_SECRET_KEY="sk_test_fake")
    def test_get_payment_service(self):
        """Test getting payment service from container."""
        payment = container.payment()

        self.assertIsInstance(payment, PaymentProviderInterface)
        self.assertIsInstance(payment, StripeProvider)

        # Second call should return cached instance
        payment2 = container.payment()
        self.assertIs(payment, payment2)

    def test_payment_with_explicit_backend(self):
        """Test explicit backend replaces the cached provider."""
        payment = container.payment("mock")

        self.assertIsInstance(payment, MockPaymentProvider)
        self.assertIs(container.payment(), payment)

    def test_get_identity(self):
        identity = container.identity()

        self.assertIsInstance(identity, IdentityProviderInterface)
        self.assertIsInstance(identity, StaticIdentityProvider)
        self.assertIs(container.identity(), identity)

    def test_booking_service_wiring(self):
        """Test booking service is built from the container's collaborators."""
        container.configure_for_testing()

        booking_service = container.booking_service()

        self.assertIsInstance(booking_service, BookingService)
        self.assertIs(booking_service.payment_provider, container.payment())
        self.assertIs(booking_service.identity_provider, container.identity())
        self.assertIs(booking_service.deposit_policy, container.deposit_policy())
        self.assertIs(container.booking_service(), booking_service)

    def test_new_cart_is_not_cached(self):
        """Test each cart is a separate CartService sharing inventory and fees."""
        container.configure_for_testing()

        cart1 = container.new_cart()
        cart2 = container.new_cart()

        self.assertIsInstance(cart1, CartService)
        self.assertIsNot(cart1, cart2)
        self.assertIs(cart1.inventory_service, cart2.inventory_service)
        self.assertIsInstance(cart1.inventory_service, InventoryService)
        self.assertIsInstance(cart1.fee_calculator, FeeCalculator)

    def test_reset(self):
        """Test resetting container."""
        container.configure_for_testing()
        booking_service = container.booking_service()

        container.reset()

        self.assertIsNot(container.booking_service(), booking_service)

    def test_configure_for_testing(self):
        """Test configuring container for testing."""
        container.configure_for_testing()

        self.assertIsInstance(container.payment(), MockPaymentProvider)
        self.assertEqual(container.identity().current_user().id, "student-1")

    def test_convenience_functions(self):
        container.configure_for_testing()

        self.assertIs(get_payment(), container.payment())
        self.assertIs(get_identity(), container.identity())
