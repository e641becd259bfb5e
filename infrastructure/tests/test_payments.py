"""
Payment Infrastructure Tests
==============================

Unit tests for payment provider abstraction layer.
"""

from unittest.mock import MagicMock, patch

import stripe
from django.test import TestCase, override_settings

from infrastructure.payments import (
    ChargeResult,
    FailureKind,
    MockPaymentProvider,
    PaymentFactory,
    PaymentProviderInterface,
    StripeProvider,
)


class PaymentInterfaceTest(TestCase):
    """Test PaymentProviderInterface contract."""

    def test_interface_is_abstract(self):
        """PaymentProviderInterface should not be instantiable."""
        with self.assertRaises(TypeError):
            PaymentProviderInterface()

    def test_charge_result_normalizes_currency(self):
        result = ChargeResult.succeeded("pi_123", 2500, "USD")

        self.assertTrue(result.success)
        self.assertEqual(result.currency, "usd")
        self.assertIsNone(result.failure_kind)

    def test_failed_charge_result(self):
        result = ChargeResult.failed(FailureKind.DECLINED, "Insufficient funds", 2500)

        self.assertFalse(result.success)
        self.assertIsNone(result.transaction_id)
        self.assertEqual(result.failure_kind, FailureKind.DECLINED)


@override_settings(STRIPE_SECRET_KEY="sk_test_fake", STRIPE_PAYMENT_METHOD="pm_card_visa")
class StripeProviderTest(TestCase):
    """Test StripeProvider implementation."""

    def setUp(self):
        """Set up test fixtures."""
        self.provider = StripeProvider()

    def _intent(self, status="succeeded", intent_id="pi_test_123"):
        intent = MagicMock()
        intent.id = intent_id
        intent.status = status
        return intent

    @patch("stripe.PaymentIntent.create")
    def test_charge_success(self, mock_create):
        """Test successful charge."""
        mock_create.return_value = self._intent()

        result = self.provider.charge(
            amount_minor=6500,
            currency="USD",
            description="ServU order",
            metadata={"item_count": "3"},
            idempotency_key="order-1",
        )

        self.assertTrue(result.success)
        self.assertEqual(result.transaction_id, "pi_test_123")
        self.assertEqual(result.amount, 6500)
        self.assertEqual(result.currency, "usd")

        kwargs = mock_create.call_args.kwargs
        self.assertEqual(kwargs["amount"], 6500)
        self.assertEqual(kwargs["currency"], "usd")
        self.assertTrue(kwargs["confirm"])
        self.assertEqual(kwargs["payment_method"], "pm_card_visa")
        self.assertEqual(kwargs["metadata"], {"item_count": "3"})
        self.assertEqual(kwargs["idempotency_key"], "order-1")

    @patch("stripe.PaymentIntent.create")
    def test_card_error_is_declined(self, mock_create):
        """Test card errors map to a declined result."""
        mock_create.side_effect = stripe.CardError("Your card was declined.", None, "card_declined")

        result = self.provider.charge(amount_minor=5000, currency="usd", description="Haircut (deposit)")

        self.assertFalse(result.success)
        self.assertEqual(result.failure_kind, FailureKind.DECLINED)
        self.assertIn("declined", result.failure_reason)
        mock_create.assert_called_once()

    @patch("time.sleep")
    @patch("stripe.PaymentIntent.create")
    def test_connection_error_retried_then_network_failure(self, mock_create, mock_sleep):
        """Test transient errors are retried before giving up."""
        mock_create.side_effect = stripe.APIConnectionError("Connection reset")

        result = self.provider.charge(amount_minor=5000, currency="usd", description="Haircut (deposit)")

        self.assertFalse(result.success)
        self.assertEqual(result.failure_kind, FailureKind.NETWORK)
        self.assertEqual(mock_create.call_count, 3)

    @patch("time.sleep")
    @patch("stripe.PaymentIntent.create")
    def test_retry_recovers(self, mock_create, mock_sleep):
        """Test a transient failure followed by success."""
        mock_create.side_effect = [stripe.RateLimitError("Too many requests"), self._intent()]

        result = self.provider.charge(
            amount_minor=5000, currency="usd", description="Haircut (deposit)", idempotency_key="key-1"
        )

        self.assertTrue(result.success)
        self.assertEqual(mock_create.call_count, 2)
        for call in mock_create.call_args_list:
            self.assertEqual(call.kwargs["idempotency_key"], "key-1")

    @patch("stripe.PaymentIntent.create")
    def test_authentication_error_not_retried(self, mock_create):
        """Test configuration errors fail immediately."""
        mock_create.side_effect = stripe.AuthenticationError("Invalid API Key provided")

        result = self.provider.charge(amount_minor=5000, currency="usd", description="Consult")

        self.assertEqual(result.failure_kind, FailureKind.NETWORK)
        mock_create.assert_called_once()

    @patch("stripe.PaymentIntent.create")
    def test_intent_requiring_payment_method_is_declined(self, mock_create):
        mock_create.return_value = self._intent(status="requires_payment_method")

        result = self.provider.charge(amount_minor=5000, currency="usd", description="Consult")

        self.assertFalse(result.success)
        self.assertEqual(result.failure_kind, FailureKind.DECLINED)

    @patch("stripe.PaymentIntent.create")
    def test_processing_intent_is_not_success(self, mock_create):
        mock_create.return_value = self._intent(status="processing")

        result = self.provider.charge(amount_minor=5000, currency="usd", description="Consult")

        self.assertFalse(result.success)
        self.assertEqual(result.failure_kind, FailureKind.NETWORK)

    @patch("stripe.Refund.create")
    def test_refund_success(self, mock_create):
        """Test successful refund."""
        mock_refund = MagicMock()
        mock_refund.id = "re_test_123"
        mock_refund.status = "succeeded"
        mock_refund.amount = 5000
        mock_refund.currency = "usd"
        mock_create.return_value = mock_refund

        result = self.provider.refund("pi_test_123", amount_minor=5000, reason="requested_by_customer")

        self.assertTrue(result.success)
        self.assertEqual(result.transaction_id, "re_test_123")
        kwargs = mock_create.call_args.kwargs
        self.assertEqual(kwargs["payment_intent"], "pi_test_123")
        self.assertEqual(kwargs["amount"], 5000)
        self.assertEqual(kwargs["reason"], "requested_by_customer")
        self.assertEqual(kwargs["idempotency_key"], "refund-pi_test_123-5000")

    @patch("stripe.Refund.create")
    def test_refund_free_text_reason_goes_to_metadata(self, mock_create):
        """Reasons Stripe does not recognize are kept in refund metadata."""
        mock_refund = MagicMock()
        mock_refund.id = "re_test_456"
        mock_refund.status = "succeeded"
        mock_refund.amount = 5000
        mock_refund.currency = "usd"
        mock_create.return_value = mock_refund

        result = self.provider.refund("pi_test_123", reason="Customer cancelled appointment")

        self.assertTrue(result.success)
        kwargs = mock_create.call_args.kwargs
        self.assertNotIn("reason", kwargs)
        self.assertEqual(kwargs["metadata"], {"reason": "Customer cancelled appointment"})

    @patch("stripe.Refund.create")
    def test_refund_without_reason(self, mock_create):
        mock_create.return_value = MagicMock(id="re_test_789", status="succeeded", amount=1000, currency="usd")

        self.assertTrue(self.provider.refund("pi_test_123").success)
        kwargs = mock_create.call_args.kwargs
        self.assertNotIn("reason", kwargs)
        self.assertNotIn("metadata", kwargs)

    @patch("stripe.Refund.create")
    def test_refund_stripe_error(self, mock_create):
        """Test refund with Stripe error."""
        mock_create.side_effect = stripe.InvalidRequestError("Charge already refunded", "payment_intent")

        result = self.provider.refund("pi_test_123")

        self.assertFalse(result.success)
        self.assertEqual(result.failure_kind, FailureKind.NETWORK)


class MockPaymentProviderTest(TestCase):
    """Test MockPaymentProvider implementation."""

    def setUp(self):
        self.provider = MockPaymentProvider()

    def test_charge_is_recorded(self):
        result = self.provider.charge(2500, "USD", "Campus Hoodie", metadata={"item_count": "1"})

        self.assertTrue(result.success)
        self.assertTrue(result.transaction_id.startswith("mock_pi_"))
        self.assertEqual(len(self.provider.charges), 1)
        self.assertEqual(self.provider.charge_requests[0]["description"], "Campus Hoodie")
        self.assertEqual(self.provider.total_charged, 2500)

    def test_scripted_failures_are_consumed_in_order(self):
        self.provider.decline_next("Insufficient funds")
        self.provider.fail_next()

        declined = self.provider.charge(1000, "usd", "First")
        failed = self.provider.charge(1000, "usd", "Second")
        succeeded = self.provider.charge(1000, "usd", "Third")

        self.assertEqual(declined.failure_kind, FailureKind.DECLINED)
        self.assertEqual(declined.failure_reason, "Insufficient funds")
        self.assertEqual(failed.failure_kind, FailureKind.NETWORK)
        self.assertTrue(succeeded.success)
        self.assertEqual(len(self.provider.charges), 1)

    def test_idempotency_key_replays(self):
        first = self.provider.charge(1000, "usd", "Order", idempotency_key="order-1")
        second = self.provider.charge(1000, "usd", "Order", idempotency_key="order-1")

        self.assertEqual(first.transaction_id, second.transaction_id)
        self.assertEqual(len(self.provider.charges), 1)

    def test_refund_defaults_to_charged_amount(self):
        charge = self.provider.charge(4200, "usd", "Order")

        refund = self.provider.refund(charge.transaction_id)

        self.assertTrue(refund.success)
        self.assertEqual(refund.amount, 4200)
        self.assertTrue(refund.transaction_id.startswith("mock_re_"))

    def test_clear(self):
        self.provider.charge(1000, "usd", "Order")
        self.provider.decline_next()
        self.provider.clear()

        self.assertEqual(self.provider.charges, [])
        self.assertTrue(self.provider.charge(1000, "usd", "Order").success)


class PaymentFactoryTest(TestCase):
    """Test PaymentFactory."""

    @override_settings(PAYMENT_PROVIDER="stripe", STRIPE_SECRET_KEY="sk_test_fake")
    def test_create_stripe_provider(self):
        """Test creating Stripe provider from settings."""
        provider = PaymentFactory.create()

        self.assertIsInstance(provider, StripeProvider)

    @override_settings(PAYMENT_PROVIDER="mock")
    def test_create_mock_provider(self):
        provider = PaymentFactory.create()

        self.assertIsInstance(provider, MockPaymentProvider)

    def test_explicit_backend_overrides_settings(self):
        provider = PaymentFactory.create("stripe")

        self.assertIsInstance(provider, StripeProvider)

    def test_create_invalid_provider(self):
        """Test creating invalid provider raises error."""
        with self.assertRaises(ValueError):
            PaymentFactory.create("paypal")
