"""
Stripe Payment Provider
========================

Concrete implementation of PaymentProviderInterface using Stripe PaymentIntents.
"""

import logging
from typing import Any, Dict, Optional

import stripe
from django.conf import settings
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .interface import ChargeResult, FailureKind, PaymentProviderInterface

logger = logging.getLogger(__name__)

# Stripe errors worth retrying under the same idempotency key
TRANSIENT_STRIPE_ERRORS = (
    stripe.RateLimitError,
    stripe.APIConnectionError,
    stripe.APIError,
)

# Intent states that mean the customer's payment method was refused
DECLINED_INTENT_STATUSES = {"requires_payment_method", "requires_action"}

# Values Stripe accepts for Refund.reason; other text is kept in metadata
STRIPE_REFUND_REASONS = {"duplicate", "fraudulent", "requested_by_customer"}


class StripeProvider(PaymentProviderInterface):
    """
    Stripe payment provider implementation.

    Configuration (in settings.py):
        STRIPE_SECRET_KEY: Stripe secret API key
        STRIPE_PAYMENT_METHOD: Payment method confirmed with each intent
            (the customer's saved method in production)
    """

    def __init__(self, payment_method: Optional[str] = None):
        """Initialize Stripe provider with API credentials."""
        stripe.api_key = getattr(settings, "STRIPE_SECRET_KEY", "")
        self.payment_method = payment_method or getattr(settings, "STRIPE_PAYMENT_METHOD", None)

        if not stripe.api_key:
            logger.warning("STRIPE_SECRET_KEY not configured")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(TRANSIENT_STRIPE_ERRORS),
        reraise=True,
    )
    def _create_payment_intent_api(self, **kwargs):
        """Internal method to create and confirm an intent with retries."""
        return stripe.PaymentIntent.create(**kwargs)

    def charge(
        self,
        amount_minor: int,
        currency: str,
        description: str,
        metadata: Optional[Dict[str, Any]] = None,
        idempotency_key: Optional[str] = None,
    ) -> ChargeResult:
        """
        Create and confirm a Stripe PaymentIntent.

        Args:
            amount_minor: Amount in cents
            currency: ISO currency code
            description: Statement description
            metadata: Custom metadata
            idempotency_key: Stripe idempotency key, reused across retries

        Returns:
            ChargeResult; card errors map to DECLINED, all other Stripe
            errors to NETWORK
        """
        intent_params = {
            "amount": amount_minor,
            "currency": currency.lower(),
            "description": description,
            "confirm": True,
            "automatic_payment_methods": {"enabled": True, "allow_redirects": "never"},
        }

        if self.payment_method:
            intent_params["payment_method"] = self.payment_method

        if metadata:
            intent_params["metadata"] = metadata

        if idempotency_key:
            intent_params["idempotency_key"] = idempotency_key

        try:
            intent = self._create_payment_intent_api(**intent_params)
        except stripe.CardError as e:
            logger.warning(f"Stripe declined charge of {amount_minor} {currency}: {e.user_message or e}")
            return ChargeResult.failed(FailureKind.DECLINED, e.user_message or str(e), amount_minor, currency)
        except stripe.StripeError as e:
            logger.error(f"Stripe charge failed: {str(e)}")
            return ChargeResult.failed(FailureKind.NETWORK, str(e), amount_minor, currency)

        if intent.status == "succeeded":
            logger.info(f"Created Stripe payment intent: {intent.id}")
            return ChargeResult.succeeded(intent.id, amount_minor, currency, metadata)

        kind = FailureKind.DECLINED if intent.status in DECLINED_INTENT_STATUSES else FailureKind.NETWORK
        logger.warning(f"Stripe payment intent {intent.id} ended in status {intent.status}")
        return ChargeResult.failed(kind, f"Payment intent status: {intent.status}", amount_minor, currency)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(TRANSIENT_STRIPE_ERRORS),
        reraise=True,
    )
    def _create_refund_api(self, **kwargs):
        return stripe.Refund.create(**kwargs)

    def refund(
        self,
        transaction_id: str,
        amount_minor: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> ChargeResult:
        """
        Create a refund in Stripe.

        Args:
            transaction_id: Stripe payment intent ID
            amount_minor: Partial refund amount in cents (None for full refund)
            reason: One of STRIPE_REFUND_REASONS, or free text stored in the refund metadata

        Returns:
            ChargeResult with the refund ID on success
        """
        refund_params = {
            "payment_intent": transaction_id,
            "idempotency_key": f"refund-{transaction_id}-{amount_minor or 'full'}",
        }

        if amount_minor:
            refund_params["amount"] = amount_minor

        if reason in STRIPE_REFUND_REASONS:
            refund_params["reason"] = reason
        elif reason:
            refund_params["metadata"] = {"reason": reason}

        try:
            refund = self._create_refund_api(**refund_params)
        except stripe.StripeError as e:
            logger.error(f"Refund creation failed: {str(e)}")
            return ChargeResult.failed(FailureKind.NETWORK, str(e), amount_minor or 0)

        logger.info(f"Created refund: {refund.id} for payment {transaction_id}")

        if refund.status in ("succeeded", "pending"):
            return ChargeResult.succeeded(refund.id, refund.amount, refund.currency)
        return ChargeResult.failed(
            FailureKind.DECLINED, f"Refund status: {refund.status}", refund.amount, refund.currency
        )
