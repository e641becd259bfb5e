"""
Payment Service Abstraction Layer
==================================

Provides a unified interface for charging and refunding customers across
payment providers.
"""

from .factory import PaymentFactory
from .interface import ChargeResult, FailureKind, PaymentProviderInterface
from .mock_provider import MockPaymentProvider
from .stripe_provider import StripeProvider

__all__ = [
    "PaymentProviderInterface",
    "ChargeResult",
    "FailureKind",
    "StripeProvider",
    "MockPaymentProvider",
    "PaymentFactory",
]
