"""
Payment Provider Interface
===========================

Abstract base class defining the contract for charging and refunding
customers. Amounts cross this boundary as integer minor units (cents).

Processor outcomes (a declined card, an unreachable API) are reported in the
returned ChargeResult rather than raised, so callers can map them to their
own error codes without catching provider-specific exceptions.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class FailureKind(str, Enum):
    """Why a charge or refund did not go through."""

    DECLINED = "declined"
    NETWORK = "network"


@dataclass
class ChargeResult:
    """
    Outcome of a charge or refund request.

    Attributes:
        success: True if the processor accepted the request
        transaction_id: Processor reference (payment intent or refund ID)
        amount: Amount in smallest currency unit (cents)
        currency: ISO currency code (lowercase)
        failure_reason: Human-readable reason (present if success=False)
        failure_kind: DECLINED or NETWORK (present if success=False)
        metadata: Additional custom data echoed back by the provider
    """

    success: bool
    transaction_id: Optional[str] = None
    amount: int = 0
    currency: str = "usd"
    failure_reason: Optional[str] = None
    failure_kind: Optional[FailureKind] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def succeeded(cls, transaction_id: str, amount: int, currency: str, metadata=None) -> "ChargeResult":
        return cls(
            success=True,
            transaction_id=transaction_id,
            amount=amount,
            currency=currency.lower(),
            metadata=metadata or {},
        )

    @classmethod
    def failed(cls, kind: FailureKind, reason: str, amount: int = 0, currency: str = "usd") -> "ChargeResult":
        return cls(
            success=False,
            amount=amount,
            currency=currency.lower(),
            failure_reason=reason,
            failure_kind=kind,
        )


class PaymentProviderInterface(ABC):
    """
    Abstract interface for payment provider operations.

    Concrete implementations:
        - StripeProvider: Stripe PaymentIntents
        - MockPaymentProvider: In-memory provider for development and tests
    """

    @abstractmethod
    def charge(
        self,
        amount_minor: int,
        currency: str,
        description: str,
        metadata: Optional[Dict[str, Any]] = None,
        idempotency_key: Optional[str] = None,
    ) -> ChargeResult:
        """
        Charge the customer.

        Args:
            amount_minor: Amount in smallest currency unit (cents), > 0
            currency: ISO currency code
            description: Statement description shown to the customer
            metadata: Custom data to attach to the charge
            idempotency_key: Key that makes retries of the same charge safe

        Returns:
            ChargeResult; failures carry a FailureKind instead of raising
        """
        pass

    @abstractmethod
    def refund(
        self,
        transaction_id: str,
        amount_minor: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> ChargeResult:
        """
        Refund a previous charge.

        Args:
            transaction_id: Transaction returned by charge()
            amount_minor: Partial refund amount (None for a full refund)
            reason: Refund reason

        Returns:
            ChargeResult describing the refund
        """
        pass
