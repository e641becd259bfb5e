"""
Mock Payment Provider
=====================

Mock implementation of PaymentProviderInterface for testing and development.
Logs payment operations instead of contacting a processor.
"""

import logging
import uuid
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Tuple

from .interface import ChargeResult, FailureKind, PaymentProviderInterface

logger = logging.getLogger(__name__)


class MockPaymentProvider(PaymentProviderInterface):
    """
    Mock payment provider for testing and development.

    Instead of charging cards, this provider:
        - Logs all payment operations
        - Stores charges and refunds in memory for verification
        - Succeeds unless a failure has been scripted

    Scripting:
        provider.decline_next("Your card was declined.")
        provider.fail_next("Connection reset")
    """

    def __init__(self):
        """Initialize mock provider with empty charge and refund lists."""
        self.charges: List[ChargeResult] = []
        self.refunds: List[ChargeResult] = []
        self.charge_requests: List[Dict[str, Any]] = []
        self._scripted: Deque[Tuple[FailureKind, str]] = deque()
        self._by_idempotency_key: Dict[str, ChargeResult] = {}

    def decline_next(self, reason: str = "Your card was declined.") -> None:
        """Make the next charge or refund fail as declined."""
        self._scripted.append((FailureKind.DECLINED, reason))

    def fail_next(self, reason: str = "Payment processor unreachable") -> None:
        """Make the next charge or refund fail with a network error."""
        self._scripted.append((FailureKind.NETWORK, reason))

    def _next_failure(self, amount: int, currency: str) -> Optional[ChargeResult]:
        if not self._scripted:
            return None
        kind, reason = self._scripted.popleft()
        return ChargeResult.failed(kind, reason, amount, currency)

    def charge(
        self,
        amount_minor: int,
        currency: str,
        description: str,
        metadata: Optional[Dict[str, Any]] = None,
        idempotency_key: Optional[str] = None,
    ) -> ChargeResult:
        """
        Mock charge - logs and stores the charge.

        A repeated idempotency key returns the first result without charging again.
        """
        if idempotency_key and idempotency_key in self._by_idempotency_key:
            logger.info(f"[MOCK PAYMENT] Replayed idempotent charge: {idempotency_key}")
            return self._by_idempotency_key[idempotency_key]

        self.charge_requests.append(
            {
                "amount": amount_minor,
                "currency": currency,
                "description": description,
                "metadata": metadata or {},
                "idempotency_key": idempotency_key,
            }
        )

        result = self._next_failure(amount_minor, currency)
        if result is None:
            result = ChargeResult.succeeded(f"mock_pi_{uuid.uuid4().hex[:16]}", amount_minor, currency, metadata)
            self.charges.append(result)
            logger.info(f"[MOCK PAYMENT] Charged {amount_minor} {currency}: {description} ({result.transaction_id})")
        else:
            logger.info(f"[MOCK PAYMENT] Charge of {amount_minor} {currency} failed: {result.failure_reason}")

        if idempotency_key:
            self._by_idempotency_key[idempotency_key] = result
        return result

    def refund(
        self,
        transaction_id: str,
        amount_minor: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> ChargeResult:
        """Mock refund - logs and stores the refund."""
        original = next((c for c in self.charges if c.transaction_id == transaction_id), None)
        amount = amount_minor if amount_minor is not None else (original.amount if original else 0)
        currency = original.currency if original else "usd"

        result = self._next_failure(amount, currency)
        if result is None:
            result = ChargeResult.succeeded(
                f"mock_re_{uuid.uuid4().hex[:16]}", amount, currency, {"payment_intent": transaction_id}
            )
            self.refunds.append(result)
            logger.info(f"[MOCK PAYMENT] Refunded {amount} {currency} of {transaction_id} (reason: {reason})")
        else:
            logger.info(f"[MOCK PAYMENT] Refund of {transaction_id} failed: {result.failure_reason}")
        return result

    @property
    def total_charged(self) -> int:
        return sum(c.amount for c in self.charges)

    def clear(self) -> None:
        """Forget recorded charges, refunds and scripted failures."""
        self.charges.clear()
        self.refunds.clear()
        self.charge_requests.clear()
        self._scripted.clear()
        self._by_idempotency_key.clear()
