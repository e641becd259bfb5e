"""
FeeCalculator - Platform and Processor Fees

Splits a gross charge into the platform fee, the card processor fee and the
business's net payout. All math runs on integer minor units; percentages go
through Money.percentage(), which rounds half-up once per fee.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from commerce.domain.exceptions import InvalidAmount
from commerce.domain.models.settlement import PaymentSummary, Settlement
from commerce.domain.money import DEFAULT_CURRENCY, Money, to_decimal

from .base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok


@dataclass(frozen=True)
class PlatformFeeConfig:
    """
    Immutable fee schedule, loaded once and injected into services.

    Attributes:
        service_fee_percentage: Platform cut, 0-100
        stripe_fee_percentage: Processor percentage, 0-100
        stripe_fee_fixed: Processor flat fee per charge
        currency: Currency all fees are expressed in
    """

    service_fee_percentage: Decimal = Decimal("5.0")
    stripe_fee_percentage: Decimal = Decimal("2.9")
    stripe_fee_fixed: Money = Money(30)
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self):
        for label in ("service_fee_percentage", "stripe_fee_percentage"):
            try:
                value = to_decimal(getattr(self, label))
            except InvalidAmount as e:
                raise ImproperlyConfigured(f"{label}: {e}") from e
            if value < 0 or value > 100:
                raise ImproperlyConfigured(f"{label} must be between 0 and 100, got {value}")
            object.__setattr__(self, label, value)

        if not isinstance(self.stripe_fee_fixed, Money) or self.stripe_fee_fixed.is_negative:
            raise ImproperlyConfigured(f"stripe_fee_fixed must be a non-negative Money, got {self.stripe_fee_fixed!r}")
        if self.stripe_fee_fixed.currency != self.currency.upper():
            raise ImproperlyConfigured(
                f"stripe_fee_fixed currency {self.stripe_fee_fixed.currency} does not match {self.currency}"
            )

    @classmethod
    def from_settings(cls) -> "PlatformFeeConfig":
        """
        Build the fee schedule from Django settings.

        Reads the `SERVU_PLATFORM_FEES` dict; missing keys fall back to the
        defaults (5% service fee, 2.9% + $0.30 processor fee, USD).

        Raises:
            ImproperlyConfigured: If any configured value is out of range
        """
        fees = getattr(settings, "SERVU_PLATFORM_FEES", {}) or {}
        currency = fees.get("CURRENCY", DEFAULT_CURRENCY)
        fixed_cents = fees.get("STRIPE_FEE_FIXED_CENTS", 30)
        if isinstance(fixed_cents, bool) or not isinstance(fixed_cents, int):
            raise ImproperlyConfigured(f"STRIPE_FEE_FIXED_CENTS must be an integer, got {fixed_cents!r}")

        return cls(
            service_fee_percentage=fees.get("SERVICE_FEE_PERCENTAGE", Decimal("5.0")),
            stripe_fee_percentage=fees.get("STRIPE_FEE_PERCENTAGE", Decimal("2.9")),
            stripe_fee_fixed=Money(fixed_cents, currency),
            currency=currency,
        )


class FeeCalculator(BaseService):
    """
    Service for computing settlements and checkout summaries.

    Responsibilities:
    - Split a gross charge into platform fee, processor fee and net payout
    - Build the customer-facing payment summary for a checkout

    All methods are stateless; the fee schedule is fixed at construction.
    """

    def __init__(self, config: Optional[PlatformFeeConfig] = None):
        super().__init__()
        self.config = config or PlatformFeeConfig.from_settings()

    def _validate_gross(self, gross) -> Optional[ServiceResult]:
        if not isinstance(gross, Money):
            return service_err(ErrorCodes.INVALID_AMOUNT, f"Gross must be Money, got {type(gross).__name__}")
        if gross.is_negative:
            return service_err(ErrorCodes.INVALID_AMOUNT, f"Gross cannot be negative: {gross}")
        if gross.currency != self.config.currency.upper():
            return service_err(
                ErrorCodes.INVALID_AMOUNT,
                f"Gross currency {gross.currency} does not match fee currency {self.config.currency}",
            )
        return None

    @BaseService.log_performance
    def compute_settlement(self, gross: Money) -> ServiceResult[Settlement]:
        """
        Split a gross charge into fees and the business's net payout.

        Each fee is rounded half-up to the minor unit on its own; whatever
        remains after both fees is the net payout, so the three parts always
        add back up to the gross. Fees are capped at the gross (platform fee
        first), so the net payout is never negative.

        Args:
            gross: Amount charged to the customer

        Returns:
            ServiceResult with a Settlement, or invalid_amount for a negative gross

        Example:
            >>> calculator = FeeCalculator(PlatformFeeConfig(service_fee_percentage=10))
            >>> result = calculator.compute_settlement(Money(10000))
            >>> result.value.net_payout
            Money(amount=8680, currency='USD')
        """
        invalid = self._validate_gross(gross)
        if invalid:
            return invalid

        zero = Money.zero(gross.currency)
        if gross.is_zero:
            return service_ok(Settlement(gross=gross, platform_fee=zero, processor_fee=zero, net_payout=zero))

        platform_fee = gross.percentage(self.config.service_fee_percentage).clamp(zero, gross)
        processor_fee = gross.percentage(self.config.stripe_fee_percentage) + self.config.stripe_fee_fixed
        processor_fee = processor_fee.clamp(zero, gross - platform_fee)
        net_payout = gross - platform_fee - processor_fee

        settlement = Settlement(
            gross=gross,
            platform_fee=platform_fee,
            processor_fee=processor_fee,
            net_payout=net_payout,
        )

        self.logger.info(
            f"Settlement for {gross}: platform={platform_fee}, processor={processor_fee}, net={net_payout}"
        )
        return service_ok(settlement)

    def total_fees(self, gross: Money) -> ServiceResult[Money]:
        """Platform plus processor fee for a gross amount."""
        return self.compute_settlement(gross).map(lambda s: s.total_fees)

    @BaseService.log_performance
    def checkout_summary(self, subtotal: Money, shipping: Optional[Money] = None) -> ServiceResult[PaymentSummary]:
        """
        Build the payment summary shown before a cart checkout.

        The customer pays subtotal plus shipping. Fees are taken out of the
        merchandise subtotal, so the business payout is the subtotal's net
        payout; shipping is passed through unchanged.

        Args:
            subtotal: Sum of cart line totals
            shipping: Price of the selected shipping option (default: free)

        Returns:
            ServiceResult with a PaymentSummary
        """
        shipping = shipping if shipping is not None else Money.zero(self.config.currency)
        invalid = self._validate_gross(shipping)
        if invalid:
            return invalid

        return self.compute_settlement(subtotal).map(
            lambda settlement: PaymentSummary(
                subtotal=subtotal,
                platform_fee=settlement.platform_fee,
                processor_fee=settlement.processor_fee,
                shipping=shipping,
                total=subtotal + shipping,
                business_payout=settlement.net_payout,
            )
        )
