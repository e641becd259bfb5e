from dataclasses import dataclass

from ..money import Money


@dataclass(frozen=True)
class Settlement:
    """
    Split of a gross charge between the platform, the processor and the business.

    platform_fee + processor_fee + net_payout == gross, always.
    """

    gross: Money
    platform_fee: Money
    processor_fee: Money
    net_payout: Money

    @property
    def total_fees(self) -> Money:
        return self.platform_fee + self.processor_fee

    def to_dict(self) -> dict:
        return {
            "gross": self.gross.amount,
            "platform_fee": self.platform_fee.amount,
            "processor_fee": self.processor_fee.amount,
            "net_payout": self.net_payout.amount,
            "currency": self.gross.currency,
        }


@dataclass(frozen=True)
class PaymentSummary:
    """Checkout breakdown shown to a customer before paying."""

    subtotal: Money
    platform_fee: Money
    processor_fee: Money
    shipping: Money
    total: Money
    business_payout: Money
