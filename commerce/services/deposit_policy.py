"""
DepositPolicy - Service Deposits

Computes how much of a service's price is due up front when it is booked,
and what is left to pay afterwards.
"""

from decimal import Decimal

from commerce.domain.models.catalog import DepositType, Service
from commerce.domain.money import Money

from .base import BaseService


class DepositPolicy(BaseService):
    """
    Deposit rules for bookable services.

    Fixed deposits are capped at the price; percentage deposits are taken
    from the price and rounded half-up to the minor unit. Deposit validity
    (a 0-100 percentage, a non-negative fixed amount) is enforced when the
    Service is constructed, so these methods never fail.
    """

    def required_deposit(self, service: Service) -> Money:
        """
        Amount due at booking time.

        Args:
            service: Service being booked

        Returns:
            Deposit in the service's currency, between zero and the price

        Example:
            >>> service = Service("Haircut", Money(15000), requires_deposit=True, deposit_amount=5000)
            >>> DepositPolicy().required_deposit(service)
            Money(amount=5000, currency='USD')
        """
        zero = Money.zero(service.currency)
        if not service.requires_deposit:
            return zero

        if service.deposit_type == DepositType.PERCENTAGE:
            deposit = service.price.percentage(service.deposit_amount)
        else:
            deposit = Money(service.deposit_amount, service.currency)

        return deposit.clamp(zero, service.price)

    def remaining_balance(self, service: Service) -> Money:
        """Price minus the required deposit."""
        return service.price - self.required_deposit(service)

    def describe(self, service: Service) -> str:
        """Customer-facing deposit line, e.g. '$25.00 deposit required' or '20% deposit required'."""
        if not service.requires_deposit:
            return "No deposit required"
        if service.deposit_type == DepositType.PERCENTAGE:
            percent = Decimal(service.deposit_amount).quantize(Decimal("1"))
            return f"{percent}% deposit required"
        return f"{Money(service.deposit_amount, service.currency)} deposit required"
