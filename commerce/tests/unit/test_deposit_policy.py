import pytest

from commerce.domain.models import DepositType, Service
from commerce.domain.money import Money
from commerce.services.deposit_policy import DepositPolicy


def make_service(price, requires_deposit=True, deposit_type=DepositType.FIXED, deposit_amount=0):
    return Service(
        name="Box Braids",
        price=Money(price),
        requires_deposit=requires_deposit,
        deposit_type=deposit_type,
        deposit_amount=deposit_amount,
    )


@pytest.mark.unit
class TestDepositPolicy:
    def setup_method(self):
        self.policy = DepositPolicy()

    def test_fixed_deposit(self):
        service = make_service(15000, deposit_type=DepositType.FIXED, deposit_amount=5000)

        assert self.policy.required_deposit(service) == Money(5000)
        assert self.policy.remaining_balance(service) == Money(10000)

    def test_percentage_deposit(self):
        service = make_service(10000, deposit_type=DepositType.PERCENTAGE, deposit_amount=20)

        assert self.policy.required_deposit(service) == Money(2000)
        assert self.policy.remaining_balance(service) == Money(8000)

    def test_percentage_deposit_rounds_half_up(self):
        # 12.5% of $0.99 = 12.375 cents
        service = make_service(99, deposit_type=DepositType.PERCENTAGE, deposit_amount="12.5")

        assert self.policy.required_deposit(service) == Money(12)

    def test_fixed_deposit_capped_at_price(self):
        service = make_service(3000, deposit_type=DepositType.FIXED, deposit_amount=5000)

        assert self.policy.required_deposit(service) == Money(3000)
        assert self.policy.remaining_balance(service) == Money(0)

    def test_no_deposit_required(self):
        service = make_service(3000, requires_deposit=False, deposit_amount=1000)

        assert self.policy.required_deposit(service) == Money(0)
        assert self.policy.remaining_balance(service) == Money(3000)

    @pytest.mark.parametrize("percentage", [0, 1, 33, 50, 99, 100])
    def test_deposit_within_price(self, percentage):
        service = make_service(12345, deposit_type=DepositType.PERCENTAGE, deposit_amount=percentage)
        deposit = self.policy.required_deposit(service)

        assert Money(0) <= deposit <= service.price
        assert deposit + self.policy.remaining_balance(service) == service.price

    def test_describe(self):
        assert self.policy.describe(make_service(5000, deposit_amount=2500)) == "$25.00 deposit required"
        assert (
            self.policy.describe(make_service(5000, deposit_type=DepositType.PERCENTAGE, deposit_amount=20))
            == "20% deposit required"
        )
        assert self.policy.describe(make_service(5000, requires_deposit=False)) == "No deposit required"
