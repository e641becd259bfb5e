from decimal import Decimal

import pytest

from commerce.domain.exceptions import CurrencyMismatch, InvalidAmount
from commerce.domain.money import Money, sum_money


@pytest.mark.unit
class TestMoney:
    def test_from_decimal_string(self):
        assert Money.from_decimal("12.34") == Money(1234)
        assert Money.from_decimal(Decimal("86.8")) == Money(8680)

    def test_from_decimal_rejects_sub_cent_precision(self):
        with pytest.raises(InvalidAmount):
            Money.from_decimal("1.005")

    @pytest.mark.parametrize("value", ["NaN", "Infinity", "abc", True])
    def test_from_decimal_rejects_non_finite_and_garbage(self, value):
        with pytest.raises(InvalidAmount):
            Money.from_decimal(value)

    def test_float_amount_rejected(self):
        with pytest.raises(InvalidAmount):
            Money(12.5)

    def test_arithmetic_same_currency(self):
        assert Money(1000) + Money(250) == Money(1250)
        assert Money(1000) - Money(250) == Money(750)
        assert Money(250) * 3 == Money(750)
        assert 3 * Money(250) == Money(750)
        assert -Money(100) == Money(-100)

    def test_currency_mismatch(self):
        with pytest.raises(CurrencyMismatch):
            Money(100, "USD") + Money(100, "EUR")
        with pytest.raises(CurrencyMismatch):
            Money(100, "USD") < Money(100, "EUR")

    def test_multiplying_by_float_is_rejected(self):
        with pytest.raises(TypeError):
            Money(100) * 1.5

    def test_percentage_rounds_half_up(self):
        # 2.9% of $0.50 = 1.45 cents -> 1
        assert Money(50).percentage("2.9") == Money(1)
        # 2.9% of $1.50 = 4.35 cents -> 4
        assert Money(150).percentage("2.9") == Money(4)
        # 5% of $0.10 = 0.5 cents -> 1
        assert Money(10).percentage(5) == Money(1)
        assert Money(10000).percentage("2.9") == Money(290)

    def test_ordering_and_clamp(self):
        assert Money(100) < Money(200)
        assert max(Money(100), Money(300), Money(200)) == Money(300)
        assert Money(500).clamp(Money(0), Money(300)) == Money(300)
        assert Money(-5).clamp(Money(0), Money(300)) == Money(0)

    def test_hashable(self):
        assert len({Money(100), Money(100), Money(200)}) == 2

    def test_formatting(self):
        assert str(Money(8680)) == "$86.80"
        assert str(Money(-320)) == "-$3.20"
        assert str(Money(5)) == "$0.05"
        assert str(Money(1999, "EUR")) == "19.99 EUR"

    def test_currency_is_normalized(self):
        assert Money(100, "usd") == Money(100, "USD")

    def test_sum_money(self):
        assert sum_money([Money(100), Money(250)]) == Money(350)
        assert sum_money([]) == Money.zero()
