"""
Money - Fixed-Point Currency Values

Amounts are integer counts of minor units (cents) plus an ISO currency code.
Percentages are computed with Decimal and rounded half-up once, at the final
conversion back to minor units, so no binary float ever touches an amount.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from functools import total_ordering
from typing import Union

from .exceptions import CurrencyMismatch, InvalidAmount

DEFAULT_CURRENCY = "USD"

CURRENCY_SYMBOLS = {
    "USD": "$",
}

Numeric = Union[int, str, Decimal]


def to_decimal(value) -> Decimal:
    """Convert an int/str/Decimal (or a float via its repr) to a finite Decimal."""
    if isinstance(value, bool):
        raise InvalidAmount(f"Not a numeric value: {value!r}")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise InvalidAmount(f"Not a numeric value: {value!r}") from e
    if not result.is_finite():
        raise InvalidAmount(f"Non-finite value: {value!r}")
    return result


@total_ordering
@dataclass(frozen=True)
class Money:
    """
    Immutable amount of money in minor units.

    Attributes:
        amount: Integer count of minor units (e.g. 1050 == $10.50)
        currency: ISO currency code

    Examples:
        >>> Money(15000).percentage(20)
        Money(amount=3000, currency='USD')
        >>> str(Money.from_decimal("86.80"))
        '$86.80'
    """

    amount: int
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self):
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise InvalidAmount(f"Money amount must be an integer number of minor units, got {self.amount!r}")
        object.__setattr__(self, "currency", self.currency.upper())

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> "Money":
        return cls(0, currency)

    @classmethod
    def from_decimal(cls, value: Numeric, currency: str = DEFAULT_CURRENCY) -> "Money":
        """
        Build Money from a major-unit amount such as "12.34".

        Raises:
            InvalidAmount: If the value is non-finite or has sub-cent precision
        """
        major = to_decimal(value)
        minor = major * 100
        if minor != minor.to_integral_value():
            raise InvalidAmount(f"Amount {value!r} has more precision than minor units allow")
        return cls(int(minor), currency)

    def to_decimal(self) -> Decimal:
        return (Decimal(self.amount) / 100).quantize(Decimal("0.01"))

    # Arithmetic

    def _check_currency(self, other: "Money") -> None:
        if not isinstance(other, Money):
            raise TypeError(f"Expected Money, got {type(other).__name__}")
        if other.currency != self.currency:
            raise CurrencyMismatch(f"Cannot combine {self.currency} with {other.currency}")

    def __add__(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, factor: int) -> "Money":
        if isinstance(factor, bool) or not isinstance(factor, int):
            raise TypeError("Money can only be multiplied by an integer; use percentage() for rates")
        return Money(self.amount * factor, self.currency)

    __rmul__ = __mul__

    def __neg__(self) -> "Money":
        return Money(-self.amount, self.currency)

    def percentage(self, percent: Numeric) -> "Money":
        """Return `percent`% of this amount, rounded half-up to the nearest minor unit."""
        rate = to_decimal(percent)
        exact = Decimal(self.amount) * rate / Decimal("100")
        return Money(int(exact.quantize(Decimal("1"), rounding=ROUND_HALF_UP)), self.currency)

    def clamp(self, low: "Money", high: "Money") -> "Money":
        self._check_currency(low)
        self._check_currency(high)
        return max(low, min(self, high))

    # Comparisons

    def __lt__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.amount < other.amount

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    def __str__(self) -> str:
        sign = "-" if self.amount < 0 else ""
        value = (Decimal(abs(self.amount)) / 100).quantize(Decimal("0.01"))
        symbol = CURRENCY_SYMBOLS.get(self.currency)
        if symbol:
            return f"{sign}{symbol}{value}"
        return f"{sign}{value} {self.currency}"


def sum_money(amounts, currency: str = DEFAULT_CURRENCY) -> Money:
    """Sum an iterable of Money, starting from zero in `currency`."""
    total = Money.zero(currency)
    for amount in amounts:
        total = total + amount
    return total
