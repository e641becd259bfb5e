"""
Booking aggregate and its appointment/payment state machines.

A Booking is a frozen value. Every transition produces a new Booking via
`dataclasses.replace`; the booking ledger swaps the stored value only after
the transition (and any payment call) has succeeded.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from django.utils import timezone

from ..money import Money, sum_money
from .catalog import Service


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    DEPOSIT_PAID = "deposit_paid"
    FULLY_PAID = "fully_paid"
    REFUNDED = "refunded"


class PaymentKind(str, Enum):
    DEPOSIT = "deposit"
    FULL = "full"
    REMAINING_BALANCE = "remaining_balance"
    REFUND = "refund"


BOOKING_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset(
        {BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
    ),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
    ),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}

PAYMENT_TRANSITIONS: Dict[PaymentStatus, FrozenSet[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.DEPOSIT_PAID, PaymentStatus.FULLY_PAID}),
    PaymentStatus.DEPOSIT_PAID: frozenset({PaymentStatus.FULLY_PAID, PaymentStatus.REFUNDED}),
    PaymentStatus.FULLY_PAID: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.REFUNDED: frozenset(),
}

# Payment status a charge of each kind starts from, and the status it moves to
PAYMENT_KIND_TRANSITIONS: Dict[PaymentKind, Tuple[PaymentStatus, PaymentStatus]] = {
    PaymentKind.DEPOSIT: (PaymentStatus.PENDING, PaymentStatus.DEPOSIT_PAID),
    PaymentKind.FULL: (PaymentStatus.PENDING, PaymentStatus.FULLY_PAID),
    PaymentKind.REMAINING_BALANCE: (PaymentStatus.DEPOSIT_PAID, PaymentStatus.FULLY_PAID),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in BOOKING_TRANSITIONS.items() if not targets
)

# Statuses that hold a business's time slot
SLOT_HOLDING_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS})


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in BOOKING_TRANSITIONS[current]


def can_transition_payment(current: PaymentStatus, target: PaymentStatus) -> bool:
    return target in PAYMENT_TRANSITIONS[current]


@dataclass(frozen=True)
class TimeSlot:
    """Half-open appointment window [start, end)."""

    start: datetime
    end: datetime

    @property
    def is_valid(self) -> bool:
        return (
            isinstance(self.start, datetime)
            and isinstance(self.end, datetime)
            and (self.start.tzinfo is None) == (self.end.tzinfo is None)
            and self.end > self.start
        )

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: "TimeSlot") -> bool:
        # Touching slots (one ends exactly when the other starts) do not overlap
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class BusinessRef:
    id: str
    name: str


@dataclass(frozen=True)
class CustomerIdentity:
    """Who a booking is for, as reported by the identity provider."""

    id: str
    display_name: str
    email: str = ""
    phone: str = ""

    @property
    def masked_email(self) -> str:
        """Email safe for log lines, e.g. 'j***@campus.edu'."""
        if "@" not in self.email:
            return "***"
        local, domain = self.email.split("@", 1)
        return f"{local[:1]}***@{domain}"


@dataclass(frozen=True)
class PaymentRecord:
    """
    A charge or refund recorded against a booking.

    For refunds, `refunded_transaction_id` names the charge that was returned.
    """

    kind: PaymentKind
    amount: Money
    transaction_id: str
    recorded_at: datetime
    refunded_transaction_id: Optional[str] = None

    @property
    def is_charge(self) -> bool:
        return self.kind != PaymentKind.REFUND


@dataclass(frozen=True)
class Booking:
    """
    A customer's appointment with a business for one service.

    The service is held as a snapshot, so `total_price` and `required_deposit`
    are fixed at creation and never follow later catalog edits.

    Attributes:
        service: Service snapshot taken when the booking was created
        business: Business that owns the slot
        customer: Customer identity
        slot: Appointment window
        total_price: Service price at booking time
        required_deposit: Deposit due at booking time (zero when none)
        status: Appointment status
        payment_status: Payment status
        payments: Charges and refunds recorded against this booking
    """

    service: Service
    business: BusinessRef
    customer: CustomerIdentity
    slot: TimeSlot
    total_price: Money
    required_deposit: Money
    status: BookingStatus = BookingStatus.CONFIRMED
    payment_status: PaymentStatus = PaymentStatus.PENDING
    notes: str = ""
    payments: Tuple[PaymentRecord, ...] = ()
    created_at: datetime = field(default_factory=timezone.now)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def appointment_date(self) -> date:
        return self.slot.start.date()

    @property
    def start_time(self) -> datetime:
        return self.slot.start

    @property
    def end_time(self) -> datetime:
        return self.slot.end

    @property
    def requires_deposit(self) -> bool:
        return self.service.requires_deposit and not self.required_deposit.is_zero

    @property
    def remaining_balance(self) -> Money:
        return self.total_price - self.required_deposit

    @property
    def charges(self) -> Tuple[PaymentRecord, ...]:
        return tuple(p for p in self.payments if p.is_charge)

    @property
    def unrefunded_charges(self) -> Tuple[PaymentRecord, ...]:
        refunded = {p.refunded_transaction_id for p in self.payments if p.kind == PaymentKind.REFUND}
        return tuple(p for p in self.charges if p.transaction_id not in refunded)

    @property
    def amount_paid(self) -> Money:
        return sum_money((p.amount for p in self.charges), self.total_price.currency)

    @property
    def amount_refunded(self) -> Money:
        refunds = (p.amount for p in self.payments if p.kind == PaymentKind.REFUND)
        return sum_money(refunds, self.total_price.currency)

    @property
    def next_payment_amount(self) -> Money:
        """What the customer owes next given the current payment status."""
        if self.payment_status == PaymentStatus.PENDING:
            return self.required_deposit if self.requires_deposit else self.total_price
        if self.payment_status == PaymentStatus.DEPOSIT_PAID:
            return self.remaining_balance
        return Money.zero(self.total_price.currency)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def _comparable_now(self, now: Optional[datetime]) -> datetime:
        # Naive slots are wall-clock times in the current time zone
        now = now or timezone.now()
        if timezone.is_aware(self.slot.start) and timezone.is_naive(now):
            return timezone.make_aware(now)
        if timezone.is_naive(self.slot.start) and timezone.is_aware(now):
            return timezone.make_naive(now)
        return now

    def is_upcoming(self, now: Optional[datetime] = None) -> bool:
        now = self._comparable_now(now)
        return self.slot.start >= now and self.status in (BookingStatus.PENDING, BookingStatus.CONFIRMED)

    def is_past(self, now: Optional[datetime] = None) -> bool:
        now = self._comparable_now(now)
        return self.slot.start < now or self.is_terminal

    def can_cancel(self, now: Optional[datetime] = None) -> bool:
        return self.is_upcoming(now)

    def can_reschedule(self, now: Optional[datetime] = None) -> bool:
        return self.is_upcoming(now) and self.status == BookingStatus.CONFIRMED
