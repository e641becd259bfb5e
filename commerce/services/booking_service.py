"""
BookingService - Booking Lifecycle

Owns the in-memory booking ledger and drives bookings through their
appointment states (pending, confirmed, in_progress, completed, cancelled,
no_show) and payment states (pending, deposit_paid, fully_paid, refunded).

Bookings are frozen values. Each operation validates against the stored
booking, builds a replacement with dataclasses.replace, and stores it only
once everything (including any payment call) has succeeded. The ledger is
guarded by an RLock; payment calls run outside the lock with a per-booking
in-flight marker so a second payment for the same booking is rejected
instead of double charging.
"""

import threading
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, List, Optional, Set, Union

from django.utils import timezone

from commerce.domain.models.booking import (
    PAYMENT_KIND_TRANSITIONS,
    SLOT_HOLDING_STATUSES,
    Booking,
    BookingStatus,
    BusinessRef,
    CustomerIdentity,
    PaymentKind,
    PaymentRecord,
    PaymentStatus,
    TimeSlot,
    can_transition,
    can_transition_payment,
)
from commerce.domain.models.catalog import Service
from commerce.domain.money import Money
from commerce.infra.observability.metrics import (
    booking_slot_conflicts_total,
    booking_transitions_total,
    bookings_created_total,
    payment_attempts_total,
)
from infrastructure.identity import IdentityProviderInterface, IdentityUnavailable
from infrastructure.payments import ChargeResult, FailureKind, PaymentProviderInterface

from .base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from .deposit_policy import DepositPolicy

BookingRef = Union[Booking, str]

# Booking statuses from which no further charge is accepted
UNCHARGEABLE_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.NO_SHOW})


class BookingService(BaseService):
    """
    Service for creating bookings and moving them through their lifecycle.

    Responsibilities:
    - Create bookings with slot conflict detection
    - Apply appointment status transitions
    - Collect deposits, full payments and remaining balances
    - Refund recorded charges
    - Answer ledger queries (upcoming, past, by customer)
    """

    def __init__(
        self,
        payment_provider: PaymentProviderInterface,
        identity_provider: Optional[IdentityProviderInterface] = None,
        deposit_policy: Optional[DepositPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize BookingService.

        Args:
            payment_provider: Collaborator that charges and refunds customers
            identity_provider: Supplies the customer when create_booking gets none
            deposit_policy: Deposit rules (default: DepositPolicy())
            clock: Returns "now" for upcoming/past queries (default: django.utils.timezone.now)
        """
        super().__init__()
        self.payment_provider = payment_provider
        self.identity_provider = identity_provider
        self.deposit_policy = deposit_policy or DepositPolicy()
        self.clock = clock or timezone.now

        self._bookings: Dict[str, Booking] = {}
        self._lock = threading.RLock()
        self._in_flight: Set[str] = set()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _booking_id(booking: BookingRef) -> str:
        return booking.id if isinstance(booking, Booking) else str(booking)

    def _get(self, booking: BookingRef) -> Optional[Booking]:
        return self._bookings.get(self._booking_id(booking))

    def _find_conflict(self, business_id: str, slot: TimeSlot, exclude_id: Optional[str] = None) -> Optional[Booking]:
        for existing in self._bookings.values():
            if existing.id == exclude_id or existing.business.id != business_id:
                continue
            if existing.status in SLOT_HOLDING_STATUSES and existing.slot.overlaps(slot):
                return existing
        return None

    def _store(self, previous: Booking, updated: Booking) -> Booking:
        self._bookings[updated.id] = updated
        if previous.status != updated.status:
            booking_transitions_total.labels(from_status=previous.status.value, to_status=updated.status.value).inc()
        return updated

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    @BaseService.log_performance
    def create_booking(
        self,
        service: Service,
        business: BusinessRef,
        slot: TimeSlot,
        customer: Optional[CustomerIdentity] = None,
        notes: str = "",
    ) -> ServiceResult[Booking]:
        """
        Book a service into a business's time slot.

        The service is captured as a snapshot: later catalog price changes do
        not affect the booking's total or deposit.

        Args:
            service: Service being booked
            business: Business that owns the slot
            slot: Appointment window; must end after it starts
            customer: Customer identity (default: identity provider's current user)
            notes: Free-text notes from the customer

        Returns:
            ServiceResult with a confirmed Booking whose payment is pending, or
            service_unavailable / invalid_input / slot_unavailable

        Example:
            >>> result = booking_service.create_booking(service, BusinessRef("b1", "Fade Lab"), slot)
            >>> if result.ok:
            ...     booking_service.pay_deposit(result.value)
        """
        if not isinstance(service, Service):
            return service_err(ErrorCodes.INVALID_INPUT, "A Service is required to create a booking")
        if not service.is_available:
            return service_err(ErrorCodes.SERVICE_UNAVAILABLE, f"Service {service.name} is not available for booking")
        if not isinstance(slot, TimeSlot) or not slot.is_valid:
            return service_err(ErrorCodes.INVALID_INPUT, f"Invalid time slot: {slot!r}")

        if customer is None:
            if self.identity_provider is None:
                return service_err(ErrorCodes.INVALID_INPUT, "No customer given and no identity provider configured")
            try:
                customer = self.identity_provider.current_user()
            except IdentityUnavailable as e:
                return service_err(ErrorCodes.INVALID_INPUT, f"Customer identity unavailable: {e}")

        with self._lock:
            conflict = self._find_conflict(business.id, slot)
            if conflict is not None:
                booking_slot_conflicts_total.inc()
                return service_err(
                    ErrorCodes.SLOT_UNAVAILABLE,
                    f"{business.name} is already booked from {conflict.slot.start} to {conflict.slot.end}",
                )

            booking = Booking(
                service=service,
                business=business,
                customer=customer,
                slot=slot,
                total_price=service.price,
                required_deposit=self.deposit_policy.required_deposit(service),
                status=BookingStatus.CONFIRMED,
                payment_status=PaymentStatus.PENDING,
                notes=notes,
            )
            self._bookings[booking.id] = booking

        bookings_created_total.inc()
        self.logger.info(
            f"Booking created: id={booking.id}, service={service.name}, business={business.id}, "
            f"customer={customer.masked_email}, start={slot.start.isoformat()}"
        )
        return service_ok(booking)

    # ------------------------------------------------------------------
    # Appointment transitions
    # ------------------------------------------------------------------

    def _transition(self, booking: BookingRef, target: BookingStatus) -> ServiceResult[Booking]:
        with self._lock:
            current = self._get(booking)
            if current is None:
                return service_err(ErrorCodes.BOOKING_NOT_FOUND, f"Booking {self._booking_id(booking)} not found")
            if not can_transition(current.status, target):
                return service_err(
                    ErrorCodes.INVALID_STATE_TRANSITION,
                    f"Cannot move booking {current.id} from {current.status.value} to {target.value}",
                )
            updated = self._store(current, replace(current, status=target))

        self.logger.info(f"Booking {updated.id}: {current.status.value} -> {target.value}")
        return service_ok(updated)

    @BaseService.log_performance
    def confirm(self, booking: BookingRef) -> ServiceResult[Booking]:
        return self._transition(booking, BookingStatus.CONFIRMED)

    @BaseService.log_performance
    def start(self, booking: BookingRef) -> ServiceResult[Booking]:
        return self._transition(booking, BookingStatus.IN_PROGRESS)

    @BaseService.log_performance
    def complete(self, booking: BookingRef) -> ServiceResult[Booking]:
        return self._transition(booking, BookingStatus.COMPLETED)

    @BaseService.log_performance
    def cancel(self, booking: BookingRef) -> ServiceResult[Booking]:
        """Cancel a pending or confirmed booking. Recorded payments are not refunded."""
        return self._transition(booking, BookingStatus.CANCELLED)

    @BaseService.log_performance
    def mark_no_show(self, booking: BookingRef) -> ServiceResult[Booking]:
        """Mark a pending or confirmed booking as a no-show. Recorded payments are kept."""
        return self._transition(booking, BookingStatus.NO_SHOW)

    @BaseService.log_performance
    def reschedule(self, booking: BookingRef, new_slot: TimeSlot) -> ServiceResult[Booking]:
        """
        Move a confirmed booking to a new slot.

        The new slot is checked against the business's other bookings; the
        booking's own current slot does not count as a conflict.

        Returns:
            ServiceResult with the moved Booking, or invalid_input /
            invalid_state_transition / slot_unavailable
        """
        if not isinstance(new_slot, TimeSlot) or not new_slot.is_valid:
            return service_err(ErrorCodes.INVALID_INPUT, f"Invalid time slot: {new_slot!r}")

        with self._lock:
            current = self._get(booking)
            if current is None:
                return service_err(ErrorCodes.BOOKING_NOT_FOUND, f"Booking {self._booking_id(booking)} not found")
            if current.status != BookingStatus.CONFIRMED:
                return service_err(
                    ErrorCodes.INVALID_STATE_TRANSITION,
                    f"Only confirmed bookings can be rescheduled; booking {current.id} is {current.status.value}",
                )
            conflict = self._find_conflict(current.business.id, new_slot, exclude_id=current.id)
            if conflict is not None:
                booking_slot_conflicts_total.inc()
                return service_err(
                    ErrorCodes.SLOT_UNAVAILABLE,
                    f"{current.business.name} is already booked from {conflict.slot.start} to {conflict.slot.end}",
                )
            updated = self._store(current, replace(current, slot=new_slot))

        self.logger.info(f"Booking {updated.id} rescheduled to {new_slot.start.isoformat()}")
        return service_ok(updated)

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def _settle(self, booking: BookingRef, kind: PaymentKind) -> ServiceResult[Booking]:
        """Validate, charge and record one payment of the given kind."""
        with self._lock:
            current = self._get(booking)
            if current is None:
                return service_err(ErrorCodes.BOOKING_NOT_FOUND, f"Booking {self._booking_id(booking)} not found")
            if current.id in self._in_flight:
                return service_err(
                    ErrorCodes.PAYMENT_IN_PROGRESS, f"A payment for booking {current.id} is already in progress"
                )

            source, target = PAYMENT_KIND_TRANSITIONS[kind]
            allowed = current.payment_status == source and can_transition_payment(source, target)
            if kind == PaymentKind.DEPOSIT:
                allowed = allowed and not current.is_terminal
                amount = current.required_deposit
                if allowed and not current.service.requires_deposit:
                    return service_err(
                        ErrorCodes.INVALID_STATE_TRANSITION, f"Service {current.service.name} does not take deposits"
                    )
            elif kind == PaymentKind.FULL:
                amount = current.total_price
            else:
                amount = current.remaining_balance

            if not allowed or current.status in UNCHARGEABLE_STATUSES:
                return service_err(
                    ErrorCodes.INVALID_STATE_TRANSITION,
                    f"Cannot take a {kind.value} payment for booking {current.id} "
                    f"(status={current.status.value}, payment_status={current.payment_status.value})",
                )

            if amount.is_zero:
                if kind == PaymentKind.DEPOSIT:
                    return service_err(ErrorCodes.INVALID_AMOUNT, f"Booking {current.id} has a zero deposit")
                # Nothing left to collect
                updated = self._store(current, replace(current, payment_status=target))
                self.logger.info(f"Booking {current.id} settled {kind.value} without a charge")
                return service_ok(updated)

            self._in_flight.add(current.id)

        try:
            result = self._charge(current, kind, amount)

            with self._lock:
                if not result.success:
                    return self._payment_failure(current, kind, result)

                latest = self._bookings[current.id]
                record = PaymentRecord(
                    kind=kind,
                    amount=amount,
                    transaction_id=result.transaction_id,
                    recorded_at=timezone.now(),
                )
                updated = self._store(
                    latest, replace(latest, payment_status=target, payments=latest.payments + (record,))
                )
        finally:
            with self._lock:
                self._in_flight.discard(current.id)

        payment_attempts_total.labels(kind=kind.value, outcome="succeeded").inc()
        self.logger.info(
            f"Booking {updated.id}: {kind.value} of {amount} recorded ({result.transaction_id}), "
            f"payment_status={target.value}"
        )
        return service_ok(updated)

    def _charge(self, booking: Booking, kind: PaymentKind, amount: Money) -> ChargeResult:
        try:
            return self.payment_provider.charge(
                amount_minor=amount.amount,
                currency=amount.currency,
                description=f"{booking.service.name} ({kind.value.replace('_', ' ')})",
                metadata={"booking_id": booking.id, "payment_kind": kind.value, "business_id": booking.business.id},
                idempotency_key=f"booking-{booking.id}-{kind.value}-{uuid.uuid4().hex}",
            )
        except Exception as e:
            self.logger.error(f"Payment provider raised while charging booking {booking.id}: {e}", exc_info=True)
            return ChargeResult.failed(FailureKind.NETWORK, str(e), amount.amount, amount.currency)

    def _payment_failure(self, booking: Booking, kind: PaymentKind, result: ChargeResult) -> ServiceResult:
        if result.failure_kind == FailureKind.DECLINED:
            outcome, code = "declined", ErrorCodes.DECLINED_BY_PROCESSOR
        else:
            outcome, code = "network_error", ErrorCodes.NETWORK_OR_CONFIGURATION_ERROR
        payment_attempts_total.labels(kind=kind.value, outcome=outcome).inc()
        self.logger.warning(f"Booking {booking.id}: {kind.value} payment failed ({outcome}): {result.failure_reason}")
        return service_err(code, result.failure_reason or outcome)

    @BaseService.log_performance
    def pay_deposit(self, booking: BookingRef) -> ServiceResult[Booking]:
        """
        Charge the booking's required deposit.

        Requires a deposit-taking service, payment status pending and a
        non-terminal booking. On success payment status becomes deposit_paid.
        """
        return self._settle(booking, PaymentKind.DEPOSIT)

    @BaseService.log_performance
    def pay_full(self, booking: BookingRef) -> ServiceResult[Booking]:
        """Charge the full price of a booking whose payment is still pending."""
        return self._settle(booking, PaymentKind.FULL)

    @BaseService.log_performance
    def pay_remaining_balance(self, booking: BookingRef) -> ServiceResult[Booking]:
        """
        Charge what is left after the deposit.

        Only valid once the deposit is paid. A zero balance moves the booking
        to fully_paid without calling the payment provider.
        """
        return self._settle(booking, PaymentKind.REMAINING_BALANCE)

    @BaseService.log_performance
    def refund(self, booking: BookingRef, reason: str = "") -> ServiceResult[Booking]:
        """
        Refund every recorded charge on a paid booking.

        Charges are refunded one at a time. If a refund fails, the refunds
        that already went through are still recorded and the payment status
        is left unchanged, so calling refund() again only returns what is
        still outstanding.

        Args:
            booking: Booking (or booking ID) to refund
            reason: Free-text reason passed to the payment provider (Stripe keeps
                anything other than its own reason codes in refund metadata)

        Returns:
            ServiceResult with the refunded Booking, or invalid_state_transition /
            payment_in_progress / a payment failure code
        """
        with self._lock:
            current = self._get(booking)
            if current is None:
                return service_err(ErrorCodes.BOOKING_NOT_FOUND, f"Booking {self._booking_id(booking)} not found")
            if current.id in self._in_flight:
                return service_err(
                    ErrorCodes.PAYMENT_IN_PROGRESS, f"A payment for booking {current.id} is already in progress"
                )
            if not can_transition_payment(current.payment_status, PaymentStatus.REFUNDED):
                return service_err(
                    ErrorCodes.INVALID_STATE_TRANSITION,
                    f"Booking {current.id} has nothing to refund (payment_status={current.payment_status.value})",
                )
            self._in_flight.add(current.id)

        refunds: List[PaymentRecord] = []
        failure: Optional[ChargeResult] = None
        try:
            for charge in current.unrefunded_charges:
                try:
                    result = self.payment_provider.refund(
                        transaction_id=charge.transaction_id,
                        amount_minor=charge.amount.amount,
                        reason=reason or None,
                    )
                except Exception as e:
                    self.logger.error(
                        f"Payment provider raised while refunding {charge.transaction_id}: {e}", exc_info=True
                    )
                    result = ChargeResult.failed(FailureKind.NETWORK, str(e), charge.amount.amount)

                if not result.success:
                    failure = result
                    break
                refunds.append(
                    PaymentRecord(
                        kind=PaymentKind.REFUND,
                        amount=charge.amount,
                        transaction_id=result.transaction_id,
                        recorded_at=timezone.now(),
                        refunded_transaction_id=charge.transaction_id,
                    )
                )

            with self._lock:
                latest = self._bookings[current.id]
                if failure is not None:
                    if refunds:
                        self._store(latest, replace(latest, payments=latest.payments + tuple(refunds)))
                    return self._payment_failure(current, PaymentKind.REFUND, failure)

                updated = self._store(
                    latest,
                    replace(latest, payment_status=PaymentStatus.REFUNDED, payments=latest.payments + tuple(refunds)),
                )
        finally:
            with self._lock:
                self._in_flight.discard(current.id)

        payment_attempts_total.labels(kind=PaymentKind.REFUND.value, outcome="succeeded").inc()
        self.logger.info(f"Booking {updated.id} refunded {updated.amount_refunded} (reason: {reason or 'none'})")
        return service_ok(updated)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_booking(self, booking_id: str) -> ServiceResult[Booking]:
        with self._lock:
            booking = self._bookings.get(booking_id)
        if booking is None:
            return service_err(ErrorCodes.BOOKING_NOT_FOUND, f"Booking {booking_id} not found")
        return service_ok(booking)

    def list_bookings(self, customer_id: Optional[str] = None, business_id: Optional[str] = None) -> List[Booking]:
        """All bookings, optionally filtered by customer or business, ordered by start time."""
        with self._lock:
            bookings = list(self._bookings.values())
        if customer_id is not None:
            bookings = [b for b in bookings if b.customer.id == customer_id]
        if business_id is not None:
            bookings = [b for b in bookings if b.business.id == business_id]
        return sorted(bookings, key=lambda b: b.slot.start)

    def upcoming_bookings(self, now: Optional[datetime] = None, customer_id: Optional[str] = None) -> List[Booking]:
        """Pending or confirmed bookings starting at or after `now`, soonest first."""
        now = now or self.clock()
        return [b for b in self.list_bookings(customer_id=customer_id) if b.is_upcoming(now)]

    def past_bookings(self, now: Optional[datetime] = None, customer_id: Optional[str] = None) -> List[Booking]:
        """Bookings that started before `now` or reached a terminal status, most recent first."""
        now = now or self.clock()
        past = [b for b in self.list_bookings(customer_id=customer_id) if b.is_past(now)]
        return list(reversed(past))
