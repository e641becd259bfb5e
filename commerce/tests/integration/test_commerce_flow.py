from datetime import datetime, timedelta

from django.test import TestCase, override_settings

from commerce.domain.models import BookingStatus, BusinessRef, DepositType, Inventory, PaymentStatus, Product, Service
from commerce.domain.models.booking import TimeSlot
from commerce.domain.models.shipping import find_shipping_option
from commerce.domain.money import Money
from infrastructure.container import container


@override_settings(
    SERVU_PLATFORM_FEES={
        "SERVICE_FEE_PERCENTAGE": "10",
        "STRIPE_FEE_PERCENTAGE": "2.9",
        "STRIPE_FEE_FIXED_CENTS": 30,
        "CURRENCY": "USD",
    },
    INVENTORY_MAX_ORDER_QUANTITY=5,
)
class CommerceFlowIntegrationTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.payments = container.payment()
        self.start = datetime(2030, 9, 2, 14, 0)

    def tearDown(self):
        container.reset()

    def test_booking_with_deposit_then_refund(self):
        booking_service = container.booking_service()
        braids = Service(
            name="Knotless Braids",
            price=Money(18000),
            requires_deposit=True,
            deposit_type=DepositType.PERCENTAGE,
            deposit_amount=25,
        )
        slot = TimeSlot(self.start, self.start + timedelta(hours=3))

        booking = booking_service.create_booking(braids, BusinessRef("biz-9", "Braid Studio"), slot).value
        self.assertEqual(booking.customer.id, "student-1")
        self.assertEqual(booking.required_deposit, Money(4500))

        self.assertTrue(booking_service.pay_deposit(booking).ok)
        self.assertTrue(booking_service.pay_remaining_balance(booking).ok)
        self.assertEqual(self.payments.total_charged, 18000)

        refunded = booking_service.refund(booking, reason="requested_by_customer").value
        self.assertEqual(refunded.payment_status, PaymentStatus.REFUNDED)
        self.assertEqual(refunded.status, BookingStatus.CONFIRMED)
        self.assertEqual(sum(r.amount for r in self.payments.refunds), 18000)

        cancelled = booking_service.cancel(booking).value
        self.assertEqual(cancelled.status, BookingStatus.CANCELLED)
        self.assertEqual(booking_service.upcoming_bookings(now=self.start - timedelta(days=1)), [])

    def test_cart_checkout_then_commit_stock(self):
        cart = container.new_cart()
        inventory_service = container.inventory_service()
        mug = Product("Campus Mug", Money(1250), inventory=Inventory(quantity=6), business_id="biz-1")

        self.assertEqual(inventory_service.max_order_quantity, 5)
        self.assertTrue(cart.add_item(mug, quantity=4).ok)

        receipt = cart.checkout(find_shipping_option("campus pickup")).value
        self.assertEqual(receipt.total, Money(5000))
        self.assertEqual(receipt.settlement.platform_fee, Money(500))
        self.assertEqual(receipt.settlement.processor_fee, Money(175))
        self.assertEqual(receipt.settlement.net_payout, Money(4325))

        for item in receipt.items:
            commit = inventory_service.commit(item.product, item.variant, item.quantity, receipt.transaction_id)
            self.assertTrue(commit.ok)
            self.assertEqual(commit.value["reference_id"], receipt.transaction_id)

        self.assertEqual(mug.inventory.quantity, 2)
        self.assertTrue(cart.is_empty)
