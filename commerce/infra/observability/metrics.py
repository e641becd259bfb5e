from prometheus_client import Counter, Gauge, Histogram


# Booking Metrics
bookings_created_total = Counter("servu_bookings_created_total", "Total bookings created")
booking_slot_conflicts_total = Counter("servu_booking_slot_conflicts_total", "Booking requests rejected for overlap")
booking_transitions_total = Counter(
    "servu_booking_transitions_total", "Booking status transitions", ["from_status", "to_status"]
)

# Payment Metrics
payment_attempts_total = Counter(
    "servu_payment_attempts_total", "Payment collaborator calls", ["kind", "outcome"]
)

# Checkout Metrics
checkout_value = Histogram(
    "servu_checkout_value_dollars",
    "Checkout value distribution",
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 5000, float("inf")],
)

# Stock Metrics
stock_commit_failures = Counter("servu_stock_commit_failures_total", "Stock commits rejected for insufficient stock")
stock_low_alert = Gauge("servu_stock_low_alert", "Inventory records at or below their low stock threshold")
