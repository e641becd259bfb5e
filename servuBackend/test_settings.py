import os

# Mock SECRET_KEY for tests BEFORE importing settings to bypass validation
os.environ.setdefault("SECRET_KEY", "django-insecure-test-key-for-unit-tests-only")

from .settings import *  # noqa: F403

# Never reach Stripe from tests
PAYMENT_PROVIDER = "mock"
STRIPE_SECRET_KEY = "sk_test_mock_key"

SERVU_PLATFORM_FEES = {
    "SERVICE_FEE_PERCENTAGE": "5.0",
    "STRIPE_FEE_PERCENTAGE": "2.9",
    "STRIPE_FEE_FIXED_CENTS": 30,
    "CURRENCY": "USD",
}

INVENTORY_MAX_ORDER_QUANTITY = 10

SERVU_DEFAULT_CUSTOMER = {
    "id": "student-1",
    "display_name": "Jordan Student",
    "email": "jordan@campus.edu",
    "phone": "555-0100",
}

LOGGING["loggers"]["commerce"]["level"] = "DEBUG"  # noqa: F405
