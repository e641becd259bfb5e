"""
Django settings for the ServU commerce backend.

Secrets and deployment-specific values come from environment variables.
"""

import os
from pathlib import Path

from django.core.exceptions import ImproperlyConfigured

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("SECRET_KEY")
if not SECRET_KEY:
    raise ImproperlyConfigured("SECRET_KEY environment variable is required")

DEBUG = os.environ.get("DEBUG", "False").lower() in ("true", "1", "yes")

ALLOWED_HOSTS = [host for host in os.environ.get("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if host]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "commerce",
]

# The rules engine keeps bookings, carts and inventory in memory
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

USE_TZ = True
TIME_ZONE = os.environ.get("TIME_ZONE", "America/New_York")

# ==============================================================================
# COMMERCE RULES
# ==============================================================================

SERVU_PLATFORM_FEES = {
    "SERVICE_FEE_PERCENTAGE": os.environ.get("SERVU_SERVICE_FEE_PERCENTAGE", "5.0"),
    "STRIPE_FEE_PERCENTAGE": os.environ.get("SERVU_STRIPE_FEE_PERCENTAGE", "2.9"),
    "STRIPE_FEE_FIXED_CENTS": int(os.environ.get("SERVU_STRIPE_FEE_FIXED_CENTS", "30")),
    "CURRENCY": "USD",
}

INVENTORY_MAX_ORDER_QUANTITY = int(os.environ.get("INVENTORY_MAX_ORDER_QUANTITY", "10"))

# ==============================================================================
# PAYMENTS
# ==============================================================================

PAYMENT_PROVIDER = os.environ.get("PAYMENT_PROVIDER", "stripe")
STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "")
STRIPE_PAYMENT_METHOD = os.environ.get("STRIPE_PAYMENT_METHOD") or None

# ==============================================================================
# IDENTITY
# ==============================================================================

# Customer returned by the static identity provider (development only)
SERVU_DEFAULT_CUSTOMER = None
if os.environ.get("SERVU_DEFAULT_CUSTOMER_ID"):
    SERVU_DEFAULT_CUSTOMER = {
        "id": os.environ["SERVU_DEFAULT_CUSTOMER_ID"],
        "display_name": os.environ.get("SERVU_DEFAULT_CUSTOMER_NAME", ""),
        "email": os.environ.get("SERVU_DEFAULT_CUSTOMER_EMAIL", ""),
        "phone": os.environ.get("SERVU_DEFAULT_CUSTOMER_PHONE", ""),
    }

# ==============================================================================
# LOGGING
# ==============================================================================

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {name} {message}",
            "style": "{",
        },
        "simple": {
            "format": "{levelname} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "commerce": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "infrastructure": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}
