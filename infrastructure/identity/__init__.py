"""
Identity Abstraction Layer
==========================

Provides the signed-in customer to booking operations.
"""

from commerce.domain.models.booking import CustomerIdentity

from .interface import IdentityProviderInterface, IdentityUnavailable
from .static_provider import StaticIdentityProvider

__all__ = [
    "CustomerIdentity",
    "IdentityProviderInterface",
    "IdentityUnavailable",
    "StaticIdentityProvider",
]
