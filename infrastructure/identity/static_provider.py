"""
Static Identity Provider
========================

Identity provider that always returns the same customer, configured in
settings. Used in development and tests in place of the campus sign-in.
"""

import logging
from typing import Optional

from django.conf import settings

from commerce.domain.models.booking import CustomerIdentity

from .interface import IdentityProviderInterface, IdentityUnavailable

logger = logging.getLogger(__name__)


class StaticIdentityProvider(IdentityProviderInterface):
    """
    Identity provider backed by a fixed CustomerIdentity.

    Configuration (in settings.py):
        SERVU_DEFAULT_CUSTOMER: dict with 'id', 'display_name', 'email', 'phone'
    """

    def __init__(self, identity: Optional[CustomerIdentity] = None):
        if identity is None:
            configured = getattr(settings, "SERVU_DEFAULT_CUSTOMER", None)
            if configured:
                identity = CustomerIdentity(
                    id=str(configured["id"]),
                    display_name=configured.get("display_name", ""),
                    email=configured.get("email", ""),
                    phone=configured.get("phone", ""),
                )
        self.identity = identity

    def sign_in(self, identity: CustomerIdentity) -> None:
        self.identity = identity
        logger.info(f"Signed in as {identity.id} ({identity.masked_email})")

    def sign_out(self) -> None:
        self.identity = None

    def current_user(self) -> CustomerIdentity:
        if self.identity is None:
            raise IdentityUnavailable("No customer is signed in")
        return self.identity
