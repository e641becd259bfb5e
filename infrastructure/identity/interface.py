"""
Identity Provider Interface
============================

Abstract base class for looking up the signed-in customer.
"""

from abc import ABC, abstractmethod

from commerce.domain.models.booking import CustomerIdentity


class IdentityUnavailable(Exception):
    """Raised when no customer identity can be resolved."""

    pass


class IdentityProviderInterface(ABC):
    """
    Abstract interface for identity lookups.

    Concrete implementations:
        - StaticIdentityProvider: Fixed identity from settings, for development and tests
    """

    @abstractmethod
    def current_user(self) -> CustomerIdentity:
        """
        Return the signed-in customer.

        Returns:
            CustomerIdentity of the current user

        Raises:
            IdentityUnavailable: If nobody is signed in or the provider is unreachable
        """
        pass
