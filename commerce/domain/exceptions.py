class CommerceError(Exception):
    """Base class for commerce rules engine exceptions."""

    code = "commerce_error"


class InvalidAmount(CommerceError):
    """Raised when a monetary value is negative, non-finite or not representable in minor units."""

    code = "invalid_amount"


class InvalidQuantity(CommerceError):
    """Raised when a stock quantity or threshold is negative."""

    code = "invalid_quantity"


class InvalidDepositConfiguration(CommerceError):
    """Raised when a service is created with a deposit outside its allowed range."""

    code = "invalid_deposit_configuration"


class DuplicateVariantError(CommerceError):
    """Raised when two variants of one product share the same attribute signature."""

    code = "duplicate_variant"


class CurrencyMismatch(CommerceError):
    """Raised when arithmetic mixes two currencies."""

    code = "currency_mismatch"
