from dataclasses import dataclass
from typing import Optional, Tuple

from ..money import Money


@dataclass(frozen=True)
class ShippingOption:
    name: str
    price: Money
    estimated_days: str = ""


CAMPUS_PICKUP = ShippingOption("Campus Pickup", Money(0), "Same day")
DORM_DELIVERY = ShippingOption("Dorm Delivery", Money(300), "Same day")
LOCAL_DELIVERY = ShippingOption("Local Delivery", Money(500), "1-2 days")
STANDARD_SHIPPING = ShippingOption("Standard Shipping", Money(799), "3-5 days")
EXPRESS_SHIPPING = ShippingOption("Express Shipping", Money(1299), "1-2 days")
FREE_SHIPPING = ShippingOption("Free Shipping", Money(0), "5-7 days")

DEFAULT_SHIPPING_OPTIONS: Tuple[ShippingOption, ...] = (
    CAMPUS_PICKUP,
    DORM_DELIVERY,
    LOCAL_DELIVERY,
    STANDARD_SHIPPING,
    EXPRESS_SHIPPING,
    FREE_SHIPPING,
)


def find_shipping_option(name: str, options=DEFAULT_SHIPPING_OPTIONS) -> Optional[ShippingOption]:
    for option in options:
        if option.name.lower() == name.lower():
            return option
    return None
