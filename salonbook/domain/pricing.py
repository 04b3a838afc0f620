"""
Price calculations for salon services.

All amounts are Decimal and rounded half-up to cents.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Tuple

from .models import Service

CENT = Decimal("0.01")
PEAK_SURCHARGE_RATE = Decimal("1.2")
MEMBER_RATE = Decimal("0.9")
PACKAGE_RATE = Decimal("0.9")


@dataclass(frozen=True)
class Addon:
    name: str
    price: Decimal


@dataclass(frozen=True)
class PriceAdjustments:
    """
    Optional modifiers applied to a service's base price.

    Defaults leave the base price untouched.
    """
    addons: Tuple[Addon, ...] = ()
    duration_minutes: Optional[int] = None
    is_peak_time: bool = False
    is_member: bool = False
    discount_percent: Decimal = Decimal("0")
    package_sessions: Optional[int] = None


def round_money(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_service_price(
    service: Service,
    adjustments: Optional[PriceAdjustments] = None
) -> Decimal:
    """
    Price a service after adjustments.

    Order of application:
    1. Duration multiplier (when booked for a different length)
    2. Peak-time surcharge (+20%)
    3. Add-ons
    4. Member discount (-10%)
    5. Additional percentage discount
    6. Package of n sessions (n x price, -10%)
    7. Floor at the service's minimum price
    """
    adjustments = adjustments or PriceAdjustments()
    price = service.price

    if adjustments.duration_minutes and adjustments.duration_minutes != service.duration_minutes:
        price = service.price * Decimal(adjustments.duration_minutes) / Decimal(service.duration_minutes)

    if adjustments.is_peak_time:
        price *= PEAK_SURCHARGE_RATE

    price += sum((addon.price for addon in adjustments.addons), Decimal("0"))

    if adjustments.is_member:
        price *= MEMBER_RATE

    if adjustments.discount_percent:
        price -= price * adjustments.discount_percent / 100

    if adjustments.package_sessions:
        price = price * adjustments.package_sessions * PACKAGE_RATE

    if service.minimum_price is not None:
        price = max(price, service.minimum_price)

    return round_money(price)
