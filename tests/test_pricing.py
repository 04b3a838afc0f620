"""
Tests for service pricing.
"""

from decimal import Decimal

import pytest

from salonbook.domain.models import Service
from salonbook.domain.pricing import (
    Addon,
    PriceAdjustments,
    calculate_service_price,
    round_money,
)

MANICURE = Service(
    id="0b7e4f3a-8c21-4d6e-a5b9-2f3e4d5c6b01",
    name="Classic Manicure",
    price=Decimal("8000.00"),
    duration_minutes=30,
)
BRAIDS = Service(
    id="0b7e4f3a-8c21-4d6e-a5b9-2f3e4d5c6b02",
    name="Knotless Braids",
    price=Decimal("35000.00"),
    duration_minutes=240,
    minimum_price=Decimal("30000.00"),
)


def test_round_money_half_up():
    assert round_money(Decimal("10.005")) == Decimal("10.01")
    assert round_money(Decimal("10.004")) == Decimal("10.00")


class TestServicePrice:

    def test_base_price(self):
        assert calculate_service_price(MANICURE) == Decimal("8000.00")

    def test_duration_multiplier(self):
        adjustments = PriceAdjustments(duration_minutes=60)
        assert calculate_service_price(MANICURE, adjustments) == Decimal("16000.00")

    def test_peak_surcharge(self):
        adjustments = PriceAdjustments(is_peak_time=True)
        assert calculate_service_price(MANICURE, adjustments) == Decimal("9600.00")

    def test_addons_before_member_discount(self):
        adjustments = PriceAdjustments(
            addons=(Addon(name="Gel polish", price=Decimal("2000.00")),),
            is_member=True,
        )
        assert calculate_service_price(MANICURE, adjustments) == Decimal("9000.00")

    def test_percentage_discount(self):
        adjustments = PriceAdjustments(discount_percent=Decimal("15"))
        assert calculate_service_price(MANICURE, adjustments) == Decimal("6800.00")

    def test_package_sessions(self):
        adjustments = PriceAdjustments(package_sessions=3)
        assert calculate_service_price(MANICURE, adjustments) == Decimal("21600.00")

    def test_minimum_price_floor(self):
        adjustments = PriceAdjustments(is_member=True, discount_percent=Decimal("50"))
        assert calculate_service_price(BRAIDS, adjustments) == Decimal("30000.00")

    @pytest.mark.parametrize("duration", [0, -30])
    def test_service_without_positive_duration_raises_error(self, duration):
        with pytest.raises(ValueError, match="positive duration"):
            Service(id="svc", name="Mystery", price=Decimal("1000.00"), duration_minutes=duration)
